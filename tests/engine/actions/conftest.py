# tests/engine/actions/conftest.py
from typing import List, Optional
import pytest

from actionbuttons.engine.actions.registry import ActionRegistry, BaseAction
from actionbuttons.engine.actions.chain import ActionChainExecutor

class RecordingAction(BaseAction):
    """Records its value; returns the descriptor's `result` extra (default True)."""
    calls: List[str] = []
    hook = None

    async def execute(self) -> Optional[bool]:
        RecordingAction.calls.append(self.item.value)
        if RecordingAction.hook is not None:
            RecordingAction.hook(self.item)
        return getattr(self.item, "result", True)

class SelectingAction(RecordingAction):
    mutates_selections = True

@pytest.fixture
def recording_registry():
    RecordingAction.calls = []
    RecordingAction.hook = None
    registry = ActionRegistry()
    registry.register("record")(RecordingAction)
    registry.register("select")(SelectingAction)
    return registry

@pytest.fixture
def recorded():
    return RecordingAction

@pytest.fixture
def recording_executor(session, dialogs, log_sink, test_settings, widget_state, recording_registry):
    return ActionChainExecutor(
        session=session,
        dialogs=dialogs,
        log_sink=log_sink,
        settings=test_settings,
        registry=recording_registry,
        state=widget_state
    )
