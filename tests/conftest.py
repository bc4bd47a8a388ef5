# tests/conftest.py

import asyncio
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock
import pytest

from actionbuttons.core.config import Settings
from actionbuttons.engine.platform import DialogOptions, FutureDialogService, SessionOptions
from actionbuttons.engine.actions.chain import ActionChainExecutor, WidgetState
from actionbuttons.engine.actions.definitions import ExecutionContext

MANUAL = object()

# --- Mock Implementations ---

class FakeField:
    """A field handle whose selection primitives are AsyncMocks."""
    def __init__(self, name: str, exists: bool = True):
        self.name = name
        self.exists = exists
        for method in (
            "select_values", "toggle_select", "clear", "clear_other", "lock", "unlock",
            "select_all", "select_possible", "select_alternative", "select_excluded"
        ):
            setattr(self, method, AsyncMock(return_value=True))

class FakeSession:
    """An in-memory analytics session. Unknown field names resolve to missing handles."""
    def __init__(self):
        self.options = SessionOptions(host="bi.example.com", port=443, prefix="hub", isSecure=True)
        self.fields: Dict[str, FakeField] = {}
        self.field_calls: List[tuple] = []
        self.calls: List[tuple] = []
        self.clear_all = AsyncMock()
        self.lock_all = AsyncMock()
        self.unlock_all = AsyncMock()
        self.back = AsyncMock()
        self.forward = AsyncMock()
        self.apply_bookmark = AsyncMock()
        self.apply_theme = AsyncMock()
        self.set_num_variable = AsyncMock(side_effect=self._record("num"))
        self.set_string_variable = AsyncMock(side_effect=self._record("str"))
        self.create_list = AsyncMock()
        self.create_cube = AsyncMock()
        self.destroy_session_object = AsyncMock()
        self.do_reload = AsyncMock(return_value=True)
        self.do_save = AsyncMock()
        self.cancel_reload = AsyncMock()
        self.get_sheets = AsyncMock(return_value=[])
        self.is_personal_mode = AsyncMock(return_value=False)

    def _record(self, kind: str):
        def record(name, value):
            self.calls.append((kind, name, value))
            return True
        return record

    def add_field(self, name: str) -> FakeField:
        self.fields[name] = FakeField(name)
        return self.fields[name]

    def field(self, name: str, state: Optional[str] = None) -> FakeField:
        self.field_calls.append((name, state))
        return self.fields.get(name) or FakeField(name, exists=False)

class ScriptedDialogService(FutureDialogService):
    """
    Closes every dialog it shows with a scripted result, keyed by dialog title.
    Titles scripted as MANUAL stay open until the test closes them.
    """
    def __init__(self, results: Optional[Dict[Optional[str], Any]] = None, default: Any = True):
        super().__init__()
        self.results = results or {}
        self.default = default

    def show(self, options: DialogOptions):
        dialog = super().show(options)
        result = self.results.get(options.title, self.default)
        if result is not MANUAL:
            asyncio.get_running_loop().call_soon(dialog.close, result)
        return dialog

    def titles(self) -> List[Optional[str]]:
        return [d.input.title for d in self.dialogs]

async def close_when(dialogs: FutureDialogService, title: str, result: Any = True, attempts: int = 2000):
    """Wait until an open dialog carries `title`, then close it with `result`."""
    for _ in range(attempts):
        for dialog in dialogs.open_dialogs:
            if dialog.input.title == title:
                dialog.close(result)
                return dialog
        await asyncio.sleep(0.001)
    raise AssertionError(f"Dialog {title!r} never appeared")

class RecordingLogSink:
    def __init__(self):
        self.saved: Dict[str, str] = {}

    def save(self, filename: str, text: str):
        self.saved[filename] = text

# --- Pytest Fixtures ---

@pytest.fixture
def test_settings(tmp_path):
    return Settings(
        FIELD_SETTLE_DELAY_MS=0,
        VARIABLE_SETTLE_DELAY_MS=0,
        PROGRESS_TICK_MS=1,
        DEFAULT_DELAY_MS=0,
        LOG_DOWNLOAD_DIR=str(tmp_path / "downloads")
    )

@pytest.fixture
def session():
    return FakeSession()

@pytest.fixture
def dialogs():
    return ScriptedDialogService()

@pytest.fixture
def log_sink():
    return RecordingLogSink()

@pytest.fixture
def navigator():
    navigator = MagicMock()
    navigator.EDIT = "edit"
    navigator.goto_sheet = AsyncMock()
    navigator.next_sheet = AsyncMock()
    navigator.prev_sheet = AsyncMock()
    navigator.goto_story = AsyncMock()
    navigator.is_mode_allowed.return_value = True
    return navigator

@pytest.fixture
def widget_state():
    return WidgetState()

@pytest.fixture
def context():
    return ExecutionContext()

@pytest.fixture
def executor(session, dialogs, log_sink, test_settings, widget_state):
    return ActionChainExecutor(
        session=session,
        dialogs=dialogs,
        log_sink=log_sink,
        settings=test_settings,
        state=widget_state
    )

@pytest.fixture
def manual():
    """Scripted result that keeps a dialog open."""
    return MANUAL

@pytest.fixture
def close_dialog():
    return close_when
