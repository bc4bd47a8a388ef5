# tests/engine/platform/test_dialogs.py
import pytest

from actionbuttons.engine.platform import DialogOptions, FutureDialogService, FileLogSink, resolved_dialog

pytestmark = pytest.mark.asyncio

async def test_future_dialog_close_is_idempotent():
    service = FutureDialogService()
    dialog = service.show(DialogOptions(title="Confirm"))

    assert dialog.opened.done()
    assert service.open_dialogs == [dialog]

    dialog.close(False)
    dialog.close(True)

    assert await dialog.closed is False
    assert await dialog.closing is False
    assert service.open_dialogs == []

async def test_resolved_dialog():
    dialog = resolved_dialog()

    assert not dialog.is_open
    assert await dialog.closed is True

async def test_file_log_sink_writes_into_directory(tmp_path):
    sink = FileLogSink(str(tmp_path / "logs"))

    sink.save("../Reload Sales.log", "line 1")

    assert (tmp_path / "logs" / "Reload Sales.log").read_text(encoding="utf-8") == "line 1"
