# actionbuttons/engine/platform/base.py
import asyncio
import logging
import pathlib
from typing import Any, Dict, List, Optional, Protocol, Union
from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)

# ============================================================================
# 1. 会话协议 (Analytics Session Protocols)
#    引擎本身不实现任何数据模型语义，只消费这些能力。
# ============================================================================

class SessionOptions(BaseModel):
    """The connection options of the running session, used to build app URLs."""
    host: str = "localhost"
    port: Optional[Union[int, str]] = None
    prefix: str = ""
    isSecure: bool = True

class FieldHandle(Protocol):
    """
    字段句柄。
    注意：句柄可能先于会话确认其有效性而返回，`exists` 只有在等待后才可信。
    """
    @property
    def name(self) -> str: ...

    @property
    def exists(self) -> bool: ...

    async def select_values(self, values: List[Any], toggle: bool = False) -> Any: ...
    async def toggle_select(self, value: str) -> Any: ...
    async def clear(self) -> Any: ...
    async def clear_other(self) -> Any: ...
    async def lock(self) -> Any: ...
    async def unlock(self) -> Any: ...
    async def select_all(self) -> Any: ...
    async def select_possible(self) -> Any: ...
    async def select_alternative(self) -> Any: ...
    async def select_excluded(self) -> Any: ...

class AnalyticsSession(Protocol):
    """
    [依赖倒置] 分析会话提供的全部能力。
    列表与立方体的布局以引擎原生 JSON (dict) 形式返回。
    """
    @property
    def options(self) -> SessionOptions: ...

    def field(self, name: str, state: Optional[str] = None) -> FieldHandle: ...

    async def clear_all(self, state: Optional[str] = None) -> Any: ...
    async def lock_all(self, state: Optional[str] = None) -> Any: ...
    async def unlock_all(self, state: Optional[str] = None) -> Any: ...
    async def back(self) -> Any: ...
    async def forward(self) -> Any: ...
    async def apply_bookmark(self, bookmark_id: str) -> Any: ...
    async def apply_theme(self, theme_id: str) -> Any: ...

    async def set_num_variable(self, name: str, value: float) -> Any: ...
    async def set_string_variable(self, name: str, value: str) -> Any: ...

    async def create_list(self, definition: Dict[str, Any]) -> Dict[str, Any]: ...
    async def create_cube(self, definition: Dict[str, Any]) -> Dict[str, Any]: ...
    async def destroy_session_object(self, object_id: str) -> Any: ...

    async def do_reload(self, mode: int = 0, partial: bool = False, debug: bool = False) -> bool: ...
    async def do_save(self) -> Any: ...
    async def cancel_reload(self) -> Any: ...

    async def get_sheets(self) -> List[Dict[str, Any]]: ...
    async def is_personal_mode(self) -> bool: ...

class Navigator(Protocol):
    """Host navigation primitives."""
    EDIT: str

    async def goto_sheet(self, sheet_id: str) -> Any: ...
    async def next_sheet(self) -> Any: ...
    async def prev_sheet(self) -> Any: ...
    async def goto_story(self, story_id: str) -> Any: ...
    def open_url(self, url: str, target: str = "_self") -> Any: ...
    def is_mode_allowed(self, mode: str) -> bool: ...
    def set_mode(self, mode: str) -> Any: ...

# ============================================================================
# 2. 对话框 (Modal Dialogs)
# ============================================================================

class DialogOptions(BaseModel):
    """对话框的输入选项。执行器在对话框打开期间会修改它 (标题、按钮可见性等)。"""
    title: Optional[str] = None
    message: str = ""
    okLabel: Optional[str] = None
    cancelLabel: Optional[str] = None
    hideCancelButton: bool = True
    hideOkButton: bool = False
    showProgress: bool = False
    variant: bool = False
    closeOnEscape: bool = True

    model_config = ConfigDict(extra="allow")

class Dialog(Protocol):
    opened: "asyncio.Future[Any]"
    closing: "asyncio.Future[Any]"
    closed: "asyncio.Future[Any]"
    input: DialogOptions
    elapsed_time: str
    error: Any

    def close(self, result: Any = None) -> None: ...

class DialogService(Protocol):
    def show(self, options: DialogOptions) -> Dialog: ...

class FutureDialog:
    """
    基于 asyncio.Future 的对话框句柄。
    宿主 UI 在用户点击按钮时调用 close(result)。
    """
    def __init__(self, options: DialogOptions):
        loop = asyncio.get_running_loop()
        self.input = options
        self.elapsed_time = "00:00:00"
        self.error: Any = None
        self.opened: asyncio.Future = loop.create_future()
        self.closing: asyncio.Future = loop.create_future()
        self.closed: asyncio.Future = loop.create_future()
        self.opened.set_result(None)

    @property
    def is_open(self) -> bool:
        return not self.closed.done()

    def close(self, result: Any = None) -> None:
        if self.closed.done():
            return
        self.closing.set_result(result)
        self.closed.set_result(result)

class FutureDialogService:
    """Reference DialogService that keeps every dialog it opened."""
    def __init__(self):
        self.dialogs: List[FutureDialog] = []

    def show(self, options: DialogOptions) -> FutureDialog:
        dialog = FutureDialog(options)
        self.dialogs.append(dialog)
        logger.debug(f"Dialog opened: {options.title!r}")
        return dialog

    @property
    def open_dialogs(self) -> List[FutureDialog]:
        return [d for d in self.dialogs if d.is_open]

def resolved_dialog(result: Any = True) -> FutureDialog:
    """A dialog that is already closed with `result`, for skipped confirmations."""
    dialog = FutureDialog(DialogOptions())
    dialog.close(result)
    return dialog

# ============================================================================
# 3. 日志下载 (Script Log Sink)
# ============================================================================

class LogSink(Protocol):
    def save(self, filename: str, text: str) -> Any: ...

class FileLogSink:
    """Writes downloaded script logs into a directory."""
    def __init__(self, directory: str):
        self.directory = pathlib.Path(directory)

    def save(self, filename: str, text: str) -> pathlib.Path:
        self.directory.mkdir(parents=True, exist_ok=True)
        target = self.directory / pathlib.Path(filename).name
        target.write_text(text, encoding="utf-8")
        logger.info(f"Script log saved to '{target}'.")
        return target
