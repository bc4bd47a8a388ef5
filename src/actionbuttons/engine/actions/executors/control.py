import asyncio
import logging
from typing import Optional

from ..registry import register_action, BaseAction
from ..definitions import ActionKind
from ...platform.base import DialogOptions
from ...utils.data_parser import parse_int, loose_bool

logger = logging.getLogger(__name__)
# 用户配置的 logToConsole 输出，与引擎自身的日志分开
console_logger = logging.getLogger("actionbuttons.console")

# ============================================================================
# 流程控制 (Flow Control)
# ============================================================================

@register_action(ActionKind.DELAY_EXECUTION)
class DelayExecutionAction(BaseAction):
    """暂停动作链 value 毫秒；无法解析时使用默认值。"""
    async def execute(self) -> Optional[bool]:
        delay_ms = parse_int(self.item.value)
        if delay_ms is None:
            delay_ms = self.runtime.settings.DEFAULT_DELAY_MS
        await asyncio.sleep(max(0, delay_ms) / 1000.0)
        return True

@register_action(ActionKind.CONTINUE_OR_TERMINATE)
class ContinueOrTerminateAction(BaseAction):
    """按宽松布尔解释 value：仅整数 0 中断动作链。"""
    async def execute(self) -> Optional[bool]:
        return loose_bool(self.item.value)

@register_action(ActionKind.REQUEST_CONFIRMATION)
class RequestConfirmationAction(BaseAction):
    """
    打开确认对话框并等待其关闭。
    对话框打开期间，组件状态中的确认标志保持置位，此组件启动的其他动作链不会越过步骤边界。
    """
    async def execute(self) -> Optional[bool]:
        item = self.item
        dialog = self.runtime.dialogs.show(DialogOptions(
            title=item.modalTitle,
            message=item.modalContent or ("" if item.modalTitle else "Are you sure?"),
            okLabel=item.modalOkLabel or "OK",
            cancelLabel=item.modalCancelLabel,
            hideCancelButton=not item.modalCancelLabel
        ))
        self.runtime.state.confirmation_opened()
        try:
            result = await dialog.closed
        finally:
            self.runtime.state.confirmation_closed()
        return result is not False

@register_action(ActionKind.LOG_TO_CONSOLE)
class LogToConsoleAction(BaseAction):
    async def execute(self) -> Optional[bool]:
        console_logger.info(self.item.value)
        return None
