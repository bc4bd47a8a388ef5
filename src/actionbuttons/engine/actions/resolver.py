import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Optional, Union

from ..platform.base import DialogOptions
from ...core.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)

OnFound = Callable[[Any], Union[Any, Awaitable[Any]]]
OnMissing = Callable[[], Union[Any, Awaitable[Any]]]

async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value

def _stop_chain() -> bool:
    return False

class FieldResolver:
    """
    字段解析器。
    会话可能在确认字段有效之前就返回句柄；评估 exists 之前先等待 FIELD_SETTLE_DELAY。
    字段不存在时提示用户并返回 on_missing() 的结果，不抛出异常。
    """
    def __init__(self, session: Any, dialogs: Any, settings: Optional[Settings] = None):
        self.session = session
        self.dialogs = dialogs
        self.settings = settings or default_settings

    async def resolve(
        self,
        name: str,
        state: Optional[str] = None,
        on_found: Optional[OnFound] = None,
        on_missing: Optional[OnMissing] = None
    ) -> Any:
        """
        :return: 找到时返回字段句柄 (等待 on_found 完成之后)；
                 未找到时返回 on_missing() 的结果 (默认 False)
        """
        handle = self.session.field(name, state)
        await asyncio.sleep(self.settings.FIELD_SETTLE_DELAY)

        if not handle.exists:
            logger.info(f"Field '{name}' does not exist in state '{state or '$'}'.")
            dialog = self.dialogs.show(DialogOptions(
                title="Invalid field",
                message=(
                    f"The field named '{name}' does not exist. Please make sure the "
                    "relevant expression generates an existing field name."
                )
            ))
            await dialog.closed
            return await _maybe_await((on_missing or _stop_chain)())

        if on_found is not None:
            await _maybe_await(on_found(handle))
        return handle
