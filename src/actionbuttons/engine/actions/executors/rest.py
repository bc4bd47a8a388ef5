import asyncio
import json
import logging
from typing import Any, List, Optional

from ..registry import register_action, BaseAction
from ..definitions import ActionKind
from .variable import set_variable
from ...platform.base import DialogOptions
from ...utils.json_pointer import resolve_pointer
from ....services.exceptions import InvalidConfigurationError, RemoteCallError

logger = logging.getLogger(__name__)

def variable_value(value: Any) -> Any:
    """响应值转为变量值：数字和字符串原样，其他值序列化为 JSON。"""
    if value is None:
        return ""
    if isinstance(value, str) or (isinstance(value, (int, float)) and not isinstance(value, bool)):
        return value
    return json.dumps(value, ensure_ascii=False)

@register_action(ActionKind.CALL_REST_API)
class CallRestApiAction(BaseAction):
    """
    调用 REST 接口并把响应 (或其中 JSON Pointer 指向的部分) 写入变量。
    调用失败时告知用户并中断动作链。
    """
    async def execute(self) -> Optional[bool]:
        item = self.item
        if not item.restUrl:
            return None
        rest = self.runtime.rest
        if rest is None:
            raise InvalidConfigurationError("callRestApi requires a REST client.")

        targets = self._target_variables()
        if item.restClearVariables:
            for name in targets:
                await set_variable(self.session, name, "")

        try:
            response = await rest.request(
                method=item.restMethod,
                url=item.restUrl,
                headers=item.restHeaders,
                body=item.restBody
            )
        except RemoteCallError as e:
            logger.warning(f"REST call to '{item.restUrl}' failed: {e.message}", exc_info=True)
            status = f" (status {e.status})" if e.status is not None else ""
            dialog = self.runtime.dialogs.show(DialogOptions(
                title="REST call failed",
                message=f"The request to '{item.restUrl}' failed{status}: {e.data or e.message}",
                okLabel="Close"
            ))
            await dialog.closed
            return False

        if item.restResponseMapping:
            for mapping in item.restResponseMapping:
                value = resolve_pointer(response.data, mapping.pointer, default=None)
                await set_variable(self.session, mapping.variable, variable_value(value))
        elif item.variable:
            await set_variable(self.session, item.variable, variable_value(response.data))

        if targets:
            await asyncio.sleep(self.runtime.settings.VARIABLE_SETTLE_DELAY)
        return True

    def _target_variables(self) -> List[str]:
        if self.item.restResponseMapping:
            return [mapping.variable for mapping in self.item.restResponseMapping]
        return [self.item.variable] if self.item.variable else []
