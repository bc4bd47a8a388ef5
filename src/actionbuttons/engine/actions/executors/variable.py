import logging
from typing import Any, Optional

from ..registry import register_action, BaseAction
from ..definitions import ActionKind
from ...utils.data_parser import is_numeric
from ....services.exceptions import ActionEngineException, VariableSetError

logger = logging.getLogger(__name__)

async def set_variable(session: Any, name: str, value: Any) -> Any:
    """
    数字使用数值设置器；其他值按字符串写入，单引号被转义为两个单引号。
    会话拒绝时抛出 VariableSetError，消息中包含变量名。
    """
    try:
        if is_numeric(value):
            return await session.set_num_variable(name, value)
        text = "" if value is None else str(value)
        return await session.set_string_variable(name, text.replace("'", "''"))
    except ActionEngineException:
        raise
    except Exception as e:
        logger.warning(f"Setting variable '{name}' failed: {e}")
        raise VariableSetError(name, e) from e

@register_action(ActionKind.SET_VARIABLE)
class SetVariableAction(BaseAction):
    async def execute(self) -> Optional[bool]:
        if not self.item.variable:
            return None
        await set_variable(self.session, self.item.variable, self.item.value)
        return True
