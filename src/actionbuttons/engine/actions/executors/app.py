from typing import Optional

from ..registry import register_action, BaseAction
from ..definitions import ActionKind

@register_action(ActionKind.APPLY_THEME)
class ApplyThemeAction(BaseAction):
    async def execute(self) -> Optional[bool]:
        if not self.item.theme:
            return None
        await self.session.apply_theme(self.item.theme)
        return True
