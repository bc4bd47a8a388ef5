import json
import logging
import uuid
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Union
from pydantic import ValidationError

from ..actions.definitions import ButtonDefinition
from ..utils.data_parser import substitute_params
from ...core.config import Settings, settings as default_settings
from ...services.exceptions import InvalidConfigurationError

logger = logging.getLogger(__name__)

class CacheKey(NamedTuple):
    """按值比较的缓存键；size 为 None 表示不限制数量，template 为模板的规范化 JSON"""
    rule: str
    size: Optional[int]
    template: str = ""

def template_fingerprint(template: Dict[str, Any]) -> str:
    return json.dumps(template, sort_keys=True, default=str)

def _new_id() -> str:
    return uuid.uuid4().hex

def _template_data(template: Union[ButtonDefinition, Dict[str, Any], None]) -> Dict[str, Any]:
    return template.model_dump() if isinstance(template, ButtonDefinition) else dict(template or {})

class DynamicButtonMaterializer:
    """
    将规则表达式展开为按钮列表。
    - 规则按 `|` 分隔按钮 (丢弃空段)，每段按 `~` 分隔参数，依次替换模板中的 $1..$n。
    - 开启限制时只保留前 BUTTON_LIMIT 段，多余的段被静默丢弃。
    - 结果按 (rule, size, template) 缓存，同一个键始终返回同一个列表对象，直到 clear()。
      修改模板会生成新的按钮；position() 记录每个生成过的 cId 在列表中的位置。
    """
    def __init__(
        self,
        settings: Optional[Settings] = None,
        id_factory: Optional[Callable[[], str]] = None
    ):
        self.settings = settings or default_settings
        self.id_factory = id_factory or _new_id
        self._cache: Dict[CacheKey, List[ButtonDefinition]] = {}
        self._positions: Dict[str, int] = {}

    def cache_key(
        self,
        rule: str,
        limit: bool,
        template: Union[ButtonDefinition, Dict[str, Any], None] = None
    ) -> CacheKey:
        return CacheKey(
            rule or "",
            self.settings.BUTTON_LIMIT if limit else None,
            template_fingerprint(_template_data(template)) if template is not None else ""
        )

    def materialize(
        self,
        rule: str,
        limit: bool,
        template: Union[ButtonDefinition, Dict[str, Any]]
    ) -> List[ButtonDefinition]:
        base = _template_data(template)
        key = CacheKey(rule or "", self.settings.BUTTON_LIMIT if limit else None, template_fingerprint(base))
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        segments = [segment for segment in (rule or "").split("|") if segment]
        if key.size is not None and len(segments) > key.size:
            logger.info(f"Dynamic rule yields {len(segments)} buttons, limited to {key.size}.")
            segments = segments[:key.size]

        buttons = [self._build(base, segment.split("~")) for segment in segments]
        for index, button in enumerate(buttons):
            self._positions[button.cId] = index

        self._cache[key] = buttons
        return buttons

    def position(self, cid: Optional[str]) -> Optional[int]:
        return self._positions.get(cid) if cid else None

    def _build(self, base: Dict[str, Any], params: List[str]) -> ButtonDefinition:
        data = substitute_params(base, params)
        data["cId"] = self.id_factory()
        # 未设置颜色表达式时使用默认的轮廓样式
        if not data.get("colorExpression"):
            data["styleType"] = "style"
        try:
            return ButtonDefinition.model_validate(data)
        except ValidationError as e:
            raise InvalidConfigurationError(f"Invalid dynamic button definition: {e}")

    def clear(self) -> None:
        self._cache.clear()
        self._positions.clear()

    def __len__(self) -> int:
        return len(self._cache)
