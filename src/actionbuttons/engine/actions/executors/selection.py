import logging
import math
from typing import Any, Dict, List, Optional

from ..registry import register_action, BaseAction
from ..definitions import ActionKind, ActionDescriptor
from ...utils.data_parser import coerce_number, dual_value

logger = logging.getLogger(__name__)

# ============================================================================
# 0. 公共基类
# ============================================================================

class FieldAction(BaseAction):
    """
    选择类动作的基类。
    在修改之前必须先通过 FieldResolver 确认字段存在；
    未配置字段名时步骤结果为 None (继续动作链)。
    """
    mutates_selections = True

    async def with_field(self, callback) -> Optional[bool]:
        if not self.item.field:
            return None
        outcome = await self.runtime.resolver.resolve(self.item.field, self.alternate_state, callback)
        return outcome is not False

def selection_values(value: Any) -> List[Any]:
    """
    动作值转为待选择的值列表。
    Dual 值选择其数字部分；字符串以 `;` 分隔，看起来像数字的部分按数字发送。
    """
    if isinstance(value, dict) and "qText" in value:
        return [dual_value(value)]
    if value is None or value == "":
        return []
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return [value]
    return [coerce_number(part) for part in str(value).split(";")]

# ============================================================================
# 1. 单字段动作 (Field Actions)
# ============================================================================

@register_action(ActionKind.APPLY_BOOKMARK)
class ApplyBookmarkAction(BaseAction):
    mutates_selections = True

    async def execute(self) -> Optional[bool]:
        if not self.item.bookmark:
            return None
        await self.session.apply_bookmark(self.item.bookmark)
        return True

@register_action(ActionKind.APPLY_SELECTION)
class ApplySelectionAction(FieldAction):
    """选择字段值；eitherOr 为 True 时切换第一个值而不是替换选择。"""
    async def execute(self) -> Optional[bool]:
        values = selection_values(self.item.value)

        async def select(field):
            if self.item.eitherOr:
                if values:
                    return await field.toggle_select(str(values[0]))
                return None
            return await field.select_values(values, False)

        return await self.with_field(select)

@register_action(ActionKind.CLEAR_SELECTION)
class ClearSelectionAction(FieldAction):
    """未配置字段时清除该状态下的全部选择。"""
    async def execute(self) -> Optional[bool]:
        if not self.item.field:
            await self.session.clear_all(self.alternate_state)
            return True

        async def clear(field):
            return await (field.clear_other() if self.item.eitherOr else field.clear())

        return await self.with_field(clear)

@register_action(ActionKind.BACK_OR_FORWARD)
class BackOrForwardAction(BaseAction):
    mutates_selections = True

    async def execute(self) -> Optional[bool]:
        await (self.session.forward() if self.item.eitherOr else self.session.back())
        return True

@register_action(ActionKind.LOCK_FIELD)
class LockFieldAction(FieldAction):
    """未配置字段时锁定 / 解锁该状态下的全部选择。"""
    async def execute(self) -> Optional[bool]:
        if not self.item.field:
            state = self.alternate_state
            await (self.session.unlock_all(state) if self.item.eitherOr else self.session.lock_all(state))
            return True

        async def lock(field):
            return await (field.unlock() if self.item.eitherOr else field.lock())

        return await self.with_field(lock)

@register_action(ActionKind.SELECT_ALL)
class SelectAllAction(FieldAction):
    async def execute(self) -> Optional[bool]:
        return await self.with_field(lambda field: field.select_all())

@register_action(ActionKind.SELECT_POSSIBLE)
class SelectPossibleAction(FieldAction):
    async def execute(self) -> Optional[bool]:
        return await self.with_field(lambda field: field.select_possible())

@register_action(ActionKind.SELECT_ALTERNATIVE)
class SelectAlternativeAction(FieldAction):
    async def execute(self) -> Optional[bool]:
        return await self.with_field(lambda field: field.select_alternative())

@register_action(ActionKind.SELECT_EXCLUDED)
class SelectExcludedAction(FieldAction):
    async def execute(self) -> Optional[bool]:
        return await self.with_field(lambda field: field.select_excluded())

# ============================================================================
# 2. 相邻值 (Select Adjacent)
# ============================================================================

def adjacent_index(index: int, length: int, previous: bool) -> int:
    """
    计算上一个 / 下一个位置，首尾环绕。
    index 为 -1 表示当前没有选择：上一个取最后一项，下一个取第一项。
    """
    if previous:
        return (length if index in (0, -1) else index) - 1
    return (-1 if index in (length - 1, -1) else index) + 1

@register_action(ActionKind.SELECT_ADJACENT)
class SelectAdjacentAction(FieldAction):
    """
    选择当前选中值的相邻值。eitherOr 为 False 选下一个，为 True 选上一个。
    使用列表对象而不是字段数据，因为只有前者能识别可选的备选值。
    """
    async def execute(self) -> Optional[bool]:
        if not self.item.field:
            return None

        state = self.alternate_state
        result: Dict[str, Any] = {"value": None}

        async def select_adjacent(field):
            layout = await self.session.create_list(self._list_definition(state))
            # 在继续之前移除该会话对象
            await self.session.destroy_session_object(layout["qInfo"]["qId"])

            matrix = layout["qListObject"]["qDataPages"][0]["qMatrix"]
            items = [row for row in matrix if row[0].get("qState") != "X"]
            if not items:
                logger.info(f"No selectable values in field '{self.item.field}'.")
                return None

            selected = [i for i, row in enumerate(items) if row[0].get("qState") == "S"]
            index = (selected[0] if self.item.eitherOr else selected[-1]) if selected else -1
            target = adjacent_index(index, len(items), self.item.eitherOr)

            result["value"] = await ApplySelectionAction(self.runtime, ActionDescriptor(
                kind=ActionKind.APPLY_SELECTION.value,
                state=state,
                field=self.item.field,
                value=items[target][0]
            ), self.context).execute()

        outcome = await self.with_field(select_adjacent)
        if outcome is False:
            return False
        return result["value"]

    def _list_definition(self, state: Optional[str]) -> Dict[str, Any]:
        definition: Dict[str, Any] = {
            "qStateName": state,
            "qDef": {"qFieldDefs": [self.item.field]},
            "qShowAlternatives": True,
            "qInitialDataFetch": [{"qTop": 0, "qLeft": 0, "qWidth": 1, "qHeight": 10000}]
        }
        expression = self.item.sortExpression
        if expression:
            definition["qDef"]["qSortCriterias"] = [{
                "qSortByExpression": self.item.sortOrder,
                "qExpression": {"qv": expression if expression.startswith("=") else f"={expression}"}
            }]
        return definition

# ============================================================================
# 3. 帕累托 (Select Pareto)
# ============================================================================

def _measure(row: List[Dict[str, Any]]) -> Optional[float]:
    cell = row[1] if len(row) > 1 else {}
    num = cell.get("qNum")
    if cell.get("qIsNull") or num is None or num == "NaN":
        return None
    try:
        num = float(num)
    except (TypeError, ValueError):
        return None
    return None if math.isnan(num) else num

def pareto_selection(matrix: List[List[Dict[str, Any]]], threshold: float, include_threshold: bool = True) -> List[str]:
    """
    按度量降序累加，直到达到阈值 (总和的 threshold%)。
    度量为空的行不参与求和；维度为空的行不会被选择。
    到达阈值的那一行仅在严格超过阈值且 include_threshold 时被包含。
    """
    rows = [row for row in matrix if _measure(row) is not None]
    limit = sum(_measure(row) for row in rows) * threshold / 100

    added = 0.0
    selection: List[str] = []
    for row in sorted(rows, key=_measure, reverse=True):
        if row[0].get("qIsNull"):
            continue
        added += _measure(row)
        if added >= limit:
            if added > limit and include_threshold is not False:
                selection.append(row[0].get("qText"))
            break
        selection.append(row[0].get("qText"))
    return selection

@register_action(ActionKind.SELECT_PARETO)
class SelectParetoAction(FieldAction):
    """
    运行时创建一次性的立方体，只获取一次数据后立即销毁，
    而不是像普通可视化那样持续更新超立方体。
    """
    async def execute(self) -> Optional[bool]:
        if not (self.item.field and self.item.value):
            return None

        state = self.alternate_state
        result: Dict[str, Any] = {"value": None}

        async def select_pareto(field):
            expression = str(self.item.value)
            layout = await self.session.create_cube({
                "qStateName": state,
                "qDimensions": [{"qDef": {"qFieldDefs": [self.item.field]}}],
                "qMeasures": [{"qDef": {"qDef": expression if expression.startswith("=") else f"={expression}"}}],
                "qInitialDataFetch": [{"qTop": 0, "qLeft": 0, "qWidth": 2, "qHeight": 5000}]
            })
            await self.session.destroy_session_object(layout["qInfo"]["qId"])

            matrix = layout["qHyperCube"]["qDataPages"][0]["qMatrix"]
            selection = pareto_selection(matrix, self.item.threshold, self.item.includeThreshold)
            logger.debug(f"Pareto selection for '{self.item.field}': {len(selection)} value(s).")

            result["value"] = await ApplySelectionAction(self.runtime, ActionDescriptor(
                kind=ActionKind.APPLY_SELECTION.value,
                state=state,
                field=self.item.field,
                value=";".join(selection)
            ), self.context).execute()

        outcome = await self.with_field(select_pareto)
        if outcome is False:
            return False
        return result["value"]
