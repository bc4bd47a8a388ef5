# src/actionbuttons/engine/actions/catalog.py
"""
动作与导航的选项目录：标签、参数可见性与环境过滤。
供配置界面与日志展示使用，不参与动作链执行。
"""
from typing import Any, Dict, List, Optional, Union
from pydantic import BaseModel, ConfigDict

from .definitions import ActionKind, NavigationKind, ActionDescriptor

class EitherOrOption(BaseModel):
    label: str
    value: bool

class ActionOption(BaseModel):
    label: str
    value: str
    showField: bool = False
    showValue: bool = False
    showState: bool = False
    showVariable: bool = False
    showBookmark: bool = False
    showTheme: bool = False
    showTask: bool = False
    showSortExpression: bool = False
    showSheet: bool = False
    showApp: bool = False
    showStory: bool = False
    valueLabel: Optional[str] = None
    eitherOrLabel: Optional[str] = None
    eitherOrOptions: List[EitherOrOption] = []
    # None: 所有环境可用；False: 桌面 / 个人模式下不可用
    ifDesktop: Optional[bool] = None

    model_config = ConfigDict(extra="allow")

def _either_or(first: str, second: str) -> List[EitherOrOption]:
    return [EitherOrOption(label=first, value=False), EitherOrOption(label=second, value=True)]

_field = dict(showField=True, showState=True)

ACTION_OPTIONS: List[ActionOption] = [
    ActionOption(label="Apply Bookmark", value=ActionKind.APPLY_BOOKMARK.value, showBookmark=True),
    ActionOption(label="Select Field Value", value=ActionKind.APPLY_SELECTION.value, showValue=True, **_field,
                 eitherOrLabel="Selection type", eitherOrOptions=_either_or("Replace", "Toggle")),
    ActionOption(label="Clear Field Selection", value=ActionKind.CLEAR_SELECTION.value, **_field,
                 eitherOrLabel="Which field?", eitherOrOptions=_either_or("This", "Others")),
    ActionOption(label="Back or Forward", value=ActionKind.BACK_OR_FORWARD.value,
                 eitherOrOptions=_either_or("Back", "Forward")),
    ActionOption(label="Lock or Unlock Field", value=ActionKind.LOCK_FIELD.value, **_field,
                 eitherOrOptions=_either_or("Lock", "Unlock")),
    ActionOption(label="Select Adjacent Value", value=ActionKind.SELECT_ADJACENT.value, showSortExpression=True, **_field,
                 eitherOrOptions=_either_or("Next", "Previous")),
    ActionOption(label="Select All Values", value=ActionKind.SELECT_ALL.value, **_field),
    ActionOption(label="Select Possible Values", value=ActionKind.SELECT_POSSIBLE.value, **_field),
    ActionOption(label="Select Alternative Values", value=ActionKind.SELECT_ALTERNATIVE.value, **_field),
    ActionOption(label="Select Excluded Values", value=ActionKind.SELECT_EXCLUDED.value, **_field),
    ActionOption(label="Select Pareto Values", value=ActionKind.SELECT_PARETO.value, showValue=True, **_field),
    ActionOption(label="Set Variable Value", value=ActionKind.SET_VARIABLE.value, showVariable=True, showValue=True),
    ActionOption(label="Start Reload", value=ActionKind.START_RELOAD.value,
                 eitherOrLabel="Reload type", eitherOrOptions=_either_or("Complete", "Partial")),
    ActionOption(label="Start Reload Task", value=ActionKind.START_RELOAD_TASK.value, showTask=True, ifDesktop=False),
    ActionOption(label="Call REST API", value=ActionKind.CALL_REST_API.value, showVariable=True),
    ActionOption(label="Apply Theme", value=ActionKind.APPLY_THEME.value, showTheme=True),
    ActionOption(label="Log to Console", value=ActionKind.LOG_TO_CONSOLE.value, valueLabel="Expression", showValue=True),
    ActionOption(label="Request confirmation", value=ActionKind.REQUEST_CONFIRMATION.value),
    ActionOption(label="Delay Execution", value=ActionKind.DELAY_EXECUTION.value, valueLabel="Milliseconds", showValue=True),
    ActionOption(label="Continue or Terminate", value=ActionKind.CONTINUE_OR_TERMINATE.value, valueLabel="Condition", showValue=True),
]

NAVIGATION_OPTIONS: List[ActionOption] = [
    ActionOption(label="Navigate to a Sheet", value=NavigationKind.GO_TO_SHEET.value, showSheet=True),
    ActionOption(label="Navigate to First Sheet", value=NavigationKind.GO_TO_FIRST_SHEET.value),
    ActionOption(label="Navigate to Previous Sheet", value=NavigationKind.GO_TO_PREV_SHEET.value),
    ActionOption(label="Navigate to Next Sheet", value=NavigationKind.GO_TO_NEXT_SHEET.value),
    ActionOption(label="Navigate to Last Sheet", value=NavigationKind.GO_TO_LAST_SHEET.value),
    ActionOption(label="Navigate to Dashboard", value=NavigationKind.GO_TO_APP_SHEET.value, showApp=True, showSheet=True),
    ActionOption(label="Start Story", value=NavigationKind.START_STORY.value, showStory=True),
    ActionOption(label="Navigate to URI", value=NavigationKind.GO_TO_URI.value, showValue=True),
    ActionOption(label="Switch to Edit Mode", value=NavigationKind.SWITCH_TO_EDIT.value),
]

def action_options(personal_mode: bool = False) -> List[ActionOption]:
    """在个人 (桌面) 模式下过滤掉依赖服务端仓库的动作。"""
    return [option for option in ACTION_OPTIONS if not (personal_mode and option.ifDesktop is False)]

def find_option(kind: str, options: Optional[List[ActionOption]] = None) -> Optional[ActionOption]:
    for option in (ACTION_OPTIONS if options is None else options):
        if option.value == kind:
            return option
    return None

def action_item_title(item: Union[ActionDescriptor, Dict[str, Any]]) -> str:
    """动作步骤的显示标题；禁用的步骤以 `// ` 开头。"""
    if not isinstance(item, ActionDescriptor):
        item = ActionDescriptor.model_validate(item)

    option = find_option(item.kind)
    if option is None:
        title = item.kind
    elif item.kind == ActionKind.SELECT_ADJACENT:
        title = "Select Previous Value" if item.eitherOr else "Select Next Value"
    elif item.kind == ActionKind.CLEAR_SELECTION:
        if item.field:
            title = "Clear Other Fields" if item.eitherOr else "Clear Field"
        else:
            title = "Clear All Selections"
    elif item.kind == ActionKind.BACK_OR_FORWARD:
        title = "Forward" if item.eitherOr else "Back"
    elif item.kind == ActionKind.LOCK_FIELD:
        if item.field:
            title = "Unlock Field" if item.eitherOr else "Lock Field"
        else:
            title = "Unlock All Fields" if item.eitherOr else "Lock All Fields"
    else:
        title = option.label

    if not item.enabled:
        title = f"// {title}"
    return title
