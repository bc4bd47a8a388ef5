from __future__ import annotations
from enum import Enum
from typing import List, Dict, Any, Optional, Union, Literal
from pydantic import BaseModel, Field, ConfigDict, AliasChoices, field_validator

# ============================================================================
# 1. 权威类型定义 (Authoritative Kind Definitions)
#    值与持久化配置中的标识符保持一致
# ============================================================================

class ActionKind(str, Enum):
    # Field
    APPLY_BOOKMARK = "applyBookmark"
    APPLY_SELECTION = "applySelection"
    CLEAR_SELECTION = "clearSelection"
    BACK_OR_FORWARD = "backOrForward"
    LOCK_FIELD = "lockField"
    SELECT_ADJACENT = "selectAdjacent"
    SELECT_ALL = "selectAll"
    SELECT_POSSIBLE = "selectPossible"
    SELECT_ALTERNATIVE = "selectAlternative"
    SELECT_EXCLUDED = "selectExcluded"
    SELECT_PARETO = "selectPareto"
    # Variable
    SET_VARIABLE = "setVariable"
    # App
    START_RELOAD = "startReload"
    START_RELOAD_TASK = "startReloadTask"
    CALL_REST_API = "callRestApi"
    APPLY_THEME = "applyTheme"
    # Other
    LOG_TO_CONSOLE = "logToConsole"
    REQUEST_CONFIRMATION = "requestConfirmation"
    DELAY_EXECUTION = "delayExecution"
    CONTINUE_OR_TERMINATE = "continueOrTerminate"

class NavigationKind(str, Enum):
    GO_TO_SHEET = "goToSheet"
    GO_TO_FIRST_SHEET = "goToFirstSheet"
    GO_TO_PREV_SHEET = "goToPrevSheet"
    GO_TO_NEXT_SHEET = "goToNextSheet"
    GO_TO_LAST_SHEET = "goToLastSheet"
    GO_TO_APP_SHEET = "goToAppSheet"
    START_STORY = "startStory"
    GO_TO_URI = "goToURI"
    SWITCH_TO_EDIT = "switchToEdit"

ChainStatus = Literal["PENDING", "RUNNING", "STOPPED", "COMPLETED", "FAILED"]

# ============================================================================
# 2. 动作与导航描述 (Action & Navigation Descriptors)
#    采用“核心严格 + 扩展开放”的策略
# ============================================================================

class RestResponseMapping(BaseModel):
    """将响应体中 JSON Pointer 指向的值写入变量"""
    pointer: str = Field("", description="RFC 6901 JSON Pointer，空字符串表示整个响应体")
    variable: str = Field(..., min_length=1)

class ActionDescriptor(BaseModel):
    """
    [权威定义] 一个已配置的动作步骤。
    身份由其在所属列表中的位置决定。
    """
    kind: str = Field(
        ...,
        validation_alias=AliasChoices("kind", "action"),
        description="注册表中的动作标识，如 'applySelection'"
    )
    enabled: bool = Field(True, description="禁用的步骤为无副作用的成功")

    # --- 通用参数 ---
    field: Optional[str] = None
    value: Any = None
    variable: Optional[str] = None
    state: Optional[str] = Field(None, description="备用状态；为空时继承组件的状态")
    eitherOr: bool = False

    # --- 各动作特有参数 ---
    bookmark: Optional[str] = None
    theme: Optional[str] = None
    sortExpression: Optional[str] = None
    sortOrder: int = 1
    threshold: float = Field(80, description="Pareto 阈值百分比")
    includeThreshold: bool = True

    task: Optional[str] = None
    taskDisplayProgress: Literal["", "optional", "hidden"] = ""
    taskSkipConfirmation: bool = False
    taskAutoResolve: bool = False

    modalTitle: Optional[str] = None
    modalContent: Optional[str] = None
    modalOkLabel: Optional[str] = None
    modalCancelLabel: Optional[str] = None

    restUrl: Optional[str] = None
    restMethod: Literal["GET", "POST", "PUT", "DELETE", "PATCH"] = "GET"
    restHeaders: Dict[str, str] = Field(default_factory=dict)
    restBody: Optional[str] = None
    restResponseMapping: List[RestResponseMapping] = Field(default_factory=list)
    restClearVariables: bool = False

    cId: Optional[str] = None

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    @field_validator("sortOrder", mode="before")
    @classmethod
    def _parse_sort_order(cls, v):
        try:
            return -1 if int(v) < 0 else 1
        except (TypeError, ValueError):
            return 1

    @field_validator("restMethod", mode="before")
    @classmethod
    def _upper_method(cls, v):
        return str(v or "GET").upper()

class NavigationDescriptor(BaseModel):
    """每个按钮至多一个导航，只有在动作链完成后才被评估"""
    enabled: bool = False
    action: str = ""
    sheet: Optional[str] = None
    app: Optional[str] = None
    story: Optional[str] = None
    value: Optional[str] = None
    newTab: bool = False

    model_config = ConfigDict(extra="allow")

# ============================================================================
# 3. 按钮 (Buttons)
# ============================================================================

class ColorSetting(BaseModel):
    index: int = -1
    color: str = ""

class ButtonDefinition(BaseModel):
    """
    静态按钮由用户配置并持久化；动态按钮由规则表达式派生。
    visible / enabled 是表达式结果，按宽松布尔解释。
    """
    cId: Optional[str] = None
    label: str = ""
    styleType: str = "style"
    style: str = ""
    color: ColorSetting = Field(default_factory=ColorSetting)
    colorExpression: str = ""
    actions: List[ActionDescriptor] = Field(default_factory=list)
    navigation: NavigationDescriptor = Field(default_factory=NavigationDescriptor)
    visible: Union[str, int, None] = ""
    enabled: Union[str, int, None] = ""

    model_config = ConfigDict(extra="allow")

class DynamicButtonSet(BaseModel):
    """
    rule 以 `|` 分隔按钮，以 `~` 分隔参数；
    definition[0] 是按钮模板，参数以 $1..$n 引用。
    """
    dynamic: bool = False
    rule: str = ""
    limit: bool = True
    definition: List[ButtonDefinition] = Field(default_factory=lambda: [ButtonDefinition(
        label="$1", styleType="colorExpression"
    )])

    @property
    def template(self) -> ButtonDefinition:
        return self.definition[0] if self.definition else ButtonDefinition(label="$1")

class WidgetProps(BaseModel):
    buttonSet: DynamicButtonSet = Field(default_factory=DynamicButtonSet)
    buttons: List[ButtonDefinition] = Field(default_factory=list)

    model_config = ConfigDict(extra="allow")

# ============================================================================
# 4. 执行上下文与链状态 (Execution Context & Chain State)
# ============================================================================

class ExecutionContext(BaseModel):
    """只读执行标志；stateName 是组件自身的备用状态"""
    noSelections: bool = False
    noInteraction: bool = False
    stateName: Optional[str] = None

    model_config = ConfigDict(frozen=True)

class ChainState(BaseModel):
    status: ChainStatus = "PENDING"
    index: int = Field(0, description="下一个待执行步骤的位置")
    last_result: Any = None
    executed: List[int] = Field(default_factory=list, description="实际执行过的步骤位置")
    error_msg: Optional[str] = None
