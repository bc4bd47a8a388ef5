import logging
from typing import Dict, Type, Any, Optional, Protocol, Iterable, List
from .definitions import ActionDescriptor, ExecutionContext
from ...services.exceptions import UnknownActionError

logger = logging.getLogger(__name__)

# ============================================================================
# 1. 协议定义 (Protocols)
# ============================================================================

class ActionRuntimeContext(Protocol):
    """
    [依赖倒置] 定义动作在执行过程中能访问的能力。
    任何传递给执行器的 runtime 必须实现此协议。
    """
    @property
    def session(self) -> Any:
        """分析会话 (AnalyticsSession)"""
        ...

    @property
    def dialogs(self) -> Any:
        """对话框服务 (DialogService)"""
        ...

    @property
    def resolver(self) -> Any:
        """字段解析器 (FieldResolver)"""
        ...

    @property
    def rest(self) -> Any:
        """REST 客户端 (RestClient)"""
        ...

    @property
    def log_sink(self) -> Any:
        ...

    @property
    def settings(self) -> Any:
        ...

    @property
    def state(self) -> Any:
        """组件实例共享的可变状态 (WidgetState)"""
        ...

class ActionExecutor(Protocol):
    """
    [核心契约] 所有动作实现类必须遵循的接口。
    """
    mutates_selections: bool

    def __init__(
        self,
        runtime: ActionRuntimeContext,
        item: ActionDescriptor,
        context: ExecutionContext
    ):
        ...

    async def execute(self) -> Optional[bool]:
        """
        执行动作。
        :return: 严格为 False 时中断动作链；True / None 继续
        """
        ...

class BaseAction:
    """
    所有动作的通用基类。
    负责处理标准的初始化逻辑，将参数绑定到实例属性。
    """
    kind: str = ""
    # 会修改选择状态的动作在 noSelections 上下文中不执行
    mutates_selections: bool = False

    def __init__(
        self,
        runtime: ActionRuntimeContext,
        item: ActionDescriptor,
        context: ExecutionContext
    ):
        self.runtime = runtime
        self.item = item
        self.context = context

    @property
    def session(self):
        return self.runtime.session

    @property
    def alternate_state(self) -> Optional[str]:
        """动作自身的备用状态；为空时继承组件的状态"""
        if not self.item.state:
            return self.context.stateName
        return self.item.state

    async def execute(self) -> Optional[bool]:
        raise NotImplementedError

# ============================================================================
# 2. 注册中心 (Registry)
# ============================================================================

class ActionRegistry:
    """
    动作注册中心。
    """
    def __init__(self):
        self._executors: Dict[str, Type[ActionExecutor]] = {}

    def register(self, kind: str):
        key = getattr(kind, "value", kind)
        if not key:
            raise ValueError("Action kind must be a non-empty identifier.")

        def decorator(cls):
            cls.kind = key
            self._executors[key] = cls
            return cls
        return decorator

    def get(self, kind: str, index: Optional[int] = None) -> Type[ActionExecutor]:
        executor_cls = self._executors.get(kind)
        if not executor_cls:
            raise UnknownActionError(kind, index)
        return executor_cls

    def has(self, kind: str) -> bool:
        return kind in self._executors

    def kinds(self) -> List[str]:
        return list(self._executors)

    def validate(self, items: Iterable[ActionDescriptor]) -> None:
        """
        在链运行之前校验所有启用的步骤。
        禁用的步骤永远不会被执行，因此不参与校验。
        """
        for index, item in enumerate(items):
            if item.enabled and not self.has(item.kind):
                raise UnknownActionError(item.kind, index)

    async def execute(
        self,
        kind: str,
        item: ActionDescriptor,
        runtime: ActionRuntimeContext,
        context: ExecutionContext,
        index: Optional[int] = None
    ) -> Optional[bool]:
        executor_cls = self.get(kind, index)
        if executor_cls.mutates_selections and context.noSelections:
            logger.debug(f"Skipping '{kind}': selections are not allowed in this context.")
            return None
        executor = executor_cls(runtime, item, context)
        return await executor.execute()

# ============================================================================
# 3. 全局实例与辅助函数 (Global Instance & Helpers)
# ============================================================================

# 创建一个默认的全局注册表，方便上层直接使用装饰器
default_action_registry = ActionRegistry()
register_action = default_action_registry.register
