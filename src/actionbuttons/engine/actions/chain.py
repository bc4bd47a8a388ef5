import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, Union
from pydantic import ValidationError

from .definitions import ActionDescriptor, ButtonDefinition, ExecutionContext, ChainState
from .registry import ActionRegistry, ActionRuntimeContext, default_action_registry
from .resolver import FieldResolver
from .interceptor import StepInterceptor, NextCall
from ..platform.base import FileLogSink
from ...core.config import Settings, settings as default_settings
from ...services.exceptions import InvalidConfigurationError
from . import executors # 导入这些模块以触发 @register_action 装饰器自动注册

logger = logging.getLogger(__name__)

ActionSource = Union[ButtonDefinition, Sequence[Union[ActionDescriptor, Dict[str, Any]]]]
ActionsOrProducer = Union[ActionSource, Callable[[], ActionSource]]

class WidgetState:
    """
    组件实例内、跨动作链共享的可变状态。
    只在事件循环线程内访问。
    """
    def __init__(self):
        self._open_confirmations = 0

    @property
    def confirmation_open(self) -> bool:
        return self._open_confirmations > 0

    def confirmation_opened(self) -> None:
        self._open_confirmations += 1

    def confirmation_closed(self) -> None:
        self._open_confirmations = max(0, self._open_confirmations - 1)

def load_actions(source: ActionSource) -> List[ActionDescriptor]:
    """
    读取一份新的动作列表副本。调用方的列表永远不会被修改。
    """
    if isinstance(source, ButtonDefinition):
        source = source.actions
    elif isinstance(source, dict) and "actions" in source:
        source = source["actions"]
    try:
        return [
            item if isinstance(item, ActionDescriptor) else ActionDescriptor.model_validate(item)
            for item in (source or [])
        ]
    except ValidationError as e:
        raise InvalidConfigurationError(f"Invalid action configuration: {e}")

class ActionChainExecutor(ActionRuntimeContext):
    """
    动作链执行器。
    按顺序执行动作列表：上一步结果严格为 False，或先前步骤打开的确认对话框仍未关闭时，链中断。
    步骤之间绝不并行，后续步骤通常依赖前序步骤的副作用 (选择、变量)。
    """
    def __init__(
        self,
        session: Any,
        dialogs: Any,
        rest: Any = None,
        log_sink: Any = None,
        settings: Optional[Settings] = None,
        registry: Optional[ActionRegistry] = None,
        state: Optional[WidgetState] = None,
        interceptors: Optional[List[StepInterceptor]] = None
    ):
        self._settings = settings or default_settings
        self._session = session
        self._dialogs = dialogs
        self._rest = rest
        self._log_sink = log_sink or FileLogSink(self._settings.LOG_DOWNLOAD_DIR)
        self._state = state or WidgetState()
        self._resolver = FieldResolver(session, dialogs, self._settings)
        self.registry = registry or default_action_registry
        self.interceptors = interceptors or []

    @property
    def session(self) -> Any:
        return self._session

    @property
    def dialogs(self) -> Any:
        return self._dialogs

    @property
    def resolver(self) -> FieldResolver:
        return self._resolver

    @property
    def rest(self) -> Any:
        return self._rest

    @property
    def log_sink(self) -> Any:
        return self._log_sink

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def state(self) -> WidgetState:
        return self._state

    async def run(
        self,
        actions: ActionsOrProducer,
        context: Optional[ExecutionContext] = None
    ) -> Optional[bool]:
        """
        运行动作链。
        :return: None 表示禁止交互而未运行；False 表示链被中断 (不得导航)；True 表示链完成
        """
        context = context or ExecutionContext()
        if context.noInteraction:
            logger.debug("Interaction is disabled, action chain not started.")
            return None
        chain_state = await self.run_with_state(actions, context)
        return chain_state.status == "COMPLETED"

    async def run_with_state(
        self,
        actions: ActionsOrProducer,
        context: Optional[ExecutionContext] = None
    ) -> ChainState:
        context = context or ExecutionContext()
        producer: Callable[[], ActionSource] = actions if callable(actions) else (lambda: actions)
        chain_state = ChainState()

        items = load_actions(producer())
        try:
            # 未注册的动作在任何副作用发生之前即失败
            self.registry.validate(items)
        except Exception as e:
            chain_state.status = "FAILED"
            chain_state.error_msg = str(e)
            raise

        chain_state.status = "RUNNING"
        logger.info(f"Action chain started with {len(items)} step(s).")

        while True:
            if chain_state.index > 0:
                # 每个步骤边界重新读取配置，按位置继续
                items = load_actions(producer())
            if chain_state.index >= len(items):
                break

            if chain_state.last_result is False or self._state.confirmation_open:
                chain_state.status = "STOPPED"
                logger.info(f"Action chain stopped before step {chain_state.index}.")
                return chain_state

            index = chain_state.index
            item = items[index]
            if not item.enabled:
                logger.debug(f"Step {index} ('{item.kind}') is disabled, skipping.")
                chain_state.last_result = None
            else:
                try:
                    chain_state.last_result = await self._run_step(index, item, context)
                except Exception as e:
                    chain_state.status = "FAILED"
                    chain_state.error_msg = str(e)
                    raise
                chain_state.executed.append(index)
            chain_state.index += 1

        if chain_state.last_result is False:
            chain_state.status = "STOPPED"
            logger.info("Action chain stopped by its last step.")
        else:
            chain_state.status = "COMPLETED"
            logger.info("Action chain completed.")
        return chain_state

    async def _run_step(self, index: int, item: ActionDescriptor, context: ExecutionContext) -> Optional[bool]:
        # --- 核心执行逻辑封装 (The Core) ---
        async def core_execution() -> Optional[bool]:
            return await self.registry.execute(item.kind, item, self, context, index)

        # --- 责任链构建 (The Chain) ---
        chain: NextCall = core_execution

        # 倒序包装：列表第一个拦截器在洋葱的最外层
        for interceptor in reversed(self.interceptors):
            # 使用默认参数捕获闭包变量，防止循环变量泄漏问题
            def wrap(curr=interceptor, nxt=chain):
                return curr.intercept(index, item, context, nxt)
            chain = wrap

        return await chain()
