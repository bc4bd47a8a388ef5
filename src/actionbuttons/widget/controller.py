import logging
from typing import Any, Callable, Dict, List, Optional, Union

from ..core.config import Settings, settings as default_settings
from ..engine.actions.chain import ActionChainExecutor, WidgetState, ActionsOrProducer
from ..engine.actions.definitions import ButtonDefinition, ExecutionContext, WidgetProps
from ..engine.actions.navigation import NavigationDispatcher, NavigationOrProducer
from ..engine.dynamic.materializer import DynamicButtonMaterializer
from ..engine.utils.data_parser import loose_bool

logger = logging.getLogger(__name__)

PropsOrProducer = Union[WidgetProps, Dict[str, Any], Callable[[], Union[WidgetProps, Dict[str, Any]]]]

class ButtonWidgetController:
    """
    按钮组件控制器。
    每个组件实例拥有自己的 WidgetState (确认对话框标志) 与动态按钮缓存，实例之间不共享。
    props 可以是一个返回最新配置的函数，以便每次点击时读取实时编辑的内容。
    """
    def __init__(
        self,
        props: PropsOrProducer,
        session: Any,
        dialogs: Any,
        navigator: Any,
        rest: Any = None,
        log_sink: Any = None,
        state_name: Optional[str] = None,
        settings: Optional[Settings] = None,
        id_factory: Optional[Callable[[], str]] = None
    ):
        self.settings = settings or default_settings
        self._props = props
        self.state_name = state_name
        self.state = WidgetState()
        self.executor = ActionChainExecutor(
            session=session,
            dialogs=dialogs,
            rest=rest,
            log_sink=log_sink,
            settings=self.settings,
            state=self.state
        )
        self.navigation = NavigationDispatcher(navigator, session, dialogs)
        self.materializer = DynamicButtonMaterializer(self.settings, id_factory)
        self.mounted = False

    @property
    def props(self) -> WidgetProps:
        props = self._props() if callable(self._props) else self._props
        if isinstance(props, WidgetProps):
            return props
        return WidgetProps.model_validate(props or {})

    # --- 生命周期 (Lifecycle) ---

    def on_mount(self) -> None:
        self.mounted = True
        logger.debug("Button widget mounted.")

    def on_destroy(self) -> None:
        self.materializer.clear()
        self.mounted = False
        logger.debug("Button widget destroyed, dynamic button cache cleared.")

    # --- 按钮 (Buttons) ---

    def buttons(self) -> List[ButtonDefinition]:
        props = self.props
        if props.buttonSet.dynamic:
            return self.materialize_dynamic_buttons(
                props.buttonSet.rule, props.buttonSet.limit, props.buttonSet.template
            )
        return props.buttons

    def materialize_dynamic_buttons(self, rule: str, limit: bool, template: Any) -> List[ButtonDefinition]:
        return self.materializer.materialize(rule, limit, template)

    @staticmethod
    def is_visible(button: ButtonDefinition) -> bool:
        return loose_bool(button.visible)

    @staticmethod
    def is_disabled(button: ButtonDefinition) -> bool:
        return not loose_bool(button.enabled)

    def context(self, **flags: Any) -> ExecutionContext:
        return ExecutionContext(stateName=self.state_name, **flags)

    # --- 执行 (Execution) ---

    async def run_chain(self, actions: ActionsOrProducer, context: Optional[ExecutionContext] = None) -> Optional[bool]:
        return await self.executor.run(actions, context or self.context())

    async def run_navigation(
        self,
        navigation: NavigationOrProducer,
        chain_result: Any = True,
        context: Optional[ExecutionContext] = None
    ) -> bool:
        return await self.navigation.dispatch(navigation, chain_result, context or self.context())

    async def press(
        self,
        button: ButtonDefinition,
        in_edit_state: bool = False,
        context: Optional[ExecutionContext] = None
    ) -> Optional[bool]:
        """
        按钮点击处理：编辑状态下不执行。
        动作链完成后执行导航。致命错误只在这里记录，不向界面抛出。
        """
        if in_edit_state:
            return None

        context = context or self.context()
        try:
            done = await self.run_chain(lambda: self._live_button(button).actions, context)
            if done:
                await self.run_navigation(lambda: self._live_button(button).navigation, done, context)
            return done
        except Exception as e:
            logger.error(f"Button '{button.label}' failed: {e}", exc_info=True)
            return None

    def _live_button(self, button: ButtonDefinition) -> ButtonDefinition:
        """
        按 cId 从当前配置中查找按钮的最新版本；找不到时使用传入的按钮。
        动态按钮在模板修改后会重新生成 cId，此时按生成时的位置查找。
        """
        if not button.cId:
            return button
        buttons = self.buttons()
        for candidate in buttons:
            if candidate.cId == button.cId:
                return candidate
        index = self.materializer.position(button.cId) if self.props.buttonSet.dynamic else None
        if index is not None and index < len(buttons):
            return buttons[index]
        return button
