import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union
from urllib.parse import quote
from pydantic import ValidationError

from .definitions import NavigationKind, NavigationDescriptor, ButtonDefinition, ExecutionContext
from ..platform.base import DialogOptions
from ...services.exceptions import InvalidConfigurationError

logger = logging.getLogger(__name__)

NavigationSource = Union[ButtonDefinition, NavigationDescriptor, Dict[str, Any]]
NavigationOrProducer = Union[NavigationSource, Callable[[], NavigationSource]]
NavigationHandler = Callable[["NavigationDispatcher", NavigationDescriptor], Awaitable[None]]

# ============================================================================
# 1. 导航处理器注册 (Handler Registration)
# ============================================================================

_handlers: Dict[str, NavigationHandler] = {}

def navigation_handler(kind: NavigationKind):
    def decorator(func: NavigationHandler) -> NavigationHandler:
        _handlers[kind.value] = func
        return func
    return decorator

def load_navigation(source: NavigationSource) -> NavigationDescriptor:
    if isinstance(source, ButtonDefinition):
        return source.navigation
    if isinstance(source, NavigationDescriptor):
        return source
    if isinstance(source, dict) and isinstance(source.get("navigation"), (dict, NavigationDescriptor)):
        source = source["navigation"]
        if isinstance(source, NavigationDescriptor):
            return source
    try:
        return NavigationDescriptor.model_validate(source or {})
    except ValidationError as e:
        raise InvalidConfigurationError(f"Invalid navigation configuration: {e}")

def sheet_by_index(sheets: List[Dict[str, Any]], index: int = 0) -> Optional[str]:
    """
    按 rank 排序后取指定位置的工作表 id。
    负数从末尾计数；越界时回退到第一个工作表。
    """
    if not sheets:
        return None
    items = sorted(sheets, key=lambda sheet: float(sheet.get("qData", {}).get("rank") or 0))
    if index < 0:
        index = len(items) + index
    return items[index if 0 <= index < len(items) else 0]["qInfo"]["qId"]

# ============================================================================
# 2. 导航分发器 (Navigation Dispatcher)
# ============================================================================

class NavigationDispatcher:
    """
    在动作链结束后至多执行一个导航。
    导航是尽力而为的界面行为：未知的导航类型被静默忽略。
    """
    def __init__(self, navigator: Any, session: Any, dialogs: Any):
        self.navigator = navigator
        self.session = session
        self.dialogs = dialogs

    async def dispatch(
        self,
        navigation: NavigationOrProducer,
        chain_result: Any = True,
        context: Optional[ExecutionContext] = None
    ) -> bool:
        """
        :return: 是否实际执行了导航处理器
        """
        context = context or ExecutionContext()
        if chain_result is False or context.noInteraction:
            return False

        nav = load_navigation(navigation() if callable(navigation) else navigation)
        if not nav.enabled:
            return False

        handler = _handlers.get(nav.action)
        if handler is None:
            logger.debug(f"Navigation '{nav.action}' is not registered, ignoring.")
            return False

        logger.info(f"Navigating with '{nav.action}'.")
        await handler(self, nav)
        return True

    def app_sheet_url(self, nav: NavigationDescriptor) -> Optional[str]:
        if not nav.app:
            return None
        options = self.session.options
        url = ("https://" if options.isSecure else "http://") + options.host
        if options.port:
            url += f":{options.port}"
        if options.prefix:
            url += f"/{options.prefix.strip('/')}"
        url += f"/sense/app/{quote(nav.app, safe='')}"
        if nav.sheet:
            url += f"/sheet/{nav.sheet}/state/analysis"
        return url

    async def _goto_sheet_at(self, index: int) -> None:
        sheet = sheet_by_index(await self.session.get_sheets(), index)
        if sheet:
            await self.navigator.goto_sheet(sheet)

# ============================================================================
# 3. 导航处理器 (Handlers)
# ============================================================================

@navigation_handler(NavigationKind.GO_TO_SHEET)
async def go_to_sheet(dispatcher: NavigationDispatcher, nav: NavigationDescriptor) -> None:
    if nav.sheet:
        await dispatcher.navigator.goto_sheet(nav.sheet)

@navigation_handler(NavigationKind.GO_TO_FIRST_SHEET)
async def go_to_first_sheet(dispatcher: NavigationDispatcher, nav: NavigationDescriptor) -> None:
    await dispatcher._goto_sheet_at(0)

@navigation_handler(NavigationKind.GO_TO_PREV_SHEET)
async def go_to_prev_sheet(dispatcher: NavigationDispatcher, nav: NavigationDescriptor) -> None:
    await dispatcher.navigator.prev_sheet()

@navigation_handler(NavigationKind.GO_TO_NEXT_SHEET)
async def go_to_next_sheet(dispatcher: NavigationDispatcher, nav: NavigationDescriptor) -> None:
    await dispatcher.navigator.next_sheet()

@navigation_handler(NavigationKind.GO_TO_LAST_SHEET)
async def go_to_last_sheet(dispatcher: NavigationDispatcher, nav: NavigationDescriptor) -> None:
    await dispatcher._goto_sheet_at(-1)

@navigation_handler(NavigationKind.GO_TO_APP_SHEET)
async def go_to_app_sheet(dispatcher: NavigationDispatcher, nav: NavigationDescriptor) -> None:
    url = dispatcher.app_sheet_url(nav)
    if url:
        dispatcher.navigator.open_url(url, "_blank" if nav.newTab else "_self")

@navigation_handler(NavigationKind.START_STORY)
async def start_story(dispatcher: NavigationDispatcher, nav: NavigationDescriptor) -> None:
    if nav.story:
        await dispatcher.navigator.goto_story(nav.story)

@navigation_handler(NavigationKind.GO_TO_URI)
async def go_to_uri(dispatcher: NavigationDispatcher, nav: NavigationDescriptor) -> None:
    if nav.value:
        dispatcher.navigator.open_url(nav.value, "_blank" if nav.newTab else "_self")

@navigation_handler(NavigationKind.SWITCH_TO_EDIT)
async def switch_to_edit(dispatcher: NavigationDispatcher, nav: NavigationDescriptor) -> None:
    navigator = dispatcher.navigator
    if navigator.is_mode_allowed(navigator.EDIT):
        navigator.set_mode(navigator.EDIT)
        return
    dispatcher.dialogs.show(DialogOptions(
        title="Edit Mode",
        message="You are not allowed to edit this sheet."
    ))
