# src/actionbuttons/engine/actions/__init__.py
from .definitions import *
from .registry import ActionRegistry, ActionRuntimeContext, BaseAction, default_action_registry, register_action
from .resolver import FieldResolver
from .interceptor import StepInterceptor
from .chain import ActionChainExecutor, WidgetState, load_actions
from .navigation import NavigationDispatcher, navigation_handler
from .catalog import action_options, action_item_title, ACTION_OPTIONS, NAVIGATION_OPTIONS
