# src/actionbuttons/engine/actions/executors/__init__.py
# 导入各模块以触发 @register_action 装饰器
from . import selection, variable, app, reload, rest, control
