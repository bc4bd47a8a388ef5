# actionbuttons/engine/utils/data_parser.py

import math
import re
from datetime import datetime
from typing import Any, Dict, List, Optional

# ====================================================================
# ===== 便捷函数 =====
# ====================================================================

_LEADING_INT = re.compile(r'^\s*([+-]?\d+)')
_PLACEHOLDER = re.compile(r'\$(\d+)')

def parse_int(value: Any) -> Optional[int]:
    """
    宽松的整数解析：读取前导整数部分，其余字符忽略。
    "12px" -> 12, "0.5" -> 0, "abc" -> None。
    """
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return None if math.isnan(value) or math.isinf(value) else int(value)
    if value is None:
        return None
    match = _LEADING_INT.match(str(value))
    return int(match.group(1)) if match else None

def loose_bool(value: Any) -> bool:
    """
    Interpret an expression result as a loose boolean.
    Empty or unparsable values are true; only an integer zero is false.
    """
    if value is None or value == "":
        return True
    parsed = parse_int(value)
    if parsed is None:
        return True
    return parsed != 0

def is_numeric(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    return isinstance(value, (int, float))

def coerce_number(value: str) -> Any:
    """将看起来像数字的字符串转为数字，否则原样返回。"""
    text = value.strip()
    if not text:
        return value
    try:
        number = float(text)
    except ValueError:
        return value
    if math.isnan(number):
        return value
    return int(number) if number.is_integer() and re.fullmatch(r'[+-]?\d+', text) else number

def dual_value(cell: Dict[str, Any]) -> Any:
    """Dual 值优先选择其数字部分。"""
    num = cell.get("qNum")
    if num is None or num == "NaN" or (isinstance(num, float) and math.isnan(num)):
        return cell.get("qText")
    return num

def format_elapsed(started: datetime, until: Optional[datetime] = None) -> str:
    """Return the elapsed time as HH:MM:SS."""
    until = until or datetime.now()
    seconds = max(0.0, (until - started).total_seconds())
    return "{:02d}:{:02d}:{:02d}".format(
        int(seconds // 3600), int(seconds % 3600 // 60), int(seconds % 60)
    )

def substitute_params(template: Any, params: List[str]) -> Any:
    """
    递归替换模板中所有字符串里的 $1..$n 占位符。
    没有对应参数的占位符按原文保留。
    """
    if isinstance(template, str):
        def replacement(match):
            index = int(match.group(1)) - 1
            if 0 <= index < len(params):
                return params[index]
            return match.group(0)
        return _PLACEHOLDER.sub(replacement, template)
    if isinstance(template, dict):
        return {key: substitute_params(value, params) for key, value in template.items()}
    if isinstance(template, list):
        return [substitute_params(item, params) for item in template]
    return template
