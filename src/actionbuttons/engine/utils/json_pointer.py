# actionbuttons/engine/utils/json_pointer.py
"""
RFC 6901 JSON Pointer 解析。
"" 指向整个文档；"/a/0/b" 依次访问对象键与数组下标；
转义序列先还原 ~1 -> "/"，再还原 ~0 -> "~"。
"""
from typing import Any, List

_MISSING = object()

class JsonPointerError(ValueError):
    pass

def unescape_token(token: str) -> str:
    return token.replace("~1", "/").replace("~0", "~")

def parse_pointer(pointer: str) -> List[str]:
    if pointer == "":
        return []
    if not pointer.startswith("/"):
        raise JsonPointerError(f"Invalid JSON pointer '{pointer}': must be empty or start with '/'.")
    return [unescape_token(token) for token in pointer[1:].split("/")]

def resolve_pointer(document: Any, pointer: str, default: Any = _MISSING) -> Any:
    """
    Return the value addressed by `pointer` inside `document`.
    Raises JsonPointerError when the path does not exist and no default is given.
    """
    value = document
    for token in parse_pointer(pointer):
        if isinstance(value, dict):
            if token not in value:
                break
            value = value[token]
        elif isinstance(value, list):
            if not token.isdigit() or (len(token) > 1 and token.startswith("0")):
                break
            index = int(token)
            if index >= len(value):
                break
            value = value[index]
        else:
            break
    else:
        return value

    if default is _MISSING:
        raise JsonPointerError(f"JSON pointer '{pointer}' does not resolve.")
    return default
