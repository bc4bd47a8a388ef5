# actionbuttons/services/exceptions.py
from typing import Any, Optional

class ActionEngineException(Exception):
    """Base exception for all action engine errors."""
    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)

class UnknownActionError(ActionEngineException):
    """Raised when an action descriptor names a kind that is not registered."""
    def __init__(self, kind: str, index: Optional[int] = None):
        self.kind = kind
        self.index = index
        where = f" (step {index})" if index is not None else ""
        super().__init__(f"Action handler not found for '{kind}'{where}.")

class InvalidConfigurationError(ActionEngineException):
    """Raised when persisted button or action configuration cannot be loaded."""
    pass

class VariableSetError(ActionEngineException):
    """Raised when the session refuses to set a variable."""
    def __init__(self, variable: str, reason: Any = None):
        self.variable = variable
        self.reason = reason
        message = f"Could not set variable '{variable}'"
        if reason:
            message += f": {reason}"
        super().__init__(message)

class RemoteCallError(ActionEngineException):
    """Structured failure of a REST call: status, data and message."""
    def __init__(self, message: str, status: Optional[int] = None, data: Any = None):
        self.status = status
        self.data = data
        super().__init__(message)
