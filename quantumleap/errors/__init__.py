"""Error taxonomy shared by the flow invoker and the HTTP layer."""

from .codes import ErrorCode
from .exceptions import FlowError, FlowNotFound, GenerationError, ValidationError
from .mapper import map_error

__all__ = [
    "ErrorCode",
    "FlowError",
    "FlowNotFound",
    "GenerationError",
    "ValidationError",
    "map_error",
]
