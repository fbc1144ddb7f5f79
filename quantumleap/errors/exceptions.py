from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from quantumleap.errors.codes import ErrorCode


@dataclass
class FlowError(Exception):
    """Base class for failures of a flow invocation."""

    message: str
    code: ErrorCode = ErrorCode.PIPELINE_CRASH
    flow: Optional[str] = None
    details: List[str] = field(default_factory=list)

    def __str__(self) -> str:
        return self.message


@dataclass
class ValidationError(FlowError):
    """Caller-supplied input does not match the flow's input shape."""

    code: ErrorCode = ErrorCode.VALIDATION_ERROR
    field: Optional[str] = None


@dataclass
class GenerationError(FlowError):
    """The model produced no usable output, or output that repair cannot fix."""

    code: ErrorCode = ErrorCode.LLM_BAD_OUTPUT


@dataclass
class FlowNotFound(FlowError):
    code: ErrorCode = ErrorCode.FLOW_NOT_FOUND
