from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic import BaseModel


# =====================
# Tracing / Observability
# =====================


@dataclass(frozen=True)
class StageTrace:
    stage: str
    duration_ms: float
    summary: str = ""
    notes: Optional[Dict[str, Any]] = None

    # Optional observability fields
    token_in: Optional[int] = None
    token_out: Optional[int] = None
    cost_usd: Optional[float] = None

    # Enriched / debug-only fields
    tool_calls: Optional[int] = None
    repairs: Optional[List[str]] = None


# =====================
# Model boundary
# =====================


@dataclass(frozen=True)
class Generation:
    """
    What the model returned for one invocation.

    `value` is the parsed JSON object for structured flows, the raw text for
    free-text flows, or None when the model produced nothing.
    """

    value: Any
    token_in: int = 0
    token_out: int = 0
    cost_usd: float = 0.0
    tool_calls: int = 0


# =====================
# Final flow result
# =====================


@dataclass(frozen=True)
class FlowResult:
    """
    Final domain result of one flow invocation.
    Adapters (HTTP/CLI) should serialize this to dict/JSON at the boundary.
    """

    flow: str
    output: BaseModel
    traces: List[Dict[str, Any]] = field(default_factory=list)
    repairs: List[str] = field(default_factory=list)

    def output_dict(self) -> Dict[str, Any]:
        return self.output.model_dump(exclude_none=True)

    @property
    def usage(self) -> Dict[str, Any]:
        """Token counts, cost and tool calls of the model call."""
        for t in self.traces:
            if t.get("stage") == "generate":
                return {
                    k: t.get(k) for k in ("token_in", "token_out", "cost_usd", "tool_calls")
                }
        return {}
