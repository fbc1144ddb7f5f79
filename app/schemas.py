from typing import List, Optional, Any, Dict

from pydantic import BaseModel, Field


class FlowInfo(BaseModel):
    name: str
    description: str = ""
    tools: List[str] = Field(default_factory=list)
    text_output: bool = False


class FlowListResponse(BaseModel):
    flows: List[FlowInfo] = Field(default_factory=list)


class TraceModel(BaseModel):
    stage: str
    duration_ms: int
    summary: Optional[str] = None
    token_in: int | None = None
    token_out: int | None = None
    cost_usd: float | None = None
    tool_calls: int | None = None
    repairs: List[str] | None = None
    notes: Dict[str, Any] | None = None


class FlowRunResponse(BaseModel):
    flow: str
    output: Dict[str, Any] = Field(default_factory=dict)
    usage: Dict[str, Any] = Field(default_factory=dict)
    traces: List[TraceModel] = Field(default_factory=list)
    repairs: List[str] = Field(default_factory=list)


class CoinPriceRequest(BaseModel):
    coinNameOrSymbol: str


class SignalModel(BaseModel):
    id: str
    strategy: str
    createdAt: str


class SignalListResponse(BaseModel):
    signals: List[SignalModel] = Field(default_factory=list)
