from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Literal

FlowStatus = Literal["ok", "error"]


class Metrics(ABC):
    @abstractmethod
    def observe_stage_duration_ms(self, *, stage: str, dt_ms: float) -> None: ...

    @abstractmethod
    def inc_flow_run(self, *, flow: str, status: FlowStatus) -> None: ...

    @abstractmethod
    def inc_stage_error(self, *, stage: str, error_code: str) -> None: ...

    @abstractmethod
    def inc_repair_applied(self, *, flow: str, rule: str) -> None: ...

    @abstractmethod
    def inc_tool_calls(self, *, flow: str, count: int) -> None: ...

    @abstractmethod
    def inc_push_sent(self, *, ok: bool, count: int) -> None: ...
