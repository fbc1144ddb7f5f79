from __future__ import annotations

from adapters.metrics.base import FlowStatus, Metrics


class NoOpMetrics(Metrics):
    def observe_stage_duration_ms(self, *, stage: str, dt_ms: float) -> None:
        return

    def inc_flow_run(self, *, flow: str, status: FlowStatus) -> None:
        return

    def inc_stage_error(self, *, stage: str, error_code: str) -> None:
        return

    def inc_repair_applied(self, *, flow: str, rule: str) -> None:
        return

    def inc_tool_calls(self, *, flow: str, count: int) -> None:
        return

    def inc_push_sent(self, *, ok: bool, count: int) -> None:
        return
