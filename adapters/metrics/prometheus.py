from __future__ import annotations

from prometheus_client import Counter, Histogram

from adapters.metrics.base import FlowStatus, Metrics
from quantumleap.prom import REGISTRY
from quantumleap.registry import flow_names

# -----------------------------------------------------------------------------
# Stage-level metrics
# -----------------------------------------------------------------------------
stage_duration_ms = Histogram(
    "stage_duration_ms",
    "Duration (ms) of each flow stage",
    ["stage"],
    buckets=(1, 2, 5, 10, 20, 50, 100, 200, 500, 1000, 2000, 5000, 10000, 20000, 60000),
    registry=REGISTRY,
)

stage_errors_total = Counter(
    "stage_errors_total",
    "Count of stage errors labeled by stage and error_code",
    ["stage", "error_code"],
    registry=REGISTRY,
)

# -----------------------------------------------------------------------------
# Flow-level metrics
# -----------------------------------------------------------------------------
flow_runs_total = Counter(
    "flow_runs_total",
    "Total number of flow invocations",
    ["flow", "status"],
    registry=REGISTRY,
)

repairs_applied_total = Counter(
    "repairs_applied_total",
    "Count of repair rules that changed a generated value",
    ["flow", "rule"],
    registry=REGISTRY,
)

tool_calls_total = Counter(
    "tool_calls_total",
    "Count of tool calls made by the model",
    ["flow"],
    registry=REGISTRY,
)

# -----------------------------------------------------------------------------
# Push fan-out metrics
# -----------------------------------------------------------------------------
push_messages_total = Counter(
    "push_messages_total",
    "Push notifications per device token, labeled by outcome",
    ["ok"],
    registry=REGISTRY,
)


class PrometheusMetrics(Metrics):
    def observe_stage_duration_ms(self, *, stage: str, dt_ms: float) -> None:
        stage_duration_ms.labels(stage=stage).observe(float(dt_ms))

    def inc_flow_run(self, *, flow: str, status: FlowStatus) -> None:
        flow_runs_total.labels(flow=flow, status=status).inc()

    def inc_stage_error(self, *, stage: str, error_code: str) -> None:
        stage_errors_total.labels(stage=stage, error_code=str(error_code)).inc()

    def inc_repair_applied(self, *, flow: str, rule: str) -> None:
        repairs_applied_total.labels(flow=flow, rule=rule).inc()

    def inc_tool_calls(self, *, flow: str, count: int) -> None:
        if count > 0:
            tool_calls_total.labels(flow=flow).inc(count)

    def inc_push_sent(self, *, ok: bool, count: int) -> None:
        if count > 0:
            push_messages_total.labels(ok=("true" if ok else "false")).inc(count)


# -----------------------------------------------------------------------------
# Label priming to keep /metrics stable
# -----------------------------------------------------------------------------
for name in flow_names():
    for status in ("ok", "error"):
        flow_runs_total.labels(flow=name, status=status).inc(0)
    tool_calls_total.labels(flow=name).inc(0)

for ok in ("true", "false"):
    push_messages_total.labels(ok=ok).inc(0)
