import asyncio

import pytest

from adapters.metrics.base import Metrics
from conftest import FakeLLM
from quantumleap.errors import ErrorCode, FlowError, FlowNotFound, GenerationError, ValidationError
from quantumleap.invoker import FlowInvoker
from quantumleap.tools.base import Tool
from quantumleap.tools.coin_price import CoinPriceInput, TOOL_NAME


class RecordingMetrics(Metrics):
    def __init__(self):
        self.runs = []
        self.stage_errors = []
        self.repairs = []
        self.stages = []
        self.tool_calls = []

    def observe_stage_duration_ms(self, *, stage, dt_ms):
        self.stages.append(stage)

    def inc_flow_run(self, *, flow, status):
        self.runs.append((flow, status))

    def inc_stage_error(self, *, stage, error_code):
        self.stage_errors.append((stage, error_code))

    def inc_repair_applied(self, *, flow, rule):
        self.repairs.append(rule)

    def inc_tool_calls(self, *, flow, count):
        self.tool_calls.append(count)

    def inc_push_sent(self, *, ok, count):
        pass


PRICE_TOOL = Tool(
    name=TOOL_NAME,
    description="fake price",
    input_model=CoinPriceInput,
    fn=lambda data: {"coinId": "bitcoin", "price": 65000},
)


def make_invoker(llm, **kw):
    kw.setdefault("tools", {TOOL_NAME: PRICE_TOOL})
    return FlowInvoker(llm=llm, **kw)


def coin_pick(**overrides):
    pick = {
        "coin": "Solana (SOL)",
        "predictedGainPercentage": 12,
        "entryPriceRange": {"low": 150.0, "high": 160.0},
        "exitPriceRange": {"low": 0.0, "high": 0.0},
        "confidenceMeter": 0.8,
        "rationale": "Strong momentum and rising volume.",
        "estimatedDuration": "3 days",
        "riskRoiGauge": 1.4,
    }
    pick.update(overrides)
    return pick


def test_coin_picks_happy_path_repairs_and_validates():
    llm = FakeLLM({"picks": [coin_pick()]}, tool_calls=1)
    metrics = RecordingMetrics()
    inv = make_invoker(llm, metrics=metrics)

    res = asyncio.run(inv.invoke("coin_picks", {"profitTarget": 500}))

    pick = res.output_dict()["picks"][0]
    assert pick["exitPriceRange"] == {"low": 168.0, "high": 179.2}
    assert pick["riskRoiGauge"] == 1.0
    assert pick["riskMatchScore"] == 0.5
    assert pick["rationale"].startswith("### Why This Coin?")
    assert "Suggested Stop Loss:" in pick["rationale"]
    assert "Strong momentum and rising volume." in pick["rationale"]
    assert len(pick["mockCandlestickData"]) == 30
    assert pick["mockCandlestickData"][-1]["time"] == "2024-12-31"

    assert [t["stage"] for t in res.traces] == ["validate", "render", "generate", "repair", "verify"]
    gen = res.traces[2]
    assert gen["token_in"] == 10 and gen["tool_calls"] == 1
    assert metrics.runs == [("coin_picks", "ok")]
    assert "picks[].exitPriceRange" in metrics.repairs
    assert metrics.tool_calls == [1]

    call = llm.calls[0]
    assert call["tools"] == [TOOL_NAME]
    assert call["output_schema"]["title"] == "CoinPicksOutput"
    assert "Risk profile: balanced" in call["prompt"]
    assert "Profit target: 500" in call["prompt"]


def test_missing_picks_list_becomes_empty():
    res = asyncio.run(make_invoker(FakeLLM({})).invoke("coin_picks", {"profitTarget": 50}))
    assert res.output_dict() == {"picks": []}
    assert "picks" in res.repairs


def test_strict_input_validation_names_field():
    metrics = RecordingMetrics()
    inv = make_invoker(FakeLLM(), metrics=metrics)
    with pytest.raises(ValidationError) as ei:
        asyncio.run(inv.invoke("coin_picks", {"profitTarget": "500"}))
    err = ei.value
    assert err.code == ErrorCode.VALIDATION_ERROR
    assert err.field == "profitTarget"
    assert err.flow == "coin_picks"
    assert metrics.stage_errors == [("validate", "VALIDATION_ERROR")]
    assert metrics.runs == [("coin_picks", "error")]


def test_enum_and_nested_input_errors():
    inv = make_invoker(FakeLLM())
    with pytest.raises(ValidationError) as ei:
        asyncio.run(inv.invoke("coin_picks", {"profitTarget": 1, "riskProfile": "yolo"}))
    assert ei.value.field == "riskProfile"

    with pytest.raises(ValidationError) as ei:
        asyncio.run(
            inv.invoke(
                "coach_chat",
                {"userMessage": "hi", "chatHistory": [{"role": "bot", "content": "x"}]},
            )
        )
    assert ei.value.field == "chatHistory.0.role"


def test_non_mapping_input_is_rejected():
    with pytest.raises(ValidationError):
        asyncio.run(make_invoker(FakeLLM()).invoke("quick_tip", ["not", "a", "dict"]))


def test_unknown_flow():
    with pytest.raises(FlowNotFound):
        asyncio.run(make_invoker(FakeLLM()).invoke("nope", {}))


def test_no_model_output_is_empty_output_error():
    with pytest.raises(GenerationError) as ei:
        asyncio.run(make_invoker(FakeLLM(None)).invoke("quick_tip", {"userActionContext": "general"}))
    assert ei.value.code == ErrorCode.LLM_EMPTY_OUTPUT


def test_nonconforming_output_fails_with_field_details():
    llm = FakeLLM({"quickTip": "Stay calm", "suggestedActionTheme": "PANIC"})
    with pytest.raises(GenerationError) as ei:
        asyncio.run(make_invoker(llm).invoke("quick_tip", {"userActionContext": "general"}))
    assert ei.value.code == ErrorCode.LLM_BAD_OUTPUT
    assert any(d.startswith("suggestedActionTheme") for d in ei.value.details)


def test_missing_rationale_is_not_invented():
    pick = coin_pick()
    del pick["rationale"]
    with pytest.raises(GenerationError) as ei:
        asyncio.run(make_invoker(FakeLLM({"picks": [pick]})).invoke("coin_picks", {"profitTarget": 5}))
    assert any("rationale" in d for d in ei.value.details)


def test_provider_crash_becomes_generation_error():
    metrics = RecordingMetrics()
    inv = make_invoker(FakeLLM(RuntimeError("socket closed")), metrics=metrics)
    with pytest.raises(GenerationError) as ei:
        asyncio.run(inv.invoke("quick_tip", {"userActionContext": "general"}))
    assert "socket closed" in ei.value.message
    assert metrics.stage_errors == [("generate", "LLM_BAD_OUTPUT")]


def test_provider_generation_error_passes_through():
    down = GenerationError("down", code=ErrorCode.LLM_UNAVAILABLE)
    with pytest.raises(GenerationError) as ei:
        asyncio.run(make_invoker(FakeLLM(down)).invoke("quick_tip", {"userActionContext": "general"}))
    assert ei.value.code == ErrorCode.LLM_UNAVAILABLE
    assert ei.value.flow == "quick_tip"


def test_structured_flow_rejects_text_output():
    with pytest.raises(GenerationError):
        asyncio.run(make_invoker(FakeLLM("just text")).invoke("quick_tip", {"userActionContext": "general"}))


def test_text_flow_wraps_plain_text():
    llm = FakeLLM("  Markets move in cycles.  ")
    res = asyncio.run(make_invoker(llm).invoke("coach_chat", {"userMessage": "What is a cycle?"}))
    assert res.output_dict() == {"aiResponse": "Markets move in cycles."}
    assert llm.calls[0]["output_schema"] is None
    assert llm.calls[0]["tools"] == []


def test_missing_tool_registration_is_a_crash():
    inv = FlowInvoker(llm=FakeLLM({"picks": []}), tools={})
    with pytest.raises(FlowError) as ei:
        asyncio.run(inv.invoke("coin_picks", {"profitTarget": 5}))
    assert ei.value.code == ErrorCode.PIPELINE_CRASH


def test_temperature_defaults_and_overrides():
    llm = FakeLLM({"picks": [], "overallDisclaimer": "x"}, {"quickTip": "t", "suggestedActionTheme": "INFO"})
    inv = make_invoker(llm, temperatures={"quick_tip": 0.2})
    asyncio.run(inv.invoke("meme_flip", {}))
    asyncio.run(inv.invoke("quick_tip", {"userActionContext": "general"}))
    assert [c["temperature"] for c in llm.calls] == [0.9, 0.2]
