"""Flow-specific preparation and repair behavior, driven through the invoker."""

import asyncio

from conftest import FakeLLM
from quantumleap.flows.coach_chat import ChatMessage, format_history
from quantumleap.flows.quick_tip import truncate_summary
from quantumleap.invoker import FlowInvoker
from quantumleap.registry import FLOWS, flow_names


def run(flow, raw, value):
    llm = FakeLLM(value)
    res = asyncio.run(FlowInvoker(llm=llm, tools={}).invoke(flow, raw))
    return res, llm.calls[0]["prompt"]


def test_registry_lists_all_flows():
    assert flow_names() == sorted(
        [
            "backtest",
            "breakout_alerts",
            "coach_chat",
            "coach_strategies",
            "coin_picks",
            "coin_rationale",
            "meme_flip",
            "profit_goal",
            "quick_tip",
            "rug_pull",
        ]
    )
    for name, contract in FLOWS.items():
        assert contract.name == name


def test_quick_tip_summary_truncation():
    assert truncate_summary("x" * 50) == "x" * 50
    assert truncate_summary("y" * 60) == "y" * 47 + "..."
    assert truncate_summary(None) is None

    _, prompt = run(
        "quick_tip",
        {"userActionContext": "aiPicks", "lastPicksSummary": "z" * 80},
        {"quickTip": "Nice picks!", "suggestedActionTheme": "ACTION"},
    )
    assert "Last picks summary: " + "z" * 47 + "..." in prompt
    assert "Trader" in prompt


def test_quick_tip_without_summary_omits_section():
    _, prompt = run(
        "quick_tip",
        {"userActionContext": "general", "userName": "Ava"},
        {"quickTip": "Welcome!", "suggestedActionTheme": "ENGAGE"},
    )
    assert "Last picks summary" not in prompt
    assert "Ava" in prompt


def test_coach_chat_history_is_flattened():
    history = [ChatMessage(role="user", content="hi"), ChatMessage(role="model", content="hello")]
    assert format_history(history) == "USER: hi\nMODEL: hello"

    _, prompt = run(
        "coach_chat",
        {
            "userMessage": "What is RSI?",
            "chatHistory": [
                {"role": "user", "content": "hi"},
                {"role": "model", "content": "hello"},
            ],
        },
        "RSI measures momentum.",
    )
    assert "USER: hi\nMODEL: hello" in prompt
    assert "No previous messages" not in prompt

    _, prompt = run("coach_chat", {"userMessage": "Hi"}, "Hello!")
    assert "(No previous messages in this session)" in prompt


def test_meme_flip_mirrors_gain_and_fills_defaults():
    pick = {
        "coinName": "Bonk (BONK)",
        "suggestedBuyInWindow": "Next 2 hours",
        "quickFlipSellTargetPercentage": 40,
        "predictedGainPercentage": 5,
        "entryPriceRange": {"low": 0.00002, "high": 0.000025},
        "confidenceScore": 0.4,
        "rationale": "Volume spike on socials.",
        "estimatedDuration": "Few hours",
    }
    res, _ = run("meme_flip", {}, {"picks": [pick]})
    out = res.output_dict()
    p = out["picks"][0]
    assert p["predictedGainPercentage"] == 40
    assert p["predictedPumpPotential"] == "High"
    assert p["riskLevel"] == "Extreme"
    assert p["exitPriceRange"] == {"low": 0.000028, "high": 0.000035}
    assert p["rationale"].startswith("### Why This Degen Play?")
    assert len(p["mockCandlestickData"]) == 30
    assert out["overallDisclaimer"]


def test_breakout_alerts_pad_signals_and_stamp_scan_time():
    alert = {
        "coinName": "Chainlink (LINK)",
        "alertTitle": "Volume surge",
        "confidenceScore": 2,
        "keySignals": ["Volume up 300%"],
        "suggestedWatchWindow": "Next 24h",
        "briefRationale": "Accumulation near support.",
    }
    res, _ = run("breakout_alerts", {"triggerScan": True}, {"alerts": [alert], "lastScanned": "old"})
    out = res.output_dict()
    a = out["alerts"][0]
    assert a["confidenceScore"] == 1.0
    assert len(a["keySignals"]) == 2
    assert a["riskWarning"]
    assert out["lastScanned"] != "old"
    assert out["lastScanned"].endswith("Z")


def _strategy(name, top=None):
    s = {
        "name": name,
        "description": "d",
        "reasoning": "r",
        "targetSellPrices": [1.2],
        "actionableSteps": ["step one"],
    }
    if top is not None:
        s["isTopPick"] = top
    return s


COACH_INPUT = {
    "coinName": "Solana",
    "currentRationale": "Momentum",
    "predictedGainPercentage": 10,
    "entryPriceRange": {"low": 150, "high": 160},
    "exitPriceRange": {"low": 165, "high": 176},
    "estimatedDuration": "3 days",
}


def test_coach_strategies_marks_first_when_none_marked():
    value = {
        "coinSpecificAdvice": "Watch support.",
        "investmentStrategies": [_strategy("Breakout"), _strategy("Dip buy")],
        "overallCoachSOutlook": "Cautiously bullish.",
    }
    res, prompt = run("coach_strategies", COACH_INPUT, value)
    out = res.output_dict()
    assert [s.get("isTopPick") for s in out["investmentStrategies"]] == [True, None]
    assert "'Breakout'" in out["topPickRationale"]
    assert out["disclaimer"]
    assert len(out["investmentStrategies"][0]["actionableSteps"]) == 2
    assert "a general strategy note" in prompt


def test_coach_strategies_keeps_only_first_of_several_top_picks():
    value = {
        "coinSpecificAdvice": "Watch support.",
        "investmentStrategies": [
            _strategy("A", top=False),
            _strategy("B", top=True),
            _strategy("C", top=True),
        ],
        "topPickRationale": "B fits best.",
        "overallCoachSOutlook": "Neutral.",
        "disclaimer": "Custom disclaimer.",
    }
    res, _ = run(
        "coach_strategies", {**COACH_INPUT, "tradingStylePreference": "swing"}, value
    )
    out = res.output_dict()
    assert [s["isTopPick"] for s in out["investmentStrategies"]] == [False, True, False]
    assert out["topPickRationale"] == "B fits best."
    assert out["disclaimer"] == "Custom disclaimer."


def test_rug_pull_joins_social_links_and_rejects_bad_urls():
    value = {
        "riskLevel": "High",
        "confidenceScore": 0.7,
        "summary": "Anonymous team.",
        "positiveSigns": [],
        "redFlags": ["Unlocked liquidity"],
        "detailedRationale": "Liquidity can be pulled.",
    }
    res, prompt = run(
        "rug_pull",
        {
            "coinName": "Scam",
            "socialMediaLinks": ["https://x.com/scam", "https://t.me/scam"],
        },
        value,
    )
    assert "https://x.com/scam, https://t.me/scam" in prompt
    assert res.output_dict()["disclaimer"]
