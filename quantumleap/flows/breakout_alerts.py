"""Predictive breakout alerts: up to three coins showing early breakout signals."""

from __future__ import annotations

from typing import List, Optional

from pydantic import Field

from quantumleap.contracts import FlowContract, Shape
from quantumleap.prompts.render import PromptTemplate
from quantumleap.repair import (
    RepairRule,
    default_text,
    empty_list,
    now_iso,
    pad_list,
    unit_score,
)

NAME = "breakout_alerts"

RISK_WARNING = (
    "Predictive alerts are speculative and based on AI analysis of simulated data "
    "patterns. Not financial advice. High risk involved, and breakouts may not "
    "occur as predicted. DYOR."
)


class BreakoutAlertsInput(Shape):
    triggerScan: bool


class BreakoutAlert(Shape):
    coinName: str
    alertTitle: str
    confidenceScore: float = Field(ge=0, le=1)
    keySignals: List[str] = Field(min_length=2)
    potentialUpsidePercentage: Optional[float] = None
    suggestedWatchWindow: str
    briefRationale: str = Field(min_length=1)
    riskWarning: str


class BreakoutAlertsOutput(Shape):
    alerts: List[BreakoutAlert] = Field(max_length=3)
    lastScanned: str


TEMPLATE = PromptTemplate(
    name=NAME,
    text="""You are an elite AI crypto coach acting as a "Predictive Breakout Analyst". Identify up to 3 cryptocurrencies showing strong early signs of a breakout before it becomes mainstream news.

You have no live price feed. Describe price levels qualitatively (key resistance, recent support, Fibonacci levels, percentage moves) instead of quoting current dollar values.

Consider volatility build-up (Bollinger squeezes, pre-breakout volume), organic sentiment shifts, whale accumulation, newly surging narratives and early momentum phases.

For each alert:
- coinName: full name and ticker.
- alertTitle: a compelling title.
- confidenceScore: 0.0-1.0.
- keySignals: 2-4 specific signals.
- potentialUpsidePercentage: optional estimated gain in percent.
- suggestedWatchWindow: an actionable timeframe or technical level to monitor.
- briefRationale: why the combined signals suggest an imminent breakout.
- riskWarning: the standard risk warning.

Return an empty 'alerts' array if no coin shows a strong confluence of signals. Set 'lastScanned' to the current ISO timestamp.
""",
)

REPAIRS = (
    RepairRule("alerts", empty_list("alerts")),
    RepairRule("lastScanned", now_iso()),
    RepairRule("confidenceScore", unit_score("confidenceScore"), scope="alerts"),
    RepairRule("riskWarning", default_text("riskWarning", RISK_WARNING), scope="alerts"),
    RepairRule(
        "keySignals",
        pad_list(
            "keySignals",
            2,
            ["Monitor market sentiment closely.", "Watch for volume spikes."],
        ),
        scope="alerts",
    ),
)

CONTRACT = FlowContract(
    name=NAME,
    input_model=BreakoutAlertsInput,
    output_model=BreakoutAlertsOutput,
    template=TEMPLATE,
    repairs=REPAIRS,
    description="Coins with early breakout signals.",
)
