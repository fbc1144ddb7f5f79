"""Meme coin quick flip: 2-5 extremely speculative meme-coin flips."""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import Field

from quantumleap.contracts import CandlestickPoint, FlowContract, PriceRange, Shape
from quantumleap.prompts.render import PromptTemplate
from quantumleap.repair import (
    RepairRule,
    default_text,
    default_value,
    empty_list,
    ensure_heading,
    ensure_stop_loss,
    exit_range,
    mirror,
    price_series,
    unit_score,
)

NAME = "meme_flip"

DISCLAIMER = (
    "Meme coins are EXTREMELY RISKY and highly speculative. Prices are driven by "
    "hype and can collapse to zero without warning. Invest only what you are "
    "absolutely prepared to lose. This is not financial advice. DYOR!"
)
HEADING = "### Why This Degen Play?"


class MemeFlipInput(Shape):
    trigger: bool = True


class MemePick(Shape):
    coinName: str
    predictedPumpPotential: str
    suggestedBuyInWindow: str
    quickFlipSellTargetPercentage: float
    entryPriceRange: PriceRange
    confidenceScore: float = Field(ge=0, le=1)
    rationale: str = Field(min_length=1)
    riskLevel: Literal["Extreme", "Very High"] = "Extreme"
    estimatedDuration: str
    predictedGainPercentage: float
    exitPriceRange: PriceRange
    predictedEntryWindowDescription: Optional[str] = None
    predictedExitWindowDescription: Optional[str] = None
    simulatedEntryCountdownText: Optional[str] = None
    simulatedPostBuyDropAlertText: Optional[str] = None
    mockCandlestickData: List[CandlestickPoint] = Field(min_length=30, max_length=30)


class MemeFlipOutput(Shape):
    picks: List[MemePick]
    overallDisclaimer: str


TEMPLATE = PromptTemplate(
    name=NAME,
    text="""You are "Meme Coin Hunter AI", an elite crypto coach who spots meme coins about to pump. The user wants to buy very low and sell almost immediately. Emphasize the EXTREME volatility and risk involved.

Look for sudden volume surges, rising hype on Crypto Twitter, Telegram and Reddit, smart-money accumulation, surging meme narratives and hype-cycle timing. Rate risk 1-5 internally and only recommend when the immediate reward far outweighs it.

For each pick:
- coinName: full name and ticker.
- predictedPumpPotential: "High", "Very High" or "Extreme".
- suggestedBuyInWindow: an urgent, specific timeframe.
- quickFlipSellTargetPercentage: target gain in percent for the flip.
- entryPriceRange: object with numeric low and high; meme prices are very small decimals.
- confidenceScore: 0.0-1.0 confidence in the pump potential.
- rationale: start with "{{heading}}", list three bullet points, detail buy signals, entry strategy and sell targets, include "Suggested Stop Loss: <value or %>" and the warnings "EXTREMELY SPECULATIVE", "HIGH RISK OF TOTAL CAPITAL LOSS", "Rug pull possible", "DYOR".
- riskLevel: "Extreme" or "Very High".
- estimatedDuration: e.g. "Few hours", "1-2 days".
- predictedGainPercentage: identical to quickFlipSellTargetPercentage.
- exitPriceRange: entryPriceRange scaled by the sell target.
- Optional: predictedEntryWindowDescription, predictedExitWindowDescription, simulatedEntryCountdownText, simulatedPostBuyDropAlertText.

Provide 2-5 picks, or an empty 'picks' array if nothing meets the criteria. Include 'overallDisclaimer'. All numeric fields must be numbers.
""",
)

REPAIRS = (
    RepairRule("picks", empty_list("picks")),
    RepairRule("overallDisclaimer", default_text("overallDisclaimer", DISCLAIMER)),
    RepairRule(
        "predictedPumpPotential",
        default_value("predictedPumpPotential", "High"),
        scope="picks",
    ),
    RepairRule("riskLevel", default_value("riskLevel", "Extreme"), scope="picks"),
    RepairRule("confidenceScore", unit_score("confidenceScore"), scope="picks"),
    RepairRule(
        "predictedGainPercentage",
        mirror("quickFlipSellTargetPercentage"),
        scope="picks",
    ),
    RepairRule(
        "exitPriceRange",
        exit_range(gain="quickFlipSellTargetPercentage"),
        scope="picks",
    ),
    RepairRule(
        "rationale",
        ensure_heading(
            "rationale",
            HEADING,
            [
                "Potential for rapid speculative gains.",
                "Strong social signals observed.",
                "Monitor for volatility.",
            ],
        ),
        scope="picks",
        name="heading",
    ),
    RepairRule(
        "rationale",
        ensure_stop_loss(
            "rationale",
            "Suggested Stop Loss: Implement a tight stop loss (e.g., 5-15%) due to "
            "extreme volatility.",
        ),
        scope="picks",
        name="stop_loss",
    ),
    RepairRule("mockCandlestickData", price_series(), scope="picks"),
)


def _prepare(data: MemeFlipInput) -> dict:
    return {**data.model_dump(), "heading": HEADING}


CONTRACT = FlowContract(
    name=NAME,
    input_model=MemeFlipInput,
    output_model=MemeFlipOutput,
    template=TEMPLATE,
    repairs=REPAIRS,
    prepare=_prepare,
    temperature=0.9,
    description="Speculative meme-coin quick flips.",
)
