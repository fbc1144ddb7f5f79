"""Quick profit goal: 3-5 coins that can realistically reach a USD profit target."""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import Field

from quantumleap.contracts import CandlestickPoint, FlowContract, PriceRange, Shape
from quantumleap.prompts.render import PromptTemplate
from quantumleap.repair import (
    RepairRule,
    empty_list,
    ensure_stop_loss,
    exit_range,
    price_series,
    unit_score,
)

NAME = "profit_goal"


class ProfitGoalInput(Shape):
    profitTarget: float
    riskTolerance: Literal["low", "medium", "high"]
    investmentAmount: Optional[float] = None


class RecommendedCoin(Shape):
    coinName: str
    estimatedGain: float
    estimatedDuration: str
    entryPriceRange: PriceRange
    exitPriceRange: PriceRange
    optimalBuyPrice: Optional[float] = None
    targetSellPrices: Optional[List[float]] = None
    tradeConfidence: float = Field(ge=0, le=1)
    riskRoiGauge: float = Field(ge=0, le=1)
    rationale: str = Field(min_length=1)
    predictedEntryWindowDescription: Optional[str] = None
    predictedExitWindowDescription: Optional[str] = None
    simulatedEntryCountdownText: Optional[str] = None
    simulatedPostBuyDropAlertText: Optional[str] = None
    mockCandlestickData: List[CandlestickPoint] = Field(min_length=30, max_length=30)


class ProfitGoalOutput(Shape):
    recommendedCoins: List[RecommendedCoin]


TEMPLATE = PromptTemplate(
    name=NAME,
    text="""You are an elite AI crypto investment coach. Help the user outperform the market with precision, not guesswork.

The user wants to reach a profit target of {{profitTarget}} USD with a {{riskTolerance}} risk tolerance.
{{#if investmentAmount}}They plan to invest about ${{investmentAmount}} USD; keep this in mind as context.
{{/if}}
Apply volatility optimization, sentiment intelligence, whale tracking, narrative pulse, cycle timing and risk layering aligned with the {{riskTolerance}} tolerance.

Recommend 3-5 coins that can realistically contribute to the {{profitTarget}} USD goal. For each one:
- coinName: full name and ticker, e.g. "Bitcoin (BTC)".
- estimatedGain: percentage gain this coin should contribute.
- estimatedDuration: e.g. "5-10 days", "2 weeks".
- entryPriceRange / exitPriceRange: objects with numeric low and high.
- tradeConfidence, riskRoiGauge: numbers from 0.0 to 1.0.
- rationale: 3-4 paragraphs covering technicals, fundamentals, sentiment and whale activity, fit with the risk tolerance, catalysts and invalidation points. Include a "Suggested Stop Loss:" line.
- Optional: optimalBuyPrice, targetSellPrices, predictedEntryWindowDescription, predictedExitWindowDescription, simulatedEntryCountdownText, simulatedPostBuyDropAlertText.

If no suitable coins are found, return an empty 'recommendedCoins' array. All numeric fields must be numbers.
""",
)

REPAIRS = (
    RepairRule("recommendedCoins", empty_list("recommendedCoins")),
    RepairRule(
        "tradeConfidence", unit_score("tradeConfidence"), scope="recommendedCoins"
    ),
    RepairRule("riskRoiGauge", unit_score("riskRoiGauge"), scope="recommendedCoins"),
    RepairRule(
        "rationale",
        ensure_stop_loss(
            "rationale",
            "Suggested Stop Loss: Define based on your strategy and market "
            "conditions (e.g., 5-10% or key technical level).",
        ),
        scope="recommendedCoins",
        name="stop_loss",
    ),
    RepairRule(
        "exitPriceRange", exit_range(gain="estimatedGain"), scope="recommendedCoins"
    ),
    RepairRule("mockCandlestickData", price_series(), scope="recommendedCoins"),
)

CONTRACT = FlowContract(
    name=NAME,
    input_model=ProfitGoalInput,
    output_model=ProfitGoalOutput,
    template=TEMPLATE,
    repairs=REPAIRS,
    description="Coins recommended to reach a profit target.",
)
