"""AI coin picks: 1-5 short-term picks for the user's risk profile."""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import Field

from quantumleap.contracts import CandlestickPoint, FlowContract, PriceRange, Shape
from quantumleap.prompts.render import PromptTemplate
from quantumleap.repair import (
    RepairRule,
    empty_list,
    ensure_heading,
    ensure_stop_loss,
    exit_range,
    price_series,
    unit_score,
)
from quantumleap.tools.coin_price import TOOL_NAME

NAME = "coin_picks"


class CoinPicksInput(Shape):
    profitTarget: float
    strategy: Literal["short-term", "swing", "scalp"] = "short-term"
    riskProfile: Literal["cautious", "balanced", "aggressive"] = "balanced"


class CoinPick(Shape):
    coin: str
    predictedGainPercentage: float
    entryPriceRange: PriceRange
    exitPriceRange: PriceRange
    optimalBuyPrice: Optional[float] = None
    targetSellPrices: Optional[List[float]] = None
    confidenceMeter: float = Field(ge=0, le=1)
    rationale: str = Field(min_length=1)
    estimatedDuration: str
    riskRoiGauge: float = Field(ge=0, le=1)
    riskMatchScore: float = Field(ge=0, le=1)
    predictedEntryWindowDescription: Optional[str] = None
    predictedExitWindowDescription: Optional[str] = None
    simulatedEntryCountdownText: Optional[str] = None
    simulatedPostBuyDropAlertText: Optional[str] = None
    mockCandlestickData: List[CandlestickPoint] = Field(min_length=30, max_length=30)


class CoinPicksOutput(Shape):
    picks: List[CoinPick]


HEADING = "### Why This Coin?"

TEMPLATE = PromptTemplate(
    name=NAME,
    text="""You are an elite AI crypto investment coach who finds high-potential meme and altcoins for fast-profit trades (1-7 days). Combine live market data, on-chain metrics, social sentiment and whale activity into risk-adjusted short-term strategies.

Weigh, for every candidate:
1. Volatility: breakout setups with risk-reward above 2.0 (Bollinger squeezes, volume surges, RSI trends).
2. Sentiment: rising hype and community strength on Crypto Twitter, Telegram and Reddit.
3. Whale tracking: accumulation by wallets moving $100k+.
4. Narrative pulse: alignment with trending themes.
5. Cycle timing: ideal entry and exit windows.
6. Risk layering: a 1-5 risk rating (liquidity, slippage, tokenomics, rug history). The user's risk profile ({{riskProfile}}) weighs heavily here.

User inputs:
- Profit target: {{profitTarget}} USD
- Strategy preference: {{strategy}}
- Risk profile: {{riskProfile}}

Use the getCoinPrice tool to anchor entry prices to the live market price whenever a coin is supported.

Map each pick to the output schema:
- coin: name and ticker, e.g. "Bitcoin (BTC)".
- predictedGainPercentage: target gain in percent.
- entryPriceRange / exitPriceRange: objects with numeric low and high.
- confidenceMeter, riskRoiGauge, riskMatchScore: numbers from 0.0 to 1.0; riskMatchScore reflects the fit with '{{riskProfile}}'.
- rationale: start with "{{heading}}" followed by three bullet points, then a line "Suggested Stop Loss: <value or %>", then further detail.
- estimatedDuration: e.g. "1 day", "3 days", "7 days".
- Optional: optimalBuyPrice, targetSellPrices, predictedEntryWindowDescription, predictedExitWindowDescription, simulatedEntryCountdownText, simulatedPostBuyDropAlertText.

Provide 1-5 picks, or an empty 'picks' array if nothing qualifies. All numeric fields must be numbers, not strings.
""",
)

REPAIRS = (
    RepairRule("picks", empty_list("picks")),
    RepairRule("confidenceMeter", unit_score("confidenceMeter"), scope="picks"),
    RepairRule("riskRoiGauge", unit_score("riskRoiGauge"), scope="picks"),
    RepairRule("riskMatchScore", unit_score("riskMatchScore"), scope="picks"),
    RepairRule(
        "rationale",
        ensure_heading(
            "rationale",
            HEADING,
            [
                "AI analysis suggests potential.",
                "Market conditions appear favorable for this type of asset.",
                "Monitor closely.",
            ],
        ),
        scope="picks",
        name="heading",
    ),
    RepairRule(
        "rationale",
        ensure_stop_loss(
            "rationale",
            "Suggested Stop Loss: Consider a 5-10% stop loss or adjust based on "
            "personal risk tolerance and market volatility.",
        ),
        scope="picks",
        name="stop_loss",
    ),
    RepairRule(
        "exitPriceRange", exit_range(gain="predictedGainPercentage"), scope="picks"
    ),
    RepairRule("mockCandlestickData", price_series(coin="coin"), scope="picks"),
)


def _prepare(data: CoinPicksInput) -> dict:
    return {**data.model_dump(), "heading": HEADING}


CONTRACT = FlowContract(
    name=NAME,
    input_model=CoinPicksInput,
    output_model=CoinPicksOutput,
    template=TEMPLATE,
    repairs=REPAIRS,
    tools=(TOOL_NAME,),
    prepare=_prepare,
    description="Top short-term coin picks for a profit target and risk profile.",
)
