"""AI coach strategies: 1-3 profit-maximizing strategies for one coin."""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import Field

from quantumleap.contracts import FlowContract, PriceRange, Shape
from quantumleap.prompts.render import PromptTemplate
from quantumleap.repair import KEEP, RepairContext, RepairRule, default_text, pad_list

NAME = "coach_strategies"

DISCLAIMER = (
    "Remember, these AI-generated insights are for informational purposes and not "
    "financial advice. Cryptocurrency investments are subject to high market risk. "
    "Past performance is not indicative of future results. Always do your own "
    "research (DYOR) and consult a qualified financial advisor."
)


class CoachStrategiesInput(Shape):
    coinName: str
    currentRationale: str
    predictedGainPercentage: float
    entryPriceRange: PriceRange
    exitPriceRange: PriceRange
    estimatedDuration: str
    profitTarget: Optional[float] = None
    riskTolerance: Optional[Literal["low", "medium", "high"]] = None
    tradingStylePreference: Optional[Literal["short-term", "swing", "scalp"]] = None


class InvestmentStrategy(Shape):
    name: str
    description: str
    reasoning: str = Field(min_length=1)
    optimalBuyPrice: Optional[float] = None
    targetSellPrices: List[float] = Field(min_length=1)
    actionableSteps: List[str] = Field(min_length=2, max_length=4)
    stopLossSuggestion: Optional[str] = None
    tradingStyleAlignment: Optional[str] = None
    isTopPick: Optional[bool] = None


class CoachStrategiesOutput(Shape):
    coinSpecificAdvice: str = Field(min_length=1)
    investmentStrategies: List[InvestmentStrategy] = Field(min_length=1, max_length=3)
    topPickRationale: Optional[str] = None
    overallCoachSOutlook: str = Field(min_length=1)
    disclaimer: str


TEMPLATE = PromptTemplate(
    name=NAME,
    text="""You are an elite AI crypto investment coach focused on fast-profit opportunities (1-7 days), combining live market data, on-chain metrics, social sentiment and whale activity into risk-adjusted strategies.

Coin details:
- Name: {{coinName}}
- Initial rationale: {{currentRationale}}
- Predicted gain: {{predictedGainPercentage}}%
- Entry price range: ${{entryPriceRange.low}} - ${{entryPriceRange.high}}
- Exit price range: ${{exitPriceRange.low}} - ${{exitPriceRange.high}}
- Estimated duration: {{estimatedDuration}}
{{#if profitTarget}}- User's profit target: ${{profitTarget}}
{{/if}}{{#if riskTolerance}}- User's risk tolerance: {{riskTolerance}}
{{/if}}{{#if tradingStylePreference}}- User's preferred trading style: {{tradingStylePreference}}
{{/if}}
Provide, for an advanced user and with profit maximization in mind:
1. coinSpecificAdvice: volatility patterns, trading sessions, catalysts, liquidity and on-chain or advanced indicators relevant to {{coinName}}.
2. investmentStrategies (1-3), each with name, description, reasoning, optional optimalBuyPrice, targetSellPrices (at least one), actionableSteps (2-4), optional stopLossSuggestion, tradingStyleAlignment ({{#if tradingStylePreference}}how it fits '{{tradingStylePreference}}'{{else}}a general strategy note{{/if}}) and isTopPick.
3. topPickRationale: 2-3 sentences on why the single top pick is best.
4. overallCoachSOutlook: outlook and advanced risk management.
5. disclaimer: the standard disclaimer.

Write every price as a full decimal number (e.g. "$0.000000075"), never in scientific notation. Mark exactly ONE strategy with isTopPick = true.
""",
)


def single_top_pick():
    """Exactly one strategy keeps isTopPick; the first one when none is marked."""

    def fix(obj: Dict[str, Any], ctx: RepairContext) -> Any:
        strategies = obj.get("investmentStrategies")
        if not isinstance(strategies, list):
            return KEEP
        items = [s for s in strategies if isinstance(s, dict)]
        if not items:
            return KEEP
        marked = [s for s in items if s.get("isTopPick") is True]
        winner = marked[0] if marked else items[0]
        out = []
        for s in strategies:
            if isinstance(s, dict) and (s.get("isTopPick") is True or s is winner):
                s = {**s, "isTopPick": s is winner}
            out.append(s)
        return out

    return fix


def top_pick_rationale():
    def fix(obj: Dict[str, Any], ctx: RepairContext) -> Any:
        current = obj.get("topPickRationale")
        if isinstance(current, str) and current.strip():
            return current
        strategies = obj.get("investmentStrategies") or []
        top = next(
            (s for s in strategies if isinstance(s, dict) and s.get("isTopPick")),
            None,
        )
        if top is None:
            return KEEP
        name = top.get("name") or "the selected strategy"
        return (
            f"The AI selected '{name}' as the top pick based on its general "
            "alignment with the coin's profile. Review its individual reasoning."
        )

    return fix


REPAIRS = (
    RepairRule("disclaimer", default_text("disclaimer", DISCLAIMER)),
    RepairRule(
        "actionableSteps",
        pad_list(
            "actionableSteps",
            2,
            [
                "Review market conditions before executing.",
                "Set alerts for key price levels.",
            ],
        ),
        scope="investmentStrategies",
    ),
    RepairRule("investmentStrategies", single_top_pick(), name="top_pick"),
    RepairRule("topPickRationale", top_pick_rationale()),
)

CONTRACT = FlowContract(
    name=NAME,
    input_model=CoachStrategiesInput,
    output_model=CoachStrategiesOutput,
    template=TEMPLATE,
    repairs=REPAIRS,
    description="Coin-specific coaching and investment strategies.",
)
