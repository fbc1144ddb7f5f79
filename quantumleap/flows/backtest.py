from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import Field

from quantumleap.contracts import FlowContract, Shape
from quantumleap.prompts.render import PromptTemplate
from quantumleap.repair import RepairRule, default_text

NAME = "backtest"

DISCLAIMER = (
    "IMPORTANT: This is a SIMULATED backtest. Price movements are generated by AI "
    "based on typical coin behavior and do NOT represent actual historical market "
    "data. Results are hypothetical and for educational purposes only. They are "
    "not a guarantee of future performance."
)


class StrategyToSimulate(Shape):
    name: str
    optimalBuyPrice: Optional[float] = None
    targetSellPrices: List[float] = Field(min_length=1)
    stopLossSuggestion: Optional[str] = None


class BacktestInput(Shape):
    coinName: str
    backtestPeriod: Literal["7d", "30d", "90d"]
    strategyToSimulate: StrategyToSimulate


class BacktestOutput(Shape):
    simulationTitle: str
    performanceOutcome: Literal["Profitable", "Loss-making", "Breakeven", "Indeterminate"]
    simulatedProfitLossPercentage: Optional[float] = None
    simulationNarrative: str = Field(min_length=1)
    keyEvents: Optional[List[str]] = None
    importantDisclaimer: str


TEMPLATE = PromptTemplate(
    name=NAME,
    text="""You are a Crypto Strategy Backtesting Simulator. You have NO access to real historical data: invent a plausible, hypothetical price history for the coin and simulate how the strategy would have performed against it.

Coin: {{coinName}}
Backtest period (simulated past): {{backtestPeriod}}
Strategy:
  Name: {{strategyToSimulate.name}}
{{#if strategyToSimulate.optimalBuyPrice}}  Optimal buy price: ${{strategyToSimulate.optimalBuyPrice}}
{{/if}}  Target sell prices: {{strategyToSimulate.targetSellPrices}}
{{#if strategyToSimulate.stopLossSuggestion}}  Stop-loss suggestion: {{strategyToSimulate.stopLossSuggestion}}
{{/if}}
Steps:
1. simulationTitle: e.g. "Simulated {{backtestPeriod}} Backtest for {{coinName}} - Strategy: {{strategyToSimulate.name}}".
2. simulationNarrative: describe illustrative price action for the period and how the entry, targets and stop-loss would have played out.
3. performanceOutcome: Profitable, Loss-making, Breakeven or Indeterminate.
4. simulatedProfitLossPercentage: optional estimate for Profitable or Loss-making outcomes.
5. keyEvents: optional list of key simulated moments.
6. importantDisclaimer: state that this is a simulation, not real data.

Write every price as a full decimal number with a dollar sign (e.g. $0.000000075), never in scientific notation.
""",
)

REPAIRS = (
    RepairRule("importantDisclaimer", default_text("importantDisclaimer", DISCLAIMER)),
)

CONTRACT = FlowContract(
    name=NAME,
    input_model=BacktestInput,
    output_model=BacktestOutput,
    template=TEMPLATE,
    repairs=REPAIRS,
    description="Simulated back-test of an investment strategy.",
)
