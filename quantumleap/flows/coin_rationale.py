from __future__ import annotations

from pydantic import Field

from quantumleap.contracts import FlowContract, Shape
from quantumleap.prompts.render import PromptTemplate

NAME = "coin_rationale"


class CoinRationaleInput(Shape):
    coinName: str
    predictedGain: float
    entryPriceRange: str  # e.g. "$0.10 - $0.12"
    exitPriceRange: str
    marketSentiment: str
    whaleActivity: str
    socialMediaTrends: str


class CoinRationaleOutput(Shape):
    rationale: str = Field(min_length=1)


TEMPLATE = PromptTemplate(
    name=NAME,
    text="""You are an elite AI crypto investment coach. Give a concise, data-driven rationale for why {{coinName}} is a notable pick right now.

Implicitly weigh volatility, social and news sentiment, whale or on-chain signals, trending narratives and market-cycle momentum.

Information:
- Coin name: {{coinName}}
- Predicted gain: {{predictedGain}}%
- Entry price range: {{entryPriceRange}}
- Exit price range: {{exitPriceRange}}
- Market sentiment: {{marketSentiment}}
- Whale activity: {{whaleActivity}}
- Social media trends: {{socialMediaTrends}}

Write 2-4 sentences focused on the KEY reasons for its current potential. Be confident and easy to understand.
""",
)

# Free text only: nothing here is mechanically repairable.
CONTRACT = FlowContract(
    name=NAME,
    input_model=CoinRationaleInput,
    output_model=CoinRationaleOutput,
    template=TEMPLATE,
    description="Short rationale for a single coin pick.",
)
