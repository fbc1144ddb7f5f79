from __future__ import annotations

from typing import Annotated, Any, Dict, List, Literal, Optional

from pydantic import Field

from quantumleap.contracts import FlowContract, Shape
from quantumleap.prompts.render import PromptTemplate
from quantumleap.repair import RepairRule, default_text, unit_score

NAME = "rug_pull"

DISCLAIMER = (
    "This AI-generated risk assessment is for informational purposes only and not "
    "financial advice. Cryptocurrency investments are highly speculative and "
    "subject to substantial risk. Always Do Your Own Research (DYOR)."
)

_URL = r"^https?://\S+$"

Url = Annotated[str, Field(pattern=_URL)]


class RugPullInput(Shape):
    coinName: str
    coinSymbol: Optional[str] = None
    description: Optional[str] = None
    websiteUrl: Optional[Url] = None
    socialMediaLinks: Optional[List[Url]] = None
    contractAddress: Optional[str] = None


class RugPullOutput(Shape):
    riskLevel: Literal["Low", "Medium", "High", "Very High", "Extreme"]
    confidenceScore: float = Field(ge=0, le=1)
    summary: str = Field(min_length=1)
    positiveSigns: List[str]
    redFlags: List[str]
    detailedRationale: str = Field(min_length=1)
    disclaimer: str


def _prepare(data: RugPullInput) -> Dict[str, Any]:
    variables = data.model_dump()
    variables["socialMediaLinks"] = ", ".join(data.socialMediaLinks or [])
    return variables


TEMPLATE = PromptTemplate(
    name=NAME,
    text="""You are an expert cryptocurrency analyst who identifies potential rug pulls and scam tokens, especially among meme coins, new altcoins and DeFi projects. Assess the rug-pull risk of the coin below.

Coin: {{coinName}}
{{#if coinSymbol}}Symbol: {{coinSymbol}}
{{/if}}{{#if description}}Description: {{description}}
{{/if}}{{#if websiteUrl}}Website: {{websiteUrl}}
{{/if}}{{#if socialMediaLinks}}Socials: {{socialMediaLinks}}
{{/if}}{{#if contractAddress}}Contract: {{contractAddress}}
{{/if}}
Cover:
1. Team and transparency: anonymous or public, verifiable track record, professionalism.
2. Tokenomics: supply concentration, liquidity locks, unusual taxes.
3. Website and whitepaper: clarity, realism, plagiarism.
4. Social presence: genuine engagement versus bots, censorship of critical questions.
5. Security: audits and their findings (say so if you cannot inspect the contract).
6. Market activity: exchange listings, pump-and-dump patterns, thin liquidity.
7. General red flags: guaranteed returns, FOMO pressure, no utility, copycat projects.

Respond with riskLevel (Low, Medium, High, Very High, Extreme), confidenceScore (0.0-1.0), a concise summary, positiveSigns, detailed redFlags, a detailedRationale that states which critical information is missing, and the standard disclaimer. If only a name is given, reason from common patterns and state the limitation.
""",
)

REPAIRS = (
    RepairRule("confidenceScore", unit_score("confidenceScore")),
    RepairRule("disclaimer", default_text("disclaimer", DISCLAIMER)),
)

CONTRACT = FlowContract(
    name=NAME,
    input_model=RugPullInput,
    output_model=RugPullOutput,
    template=TEMPLATE,
    repairs=REPAIRS,
    prepare=_prepare,
    temperature=0.3,
    description="Rug-pull risk assessment for a coin.",
)
