from __future__ import annotations

from typing import Any, Dict, Literal, Optional

from pydantic import Field

from quantumleap.contracts import FlowContract, Shape
from quantumleap.prompts.render import PromptTemplate

NAME = "quick_tip"

SUMMARY_MAX = 50


class QuickTipInput(Shape):
    userActionContext: Literal["aiPicks", "profitGoal", "memeFlip", "general"]
    lastPicksSummary: Optional[str] = None
    userName: str = "Trader"


class QuickTipOutput(Shape):
    quickTip: str = Field(min_length=1)
    suggestedActionTheme: Literal["INFO", "CAUTION", "ACTION", "ENGAGE"]


def truncate_summary(text: Optional[str], limit: int = SUMMARY_MAX) -> Optional[str]:
    if text is None or len(text) <= limit:
        return text
    return text[: limit - 3] + "..."


def _prepare(data: QuickTipInput) -> Dict[str, Any]:
    variables = data.model_dump()
    variables["lastPicksSummary"] = truncate_summary(data.lastPicksSummary)
    return variables


TEMPLATE = PromptTemplate(
    name=NAME,
    text="""You are Quantum, an engaging, slightly witty and highly skilled AI Trading Coach. Give {{userName}} a quick, context-aware tip.

The user is in the '{{userActionContext}}' section.
{{#if lastPicksSummary}}Last picks summary: {{lastPicksSummary}}
{{/if}}
Provide:
1. quickTip: under 150 characters. For 'memeFlip' mix excitement with extreme caution (🚀 🎲 🔥 ⚠️). For 'aiPicks' or 'profitGoal' sound knowledgeable and encouraging (📈 🎯 💡). For 'general' give a welcome or a trading wisdom nugget.
2. suggestedActionTheme: INFO (general advice), CAUTION (risky situations, especially memeFlip), ACTION (encourage exploring features) or ENGAGE (friendly welcome).

Example for 'memeFlip':
quickTip: "Meme market's sizzling, {{userName}}! 🔥 High rewards mean high risks. DYOR and trade smart! ⚠️"
suggestedActionTheme: CAUTION
""",
)

CONTRACT = FlowContract(
    name=NAME,
    input_model=QuickTipInput,
    output_model=QuickTipOutput,
    template=TEMPLATE,
    prepare=_prepare,
    description="Short contextual tip from the coach.",
)
