"""
Conversational coach. The model answers in plain markdown text, which the
invoker wraps into `aiResponse`.
"""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import Field

from quantumleap.contracts import FlowContract, Shape
from quantumleap.prompts.render import PromptTemplate

NAME = "coach_chat"


class ChatMessage(Shape):
    role: Literal["user", "model"]
    content: str


class CoachChatInput(Shape):
    userMessage: str
    chatHistory: Optional[List[ChatMessage]] = None
    userName: str = "Trader"


class CoachChatOutput(Shape):
    aiResponse: str = Field(min_length=1)


def format_history(messages: Optional[List[ChatMessage]]) -> str:
    lines = []
    for msg in messages or []:
        prefix = "USER" if msg.role == "user" else "MODEL"
        lines.append(f"{prefix}: {msg.content}")
    return "\n".join(lines)


def _prepare(data: CoachChatInput) -> Dict[str, Any]:
    return {
        "userMessage": data.userMessage,
        "userName": data.userName,
        "chatHistory": format_history(data.chatHistory),
    }


TEMPLATE = PromptTemplate(
    name=NAME,
    text="""You are Quantum, an exceptionally insightful AI Trading Coach with deep knowledge of crypto markets, trading strategies, technical and fundamental analysis, risk management, market psychology and emerging trends.

You are first of all an educator, especially for newcomers, but you can go deep with experienced traders.

Guidelines:
1. Be patient and clear; use analogies when they help.
2. Give thorough answers and break broad questions down.
3. Offer educational, actionable tips on how to analyze and what to look for.
4. Never give direct financial advice or tell the user to buy or sell a specific coin at a specific time; teach them how to decide.
5. Always stress the risks and the importance of DYOR.
6. Encourage continuous learning and critical thinking.
7. Politely steer off-topic questions back to crypto education.
8. Format with markdown.
9. Address the user as '{{userName}}' when it fits.
10. Use the chat history to follow the conversation and avoid repeating yourself.

You are helping {{userName}}.

CHAT HISTORY:
{{#if chatHistory}}{{chatHistory}}{{else}}(No previous messages in this session){{/if}}

LATEST USER MESSAGE from {{userName}}:
{{userMessage}}

MODEL RESPONSE:
""",
)

CONTRACT = FlowContract(
    name=NAME,
    input_model=CoachChatInput,
    output_model=CoachChatOutput,
    template=TEMPLATE,
    prepare=_prepare,
    text_field="aiResponse",
    description="Chat with the AI trading coach.",
)
