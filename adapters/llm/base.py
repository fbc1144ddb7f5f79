from __future__ import annotations

from typing import Any, Dict, Optional, Protocol, Sequence

from quantumleap.tools.base import Tool
from quantumleap.types import Generation


class LLMProvider(Protocol):
    PROVIDER_ID: str

    async def generate(
        self,
        *,
        prompt: str,
        output_schema: Optional[Dict[str, Any]] = None,
        tools: Sequence[Tool] = (),
        temperature: float = 0.7,
    ) -> Generation:
        """
        Run one generation. Tool calls requested by the model are executed
        inside this call. `output_schema=None` asks for plain text.
        """
        ...
