from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from adapters.metrics.base import Metrics
from app.errors import DependencyError
from app.settings import Settings
from quantumleap.invoker import FlowInvoker
from quantumleap.invoker_factory import invoker_from_config, price_tool_from_config
from quantumleap.registry import FLOWS, flow_names, get_flow
from quantumleap.tools.base import Tool
from quantumleap.tools.coin_price import CoinPriceInput
from quantumleap.types import FlowResult

log = logging.getLogger(__name__)


@dataclass
class FlowService:
    """
    Application-level service for running flows.

    Responsibilities:
        - Build the invoker once from the flow config.
        - Resolve flows by name and run them.
        - Expose the price tool directly for clients.
    """

    settings: Settings
    metrics: Optional[Metrics] = None
    _invoker: Optional[FlowInvoker] = field(default=None, init=False, repr=False)
    _price_tool: Optional[Tool] = field(default=None, init=False, repr=False)

    def invoker(self) -> FlowInvoker:
        if self._invoker is None:
            try:
                self._invoker = invoker_from_config(
                    self.settings.flow_config_path,
                    metrics=self.metrics,
                    coingecko_base_url=self.settings.coingecko_base_url or None,
                )
            except RuntimeError as exc:
                # Missing LLM credentials surface here.
                log.exception("Failed to build flow invoker")
                raise DependencyError(
                    message="LLM provider is not configured.",
                    details=[str(exc)],
                ) from exc
        return self._invoker

    def list_flows(self) -> List[Dict[str, Any]]:
        out = []
        for name in flow_names():
            c = FLOWS[name]
            out.append(
                {
                    "name": name,
                    "description": c.description,
                    "tools": list(c.tools),
                    "text_output": c.text_field is not None,
                }
            )
        return out

    async def run_flow(self, name: str, payload: Any) -> FlowResult:
        contract = get_flow(name)  # raises FlowNotFound before building anything
        return await self.invoker().invoke(contract, payload)

    def price_tool(self) -> Tool:
        if self._price_tool is None:
            self._price_tool = price_tool_from_config(
                self.settings.flow_config_path,
                coingecko_base_url=self.settings.coingecko_base_url or None,
            )
        return self._price_tool

    def coin_price(self, coin: str) -> Dict[str, Any]:
        return self.price_tool().fn(CoinPriceInput(coinNameOrSymbol=coin))
