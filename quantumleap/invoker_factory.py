from __future__ import annotations

from typing import Any, Dict, Optional, cast

import yaml  # type: ignore[import-untyped]

from adapters.llm.base import LLMProvider
from adapters.llm.openai_provider import OpenAIProvider
from adapters.metrics.base import Metrics
from quantumleap.invoker import FlowInvoker
from quantumleap.registry import FLOWS
from quantumleap.tools.base import Tool
from quantumleap.tools.coin_price import DEFAULT_BASE_URL, TOOL_NAME, coin_price_tool

LLM_PROVIDERS = {OpenAIProvider.PROVIDER_ID: OpenAIProvider}


# ------------------------------ helpers ------------------------------ #
def _build_llm(llm_cfg: Optional[Dict[str, Any]] = None) -> LLMProvider:
    cfg = llm_cfg or {}
    kind = (cfg.get("provider") or OpenAIProvider.PROVIDER_ID).lower()
    try:
        provider_cls = LLM_PROVIDERS[kind]
    except KeyError:
        raise ValueError(f"Unknown llm provider: {kind}") from None
    return provider_cls(model=cfg.get("model"))


def _build_tools(
    tools_cfg: Dict[str, Any], *, base_url_override: Optional[str] = None
) -> Dict[str, Tool]:
    price_cfg = cast(Dict[str, Any], tools_cfg.get(TOOL_NAME) or {})
    base_url = base_url_override or price_cfg.get("base_url") or DEFAULT_BASE_URL
    timeout = price_cfg.get("timeout_sec")
    tool = coin_price_tool(
        base_url, timeout=float(timeout) if timeout is not None else None
    )
    return {tool.name: tool}


def _temperatures(temp_cfg: Any) -> Dict[str, float]:
    """Resolve per-flow temperatures; a bare number applies to every flow."""
    if temp_cfg is None:
        return {}
    if isinstance(temp_cfg, (int, float)):
        return {name: float(temp_cfg) for name in FLOWS}

    cfg = cast(Dict[str, Any], temp_cfg)
    out: Dict[str, float] = {}
    default = cfg.get("default")
    if default is not None:
        out = {name: float(default) for name in FLOWS}
    for name, value in (cfg.get("flows") or {}).items():
        if name not in FLOWS:
            raise ValueError(f"Config temperature.flows has unknown flow: {name}")
        out[name] = float(value)
    return out


# ------------------------------ factory ------------------------------ #
def _load_config(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as fh:
        return cast(Dict[str, Any], yaml.safe_load(fh) or {})


def price_tool_from_config(
    path: str, *, coingecko_base_url: Optional[str] = None
) -> Tool:
    """Build only the price tool, with the configured base URL and timeout."""
    tools_cfg = cast(Dict[str, Any], _load_config(path).get("tools") or {})
    return _build_tools(tools_cfg, base_url_override=coingecko_base_url)[TOOL_NAME]


def invoker_from_config(
    path: str,
    *,
    llm: Optional[LLMProvider] = None,
    metrics: Optional[Metrics] = None,
    coingecko_base_url: Optional[str] = None,
) -> FlowInvoker:
    """
    Build a FlowInvoker from YAML configuration.
    `llm` overrides the configured provider (tests pass a fake).
    """
    cfg = _load_config(path)

    if llm is None:
        llm = _build_llm(cast(Optional[Dict[str, Any]], cfg.get("llm")))

    tools = _build_tools(
        cast(Dict[str, Any], cfg.get("tools") or {}),
        base_url_override=coingecko_base_url,
    )

    return FlowInvoker(
        llm=llm,
        tools=tools,
        metrics=metrics,
        temperatures=_temperatures(cfg.get("temperature")),
    )
