"""
getCoinPrice: resolve a coin name or ticker and fetch its USD price from
CoinGecko's /simple/price endpoint.

Every failure is reported in the `error` field of the result; nothing raises,
because the tool runs inside a model's generation step.
"""

from __future__ import annotations

import functools
import logging
from typing import Any, Dict, Optional

import requests
from pydantic import BaseModel

from quantumleap.tools.base import Tool

log = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.coingecko.com/api/v3"
TOOL_NAME = "getCoinPrice"

COIN_ALIASES: Dict[str, str] = {
    "bitcoin": "bitcoin",
    "btc": "bitcoin",
    "ethereum": "ethereum",
    "eth": "ethereum",
    "solana": "solana",
    "sol": "solana",
    "dogecoin": "dogecoin",
    "doge": "dogecoin",
    "shiba": "shiba-inu",
    "shiba inu": "shiba-inu",
    "shib": "shiba-inu",
    "cardano": "cardano",
    "ada": "cardano",
    "ripple": "ripple",
    "xrp": "ripple",
    "polkadot": "polkadot",
    "dot": "polkadot",
    "litecoin": "litecoin",
    "ltc": "litecoin",
    "chainlink": "chainlink",
    "link": "chainlink",
    "binancecoin": "binancecoin",
    "bnb": "binancecoin",
    "tether": "tether",
    "usdt": "tether",
    "usdcoin": "usd-coin",
    "usdc": "usd-coin",
    "pepe": "pepe",
    "wif": "dogwifcoin",
    "dogwifhat": "dogwifcoin",
    "bonk": "bonk",
}


class CoinPriceInput(BaseModel):
    coinNameOrSymbol: str


class CoinPriceResult(BaseModel):
    coinId: str
    price: Optional[float] = None
    error: Optional[str] = None


def resolve_coin_id(name_or_symbol: str) -> Optional[str]:
    return COIN_ALIASES.get(name_or_symbol.lower().strip())


def _result(coin_id: str, **kw: Any) -> Dict[str, Any]:
    return {"coinId": coin_id, **kw}


def get_coin_price(
    data: CoinPriceInput,
    *,
    base_url: str = DEFAULT_BASE_URL,
    timeout: Optional[float] = None,
) -> Dict[str, Any]:
    raw = data.coinNameOrSymbol.lower()
    normalized = raw.strip()
    coin_id = COIN_ALIASES.get(normalized)
    if not coin_id:
        return _result(
            normalized,
            error=f"Coin '{raw}' not found in the supported list or symbol is ambiguous.",
        )

    url = f"{base_url.rstrip('/')}/simple/price"
    try:
        resp = requests.get(
            url, params={"ids": coin_id, "vs_currencies": "usd"}, timeout=timeout
        )
    except requests.RequestException as exc:
        log.error("Price request failed", extra={"coin_id": coin_id}, exc_info=exc)
        return _result(
            coin_id,
            error=(
                f"Failed to fetch price for {coin_id} due to a network or system "
                f"error: {exc or 'Unknown error'}"
            ),
        )

    if not resp.ok:
        log.error(
            "CoinGecko API error",
            extra={"coin_id": coin_id, "status": resp.status_code},
        )
        return _result(
            coin_id,
            error=(
                f"API error: {resp.status_code} {resp.reason}. Could not fetch price "
                f"for {coin_id}. Details: {resp.text}"
            ),
        )

    try:
        payload = resp.json()
    except ValueError:
        log.error("Malformed JSON from CoinGecko", extra={"coin_id": coin_id})
        return _result(
            coin_id,
            error=f"Malformed JSON in API response while fetching price for {coin_id}.",
        )

    entry = payload.get(coin_id) if isinstance(payload, dict) else None
    price = entry.get("usd") if isinstance(entry, dict) else None
    if isinstance(price, bool) or not isinstance(price, (int, float)):
        log.error("Unexpected CoinGecko response", extra={"coin_id": coin_id})
        return _result(
            coin_id,
            error=(
                f"Could not find USD price for {coin_id} in API response, "
                "or response structure was unexpected."
            ),
        )
    return _result(coin_id, price=price)


def coin_price_tool(
    base_url: str = DEFAULT_BASE_URL, *, timeout: Optional[float] = None
) -> Tool:
    return Tool(
        name=TOOL_NAME,
        description=(
            "Fetches the current market price of a specified cryptocurrency in USD. "
            "Accepts common coin names or ticker symbols."
        ),
        input_model=CoinPriceInput,
        fn=functools.partial(get_coin_price, base_url=base_url, timeout=timeout),
    )
