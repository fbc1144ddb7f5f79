"""
Registry mapping flow names to their contracts.
Used by the invoker factory and the HTTP layer to resolve flows by name.
"""

from typing import Dict, List

from quantumleap.contracts import FlowContract
from quantumleap.errors import FlowNotFound
from quantumleap.flows import (
    backtest,
    breakout_alerts,
    coach_chat,
    coach_strategies,
    coin_picks,
    coin_rationale,
    meme_flip,
    profit_goal,
    quick_tip,
    rug_pull,
)

FLOWS: Dict[str, FlowContract] = {
    m.CONTRACT.name: m.CONTRACT
    for m in (
        coin_picks,
        profit_goal,
        meme_flip,
        breakout_alerts,
        coach_strategies,
        coin_rationale,
        quick_tip,
        coach_chat,
        rug_pull,
        backtest,
    )
}


def flow_names() -> List[str]:
    return sorted(FLOWS)


def get_flow(name: str) -> FlowContract:
    try:
        return FLOWS[name]
    except KeyError:
        raise FlowNotFound(f"Unknown flow: {name!r}", flow=name) from None
