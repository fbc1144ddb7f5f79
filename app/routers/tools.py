from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends
from starlette.concurrency import run_in_threadpool

from app.dependencies import get_flow_service, require_api_key
from app.schemas import CoinPriceRequest
from app.services.flow_service import FlowService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tools", tags=["tools"])


@router.post("/coin-price", dependencies=[Depends(require_api_key)])
async def coin_price(
    request: CoinPriceRequest,
    svc: FlowService = Depends(get_flow_service),
) -> Dict[str, Any]:
    """Tool failures are reported in the `error` field with a 200 status."""
    result = await run_in_threadpool(svc.coin_price, request.coinNameOrSymbol)
    if "error" in result:
        logger.info("Price lookup failed", extra={"coin_id": result.get("coinId")})
    return result
