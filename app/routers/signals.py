from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from app.dependencies import get_backend, require_api_key
from app.errors import BadRequestError
from app.schemas import SignalListResponse
from app.settings import get_settings
from quantumleap.signals import Backend, push_signal

logger = logging.getLogger(__name__)

# Versioned read path
router = APIRouter(prefix="/signals", tags=["signals"])

# Legacy root-level surface kept for existing clients
legacy_router = APIRouter(tags=["signals"])

MAX_LIMIT = 200


async def _json_body(request: Request) -> Any:
    try:
        return await request.json()
    except ValueError:
        return None


@router.get("", response_model=SignalListResponse, dependencies=[Depends(require_api_key)])
def list_signals(
    limit: Optional[int] = Query(default=None),
    backend: Backend = Depends(get_backend),
) -> SignalListResponse:
    n = get_settings().signals_default_limit if limit is None else limit
    if n < 1 or n > MAX_LIMIT:
        raise BadRequestError(
            message=f"limit must be between 1 and {MAX_LIMIT}",
            extra={"limit": n},
        )
    records = backend.store.recent_signals(n)
    return SignalListResponse.model_validate(
        {"signals": [asdict(r) for r in records]}
    )


@legacy_router.post("/pushSignal", name="push_signal")
async def push_signal_handler(
    request: Request, backend: Backend = Depends(get_backend)
) -> JSONResponse:
    body = await _json_body(request)
    signal = body.get("signal") if isinstance(body, dict) else None
    logger.info("pushSignal triggered", extra={"has_signal": bool(signal)})

    if not signal:
        logger.error("Signal not provided in request body")
        return JSONResponse(status_code=400, content={"error": "Signal not provided"})

    try:
        await run_in_threadpool(push_signal, backend, signal)
    except Exception:
        logger.exception("Error in pushSignal")
        return JSONResponse(status_code=500, content={"error": "Failed to push signal"})

    logger.info("Signal pushed successfully")
    return JSONResponse(status_code=200, content={"status": "pushed", "signal": signal})
