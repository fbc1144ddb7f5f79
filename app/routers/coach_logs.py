from __future__ import annotations

import json
import logging
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from adapters.db.base import CoachLog
from app.dependencies import get_backend, require_api_key
from quantumleap.signals import Backend, utc_now_iso

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/coach-logs", tags=["coach"])


def _as_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value)


@router.post("", name="log_coach_interaction", dependencies=[Depends(require_api_key)])
async def log_coach_interaction(
    request: Request, backend: Backend = Depends(get_backend)
) -> JSONResponse:
    try:
        body = await request.json()
    except ValueError:
        body = None
    if not isinstance(body, dict):
        body = {}

    user_id = body.get("userId")
    user_prompt = body.get("userPrompt")
    ai_result = body.get("aiResult")

    if not user_id or not user_prompt or not ai_result:
        logger.error(
            "Missing required fields in coach log request",
            extra={
                "userIdProvided": bool(user_id),
                "userPromptProvided": bool(user_prompt),
                "aiResultProvided": bool(ai_result),
            },
        )
        return JSONResponse(
            status_code=400,
            content={"error": "Missing required fields: userId, userPrompt, or aiResult."},
        )

    entry = CoachLog(
        userId=_as_text(user_id),
        userPrompt=_as_text(user_prompt),
        aiResult=_as_text(ai_result),
        timestamp=utc_now_iso(),
    )
    try:
        await run_in_threadpool(backend.store.save_coach_log, entry)
    except Exception:
        logger.exception("Failed to store coach log", extra={"userId": entry.userId})
        return JSONResponse(
            status_code=500,
            content={
                "error": "Failed to log AI interaction due to an internal server error."
            },
        )

    return JSONResponse(
        status_code=200,
        content={"success": True, "message": "Log received and processed."},
    )
