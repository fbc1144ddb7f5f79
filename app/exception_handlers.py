from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, Optional, List

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.errors import AppError
from quantumleap.errors import FlowError, ValidationError, map_error

logger = logging.getLogger(__name__)


def _error_response(
    request: Request,
    *,
    status: int,
    code: str,
    message: str,
    retryable: bool,
    details: Optional[List[str]],
    extra: Dict[str, Any],
) -> JSONResponse:
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())

    payload = {
        "error": {
            "code": code,
            "message": message,
            "details": details,
            "retryable": retryable,
            "request_id": request_id,
            "extra": extra,
        }
    }

    headers = {"X-Request-ID": request_id}
    if retryable:
        headers["Retry-After"] = "2"

    return JSONResponse(status_code=status, content=payload, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """Register global exception handlers for the FastAPI application."""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        return _error_response(
            request,
            status=getattr(exc, "http_status", 500),
            code=getattr(exc, "code", "app_error"),
            message=getattr(exc, "message", str(exc)),
            retryable=bool(getattr(exc, "retryable", False)),
            details=getattr(exc, "details", None),
            extra=getattr(exc, "extra", {}) or {},
        )

    @app.exception_handler(FlowError)
    async def flow_error_handler(request: Request, exc: FlowError) -> JSONResponse:
        status, retryable = map_error(exc.code)
        extra: Dict[str, Any] = {}
        if exc.flow:
            extra["flow"] = exc.flow
        if isinstance(exc, ValidationError) and exc.field:
            extra["field"] = exc.field
        if status >= 500:
            logger.warning(
                "Flow error",
                extra={"flow": exc.flow, "code": exc.code.value, "status": status},
            )
        return _error_response(
            request,
            status=status,
            code=exc.code.value,
            message=exc.message,
            retryable=retryable,
            details=list(exc.details) or None,
            extra=extra,
        )
