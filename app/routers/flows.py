from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends

from app.dependencies import get_flow_service, require_api_key
from app.errors import AppError
from app.schemas import FlowListResponse, FlowRunResponse
from app.services.flow_service import FlowService
from quantumleap.errors import FlowError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/flows", tags=["flows"])


def _round_trace(t: Dict[str, Any]) -> Dict[str, Any]:
    # Coerce duration to int with rounding
    try:
        ms_int = int(round(float(t.get("duration_ms") or 0)))
    except (TypeError, ValueError):
        ms_int = 0
    out = {k: v for k, v in t.items() if v is not None}
    out["stage"] = str(t.get("stage", "?"))
    out["duration_ms"] = ms_int
    return out


@router.get("", response_model=FlowListResponse, dependencies=[Depends(require_api_key)])
def list_flows(svc: FlowService = Depends(get_flow_service)) -> FlowListResponse:
    return FlowListResponse.model_validate({"flows": svc.list_flows()})


@router.post(
    "/{name}",
    name="run_flow",
    response_model=FlowRunResponse,
    dependencies=[Depends(require_api_key)],
)
async def run_flow(
    name: str,
    payload: Any = Body(default=None),
    svc: FlowService = Depends(get_flow_service),
) -> FlowRunResponse:
    try:
        result = await svc.run_flow(name, {} if payload is None else payload)
    except (FlowError, AppError):
        # Handled by the global exception handlers.
        raise
    except Exception as exc:
        logger.exception("Unexpected crash while running flow", extra={"flow": name})
        raise FlowError(
            message="Internal flow error.", flow=name, details=[str(exc)]
        ) from exc

    return FlowRunResponse.model_validate(
        {
            "flow": result.flow,
            "output": result.output_dict(),
            "usage": result.usage,
            "traces": [_round_trace(t) for t in result.traces],
            "repairs": result.repairs,
        }
    )
