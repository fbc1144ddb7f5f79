from functools import lru_cache
from typing import Optional

from fastapi import HTTPException, Security
from fastapi.security import APIKeyHeader

from adapters.metrics.prometheus import PrometheusMetrics
from app.bootstrap import init_backend
from app.services.flow_service import FlowService
from app.settings import get_settings
from quantumleap.signals import Backend

api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


def require_api_key(key: Optional[str] = Security(api_key_header)):
    """
    Simple API key check using X-API-Key header and configured API keys.

    - Settings.api_keys_raw is a comma-separated list of keys.
    - If api_keys_raw is empty → auth disabled (dev mode).
    """
    raw = get_settings().api_keys_raw or ""
    allowed = {k.strip() for k in raw.split(",") if k.strip()}
    if not allowed:
        # No keys configured → treat as dev mode (auth off).
        return
    if not key or key not in allowed:
        raise HTTPException(status_code=401, detail="invalid API key")


@lru_cache()
def get_metrics() -> PrometheusMetrics:
    return PrometheusMetrics()


@lru_cache()
def get_backend() -> Backend:
    """
    Singleton-ish store/notifier pair for the FastAPI app.

    Built once from Settings; tests override this dependency.
    """
    return init_backend(get_settings(), metrics=get_metrics())


@lru_cache()
def get_flow_service() -> FlowService:
    return FlowService(settings=get_settings(), metrics=get_metrics())
