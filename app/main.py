import asyncio
import contextlib
import logging
import time
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request, Response, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse, JSONResponse
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST

from quantumleap.prom import REGISTRY
from app.dependencies import get_backend
from app.routers import coach_logs, flows, signals, tools
from app.scheduler import start_signal_job
from app.settings import get_settings
from app.exception_handlers import register_exception_handlers

# Settings are read lazily, so .env must be loaded before the first get_settings().
load_dotenv()

logger = logging.getLogger(__name__)
settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the daily signal job when enabled; cancel it on shutdown."""
    task = None
    if settings.signal_job_enabled:
        logger.info(
            "Signal job enabled",
            extra={"interval_sec": settings.signal_job_interval_sec},
        )
        task = start_signal_job(
            get_backend, interval_sec=float(settings.signal_job_interval_sec)
        )
    yield
    if task is not None:
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task


# ----------------------------------------------------------------------------
#  App definition
# ----------------------------------------------------------------------------
app = FastAPI(
    title="Quantum Leap Copilot",
    version=settings.app_version,
    description="AI crypto suggestions through typed, repaired model flows",
    lifespan=lifespan,
)
register_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-API-Key", "X-Request-ID"],
)

# Versioned API
app.include_router(flows.router, prefix="/api/v1")
app.include_router(tools.router, prefix="/api/v1")
app.include_router(signals.router, prefix="/api/v1")
app.include_router(coach_logs.router, prefix="/api/v1")

# Legacy root-level endpoints with fixed payloads
app.include_router(signals.legacy_router)


@app.exception_handler(HTTPException)
async def http_exception_to_error_contract(request: Request, exc: HTTPException):
    if isinstance(exc.detail, dict) and "error" in exc.detail:
        return JSONResponse(status_code=exc.status_code, content=exc.detail)

    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


# ----------------------------------------------------------------------------
#  Prometheus Metrics Middleware
# ----------------------------------------------------------------------------
REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["path", "method", "status_code"],
    registry=REGISTRY,
)
REQUEST_LATENCY = Histogram(
    "http_request_latency_seconds",
    "Request latency (seconds)",
    ["path", "method"],
    registry=REGISTRY,
)


@app.middleware("http")
async def metrics_middleware(request: Request, call_next):
    start = time.perf_counter()
    response: Response = await call_next(request)
    elapsed = time.perf_counter() - start
    route = request.scope.get("route")
    path = getattr(route, "path", None) or request.url.path
    name = getattr(route, "name", None) or path

    REQUEST_COUNT.labels(
        path=name,
        method=request.method,
        status_code=str(getattr(response, "status_code", 500)),
    ).inc()
    REQUEST_LATENCY.labels(path=name, method=request.method).observe(elapsed)
    return response


# ----------------------------------------------------------------------------
#  System Endpoints
# ----------------------------------------------------------------------------
@app.get("/healthz", response_class=PlainTextResponse, tags=["system"])
def healthz() -> str:
    return "ok"


@app.get("/")
def root():
    return {"status": "ok", "message": "Quantum Leap Copilot API is running"}


@app.get("/metrics", tags=["system"])
def metrics():
    data = generate_latest(REGISTRY)
    return Response(content=data, media_type=CONTENT_TYPE_LATEST)

