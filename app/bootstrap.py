"""App bootstrap: build the store and notifier handles from Settings."""

import logging

from adapters.db.base import SignalStore
from adapters.db.memory_adapter import MemoryStore
from adapters.db.sqlite_adapter import SQLiteStore
from adapters.metrics.base import Metrics
from adapters.push.base import Notifier
from adapters.push.fcm_adapter import FCMNotifier
from adapters.push.log_notifier import LogNotifier
from app.errors import BackendConfigError
from app.settings import Settings
from quantumleap.signals import Backend

log = logging.getLogger(__name__)


def _build_store(settings: Settings) -> SignalStore:
    mode = settings.store_mode
    if mode == "sqlite":
        return SQLiteStore(settings.sqlite_path)
    if mode == "memory":
        return MemoryStore()
    raise BackendConfigError(f"Unknown STORE_MODE: {mode!r}")


def _build_notifier(settings: Settings) -> Notifier:
    mode = settings.push_mode
    if mode == "log":
        return LogNotifier()
    if mode == "fcm":
        if not settings.fcm_credentials_file:
            raise BackendConfigError("PUSH_MODE=fcm requires FCM_CREDENTIALS_FILE")
        try:
            return FCMNotifier.from_service_account_file(
                settings.fcm_credentials_file, project_id=settings.fcm_project_id
            )
        except (OSError, ValueError) as exc:
            raise BackendConfigError(f"Cannot load FCM credentials: {exc}") from exc
    raise BackendConfigError(f"Unknown PUSH_MODE: {mode!r}")


def init_backend(settings: Settings, *, metrics: Metrics | None = None) -> Backend:
    """Build the store/notifier pair once; the app injects it via dependencies."""
    store = _build_store(settings)
    notifier = _build_notifier(settings)
    log.info(
        "Backend initialized",
        extra={"store": store.name, "notifier": notifier.name},
    )
    if metrics is None:
        return Backend(store=store, notifier=notifier)
    return Backend(store=store, notifier=notifier, metrics=metrics)
