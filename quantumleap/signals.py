"""
Daily signals: persist a signal, then push it to every opted-in device.

Used by the scheduled job (`run_signal_job`) and the `/pushSignal` endpoint.
Fan-out is best effort; only persistence failures reach the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from adapters.db.base import SignalRecord, SignalStore, UserRecord
from adapters.metrics.base import Metrics
from adapters.metrics.noop import NoOpMetrics
from adapters.push.base import Notifier, PushReport

log = logging.getLogger(__name__)

PUSH_TITLE = "🚀 Quantum Leap Signal"
MAX_BATCH = 500


@dataclass(frozen=True)
class Backend:
    """Explicit handles to the collaborators the signal paths need."""

    store: SignalStore
    notifier: Notifier
    metrics: Metrics = field(default_factory=NoOpMetrics)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def collect_tokens(users: Iterable[UserRecord]) -> List[str]:
    """Tokens of users with notifications enabled, deduplicated in order."""
    seen: set[str] = set()
    tokens: List[str] = []
    for user in users:
        token = (user.fcmToken or "").strip()
        if user.notifications and token and token not in seen:
            seen.add(token)
            tokens.append(token)
    return tokens


def send_push_to_all(backend: Backend, signal: str) -> Optional[PushReport]:
    """
    Push `signal` to every opted-in user in batches of at most MAX_BATCH.

    Never raises: errors are logged and swallowed so a failed push never
    fails the caller. Returns the merged report, or None when nothing was sent.
    """
    try:
        tokens = collect_tokens(backend.store.list_users())
        if not tokens:
            log.info("No users with notifications enabled or push tokens found.")
            return None

        report = PushReport()
        for start in range(0, len(tokens), MAX_BATCH):
            batch = tokens[start : start + MAX_BATCH]
            try:
                part = backend.notifier.send_multicast(
                    title=PUSH_TITLE, body=signal, tokens=batch
                )
            except Exception:
                log.exception(
                    "Push batch failed", extra={"batch_start": start, "size": len(batch)}
                )
                continue
            for res in part.responses:
                report.add(res)
                if not res.success:
                    log.error("Failed to send to token %s: %s", res.token, res.error)

        backend.metrics.inc_push_sent(ok=True, count=report.successCount)
        backend.metrics.inc_push_sent(ok=False, count=report.failureCount)
        log.info(
            "Push fan-out finished",
            extra={
                "tokens": len(tokens),
                "success": report.successCount,
                "failure": report.failureCount,
            },
        )
        return report
    except Exception:
        log.exception("Error in send_push_to_all")
        return None


def push_signal(backend: Backend, signal: str) -> SignalRecord:
    """Persist then fan out. Persistence errors propagate; push errors do not."""
    record = backend.store.save_signal(signal, utc_now_iso())
    log.info("Signal saved", extra={"signal_id": record.id})
    send_push_to_all(backend, signal)
    return record


def run_signal_job(backend: Backend, *, now: Optional[datetime] = None) -> None:
    """Scheduled entry point. Any failure is logged and swallowed."""
    ts = (now or datetime.now(timezone.utc)).isoformat().replace("+00:00", "Z")
    signal = f"AI Pick at {ts} (from scheduled job)"
    log.info("runSignalJob triggered")
    try:
        push_signal(backend, signal)
        log.info("Signal job completed successfully.")
    except Exception:
        log.exception("Error in runSignalJob")
    return None
