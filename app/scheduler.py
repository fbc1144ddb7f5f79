"""Runs the daily signal job inside the app's event loop."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

from quantumleap.signals import Backend, run_signal_job

log = logging.getLogger(__name__)


async def signal_job_loop(
    get_backend: Callable[[], Backend], *, interval_sec: float
) -> None:
    """
    Run `run_signal_job` every `interval_sec` seconds until cancelled.
    The first run happens after one full interval.
    """
    log.info("Signal job scheduler started", extra={"interval_sec": interval_sec})
    while True:
        await asyncio.sleep(interval_sec)
        try:
            backend = get_backend()
        except Exception:
            log.exception("Signal job skipped: backend unavailable")
            continue
        await asyncio.to_thread(run_signal_job, backend)


def start_signal_job(
    get_backend: Callable[[], Backend], *, interval_sec: float
) -> "asyncio.Task[None]":
    return asyncio.create_task(
        signal_job_loop(get_backend, interval_sec=interval_sec),
        name="signal-job",
    )
