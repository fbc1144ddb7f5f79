"""Run the daily signal job once (for an external cron).

Usage (from the repo root): python -m scripts.run_signal_job

Env: the same variables as the API (STORE_MODE, SQLITE_PATH, PUSH_MODE, ...).
Always exits 0: the job logs and swallows its own failures.
"""

from __future__ import annotations

import logging

from dotenv import load_dotenv

from app.bootstrap import init_backend
from app.settings import get_settings
from quantumleap.signals import run_signal_job


def main() -> int:
    load_dotenv()
    logging.basicConfig(
        level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )
    backend = init_backend(get_settings())
    run_signal_job(backend)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
