from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

# Resolve repo root from this file's location:
# app/settings.py → parent = app/ → parent = repo root
REPO_ROOT = Path(__file__).resolve().parents[1]

DEFAULT_SQLITE_PATH = REPO_ROOT / "data" / "quantumleap.db"
DEFAULT_FLOW_CONFIG = REPO_ROOT / "configs" / "flows.yaml"


def _resolve_path(raw: str, default: Path) -> str:
    raw = (raw or "").strip()
    if not raw:
        return str(default)
    candidate = Path(raw)
    if not candidate.is_absolute():
        candidate = REPO_ROOT / raw
    return str(candidate)


def _getenv_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class Settings:
    """
    Centralized application configuration.

    Does NOT depend on pydantic. Values are loaded from environment
    variables via Settings.from_env().
    """

    # --- Persistence ---
    store_mode: str = "sqlite"  # "sqlite" or "memory"
    sqlite_path: str = str(DEFAULT_SQLITE_PATH)

    # --- Push notifications ---
    push_mode: str = "log"  # "log" or "fcm"
    fcm_project_id: str = ""
    fcm_credentials_file: str = ""

    # --- Flows / tools ---
    flow_config_path: str = str(DEFAULT_FLOW_CONFIG)
    coingecko_base_url: str = ""

    # --- Scheduled signal job ---
    signal_job_enabled: bool = False
    signal_job_interval_sec: int = 86400

    # --- Read path ---
    signals_default_limit: int = 20

    # --- API keys (comma-separated) ---
    api_keys_raw: str = ""

    # --- App version / env ---
    app_version: str = "dev"
    app_env: str = "dev"

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Build Settings from environment variables with sane fallbacks.

        - SQLITE_PATH and FLOW_CONFIG can be absolute or relative.
        - Relative paths are resolved against REPO_ROOT.
        """

        def getenv_int(name: str, default: int) -> int:
            raw = os.getenv(name)
            if raw is None or raw.strip() == "":
                return default
            try:
                return int(raw)
            except ValueError:
                return default

        return cls(
            store_mode=os.getenv("STORE_MODE", cls.store_mode).strip().lower(),
            sqlite_path=_resolve_path(os.getenv("SQLITE_PATH", ""), DEFAULT_SQLITE_PATH),
            push_mode=os.getenv("PUSH_MODE", cls.push_mode).strip().lower(),
            fcm_project_id=os.getenv("FCM_PROJECT_ID", cls.fcm_project_id),
            fcm_credentials_file=os.getenv(
                "FCM_CREDENTIALS_FILE", os.getenv("GOOGLE_APPLICATION_CREDENTIALS", "")
            ).strip(),
            flow_config_path=_resolve_path(os.getenv("FLOW_CONFIG", ""), DEFAULT_FLOW_CONFIG),
            coingecko_base_url=os.getenv("COINGECKO_BASE_URL", cls.coingecko_base_url),
            signal_job_enabled=_getenv_bool("SIGNAL_JOB_ENABLED", cls.signal_job_enabled),
            signal_job_interval_sec=getenv_int(
                "SIGNAL_JOB_INTERVAL_SEC", cls.signal_job_interval_sec
            ),
            signals_default_limit=getenv_int(
                "SIGNALS_DEFAULT_LIMIT", cls.signals_default_limit
            ),
            api_keys_raw=os.getenv("API_KEYS", cls.api_keys_raw),
            app_version=os.getenv("APP_VERSION", cls.app_version),
            app_env=os.getenv("APP_ENV", cls.app_env).strip().lower(),
        )


@lru_cache()
def get_settings() -> Settings:
    return Settings.from_env()
