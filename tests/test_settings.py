from app.settings import REPO_ROOT, Settings


def test_defaults(monkeypatch):
    for name in ("STORE_MODE", "PUSH_MODE", "SIGNAL_JOB_ENABLED", "SIGNAL_JOB_INTERVAL_SEC", "FLOW_CONFIG"):
        monkeypatch.delenv(name, raising=False)
    s = Settings.from_env()
    assert s.store_mode == "sqlite"
    assert s.push_mode == "log"
    assert s.signal_job_enabled is False
    assert s.signal_job_interval_sec == 86400
    assert s.flow_config_path == str(REPO_ROOT / "configs" / "flows.yaml")


def test_env_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("STORE_MODE", "MEMORY")
    monkeypatch.setenv("SQLITE_PATH", "data/other.db")
    monkeypatch.setenv("FLOW_CONFIG", str(tmp_path / "flows.yaml"))
    monkeypatch.setenv("SIGNAL_JOB_ENABLED", "true")
    monkeypatch.setenv("SIGNAL_JOB_INTERVAL_SEC", "60")
    monkeypatch.setenv("SIGNALS_DEFAULT_LIMIT", "not-a-number")
    monkeypatch.setenv("API_KEYS", "a,b")

    s = Settings.from_env()
    assert s.store_mode == "memory"
    assert s.sqlite_path == str(REPO_ROOT / "data" / "other.db")
    assert s.flow_config_path == str(tmp_path / "flows.yaml")
    assert s.signal_job_enabled is True
    assert s.signal_job_interval_sec == 60
    assert s.signals_default_limit == 20
    assert s.api_keys_raw == "a,b"


def test_fcm_key_falls_back_to_google_application_credentials(monkeypatch):
    monkeypatch.delenv("FCM_CREDENTIALS_FILE", raising=False)
    monkeypatch.setenv("GOOGLE_APPLICATION_CREDENTIALS", "/keys/adc.json")
    assert Settings.from_env().fcm_credentials_file == "/keys/adc.json"

    monkeypatch.setenv("FCM_CREDENTIALS_FILE", " /keys/fcm.json ")
    assert Settings.from_env().fcm_credentials_file == "/keys/fcm.json"
