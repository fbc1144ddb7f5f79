import json

import pytest
from fastapi.testclient import TestClient

from app.main import app

client = TestClient(app)
URL = "/api/v1/coach-logs"


def test_coach_log_is_stored(app_backend, store):
    r = client.post(
        URL,
        json={"userId": "u1", "userPrompt": "coin picks", "aiResult": {"picks": []}},
    )
    assert r.status_code == 200
    assert r.json() == {"success": True, "message": "Log received and processed."}
    [entry] = store.coach_logs.values()
    assert entry.userId == "u1"
    assert json.loads(entry.aiResult) == {"picks": []}
    assert entry.timestamp.endswith("Z")


@pytest.mark.parametrize(
    "body",
    [
        {"userPrompt": "p", "aiResult": "r"},
        {"userId": "u", "aiResult": "r"},
        {"userId": "u", "userPrompt": "p", "aiResult": ""},
        {},
    ],
)
def test_coach_log_missing_fields(app_backend, store, body):
    r = client.post(URL, json=body)
    assert r.status_code == 400
    assert r.json() == {"error": "Missing required fields: userId, userPrompt, or aiResult."}
    assert store.coach_logs == {}


def test_coach_log_store_failure(app_backend, store, monkeypatch):
    def broken(entry):
        raise RuntimeError("write failed")

    monkeypatch.setattr(store, "save_coach_log", broken)
    r = client.post(URL, json={"userId": "u", "userPrompt": "p", "aiResult": "r"})
    assert r.status_code == 500
    assert r.json() == {
        "error": "Failed to log AI interaction due to an internal server error."
    }
