import datetime

import pytest
import requests
from google.auth import credentials as ga_credentials
from google.auth.transport.requests import AuthorizedSession
from requests.adapters import BaseAdapter

from adapters.push import fcm_adapter
from adapters.push.fcm_adapter import FCM_SCOPES, FCMNotifier


class FakeResp:
    def __init__(self, status_code):
        self.status_code = status_code
        self.ok = status_code < 400
        self.reason = "OK" if self.ok else "Not Found"
        self.text = "" if self.ok else '{"error": "UNREGISTERED"}'


class FakeSession:
    def __init__(self, outcomes):
        self.headers = {}
        self.outcomes = outcomes
        self.posts = []

    def post(self, url, json=None, timeout=None):
        self.posts.append({"url": url, "json": json})
        outcome = self.outcomes[json["message"]["token"]]
        if isinstance(outcome, Exception):
            raise outcome
        return FakeResp(outcome)


class ShortLivedCredentials(ga_credentials.Credentials):
    """Every token it mints is already past expiry."""

    def __init__(self):
        super().__init__()
        self.refreshes = 0

    def refresh(self, request):
        self.refreshes += 1
        self.token = f"token-{self.refreshes}"
        self.expiry = datetime.datetime.now(datetime.timezone.utc).replace(
            tzinfo=None
        ) - datetime.timedelta(hours=1)


class RecordingAdapter(BaseAdapter):
    def __init__(self):
        super().__init__()
        self.auth_headers = []

    def send(self, request, **kwargs):
        self.auth_headers.append(request.headers.get("Authorization"))
        resp = requests.Response()
        resp.status_code = 200
        resp.reason = "OK"
        resp._content = b"{}"
        resp.request = request
        resp.url = request.url
        return resp

    def close(self):
        pass


def test_multicast_reports_per_token_results():
    session = FakeSession(
        {"good": 200, "stale": 404, "flaky": requests.ConnectionError("reset")}
    )
    n = FCMNotifier(project_id="proj", session=session)

    report = n.send_multicast(title="T", body="B", tokens=["good", "stale", "flaky"])

    assert (report.successCount, report.failureCount) == (1, 2)
    assert [r.success for r in report.responses] == [True, False, False]
    assert "404" in report.responses[1].error
    assert "reset" in report.responses[2].error
    assert session.posts[0]["url"] == (
        "https://fcm.googleapis.com/v1/projects/proj/messages:send"
    )
    assert session.posts[0]["json"]["message"]["notification"] == {"title": "T", "body": "B"}


def test_requires_project_and_credentials():
    with pytest.raises(ValueError):
        FCMNotifier(project_id="", session=FakeSession({}))
    with pytest.raises(ValueError):
        FCMNotifier(project_id="proj")


def test_expired_token_is_refreshed_before_each_send():
    creds = ShortLivedCredentials()
    n = FCMNotifier(project_id="proj", credentials=creds)
    assert isinstance(n.session, AuthorizedSession)
    adapter = RecordingAdapter()
    n.session.mount("https://", adapter)

    report = n.send_multicast(title="T", body="B", tokens=["a", "b"])

    assert report.successCount == 2
    assert adapter.auth_headers == ["Bearer token-1", "Bearer token-2"]
    assert creds.refreshes == 2


def test_from_service_account_file_uses_messaging_scope(monkeypatch):
    seen = {}

    class FakeCreds(ShortLivedCredentials):
        project_id = "from-key"

    def fake_loader(path, scopes=None):
        seen.update(path=path, scopes=scopes)
        return FakeCreds()

    monkeypatch.setattr(
        fcm_adapter.service_account.Credentials,
        "from_service_account_file",
        fake_loader,
    )

    n = FCMNotifier.from_service_account_file("/keys/sa.json")
    assert seen == {"path": "/keys/sa.json", "scopes": FCM_SCOPES}
    assert n.url.endswith("/projects/from-key/messages:send")

    n = FCMNotifier.from_service_account_file("/keys/sa.json", project_id="override")
    assert "/projects/override/" in n.url
