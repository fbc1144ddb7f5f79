"""
Firebase Cloud Messaging over the HTTP v1 API.

The v1 API sends one message per request, so a multicast is a loop over
tokens on a shared session. Requests go through google-auth's
`AuthorizedSession`, which refreshes the service account's OAuth2 access
token whenever it expires.
"""

import logging
from typing import Optional, Sequence

import requests
from google.auth.transport.requests import AuthorizedSession
from google.oauth2 import service_account
from requests.exceptions import RequestException

from adapters.push.base import Notifier, PushReport, PushResult

log = logging.getLogger(__name__)

FCM_ENDPOINT = "https://fcm.googleapis.com/v1/projects/{project_id}/messages:send"
FCM_SCOPES = ["https://www.googleapis.com/auth/firebase.messaging"]


class FCMNotifier(Notifier):
    name = "fcm"

    def __init__(
        self,
        *,
        project_id: str,
        credentials=None,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        if not project_id:
            raise ValueError("FCM requires a project_id")
        if session is None:
            if credentials is None:
                raise ValueError("FCM requires service account credentials")
            session = AuthorizedSession(credentials)
        self.url = FCM_ENDPOINT.format(project_id=project_id)
        self.timeout = timeout
        self.session = session
        self.session.headers.update({"Content-Type": "application/json; UTF-8"})

    @classmethod
    def from_service_account_file(
        cls, path: str, *, project_id: str = "", timeout: float = 10.0
    ) -> "FCMNotifier":
        """Load a service account key; project_id defaults to the key's project."""
        creds = service_account.Credentials.from_service_account_file(
            path, scopes=FCM_SCOPES
        )
        return cls(
            project_id=project_id or creds.project_id or "",
            credentials=creds,
            timeout=timeout,
        )

    def _send_one(self, token: str, title: str, body: str) -> PushResult:
        payload = {
            "message": {
                "token": token,
                "notification": {"title": title, "body": body},
            }
        }
        try:
            resp = self.session.post(self.url, json=payload, timeout=self.timeout)
        except RequestException as exc:
            return PushResult(token=token, success=False, error=str(exc))
        if not resp.ok:
            return PushResult(
                token=token,
                success=False,
                error=f"{resp.status_code} {resp.reason}: {resp.text[:200]}",
            )
        return PushResult(token=token, success=True)

    def send_multicast(
        self, *, title: str, body: str, tokens: Sequence[str]
    ) -> PushReport:
        report = PushReport()
        for token in tokens:
            report.add(self._send_one(token, title, body))
        log.info(
            "FCM multicast finished",
            extra={"success": report.successCount, "failure": report.failureCount},
        )
        return report
