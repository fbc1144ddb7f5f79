import logging
from typing import Sequence

from adapters.push.base import Notifier, PushReport, PushResult

log = logging.getLogger(__name__)


class LogNotifier(Notifier):
    """Writes notifications to the log instead of delivering them."""

    name = "log"

    def send_multicast(
        self, *, title: str, body: str, tokens: Sequence[str]
    ) -> PushReport:
        report = PushReport()
        for token in tokens:
            report.add(PushResult(token=token, success=True))
        log.info(
            "Push notification (log only)",
            extra={"title": title, "body": body, "tokens": len(tokens)},
        )
        return report
