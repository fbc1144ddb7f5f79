from dataclasses import dataclass, field
from typing import List, Optional, Protocol, Sequence


@dataclass(frozen=True)
class PushResult:
    token: str
    success: bool
    error: Optional[str] = None


@dataclass
class PushReport:
    successCount: int = 0
    failureCount: int = 0
    responses: List[PushResult] = field(default_factory=list)

    def add(self, result: PushResult) -> None:
        self.responses.append(result)
        if result.success:
            self.successCount += 1
        else:
            self.failureCount += 1


class Notifier(Protocol):
    """Sends one notification to many device tokens."""

    name: str

    def send_multicast(
        self, *, title: str, body: str, tokens: Sequence[str]
    ) -> PushReport:
        """Per-token failures are reported in the result, not raised."""
