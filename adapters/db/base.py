from dataclasses import dataclass
from typing import List, Optional, Protocol


@dataclass(frozen=True)
class SignalRecord:
    id: str
    strategy: str
    createdAt: str  # ISO-8601 UTC


@dataclass(frozen=True)
class UserRecord:
    id: str
    fcmToken: Optional[str] = None
    notifications: bool = False


@dataclass(frozen=True)
class CoachLog:
    userId: str
    userPrompt: str
    aiResult: str
    timestamp: str  # ISO-8601 UTC


class SignalStore(Protocol):
    """Persistence for daily signals, notification targets and coach logs."""

    name: str

    def save_signal(self, strategy: str, created_at: str) -> SignalRecord:
        """Append a signal record and return it with its new id."""

    def recent_signals(self, limit: int) -> List[SignalRecord]:
        """Most recent signals, newest first."""

    def list_users(self) -> List[UserRecord]:
        """All users, with their push token and notification preference."""

    def upsert_user(self, user: UserRecord) -> None:
        """Create or replace a user record."""

    def save_coach_log(self, entry: CoachLog) -> str:
        """Append a coach interaction log; returns its id."""
