import threading
import uuid
from typing import Dict, Iterable, List

from adapters.db.base import CoachLog, SignalRecord, SignalStore, UserRecord


class MemoryStore(SignalStore):
    """Process-local store for tests and throwaway runs."""

    name = "memory"

    def __init__(self, users: Iterable[UserRecord] = ()) -> None:
        self._lock = threading.Lock()
        self.signals: List[SignalRecord] = []
        self.users: Dict[str, UserRecord] = {u.id: u for u in users}
        self.coach_logs: Dict[str, CoachLog] = {}

    def save_signal(self, strategy: str, created_at: str) -> SignalRecord:
        rec = SignalRecord(id=uuid.uuid4().hex, strategy=strategy, createdAt=created_at)
        with self._lock:
            self.signals.append(rec)
        return rec

    def recent_signals(self, limit: int) -> List[SignalRecord]:
        with self._lock:
            # insertion order breaks ties between equal timestamps
            ordered = sorted(
                enumerate(self.signals),
                key=lambda p: (p[1].createdAt, p[0]),
                reverse=True,
            )
        return [rec for _, rec in ordered[: max(limit, 0)]]

    def list_users(self) -> List[UserRecord]:
        with self._lock:
            return list(self.users.values())

    def upsert_user(self, user: UserRecord) -> None:
        with self._lock:
            self.users[user.id] = user

    def save_coach_log(self, entry: CoachLog) -> str:
        log_id = uuid.uuid4().hex
        with self._lock:
            self.coach_logs[log_id] = entry
        return log_id
