import logging
import sqlite3
import uuid
from pathlib import Path
from typing import List

from adapters.db.base import CoachLog, SignalRecord, SignalStore, UserRecord

log = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS daily_signals (
    id         TEXT PRIMARY KEY,
    strategy   TEXT NOT NULL,
    created_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_daily_signals_created_at
    ON daily_signals (created_at);
CREATE TABLE IF NOT EXISTS users (
    id            TEXT PRIMARY KEY,
    fcm_token     TEXT,
    notifications INTEGER NOT NULL DEFAULT 0
);
CREATE TABLE IF NOT EXISTS coach_logs (
    id          TEXT PRIMARY KEY,
    user_id     TEXT NOT NULL,
    user_prompt TEXT NOT NULL,
    ai_result   TEXT NOT NULL,
    timestamp   TEXT NOT NULL
);
"""


class SQLiteStore(SignalStore):
    name = "sqlite"

    def __init__(self, path: str):
        # resolve absolute path for safety
        self.path = Path(path).resolve()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self._connect() as conn:
            conn.executescript(_SCHEMA)
        log.info("SQLiteStore initialized with DB path: %s", self.path)

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(str(self.path), timeout=3)

    def save_signal(self, strategy: str, created_at: str) -> SignalRecord:
        rec = SignalRecord(id=uuid.uuid4().hex, strategy=strategy, createdAt=created_at)
        with self._connect() as conn:
            conn.execute(
                "INSERT INTO daily_signals (id, strategy, created_at) VALUES (?, ?, ?)",
                (rec.id, rec.strategy, rec.createdAt),
            )
        log.info("Signal saved", extra={"signal_id": rec.id})
        return rec

    def recent_signals(self, limit: int) -> List[SignalRecord]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT id, strategy, created_at FROM daily_signals "
                "ORDER BY created_at DESC, rowid DESC LIMIT ?",
                (max(limit, 0),),
            ).fetchall()
        return [SignalRecord(id=r[0], strategy=r[1], createdAt=r[2]) for r in rows]

    def list_users(self) -> List[UserRecord]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT id, fcm_token, notifications FROM users"
            ).fetchall()
        log.debug("Loaded users", extra={"count": len(rows)})
        return [UserRecord(id=r[0], fcmToken=r[1], notifications=bool(r[2])) for r in rows]

    def upsert_user(self, user: UserRecord) -> None:
        with self._connect() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO users (id, fcm_token, notifications) "
                "VALUES (?, ?, ?)",
                (user.id, user.fcmToken, int(user.notifications)),
            )

    def save_coach_log(self, entry: CoachLog) -> str:
        log_id = uuid.uuid4().hex
        with self._connect() as conn:
            conn.execute(
                "INSERT INTO coach_logs (id, user_id, user_prompt, ai_result, timestamp) "
                "VALUES (?, ?, ?, ?, ?)",
                (log_id, entry.userId, entry.userPrompt, entry.aiResult, entry.timestamp),
            )
        return log_id
