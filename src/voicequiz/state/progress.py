"""SQLite-backed level progress for VoiceQuiz."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional

import structlog

from voicequiz.engine.errors import PersistenceFailure
from voicequiz.engine.session import ProgressStatus, ProgressUpdate

logger = structlog.get_logger("voicequiz.state.progress")

_RANK = {
    ProgressStatus.LOCKED: 0,
    ProgressStatus.UNLOCKED: 1,
    ProgressStatus.COMPLETED: 2,
}


@dataclass
class ProgressRecord:
    user_id: str
    level_number: int
    status: ProgressStatus
    high_score: int
    updated_at: str


def _merge_status(current: Optional[ProgressStatus], new: ProgressStatus) -> ProgressStatus:
    """Statuses only move forward: locked → unlocked → completed."""
    if current is None or _RANK[new] > _RANK[current]:
        return new
    return current


def _row_to_record(row) -> ProgressRecord:
    return ProgressRecord(
        user_id=row[0],
        level_number=row[1],
        status=ProgressStatus(row[2]),
        high_score=row[3],
        updated_at=row[4],
    )


class ProgressStore:
    def __init__(self, db_path: Optional[Path] = None):
        self.db_path = db_path or (Path.home() / ".voicequiz" / "progress.db")
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _init_db(self) -> None:
        with self._conn() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS progress (
                    user_id TEXT NOT NULL,
                    level_number INTEGER NOT NULL CHECK (level_number > 0),
                    status TEXT NOT NULL DEFAULT 'locked'
                        CHECK (status IN ('locked', 'unlocked', 'completed')),
                    high_score INTEGER NOT NULL DEFAULT 0 CHECK (high_score >= 0),
                    updated_at TEXT NOT NULL,
                    PRIMARY KEY (user_id, level_number)
                )
            """)

    def _conn(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path)

    def ensure_user(self, user_id: str, level_numbers: Iterable[int]) -> None:
        """Create missing rows: the first level unlocked, the rest locked."""
        numbers = sorted(level_numbers)
        if not numbers:
            return
        now = datetime.now().isoformat()
        rows = [
            (user_id, n, (ProgressStatus.UNLOCKED if n == numbers[0] else ProgressStatus.LOCKED).value, now)
            for n in numbers
        ]
        with self._conn() as conn:
            conn.executemany(
                """INSERT OR IGNORE INTO progress (user_id, level_number, status, high_score, updated_at)
                   VALUES (?, ?, ?, 0, ?)""",
                rows,
            )

    def get(self, user_id: str, level_number: int) -> Optional[ProgressRecord]:
        with self._conn() as conn:
            row = conn.execute(
                "SELECT * FROM progress WHERE user_id = ? AND level_number = ?",
                (user_id, level_number),
            ).fetchone()
        if not row:
            return None
        return _row_to_record(row)

    def status_of(self, user_id: str, level_number: int) -> ProgressStatus:
        record = self.get(user_id, level_number)
        return record.status if record else ProgressStatus.LOCKED

    def list_for_user(self, user_id: str) -> list[ProgressRecord]:
        with self._conn() as conn:
            rows = conn.execute(
                "SELECT * FROM progress WHERE user_id = ? ORDER BY level_number",
                (user_id,),
            ).fetchall()
        return [_row_to_record(r) for r in rows]

    def apply_update(self, user_id: str, update: ProgressUpdate) -> None:
        """Record a finished session, unlocking the following level on success.

        Never downgrades a status, and keeps the best score seen so far.
        Raises PersistenceFailure if the database rejects the write.
        """
        now = datetime.now().isoformat()
        try:
            with self._conn() as conn:
                self._upsert(conn, user_id, update.level_number, update.status, update.score, now)
                if update.unlock_next:
                    self._upsert(conn, user_id, update.level_number + 1, ProgressStatus.UNLOCKED, 0, now)
        except sqlite3.Error as e:
            logger.warning(
                "progress_write_failed",
                user_id=user_id,
                level_number=update.level_number,
                error=str(e),
            )
            raise PersistenceFailure(f"Could not save progress for level {update.level_number}: {e}") from e

        logger.info(
            "progress_saved",
            user_id=user_id,
            level_number=update.level_number,
            status=update.status.value,
            score=update.score,
            unlocked_next=update.unlock_next,
        )

    @staticmethod
    def _upsert(
        conn: sqlite3.Connection,
        user_id: str,
        level_number: int,
        status: ProgressStatus,
        score: int,
        now: str,
    ) -> None:
        row = conn.execute(
            "SELECT status, high_score FROM progress WHERE user_id = ? AND level_number = ?",
            (user_id, level_number),
        ).fetchone()
        current_status = ProgressStatus(row[0]) if row else None
        current_score = row[1] if row else 0

        conn.execute(
            """INSERT OR REPLACE INTO progress
               (user_id, level_number, status, high_score, updated_at)
               VALUES (?, ?, ?, ?, ?)""",
            (
                user_id,
                level_number,
                _merge_status(current_status, status).value,
                max(current_score, score),
                now,
            ),
        )

    def reset_level(self, user_id: str, level_number: int) -> None:
        with self._conn() as conn:
            conn.execute(
                "DELETE FROM progress WHERE user_id = ? AND level_number = ?",
                (user_id, level_number),
            )

    def reset_user(self, user_id: str) -> None:
        with self._conn() as conn:
            conn.execute(
                "DELETE FROM progress WHERE user_id = ?",
                (user_id,),
            )
