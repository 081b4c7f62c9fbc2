"""
SQLite State Store for Zap.

Reference storage collaborator for the study engine:
- Card review state (difficulty, interval, next review, counters)
- User XP totals, updated only through an atomic delta add
- Completed session history

Database location: ~/.zap/state.db (override with ZAP_DB_PATH)
"""

from __future__ import annotations

import sqlite3
from datetime import datetime
from pathlib import Path

from loguru import logger

from zap.study.errors import CardNotFoundError, StorageError, XPNotRecordedError
from zap.study.models import CardState, SessionRecord, SessionType


def _to_db(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _from_db(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


class StateStore:
    """
    SQLite-backed persistence for cards, XP and sessions.

    XP is never written directly: add_xp issues a single
    `UPDATE ... SET xp = xp + ?` so concurrent sessions cannot lose awards.
    """

    DEFAULT_DB_PATH = Path.home() / ".zap" / "state.db"

    def __init__(self, db_path: Path | str | None = None, timeout: float = 5.0):
        """
        Initialize the state store.

        Args:
            db_path: Custom database path (defaults to ~/.zap/state.db)
            timeout: Seconds to wait for a lock held by another connection
        """
        self.db_path = Path(db_path) if db_path else self.DEFAULT_DB_PATH
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.timeout = timeout

        self._conn: sqlite3.Connection | None = None
        self._init_schema()

        logger.debug(f"StateStore initialized at {self.db_path}")

    @property
    def conn(self) -> sqlite3.Connection:
        """Get or create database connection."""
        if self._conn is None:
            self._conn = sqlite3.connect(str(self.db_path), timeout=self.timeout)
            self._conn.row_factory = sqlite3.Row
        return self._conn

    def _init_schema(self) -> None:
        """Initialize database schema."""
        cursor = self.conn.cursor()

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS cards (
                card_id TEXT PRIMARY KEY,
                deck_id TEXT,
                question TEXT NOT NULL DEFAULT '',
                answer TEXT NOT NULL DEFAULT '',
                difficulty REAL NOT NULL DEFAULT 1.0,
                interval_days INTEGER NOT NULL DEFAULT 1,
                next_review TEXT NOT NULL,
                last_reviewed TEXT,
                correct_count INTEGER NOT NULL DEFAULT 0,
                incorrect_count INTEGER NOT NULL DEFAULT 0
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS users (
                user_id TEXT PRIMARY KEY,
                xp INTEGER NOT NULL DEFAULT 0
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS study_sessions (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id TEXT NOT NULL,
                session_type TEXT NOT NULL,
                duration_minutes INTEGER DEFAULT 0,
                xp_earned INTEGER DEFAULT 0,
                cards_studied INTEGER DEFAULT 0,
                correct_cards INTEGER DEFAULT 0,
                focus_interrupted BOOLEAN DEFAULT 0,
                created_at TEXT NOT NULL
            )
        """)

        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_cards_next_review
            ON cards(next_review)
        """)

        self.conn.commit()

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    # =========================================================================
    # Card Operations
    # =========================================================================

    def _row_to_card(self, row: sqlite3.Row) -> CardState:
        return CardState(
            card_id=row["card_id"],
            deck_id=row["deck_id"],
            question=row["question"],
            answer=row["answer"],
            difficulty=row["difficulty"],
            interval_days=row["interval_days"],
            next_review=_from_db(row["next_review"]),
            last_reviewed=_from_db(row["last_reviewed"]),
            correct_count=row["correct_count"],
            incorrect_count=row["incorrect_count"],
        )

    def get_card(self, card_id: str) -> CardState:
        """
        Get a card by id.

        Raises:
            CardNotFoundError: If no such card exists
        """
        cursor = self.conn.cursor()
        cursor.execute("SELECT * FROM cards WHERE card_id = ?", (card_id,))
        row = cursor.fetchone()
        if row is None:
            raise CardNotFoundError(card_id)
        return self._row_to_card(row)

    def save_card(self, card: CardState) -> None:
        """Insert or update a card's full state."""
        try:
            self.conn.execute(
                """
                INSERT INTO cards (
                    card_id, deck_id, question, answer, difficulty, interval_days,
                    next_review, last_reviewed, correct_count, incorrect_count
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(card_id) DO UPDATE SET
                    deck_id = excluded.deck_id,
                    question = excluded.question,
                    answer = excluded.answer,
                    difficulty = excluded.difficulty,
                    interval_days = excluded.interval_days,
                    next_review = excluded.next_review,
                    last_reviewed = excluded.last_reviewed,
                    correct_count = excluded.correct_count,
                    incorrect_count = excluded.incorrect_count
            """,
                (
                    card.card_id,
                    card.deck_id,
                    card.question,
                    card.answer,
                    card.difficulty,
                    card.interval_days,
                    _to_db(card.next_review),
                    _to_db(card.last_reviewed),
                    card.correct_count,
                    card.incorrect_count,
                ),
            )
            self.conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"Could not save card {card.card_id}: {e}") from e

    def list_cards(self, deck_id: str | None = None) -> list[CardState]:
        """All cards, optionally restricted to one deck."""
        cursor = self.conn.cursor()
        if deck_id is None:
            cursor.execute("SELECT * FROM cards")
        else:
            cursor.execute("SELECT * FROM cards WHERE deck_id = ?", (deck_id,))
        return [self._row_to_card(row) for row in cursor.fetchall()]

    def count_due_cards(self, now: datetime | None = None) -> int:
        """Count cards due at or before now."""
        now = now or datetime.now()
        cursor = self.conn.cursor()
        cursor.execute(
            "SELECT COUNT(*) AS cnt FROM cards WHERE next_review <= ?", (_to_db(now),)
        )
        return cursor.fetchone()["cnt"]

    # =========================================================================
    # XP Operations
    # =========================================================================

    def ensure_user(self, user_id: str) -> None:
        """Create the user with 0 XP if missing."""
        self.conn.execute("INSERT OR IGNORE INTO users (user_id, xp) VALUES (?, 0)", (user_id,))
        self.conn.commit()

    def get_xp(self, user_id: str) -> int:
        cursor = self.conn.cursor()
        cursor.execute("SELECT xp FROM users WHERE user_id = ?", (user_id,))
        row = cursor.fetchone()
        return row["xp"] if row else 0

    def add_xp(self, user_id: str, delta: int) -> int:
        """
        Atomically add XP to a user's total.

        Args:
            user_id: The user to credit
            delta: Non-negative XP award

        Returns:
            The new XP total

        Raises:
            XPNotRecordedError: If the update fails or the user does not exist
        """
        try:
            cursor = self.conn.execute(
                "UPDATE users SET xp = xp + ? WHERE user_id = ?",
                (delta, user_id),
            )
            if cursor.rowcount != 1:
                self.conn.rollback()
                raise XPNotRecordedError(user_id, delta, "unknown user")
            # Read back inside the same write transaction
            row = self.conn.execute(
                "SELECT xp FROM users WHERE user_id = ?", (user_id,)
            ).fetchone()
            self.conn.commit()
        except sqlite3.Error as e:
            # Never leave the delta pending for a later commit to pick up
            self.conn.rollback()
            raise XPNotRecordedError(user_id, delta, str(e)) from e

        return row["xp"]

    # =========================================================================
    # Session Operations
    # =========================================================================

    def record_session(self, user_id: str, record: SessionRecord) -> int:
        """
        Persist a completed session.

        Returns:
            Session record ID
        """
        try:
            cursor = self.conn.execute(
                """
                INSERT INTO study_sessions (
                    user_id, session_type, duration_minutes, xp_earned,
                    cards_studied, correct_cards, focus_interrupted, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
                (
                    user_id,
                    record.session_type.value,
                    record.duration_minutes,
                    record.xp_earned,
                    record.cards_studied,
                    record.correct_cards,
                    record.focus_interrupted,
                    _to_db(record.created_at),
                ),
            )
            self.conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"Could not record session: {e}") from e

        record.id = cursor.lastrowid
        return cursor.lastrowid

    def list_sessions(self, user_id: str, limit: int = 50) -> list[SessionRecord]:
        """Most recent sessions first."""
        cursor = self.conn.cursor()
        cursor.execute(
            """
            SELECT * FROM study_sessions
            WHERE user_id = ?
            ORDER BY created_at DESC, id DESC
            LIMIT ?
        """,
            (user_id, limit),
        )
        return [
            SessionRecord(
                id=row["id"],
                session_type=SessionType(row["session_type"]),
                duration_minutes=row["duration_minutes"],
                xp_earned=row["xp_earned"],
                cards_studied=row["cards_studied"],
                correct_cards=row["correct_cards"],
                focus_interrupted=bool(row["focus_interrupted"]),
                created_at=_from_db(row["created_at"]),
            )
            for row in cursor.fetchall()
        ]
