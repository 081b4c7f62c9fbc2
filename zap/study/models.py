"""
Data classes shared by the study engine and its storage collaborators.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum

# =============================================================================
# Card State
# =============================================================================

MIN_DIFFICULTY = 1.0
MAX_DIFFICULTY = 5.0
MIN_INTERVAL_DAYS = 1
MAX_INTERVAL_DAYS = 180


@dataclass
class CardState:
    """Review state for a single flashcard."""

    card_id: str
    difficulty: float = MIN_DIFFICULTY  # 1 = easiest, 5 = hardest
    next_review: datetime = field(default_factory=datetime.now)
    last_reviewed: datetime | None = None
    interval_days: int = MIN_INTERVAL_DAYS
    correct_count: int = 0
    incorrect_count: int = 0

    # Content, opaque to the scheduler
    deck_id: str | None = None
    question: str = ""
    answer: str = ""

    def is_due(self, now: datetime | None = None) -> bool:
        """Check if this card is due for review."""
        now = now or datetime.now()
        return now >= self.next_review

    def days_overdue(self, now: datetime | None = None) -> int:
        """Whole days past the scheduled review (0 if not yet due)."""
        now = now or datetime.now()
        if self.next_review > now:
            return 0
        return (now - self.next_review) // timedelta(days=1)


# =============================================================================
# Review Outcome / Result
# =============================================================================


@dataclass(frozen=True)
class ReviewOutcome:
    """A single answer, with the card's difficulty before the review."""

    correct: bool
    difficulty: float


@dataclass(frozen=True)
class ReviewResult:
    """Scheduling decision for one review."""

    next_interval_days: int
    next_review_date: datetime
    new_difficulty: float


# =============================================================================
# Session Records
# =============================================================================


class SessionType(str, Enum):
    """Kind of completed study session."""

    FOCUS = "focus"
    CARDS = "cards"


@dataclass
class SessionRecord:
    """A completed study session as persisted by the store."""

    session_type: SessionType
    duration_minutes: int
    xp_earned: int
    cards_studied: int
    correct_cards: int
    focus_interrupted: bool = False
    created_at: datetime = field(default_factory=datetime.now)
    id: int | None = None
