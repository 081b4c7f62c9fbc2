"""
Study Session State.

Two kinds of session run through a SessionContext:
- Focus session: a countdown (1-120 minutes, default 25) that ends with a
  prompt for the number of cards answered correctly
- Card review session: a capped, prioritized pool of cards answered one by one

The context splits its state in two:
- Persisted: StudyPreferences (serialised to JSON)
- Ephemeral: the running focus and card sessions, never serialised and
  discarded on completion, reset or reload

Only a completed session produces a SessionRecord; pausing or resetting
has no effect on persisted card data.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Literal

from loguru import logger
from pydantic import BaseModel, Field

from .focus_monitor import FocusIntegrityMonitor
from .models import CardState, SessionRecord, SessionType
from .scheduler import ReviewScheduler, difficulty_multiplier_for
from .xp import calculate_xp, focus_minutes_elapsed

MIN_FOCUS_MINUTES = 1
MAX_FOCUS_MINUTES = 120
DEFAULT_FOCUS_MINUTES = 25


# =============================================================================
# Focus Session
# =============================================================================


class FocusPhase(str, Enum):
    """Lifecycle of a focus session."""

    READY = "ready"
    RUNNING = "running"
    PAUSED = "paused"
    AWAITING_CARD_COUNT = "awaiting_card_count"
    COMPLETED = "completed"


@dataclass
class FocusSession:
    """A timed focus block driven by one-second ticks."""

    duration_minutes: int = DEFAULT_FOCUS_MINUTES
    time_left: int = field(init=False)
    phase: FocusPhase = FocusPhase.READY
    is_active: bool = False
    start_time: datetime | None = None
    paused_seconds: float = 0.0
    interruptions: int = 0
    last_activity_time: datetime | None = None
    dialog_open: bool = False
    _paused_at: datetime | None = field(default=None, repr=False)

    def __post_init__(self):
        self.time_left = self.duration_seconds

    @property
    def duration_seconds(self) -> int:
        return self.duration_minutes * 60

    @property
    def was_interrupted(self) -> bool:
        return self.interruptions > 0

    @property
    def focus_minutes(self) -> int:
        """Whole minutes of the countdown completed so far."""
        return focus_minutes_elapsed(self.duration_seconds, self.time_left)

    def set_duration(self, minutes: int) -> bool:
        """
        Change the countdown length before the session starts.

        Returns:
            False if running or outside 1-120 minutes (duration unchanged)
        """
        if self.phase != FocusPhase.READY:
            return False
        if not MIN_FOCUS_MINUTES <= minutes <= MAX_FOCUS_MINUTES:
            return False
        self.duration_minutes = minutes
        self.time_left = self.duration_seconds
        return True

    def start(self, now: datetime | None = None) -> None:
        """Start the countdown, or resume it if paused."""
        now = now or datetime.now()
        if self.phase == FocusPhase.PAUSED:
            self.resume(now)
            return
        if self.phase != FocusPhase.READY:
            return
        self.phase = FocusPhase.RUNNING
        self.is_active = True
        self.start_time = now
        self.last_activity_time = now

    def pause(self, now: datetime | None = None) -> None:
        if self.phase != FocusPhase.RUNNING:
            return
        self.phase = FocusPhase.PAUSED
        self.is_active = False
        self._paused_at = now or datetime.now()

    def resume(self, now: datetime | None = None) -> None:
        if self.phase != FocusPhase.PAUSED:
            return
        now = now or datetime.now()
        if self._paused_at is not None:
            self.paused_seconds += (now - self._paused_at).total_seconds()
        self._paused_at = None
        self.phase = FocusPhase.RUNNING
        self.is_active = True

    def tick(self) -> bool:
        """
        Advance the countdown by one second.

        Returns:
            True on the tick that reaches zero; the session then waits for
            the correct-card count
        """
        if self.phase != FocusPhase.RUNNING:
            return False
        self.time_left = max(0, self.time_left - 1)
        if self.time_left > 0:
            return False
        self.phase = FocusPhase.AWAITING_CARD_COUNT
        self.is_active = False
        self.dialog_open = True
        return True

    def record_interruption(self, at: datetime) -> None:
        self.interruptions += 1

    def mark_activity(self, at: datetime) -> None:
        self.last_activity_time = at

    def finish(self, correct_cards: int) -> SessionRecord:
        """
        Close the card-count prompt and score the session.

        Raises:
            ValueError: If the countdown has not reached zero
        """
        if self.phase != FocusPhase.AWAITING_CARD_COUNT:
            raise ValueError(f"Focus session cannot finish from phase {self.phase.value}")

        minutes = self.focus_minutes
        xp = calculate_xp(minutes, correct_cards, self.was_interrupted)

        self.phase = FocusPhase.COMPLETED
        self.dialog_open = False

        return SessionRecord(
            session_type=SessionType.FOCUS,
            duration_minutes=minutes,
            xp_earned=xp,
            cards_studied=correct_cards,
            correct_cards=correct_cards,
            focus_interrupted=self.was_interrupted,
        )

    def reset(self) -> None:
        """Discard progress; keeps the chosen duration."""
        self.time_left = self.duration_seconds
        self.phase = FocusPhase.READY
        self.is_active = False
        self.start_time = None
        self.paused_seconds = 0.0
        self.interruptions = 0
        self.last_activity_time = None
        self.dialog_open = False
        self._paused_at = None


# =============================================================================
# Card Review Session
# =============================================================================


@dataclass
class CardReviewSession:
    """A bounded pool of cards answered in order."""

    cards: list[CardState] = field(default_factory=list)
    current_index: int = 0
    correct_count: int = 0
    incorrect_count: int = 0
    started_at: datetime = field(default_factory=datetime.now)

    @property
    def current_card(self) -> CardState | None:
        if self.current_index < len(self.cards):
            return self.cards[self.current_index]
        return None

    @property
    def is_complete(self) -> bool:
        return self.current_index >= len(self.cards)

    @property
    def answered(self) -> int:
        return self.correct_count + self.incorrect_count

    def answer(
        self,
        correct: bool,
        scheduler: ReviewScheduler,
        difficulty_multiplier: float = 1.0,
        now: datetime | None = None,
    ) -> CardState:
        """
        Answer the current card and move to the next one.

        Returns:
            The card's updated state, to be persisted by the caller

        Raises:
            ValueError: If every card has already been answered
        """
        card = self.current_card
        if card is None:
            raise ValueError("Card session is already complete")

        updated = scheduler.apply(card, correct, difficulty_multiplier, now)
        self.cards[self.current_index] = updated
        if correct:
            self.correct_count += 1
        else:
            self.incorrect_count += 1
        self.current_index += 1
        return updated

    def outcome(self, now: datetime | None = None) -> SessionRecord:
        """Score the answered cards; focus minutes only come from focus sessions."""
        now = now or datetime.now()
        minutes = int((now - self.started_at).total_seconds() // 60)
        return SessionRecord(
            session_type=SessionType.CARDS,
            duration_minutes=max(0, minutes),
            xp_earned=calculate_xp(0, self.correct_count, False),
            cards_studied=self.answered,
            correct_cards=self.correct_count,
            focus_interrupted=False,
        )


# =============================================================================
# Session Context
# =============================================================================


class StudyPreferences(BaseModel):
    """User preferences that survive a reload."""

    card_difficulty: Literal["easy", "medium", "hard"] = "medium"
    focus_alerts: bool = True
    focus_duration_minutes: int = Field(
        default=DEFAULT_FOCUS_MINUTES, ge=MIN_FOCUS_MINUTES, le=MAX_FOCUS_MINUTES
    )


class SessionContext:
    """
    Explicit holder for one user's study state.

    Replaces implicit global state: the front-end creates one context,
    passes it around, and serialises only its preferences.
    """

    def __init__(
        self,
        preferences: StudyPreferences | None = None,
        monitor: FocusIntegrityMonitor | None = None,
    ):
        self.preferences = preferences or StudyPreferences()
        self.monitor = monitor if monitor is not None else FocusIntegrityMonitor()
        self.focus: FocusSession | None = None
        self.cards: CardReviewSession | None = None
        # Suspends this context holds on the monitor (prompt and dialogs)
        self._suspends = 0
        self._dialogs = 0

    @property
    def difficulty_multiplier(self) -> float:
        return difficulty_multiplier_for(self.preferences.card_difficulty)

    # -------------------------------------------------------------------------
    # Focus
    # -------------------------------------------------------------------------

    def start_focus(self, now: datetime | None = None) -> FocusSession:
        """Start (or resume) the single active focus session."""
        if self.focus is None or self.focus.phase == FocusPhase.COMPLETED:
            self.focus = FocusSession(duration_minutes=self.preferences.focus_duration_minutes)
        if self.focus.phase == FocusPhase.READY:
            self.monitor.attach(self.focus)
        self.focus.start(now)
        return self.focus

    def pause_focus(self, now: datetime | None = None) -> None:
        if self.focus is not None:
            self.focus.pause(now)

    def tick_focus(self) -> bool:
        """One timer tick; returns True when the countdown completes."""
        if self.focus is None:
            return False
        self.monitor.tick()
        completed = self.focus.tick()
        if completed:
            # The card-count prompt is open from here until finish_focus
            self._suspend()
            logger.info(f"Focus countdown complete ({self.focus.duration_minutes} min)")
        return completed

    def finish_focus(self, correct_cards: int) -> SessionRecord:
        """Answer the card-count prompt and end the focus session."""
        if self.focus is None:
            raise ValueError("No focus session to finish")
        record = self.focus.finish(correct_cards)
        self._release()
        self.monitor.detach()
        self.focus = None
        return record

    def reset_focus(self) -> None:
        """Abandon the focus session without recording anything."""
        self._dialogs = 0
        while self._suspends:
            self._release()
        self.monitor.detach()
        self.focus = None

    def open_dialog(self) -> None:
        """Suspend interruption counting while a confirmation dialog is shown."""
        self._dialogs += 1
        self._suspend()
        if self.focus is not None:
            self.focus.dialog_open = True

    def close_dialog(self) -> None:
        if self._dialogs:
            self._dialogs -= 1
            self._release()
        if self.focus is not None and self.focus.phase != FocusPhase.AWAITING_CARD_COUNT:
            self.focus.dialog_open = False

    def _suspend(self) -> None:
        self._suspends += 1
        self.monitor.suspend()

    def _release(self) -> None:
        if self._suspends:
            self._suspends -= 1
            self.monitor.resume()

    # -------------------------------------------------------------------------
    # Cards
    # -------------------------------------------------------------------------

    def start_cards(self, cards: list[CardState], now: datetime | None = None) -> CardReviewSession:
        self.cards = CardReviewSession(cards=list(cards), started_at=now or datetime.now())
        return self.cards

    def finish_cards(self, now: datetime | None = None) -> SessionRecord:
        if self.cards is None:
            raise ValueError("No card session to finish")
        record = self.cards.outcome(now)
        self.cards = None
        return record

    def reset_cards(self) -> None:
        self.cards = None

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def to_json(self) -> str:
        """Serialise the persisted subset only."""
        return self.preferences.model_dump_json()

    @classmethod
    def from_json(
        cls,
        data: str,
        monitor: FocusIntegrityMonitor | None = None,
    ) -> SessionContext:
        """Restore preferences; ephemeral sessions start empty."""
        return cls(StudyPreferences.model_validate_json(data), monitor)
