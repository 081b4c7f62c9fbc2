"""
Study Service: connects the engine to storage.

Responsibilities:
- Assemble prioritized card pools from stored cards
- Persist each answered card's new schedule
- Record completed sessions and credit their XP atomically
- Report the learner's tier

The service never computes or writes XP totals itself: awards come from
calculate_xp (via the session objects) and reach storage only through
add_xp.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from loguru import logger

from .errors import XPNotRecordedError
from .models import CardState, SessionRecord
from .prioritizer import SessionPrioritizer
from .progression import ProgressionLedger, Tier, TierStatus
from .scheduler import ReviewScheduler
from .session import SessionContext


class ProgressStore(Protocol):
    """Storage collaborator for the study service."""

    def get_card(self, card_id: str) -> CardState: ...

    def save_card(self, card: CardState) -> None: ...

    def list_cards(self, deck_id: str | None = None) -> list[CardState]: ...

    def ensure_user(self, user_id: str) -> None: ...

    def get_xp(self, user_id: str) -> int: ...

    def add_xp(self, user_id: str, delta: int) -> int: ...

    def record_session(self, user_id: str, record: SessionRecord) -> int: ...

    def list_sessions(self, user_id: str, limit: int = 50) -> list[SessionRecord]: ...


@dataclass
class SessionAward:
    """Result of completing a session."""

    record: SessionRecord
    xp_total: int
    tier: TierStatus
    new_tier: Tier | None = None  # Set when the award crossed a threshold


class StudyService:
    """Orchestrates study sessions for one user."""

    def __init__(
        self,
        store: ProgressStore,
        user_id: str = "demo",
        scheduler: ReviewScheduler | None = None,
        prioritizer: SessionPrioritizer | None = None,
        ledger: ProgressionLedger | None = None,
        quick_session_cap: int = 12,
        deck_session_cap: int = 20,
    ):
        self.store = store
        self.user_id = user_id
        self.scheduler = scheduler or ReviewScheduler()
        self.prioritizer = prioritizer or SessionPrioritizer()
        self.ledger = ledger or ProgressionLedger()
        self.quick_session_cap = quick_session_cap
        self.deck_session_cap = deck_session_cap

        self.store.ensure_user(user_id)

    # =========================================================================
    # Card Sessions
    # =========================================================================

    def session_cards(
        self,
        deck_id: str | None = None,
        cap: int | None = None,
        now: datetime | None = None,
    ) -> list[CardState]:
        """
        Prioritized pool for a card session.

        Args:
            deck_id: Restrict to one deck (uses the deck study cap)
            cap: Override the configured cap
            now: Reference time

        Returns:
            Most urgent cards first, at most `cap`
        """
        if cap is None:
            cap = self.deck_session_cap if deck_id else self.quick_session_cap
        cards = self.store.list_cards(deck_id)
        return self.prioritizer.build_session(cards, cap, now)

    def start_card_session(
        self,
        context: SessionContext,
        deck_id: str | None = None,
        now: datetime | None = None,
    ) -> int:
        """Load a card pool into the context; returns the number of cards."""
        cards = self.session_cards(deck_id, now=now)
        context.start_cards(cards, now)
        logger.info(f"Card session started with {len(cards)} cards")
        return len(cards)

    def answer_card(
        self,
        context: SessionContext,
        correct: bool,
        now: datetime | None = None,
    ) -> CardState:
        """Answer the context's current card and persist its new schedule."""
        if context.cards is None:
            raise ValueError("No card session in progress")
        updated = context.cards.answer(
            correct,
            self.scheduler,
            context.difficulty_multiplier,
            now,
        )
        self.store.save_card(updated)
        return updated

    def complete_card_session(
        self,
        context: SessionContext,
        now: datetime | None = None,
    ) -> SessionAward:
        return self.complete_session(context.finish_cards(now))

    # =========================================================================
    # Focus Sessions
    # =========================================================================

    def complete_focus_session(
        self,
        context: SessionContext,
        correct_cards: int,
    ) -> SessionAward:
        """Answer the end-of-session prompt and credit the award."""
        return self.complete_session(context.finish_focus(correct_cards))

    # =========================================================================
    # Scoring
    # =========================================================================

    def complete_session(self, record: SessionRecord) -> SessionAward:
        """
        Record a completed session and credit its XP.

        Raises:
            XPNotRecordedError: The session was saved but its XP was not added
        """
        self.store.record_session(self.user_id, record)

        if record.xp_earned > 0:
            try:
                xp_total = self.store.add_xp(self.user_id, record.xp_earned)
            except XPNotRecordedError:
                logger.error(
                    f"XP not recorded for {self.user_id}: "
                    f"+{record.xp_earned} from {record.session_type.value} session"
                )
                raise
        else:
            xp_total = self.store.get_xp(self.user_id)

        new_tier = self.ledger.levelled_up(xp_total - record.xp_earned, xp_total)
        tier = self.ledger.get_tier_for_xp(xp_total)

        logger.info(
            f"{record.session_type.value} session complete: +{record.xp_earned} XP "
            f"(total {xp_total}, {tier.name})"
        )
        if new_tier is not None:
            logger.info(f"Level up: {new_tier.name} (level {new_tier.level})")

        return SessionAward(record=record, xp_total=xp_total, tier=tier, new_tier=new_tier)

    def progress(self) -> TierStatus:
        """Current tier for the user's stored XP."""
        return self.ledger.get_tier_for_xp(self.store.get_xp(self.user_id))
