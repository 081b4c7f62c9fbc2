"""
Session Prioritizer: orders cards for a bounded study session.

Ordering:
1. Overdue cards (next_review <= now) before cards not yet due
2. Overdue cards: most days overdue first
3. Cards not yet due: hardest first, so a short session can use them as filler

Remaining ties fall back to earlier next_review, higher difficulty and
finally card_id, which makes the order total and independent of input order.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from loguru import logger

from .models import CardState


class SessionPrioritizer:
    """Builds prioritized, capped card pools for study sessions."""

    def sort_key(self, card: CardState, now: datetime) -> tuple:
        """Sort key placing the most urgent card first."""
        if card.next_review <= now:
            return (
                0,
                -card.days_overdue(now),
                card.next_review,
                -card.difficulty,
                card.card_id,
            )
        return (
            1,
            -card.difficulty,
            card.next_review,
            0,
            card.card_id,
        )

    def prioritize(
        self,
        cards: Iterable[CardState],
        now: datetime | None = None,
    ) -> list[CardState]:
        """
        Order cards by urgency.

        Args:
            cards: Candidate cards (due and near-due)
            now: Reference time (defaults to the moment of the call)

        Returns:
            New list, most urgent first
        """
        now = now or datetime.now()
        return sorted(cards, key=lambda card: self.sort_key(card, now))

    def build_session(
        self,
        cards: Iterable[CardState],
        cap: int,
        now: datetime | None = None,
    ) -> list[CardState]:
        """
        Select the card pool for a bounded session.

        Args:
            cards: Candidate cards
            cap: Maximum cards in the session (e.g. 12 quick, 20 deck study)
            now: Reference time

        Returns:
            At most `cap` cards, most urgent first
        """
        ordered = self.prioritize(cards, now)
        selected = ordered[: max(0, cap)]

        logger.debug(f"Session built: {len(selected)}/{len(ordered)} cards (cap {cap})")
        return selected


def due_cards(cards: Iterable[CardState], now: datetime | None = None) -> list[CardState]:
    """Cards whose next review is at or before now."""
    now = now or datetime.now()
    return [card for card in cards if card.is_due(now)]


_default_prioritizer = SessionPrioritizer()


def prioritize(cards: Iterable[CardState], now: datetime | None = None) -> list[CardState]:
    """Order cards by urgency with the default prioritizer."""
    return _default_prioritizer.prioritize(cards, now)


def build_session(
    cards: Iterable[CardState],
    cap: int,
    now: datetime | None = None,
) -> list[CardState]:
    """Select a capped session pool with the default prioritizer."""
    return _default_prioritizer.build_session(cards, cap, now)
