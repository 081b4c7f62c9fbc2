"""
SM-2 Derived Review Scheduler.

Decides when a flashcard is next due and how its difficulty evolves:
- Correct answer: interval grows (1 -> 6 days, then x2.5), difficulty -0.1
- Incorrect answer: interval resets to 1 day, difficulty +0.5
- Intervals are capped at 180 days, difficulty stays within [1, 5]

A user-level difficulty preference scales only the growth of correct-answer
intervals. It never touches the reset on incorrect answers or the difficulty
value itself.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from datetime import datetime, timedelta

from loguru import logger

from .models import (
    MAX_DIFFICULTY,
    MAX_INTERVAL_DAYS,
    MIN_DIFFICULTY,
    MIN_INTERVAL_DAYS,
    CardState,
    ReviewOutcome,
    ReviewResult,
)

# Preference name -> interval multiplier
DIFFICULTY_MULTIPLIERS: dict[str, float] = {
    "easy": 1.5,  # longer gaps
    "medium": 1.0,
    "hard": 0.7,  # shorter gaps
}


def difficulty_multiplier_for(preference: str | None) -> float:
    """Map a card difficulty preference to its interval multiplier."""
    if not preference:
        return 1.0
    return DIFFICULTY_MULTIPLIERS.get(preference.lower(), 1.0)


def elapsed_interval_days(last_reviewed: datetime | None, now: datetime | None = None) -> int:
    """
    Whole days (rounded up) since the last review.

    For callers whose storage does not keep the scheduled interval.
    Never-reviewed cards and reviews less than a day old count as 1.
    """
    if last_reviewed is None:
        return MIN_INTERVAL_DAYS
    now = now or datetime.now()
    days = math.ceil((now - last_reviewed) / timedelta(days=1))
    return max(MIN_INTERVAL_DAYS, days)


# =============================================================================
# Scheduler
# =============================================================================


@dataclass
class SchedulerConfig:
    """Configuration for the review scheduler."""

    first_correct_interval: int = 6  # Days after the first correct review
    growth_factor: float = 2.5
    max_interval: int = MAX_INTERVAL_DAYS
    correct_difficulty_step: float = 0.1
    incorrect_difficulty_step: float = 0.5


class ReviewScheduler:
    """
    Computes review intervals and difficulty updates.

    Stateless: every call takes the card state as input and returns new
    values, so one instance can serve any number of sessions.
    """

    def __init__(self, config: SchedulerConfig | None = None):
        self.config = config or SchedulerConfig()

    def compute_next_review(
        self,
        outcome: ReviewOutcome,
        previous_interval_days: int = 1,
        difficulty_multiplier: float = 1.0,
        now: datetime | None = None,
    ) -> ReviewResult:
        """
        Calculate the next review date for one answer.

        Args:
            outcome: Whether the answer was correct, and the pre-review difficulty
            previous_interval_days: Interval that led to this review (>= 1)
            difficulty_multiplier: User preference scaling correct-answer growth
            now: Review time (defaults to the moment of the call)

        Returns:
            ReviewResult with interval, next review date and new difficulty
        """
        now = now or datetime.now()

        if outcome.correct:
            if previous_interval_days == 1:
                interval = self.config.first_correct_interval
            else:
                interval = math.ceil(previous_interval_days * self.config.growth_factor)
            interval = math.ceil(interval * difficulty_multiplier)
            new_difficulty = outcome.difficulty - self.config.correct_difficulty_step
        else:
            # Always back to one day, whatever the preference
            interval = MIN_INTERVAL_DAYS
            new_difficulty = outcome.difficulty + self.config.incorrect_difficulty_step

        interval = max(MIN_INTERVAL_DAYS, min(interval, self.config.max_interval))
        new_difficulty = max(MIN_DIFFICULTY, min(MAX_DIFFICULTY, round(new_difficulty, 2)))

        return ReviewResult(
            next_interval_days=interval,
            next_review_date=now + timedelta(days=interval),
            new_difficulty=new_difficulty,
        )

    def apply(
        self,
        card: CardState,
        correct: bool,
        difficulty_multiplier: float = 1.0,
        now: datetime | None = None,
    ) -> CardState:
        """
        Record an answer against a card.

        Returns:
            A new CardState; the input card is left untouched
        """
        now = now or datetime.now()
        result = self.compute_next_review(
            ReviewOutcome(correct=correct, difficulty=card.difficulty),
            previous_interval_days=card.interval_days,
            difficulty_multiplier=difficulty_multiplier,
            now=now,
        )

        logger.debug(
            f"Scheduled {card.card_id}: correct={correct}, "
            f"interval={card.interval_days}d -> {result.next_interval_days}d, "
            f"difficulty={card.difficulty} -> {result.new_difficulty}"
        )

        return replace(
            card,
            difficulty=result.new_difficulty,
            next_review=result.next_review_date,
            last_reviewed=now,
            interval_days=result.next_interval_days,
            correct_count=card.correct_count + (1 if correct else 0),
            incorrect_count=card.incorrect_count + (0 if correct else 1),
        )


_default_scheduler = ReviewScheduler()


def compute_next_review(
    outcome: ReviewOutcome,
    previous_interval_days: int = 1,
    difficulty_multiplier: float = 1.0,
    now: datetime | None = None,
) -> ReviewResult:
    """Compute the next review with the default scheduler configuration."""
    return _default_scheduler.compute_next_review(
        outcome, previous_interval_days, difficulty_multiplier, now
    )
