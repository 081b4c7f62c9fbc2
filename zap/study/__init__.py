"""
Study engine for spaced repetition and session scoring.

Provides:
- Review scheduling (SM-2 derived intervals and difficulty)
- Session prioritization (overdue first, then hardest)
- XP calculation with the interruption penalty
- Animal tier progression
- Focus integrity monitoring
"""

from zap.study.focus_monitor import (
    FocusEvent,
    FocusEventType,
    FocusIntegrityMonitor,
    SignalBus,
    SignalSource,
)
from zap.study.models import CardState, ReviewOutcome, ReviewResult, SessionRecord, SessionType
from zap.study.prioritizer import SessionPrioritizer, build_session, prioritize
from zap.study.progression import ANIMAL_TIERS, ProgressionLedger, Tier, TierStatus, get_tier_for_xp
from zap.study.scheduler import ReviewScheduler, compute_next_review, difficulty_multiplier_for
from zap.study.session import CardReviewSession, FocusSession, SessionContext, StudyPreferences
from zap.study.xp import calculate_xp

__all__ = [
    # Scheduling
    "ReviewScheduler",
    "compute_next_review",
    "difficulty_multiplier_for",
    "CardState",
    "ReviewOutcome",
    "ReviewResult",
    # Prioritization
    "SessionPrioritizer",
    "prioritize",
    "build_session",
    # Scoring
    "calculate_xp",
    "SessionRecord",
    "SessionType",
    # Progression
    "ANIMAL_TIERS",
    "ProgressionLedger",
    "Tier",
    "TierStatus",
    "get_tier_for_xp",
    # Focus
    "FocusEvent",
    "FocusEventType",
    "FocusIntegrityMonitor",
    "SignalBus",
    "SignalSource",
    # Sessions
    "CardReviewSession",
    "FocusSession",
    "SessionContext",
    "StudyPreferences",
]
