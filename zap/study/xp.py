"""
XP Calculator.

Converts a completed session into an experience-point award:

    xp = focus_minutes * 2 + correct_cards * 5

An interrupted focus session loses 30% (floored). This is the only place
XP is computed; the result reaches the user's total through the store's
atomic add, never through a read-modify-write.
"""

from __future__ import annotations

XP_PER_FOCUS_MINUTE = 2
XP_PER_CORRECT_CARD = 5

# Interrupted sessions keep 7/10 of their award
INTERRUPTION_KEEP_NUMERATOR = 7
INTERRUPTION_KEEP_DENOMINATOR = 10


def calculate_xp(
    focus_minutes: int,
    correct_cards: int,
    focus_interrupted: bool = False,
) -> int:
    """
    Calculate XP for a session.

    Callers must pass non-negative integers; this is documented, not checked.

    Args:
        focus_minutes: Whole minutes of focus time
        correct_cards: Cards answered correctly
        focus_interrupted: Whether any interruption was detected

    Returns:
        XP award (>= 0)
    """
    xp = focus_minutes * XP_PER_FOCUS_MINUTE + correct_cards * XP_PER_CORRECT_CARD

    if focus_interrupted:
        xp = xp * INTERRUPTION_KEEP_NUMERATOR // INTERRUPTION_KEEP_DENOMINATOR

    return max(0, xp)


def focus_minutes_elapsed(duration_seconds: int, time_left_seconds: int) -> int:
    """Whole minutes completed of a countdown."""
    return max(0, duration_seconds - time_left_seconds) // 60
