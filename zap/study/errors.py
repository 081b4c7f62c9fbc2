"""
Exceptions raised at the storage boundary of a study session.

The scheduling and scoring functions never raise on well-formed input;
only persistence can fail.
"""

from __future__ import annotations


class StudyError(Exception):
    """Base class for study session failures."""

    pass


class StorageError(StudyError):
    """Raised when the state store cannot read or write."""

    pass


class CardNotFoundError(StorageError):
    """Raised when a card id is not present in the store."""

    def __init__(self, card_id: str):
        super().__init__(f"Card not found: {card_id}")
        self.card_id = card_id


class XPNotRecordedError(StudyError):
    """
    Raised when an XP award could not be added to the user's total.

    Distinct from a completed session that earned zero XP, so callers
    can retry or warn the user.
    """

    def __init__(self, user_id: str, xp_delta: int, reason: str = ""):
        message = f"XP not recorded for user {user_id} (+{xp_delta})"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.user_id = user_id
        self.xp_delta = xp_delta
