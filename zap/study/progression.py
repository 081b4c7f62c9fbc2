"""
Progression Ledger: XP -> animal tier.

Tiers are a static table ordered by level and minimum XP. A user's tier is
the highest one whose threshold they have reached. Since XP only ever grows
by non-negative awards, a tier can advance but never regress.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass


@dataclass(frozen=True)
class Tier:
    """A named progression level unlocked at a cumulative XP threshold."""

    level: int
    name: str
    min_xp: int


@dataclass(frozen=True)
class TierStatus:
    """Where a given XP total sits on the tier table."""

    level: int
    name: str
    min_xp: int
    next_min_xp: int | None
    progress: float  # 0..1 toward the next tier, 1.0 at the top
    xp_to_next: int

    @property
    def is_max_tier(self) -> bool:
        return self.next_min_xp is None


ANIMAL_TIERS: tuple[Tier, ...] = (
    Tier(1, "Beginner Rabbit", 0),
    Tier(2, "Clever Owl", 100),
    Tier(3, "Swift Cheetah", 300),
    Tier(4, "Strong Bear", 600),
    Tier(5, "Lightning Hare", 1000),
    Tier(6, "Wise Elephant", 1500),
    Tier(7, "Proud Eagle", 2100),
    Tier(8, "Cunning Fox", 2800),
    Tier(9, "Mighty Lion", 3600),
    Tier(10, "Legendary Dragon", 4500),
)


class ProgressionLedger:
    """Maps cumulative XP onto a tier table."""

    def __init__(self, tiers: Sequence[Tier] = ANIMAL_TIERS):
        """
        Args:
            tiers: Tier table, ascending by level and min_xp, first at 0 XP

        Raises:
            ValueError: If the table is empty or not strictly ascending
        """
        if not tiers:
            raise ValueError("Tier table is empty")
        if tiers[0].min_xp != 0:
            raise ValueError("Lowest tier must start at 0 XP")
        for lower, upper in zip(tiers, tiers[1:]):
            if upper.level <= lower.level or upper.min_xp <= lower.min_xp:
                raise ValueError(
                    f"Tiers must be strictly ascending: {lower.name} -> {upper.name}"
                )
        self.tiers: tuple[Tier, ...] = tuple(tiers)

    def _index_for_xp(self, xp: int) -> int:
        index = 0
        for i, tier in enumerate(self.tiers):
            if tier.min_xp <= xp:
                index = i
            else:
                break
        return index

    def tier_for_xp(self, xp: int) -> Tier:
        """Highest tier whose min_xp <= xp."""
        return self.tiers[self._index_for_xp(xp)]

    def get_tier_for_xp(self, xp: int) -> TierStatus:
        """
        Current tier, next threshold and progress for an XP total.

        Args:
            xp: Cumulative XP (>= 0)

        Returns:
            TierStatus; next_min_xp is None for the top tier
        """
        index = self._index_for_xp(xp)
        tier = self.tiers[index]

        if index + 1 < len(self.tiers):
            next_min_xp = self.tiers[index + 1].min_xp
            span = next_min_xp - tier.min_xp
            progress = min(1.0, max(0.0, (xp - tier.min_xp) / span))
            xp_to_next = max(0, next_min_xp - xp)
        else:
            next_min_xp = None
            progress = 1.0
            xp_to_next = 0

        return TierStatus(
            level=tier.level,
            name=tier.name,
            min_xp=tier.min_xp,
            next_min_xp=next_min_xp,
            progress=progress,
            xp_to_next=xp_to_next,
        )

    def unlocked_tiers(self, xp: int) -> list[Tier]:
        """All tiers reached at this XP total."""
        return [tier for tier in self.tiers if tier.min_xp <= xp]

    def levelled_up(self, old_xp: int, new_xp: int) -> Tier | None:
        """The new tier if an award crossed a threshold, else None."""
        old_tier = self.tier_for_xp(old_xp)
        new_tier = self.tier_for_xp(new_xp)
        if new_tier.level > old_tier.level:
            return new_tier
        return None


_default_ledger = ProgressionLedger()


def get_tier_for_xp(xp: int) -> TierStatus:
    """Tier status on the default animal table."""
    return _default_ledger.get_tier_for_xp(xp)
