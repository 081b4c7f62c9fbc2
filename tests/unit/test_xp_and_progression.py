"""
Unit tests for XP awards and animal tier progression.
"""

import pytest

from zap.study.progression import ANIMAL_TIERS, ProgressionLedger, Tier, get_tier_for_xp
from zap.study.xp import calculate_xp, focus_minutes_elapsed


class TestCalculateXP:
    def test_focus_and_cards(self):
        assert calculate_xp(25, 10, False) == 100

    def test_interruption_penalty(self):
        assert calculate_xp(25, 10, True) == 70

    def test_nothing_earns_nothing(self):
        assert calculate_xp(0, 0, False) == 0
        assert calculate_xp(0, 0, True) == 0

    def test_penalty_floors(self):
        # (50 + 20) * 0.7 = 49
        assert calculate_xp(25, 4, True) == 49
        # 7 * 0.7 = 4.9 -> 4
        assert calculate_xp(1, 1, True) == 4

    def test_cards_only(self):
        assert calculate_xp(0, 3) == 15

    @pytest.mark.parametrize("minutes", range(0, 130, 7))
    @pytest.mark.parametrize("cards", [0, 1, 4, 13])
    def test_penalty_never_exceeds_unpenalized(self, minutes, cards):
        assert 0 <= calculate_xp(minutes, cards, True) <= calculate_xp(minutes, cards, False)


class TestFocusMinutes:
    def test_full_countdown(self):
        assert focus_minutes_elapsed(25 * 60, 0) == 25

    def test_partial_minutes_floor(self):
        assert focus_minutes_elapsed(25 * 60, 25 * 60 - 119) == 1

    def test_untouched_countdown(self):
        assert focus_minutes_elapsed(600, 600) == 0


class TestTierLookup:
    def test_zero_xp_is_lowest_tier(self):
        status = get_tier_for_xp(0)

        assert status.level == 1
        assert status.min_xp == 0
        assert status.next_min_xp == 100
        assert status.progress == 0.0

    @pytest.mark.parametrize("tier", ANIMAL_TIERS)
    def test_threshold_is_inclusive(self, tier):
        assert get_tier_for_xp(tier.min_xp).level == tier.level

    def test_one_below_threshold_stays_in_lower_tier(self):
        assert get_tier_for_xp(299).level == 2

    def test_progress_toward_next_tier(self):
        status = get_tier_for_xp(450)

        assert status.name == "Swift Cheetah"
        assert status.next_min_xp == 600
        assert status.progress == pytest.approx(0.5)
        assert status.xp_to_next == 150

    def test_top_tier_has_no_next(self):
        status = get_tier_for_xp(10_000)

        assert status.level == 10
        assert status.next_min_xp is None
        assert status.progress == 1.0
        assert status.xp_to_next == 0
        assert status.is_max_tier

    def test_tier_never_regresses_as_xp_grows(self):
        ledger = ProgressionLedger()
        levels = [ledger.tier_for_xp(xp).level for xp in range(0, 5000, 25)]
        assert levels == sorted(levels)


class TestLedger:
    def test_unlocked_tiers(self):
        unlocked = ProgressionLedger().unlocked_tiers(650)
        assert [tier.level for tier in unlocked] == [1, 2, 3, 4]

    def test_levelled_up_detects_crossing(self):
        ledger = ProgressionLedger()

        assert ledger.levelled_up(80, 120).name == "Clever Owl"
        assert ledger.levelled_up(120, 200) is None

    def test_custom_table(self):
        ledger = ProgressionLedger([Tier(1, "Egg", 0), Tier(2, "Chick", 10)])
        assert ledger.get_tier_for_xp(15).name == "Chick"

    @pytest.mark.parametrize(
        "tiers",
        [
            [],
            [Tier(1, "Late", 5)],
            [Tier(1, "A", 0), Tier(2, "B", 100), Tier(3, "C", 100)],
            [Tier(1, "A", 0), Tier(1, "B", 100)],
        ],
    )
    def test_invalid_tables_rejected(self, tiers):
        with pytest.raises(ValueError):
            ProgressionLedger(tiers)
