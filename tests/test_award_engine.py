"""
tests/test_award_engine.py — Unit Tests for Award Arithmetic
=============================================================

Tests the pure per-action XP calculation (no I/O).
"""

from __future__ import annotations

import pytest

from mannxp.engine.award import (
    MAX_BASE_XP,
    MIN_BASE_XP,
    base_xp_for_action,
    compute_award,
    final_xp,
    social_multiplier,
)
from mannxp.engine.events import XpAction


class TestBaseXp:
    @pytest.mark.parametrize(
        "action", [XpAction.TRANSFER, XpAction.MARKETPLACE_PURCHASE]
    )
    def test_amount_scaled(self, action):
        # floor(999 * 0.5 + log10(1000) * 20) = floor(499.5 + 60)
        assert base_xp_for_action(action, 999) == 559
        assert base_xp_for_action(action, 100) == 90
        assert base_xp_for_action(action, 10) == 25

    def test_small_amounts_hit_the_floor(self):
        assert base_xp_for_action(XpAction.TRANSFER, 0) == MIN_BASE_XP
        assert base_xp_for_action(XpAction.TRANSFER, 1) == MIN_BASE_XP

    def test_large_amounts_hit_the_ceiling(self):
        assert base_xp_for_action(XpAction.MARKETPLACE_PURCHASE, 5000) == MAX_BASE_XP
        assert base_xp_for_action(XpAction.MARKETPLACE_PURCHASE, 10**9) == MAX_BASE_XP

    @pytest.mark.parametrize("amount", [-50, float("nan"), float("inf"), None, "999"])
    def test_invalid_amount_treated_as_zero(self, amount):
        assert base_xp_for_action(XpAction.TRANSFER, amount) == MIN_BASE_XP

    def test_fixed_actions_ignore_amount(self):
        assert base_xp_for_action(XpAction.GIFT_RECEIVED, 10_000) == 5
        assert base_xp_for_action(XpAction.OTHER, 10_000) == 3

    def test_string_actions(self):
        assert base_xp_for_action("marketplace-purchase", 999) == 559
        assert base_xp_for_action("gift-received", 0) == 5

    def test_unknown_action_is_other(self):
        assert base_xp_for_action("coin-flip", 999) == 3
        assert XpAction.coerce("coin-flip") is XpAction.OTHER


class TestSocialMultiplier:
    @pytest.mark.parametrize(
        "rank, expected",
        [(0, 1.0), (10, 1.5), (20, 2.0), (40, 2.0), (100, 2.0), (-5, 1.0)],
    )
    def test_bounds(self, rank, expected):
        assert social_multiplier(rank) == pytest.approx(expected)

    def test_always_within_range(self):
        for rank in range(-10, 150):
            assert 1.0 <= social_multiplier(rank) <= 2.0


class TestFinalXp:
    def test_floor(self):
        assert final_xp(559, 1.5) == 838

    def test_minimum_one(self):
        assert final_xp(0, 1.0) == 1

    def test_compute_award(self):
        assert compute_award(XpAction.MARKETPLACE_PURCHASE, 999) == 559
        assert compute_award(XpAction.MARKETPLACE_PURCHASE, 999, rank_level=3) == 642
        assert compute_award(XpAction.GIFT_RECEIVED, 0, rank_level=20) == 10
