"""
Tests for direction alignment.
"""

import pytest

from impact_guard.engine.alignment import expected_upward, is_aligned

UP = (1000, 1100)
DOWN = (1000, 900)


class TestExpectedDirection:

    @pytest.mark.parametrize("sells_base,inverted,expected", [
        (True, False, False),
        (False, False, True),
        (True, True, True),
        (False, True, False),
    ])
    def test_truth_table(self, sells_base, inverted, expected):
        assert expected_upward(sells_base, inverted) is expected


class TestIsAligned:

    def test_base_sale_explained_by_falling_reference(self):
        assert is_aligned(*DOWN, sells_base=True, reference_inverted=False) is True

    def test_base_sale_not_explained_by_rising_reference(self):
        assert is_aligned(*UP, sells_base=True, reference_inverted=False) is False

    def test_quote_sale_explained_by_rising_reference(self):
        assert is_aligned(*UP, sells_base=False, reference_inverted=False) is True

    def test_inverted_reference_flips_direction(self):
        assert is_aligned(*UP, sells_base=True, reference_inverted=True) is True
        assert is_aligned(*DOWN, sells_base=True, reference_inverted=True) is False

    @pytest.mark.parametrize("sells_base", [True, False])
    @pytest.mark.parametrize("inverted", [True, False])
    def test_no_movement_never_aligns(self, sells_base, inverted):
        assert is_aligned(1000, 1000, sells_base, inverted) is False

    @pytest.mark.parametrize("sells_base", [True, False])
    def test_missing_baseline_never_aligns(self, sells_base):
        assert is_aligned(0, 1000, sells_base, False) is False
