"""Tests for per-vehicle mileage derivations."""

import pytest

from fleetkm.core.ledger import (
    has_warnings,
    parse_mileage,
    quarterly_distances,
    validity_flags,
    yearly_total,
)
from fleetkm.exceptions import InvalidInputError
from fleetkm.models.vehicle import Vehicle


def vehicle(initial, quarters):
    return Vehicle(
        id=1,
        internal_code="1",
        plate="AB123CD",
        initial_mileage=initial,
        quarter_end_mileage=tuple(quarters),
    )


class TestQuarterlyDistances:
    def test_gap_uses_nearest_earlier_reading(self):
        v = vehicle(1000, [1200, None, 1500, None])
        assert quarterly_distances(v) == [200, None, 300, None]
        assert yearly_total(v) == 500
        assert validity_flags(v) == [False] * 5

    def test_missing_first_quarter_uses_initial(self):
        v = vehicle(1000, [None, 1300, None, None])
        assert quarterly_distances(v) == [None, 300, None, None]

    def test_decrease_counts_zero(self):
        v = vehicle(5000, [4000, None, None, None])
        assert quarterly_distances(v) == [0, None, None, None]
        assert yearly_total(v) == 0

    def test_no_baseline_counts_zero(self):
        v = vehicle(None, [100, 250, None, None])
        assert quarterly_distances(v) == [0, 150, None, None]

    def test_full_year(self):
        v = vehicle(227000, [237500, 248000, 258100, 269000])
        assert quarterly_distances(v) == [10500, 10500, 10100, 10900]
        assert yearly_total(v) == 42000

    def test_empty_vehicle(self):
        v = vehicle(None, [None, None, None, None])
        assert quarterly_distances(v) == [None, None, None, None]
        assert yearly_total(v) == 0

    def test_total_matches_distances(self):
        v = vehicle(100, [90, None, 300, 250])
        assert yearly_total(v) == sum(d or 0 for d in quarterly_distances(v))


class TestValidityFlags:
    def test_lower_first_quarter_flags_both(self):
        v = vehicle(5000, [4000, None, None, None])
        assert validity_flags(v) == [True, True, False, False, False]
        assert has_warnings(v)

    def test_decrease_across_gap(self):
        v = vehicle(1000, [1200, None, 1100, None])
        assert validity_flags(v) == [False, True, False, True, False]

    def test_absent_never_flagged(self):
        v = vehicle(None, [500, None, None, 400])
        flags = validity_flags(v)
        assert flags[0] is False
        assert flags[2] is False
        assert flags[1] and flags[4]

    def test_equal_readings_ok(self):
        v = vehicle(1000, [1000, 1000, None, None])
        assert not has_warnings(v)


class TestParseMileage:
    def test_italian_thousands(self):
        assert parse_mileage("227.499") == 227499

    def test_spaces(self):
        assert parse_mileage(" 1 000 ") == 1000

    def test_plain(self):
        assert parse_mileage("42") == 42

    @pytest.mark.parametrize("text", ["", "  ", "-"])
    def test_blank_clears(self, text):
        assert parse_mileage(text) is None

    def test_negative(self):
        with pytest.raises(InvalidInputError, match="q2"):
            parse_mileage("-5", "q2")

    @pytest.mark.parametrize("text", ["abc", "1,5", "12km", "1.2.x"])
    def test_not_a_number(self, text):
        with pytest.raises(InvalidInputError):
            parse_mileage(text)
