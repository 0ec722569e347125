"""Tests for fleet-wide aggregates."""

from fleetkm.core.aggregate import (
    FleetCounts,
    SortKey,
    counts,
    grand_total,
    quarterly_totals,
    sorted_vehicles,
)
from fleetkm.core.ledger import yearly_total
from fleetkm.models.vehicle import Vehicle


class TestTotals:
    def test_quarterly_totals(self, fleet):
        assert quarterly_totals(fleet) == [20500, 10500, 6000, 3000]

    def test_grand_total(self, fleet):
        assert grand_total(fleet) == 40000
        assert grand_total(fleet) == sum(quarterly_totals(fleet))
        assert grand_total(fleet) == sum(yearly_total(v) for v in fleet)

    def test_sold_vehicles_still_counted(self, fleet):
        sold = [v for v in fleet if v.is_sold]
        assert grand_total(sold) == 5000

    def test_empty(self):
        assert quarterly_totals([]) == [0, 0, 0, 0]
        assert grand_total([]) == 0


class TestCounts:
    def test_buckets(self, fleet):
        result = counts(fleet)
        assert result == FleetCounts(active=1, sold=1, with_notes=1)
        assert result.total == len(fleet)

    def test_sold_with_notes_counts_as_sold(self, truck):
        sold = truck.model_copy(update={"is_sold": True, "notes": "sold to dealer"})
        assert counts([sold]) == FleetCounts(active=0, sold=1, with_notes=0)

    def test_empty(self):
        assert counts([]).total == 0


class TestSorting:
    def test_by_code_numeric_aware(self, fleet):
        ordered = sorted_vehicles(fleet, key=SortKey.CODE)
        assert ordered[0].internal_code == "9"
        assert [v.internal_code for v in ordered[1:]] == ["12", "12"]

    def test_by_code_descending(self, fleet):
        ordered = sorted_vehicles(fleet, key=SortKey.CODE, descending=True)
        assert ordered[-1].internal_code == "9"

    def test_by_plate(self, fleet):
        ordered = sorted_vehicles(fleet, key=SortKey.PLATE)
        assert [v.id for v in ordered] == [3, 2, 1]

    def test_mixed_codes(self):
        vehicles = [
            Vehicle(id=i, internal_code=code, plate=f"AB{i}")
            for i, code in enumerate(["A10", "a9", "B1"])
        ]
        ordered = sorted_vehicles(vehicles)
        assert [v.internal_code for v in ordered] == ["a9", "A10", "B1"]

    def test_input_not_modified(self, fleet):
        ids = [v.id for v in fleet]
        sorted_vehicles(fleet, key=SortKey.PLATE)
        assert [v.id for v in fleet] == ids
