"""Tests for exchange-vendor entry readers."""

from core.shop.catalogs import ExchangeVendorRow
from core.shop.exchange_schema import SCHEMAS, CostRef, format_cost_note, select_exchange_schema


def _vendor(*entries):
    return ExchangeVendorRow(id=1, name="x", entries=tuple(entries))


class TestSelectSchema:
    def test_pinned_revision_wins(self):
        v = _vendor({"ItemReceive": [1]})
        assert select_exchange_schema([v], pinned=2).revision == 2

    def test_unknown_pin_falls_back_to_probe(self):
        v = _vendor({"OutputItem": [{"Item": 1, "Amount": 1}]})
        assert select_exchange_schema([v], pinned=9).revision == 3

    def test_probe_first_matching_entry(self):
        v = _vendor({"note": "empty"}, {"CostItems": [{"ItemId": 4, "Quantity": 2}]})
        assert select_exchange_schema([v]).revision == 2

    def test_default_when_nothing_matches(self):
        assert select_exchange_schema([]).revision == 1
        assert select_exchange_schema([_vendor({"foo": 1})]).revision == 1


class TestEntryReaders:
    def test_receive_items_mixed_references(self):
        entry = {"ItemReceive": [4008, {"Item": 4001, "Count": 3}, {"Item": 0}, -1, True]}
        assert SCHEMAS[1].receive_items(entry) == [4008, 4001]

    def test_single_reference_not_in_list(self):
        assert SCHEMAS[0].receive_items({"Receive": 55}) == [55]

    def test_cost_items_drop_zero_counts(self):
        entry = {"CostItems": [{"ItemId": 9, "Quantity": 25}, {"ItemId": 10, "Quantity": 0}, 11]}
        assert SCHEMAS[2].cost_items(entry) == [CostRef(9, 25), CostRef(11, 1)]

    def test_missing_field(self):
        assert SCHEMAS[1].cost_items({"ItemReceive": [1]}) == []

    def test_bad_reference_values_skipped(self):
        assert SCHEMAS[1].receive_items({"ItemReceive": [{"Item": "abc"}, {"Item": 7}]}) == [7]


class TestCostNote:
    def test_named_costs(self):
        note = format_cost_note([CostRef(9, 25), CostRef(77, 2)], {9: "Allagan Tomestone"})
        assert note == "Allagan Tomestone x25, Item #77 x2"

    def test_no_costs(self):
        assert format_cost_note([], {}) == "No condition"
