"""Tests for the versioned reference tables."""

import json

import pytest

from conftest import reference_doc
from core.shop.models import HousingNpcType
from core.shop.reference_data import (
    ReferenceDataError,
    load_reference_data,
    parse_reference,
    validate_housing_items,
)


class TestEmbedded:
    def test_embedded_copy(self):
        ref = load_reference_data()
        assert ref.source == "embedded"
        assert ref.version == 1
        assert ref.manual_npc_locations[1005422].territory_id == 129
        assert set(ref.housing_territories) == {339, 340, 341, 641, 979}
        assert ref.default_area_priority == (128, 129, 130, 131, 132, 133)
        assert ref.items_for(HousingNpcType.MATERIAL_SUPPLIER)
        assert ref.items_for(HousingNpcType.JUNKMONGER)
        assert not ref.validated


class TestOverride:
    def test_override_used_when_it_has_items(self, tmp_path):
        p = tmp_path / "ref.json"
        p.write_text(json.dumps(reference_doc()), encoding="utf-8")
        ref = load_reference_data(p)
        assert ref.source == "config"
        assert ref.version == 7

    def test_override_without_items_falls_back(self, tmp_path):
        doc = reference_doc()
        doc["housing_npc_items"] = {}
        p = tmp_path / "ref.json"
        p.write_text(json.dumps(doc), encoding="utf-8")
        assert load_reference_data(p).source == "embedded"

    def test_unreadable_override_falls_back(self, tmp_path):
        p = tmp_path / "ref.json"
        p.write_text("{not json", encoding="utf-8")
        assert load_reference_data(p).source == "embedded"

    def test_missing_override_falls_back(self, tmp_path):
        assert load_reference_data(tmp_path / "absent.json").source == "embedded"

    def test_non_list_item_ids_fall_back(self, tmp_path):
        doc = reference_doc()
        doc["housing_npc_items"] = {"MaterialSupplier": 5594}
        p = tmp_path / "ref.json"
        p.write_text(json.dumps(doc), encoding="utf-8")
        assert load_reference_data(p).source == "embedded"


class TestParse:
    def test_not_an_object(self):
        with pytest.raises(ReferenceDataError):
            parse_reference([], source="x")

    @pytest.mark.parametrize("field", ["manual_npc_locations", "housing_territories", "default_area_priority"])
    def test_non_list_field(self, field):
        doc = reference_doc()
        doc[field] = 7
        with pytest.raises(ReferenceDataError):
            parse_reference(doc, source="x")

    def test_bad_rows_skipped(self):
        doc = reference_doc()
        doc["manual_npc_locations"].append({"territory_id": 1})
        doc["housing_territories"].append({"name": "no id"})
        ref = parse_reference(doc, source="x")
        assert set(ref.manual_npc_locations) == {1005422, 1003}
        assert set(ref.housing_territories) == {339, 979}

    def test_unknown_npc_type(self):
        doc = reference_doc()
        doc["housing_npc_items"]["Armorer"] = [1, 2]
        ref = parse_reference(doc, source="x")
        assert ref.excluded == {"UnknownNpcType": (1, 2)}


class TestValidateHousingItems:
    def test_exclusion_reasons(self, raw_reference, catalog):
        ref = validate_housing_items(raw_reference, catalog.items)
        assert ref.validated
        assert ref.items_for(HousingNpcType.MATERIAL_SUPPLIER) == (5594,)
        assert ref.items_for(HousingNpcType.JUNKMONGER) == (4004,)
        assert ref.excluded == {
            "MissingName": (5595,),
            "Forced Exclusion": (3,),
            "Duplicate": (5594,),
            "InvalidId": (0,),
            "MissingItem": (77777,),
        }
        assert ref.total_excluded == 5

    def test_diagnostics_summary(self, reference):
        diag = reference.diagnostics()
        assert diag["valid_counts"] == {"material_supplier": 1, "junkmonger": 1}
        assert diag["total_excluded"] == 5
        assert diag["source"] == "test"
