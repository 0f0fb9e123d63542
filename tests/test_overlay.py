"""Tests for the custom shop overlay."""

import pytest

from core.shop.models import CustomShopEntry, HousingNpcType
from core.shop.overlay import CUSTOM_CONDITION, CustomShopOverlay, build_overlay_map

SUPPLIER = (HousingNpcType.MATERIAL_SUPPLIER,)


def _entry(**kw):
    base = dict(id="e1", name="Ward Supplier", territory_id=339, map_id=5, x=10.0, y=11.0, npc_types=SUPPLIER)
    base.update(kw)
    return CustomShopEntry(**base)


class TestBuildOverlayMap:
    def test_housing_items_become_custom_locations(self, catalog, reference):
        m = build_overlay_map([_entry()], catalog, reference)
        assert set(m) == {5594}
        (loc,) = m[5594]
        assert loc.is_custom
        assert loc.vendor_id == 0
        assert loc.vendor_name == "Material Supplier"
        assert (loc.npc_name, loc.territory_id, loc.area_name) == ("Ward Supplier", 339, "Mist")
        assert (loc.map_x, loc.map_y, loc.price) == (10.0, 11.0, 40)
        assert loc.condition_note == CUSTOM_CONDITION

    def test_main_map_preferred_over_entry_map(self, catalog, reference):
        (loc,) = build_overlay_map([_entry()], catalog, reference)[5594]
        assert loc.map_id == 72

    def test_territory_outside_catalog_uses_housing_name(self, catalog, reference):
        (loc,) = build_overlay_map([_entry(territory_id=979)], catalog, reference)[5594]
        assert loc.area_name == "Empyreum"
        assert loc.map_id == 5

    def test_disabled_entry_contributes_nothing(self, catalog, reference):
        assert build_overlay_map([_entry(enabled=False)], catalog, reference) == {}

    def test_same_npc_and_territory_deduplicated(self, catalog, reference):
        m = build_overlay_map([_entry(), _entry(id="e2", x=1.0)], catalog, reference)
        assert len(m[5594]) == 1

    def test_several_types(self, catalog, reference):
        both = (HousingNpcType.MATERIAL_SUPPLIER, HousingNpcType.JUNKMONGER)
        m = build_overlay_map([_entry(npc_types=both)], catalog, reference)
        assert set(m) == {5594, 4004}
        assert m[4004][0].vendor_name == "Junkmonger"


class TestCustomShopOverlay:
    def test_refresh_swaps_whole_map(self, catalog, reference):
        ov = CustomShopOverlay()
        assert ov.refresh([_entry()], catalog, reference) == 1
        assert ov.has_item(5594)

        assert ov.refresh([_entry(enabled=False)], catalog, reference) == 0
        assert not ov.has_item(5594)
        assert ov.get(5594) == ()
        assert ov.item_ids() == set()


class TestEntryParsing:
    def test_from_dict(self):
        e = CustomShopEntry.from_dict(
            {"id": "x", "name": "N", "territory_id": "341", "npc_types": ["MaterialSupplier", "junkmonger"]}
        )
        assert e.territory_id == 341
        assert e.enabled
        assert e.npc_types == (HousingNpcType.MATERIAL_SUPPLIER, HousingNpcType.JUNKMONGER)

    def test_unknown_type_rejected(self):
        with pytest.raises(ValueError):
            CustomShopEntry.from_dict({"id": "x", "name": "N", "territory_id": 1, "npc_types": ["Armorer"]})

    def test_type_labels(self):
        assert HousingNpcType.parse("Material Supplier").label == "Material Supplier"
        assert HousingNpcType.parse("junkmonger").label == "Junkmonger"
