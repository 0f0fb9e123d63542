"""Shared fixtures: a small but complete catalog directory with scene-layer files."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List

import pytest

from core.shop.catalogs import load_catalog_dir
from core.shop.reference_data import parse_reference, validate_housing_items
from core.shop.scene_layer import InstanceObject, Transform, build_scene_layer

SIMPLE_ORE = 262145
SIMPLE_SMITHY = 262146
SIMPLE_ORPHAN = 262147
SIMPLE_NOBODY = 262148
SIMPLE_LEGACY = 100
EXCHANGE_TOMES = 1769473


def _obj(asset_type: int, base_id: int, x: float, y: float, z: float) -> InstanceObject:
    return InstanceObject(
        asset_type=asset_type,
        instance_id=base_id or 77,
        name="",
        transform=Transform((x, y, z), (0.0, 0.0, 0.0), (1.0, 1.0, 1.0)),
        base_id=base_id,
    )


def catalog_rows() -> Dict[str, List[Any]]:
    return {
        "items": [
            {"id": 1, "name": "Gil", "price": 0},
            {"id": 4001, "name": "Iron Ore", "price": 18},
            {"id": 4002, "name": "Iron Ingot", "price": 60},
            {"id": 4003, "name": "Cast Iron Pan", "price": 300},
            {"id": 4004, "name": "Maple Log", "price": 12},
            {"id": 4005, "name": "Orphan Gem", "price": 5},
            {"id": 4006, "name": "Bronze Nugget", "price": 7},
            {"id": 4007, "name": "Iron Rivets", "price": 9},
            {"id": 4008, "name": "Iron Filings", "price": 0},
            {"id": 4009, "name": "Allagan Tomestone", "price": 0},
            {"id": 5010, "name": "Snow White Dye", "price": 216},
            {"id": 5011, "name": "Soot Black Dye", "price": 216},
            {"id": 5594, "name": "Potting Soil", "price": 40},
            {"id": 5595, "name": "", "price": 1},
            "not a row",
        ],
        "simple_vendors": [
            {"id": SIMPLE_ORE, "name": "Ore Merchant"},
            {"id": SIMPLE_SMITHY, "name": "Smithy"},
            {"id": SIMPLE_ORPHAN, "name": "Orphan Shop"},
            {"id": SIMPLE_NOBODY, "name": ""},
            {"id": SIMPLE_LEGACY, "name": "Legacy Stall"},
        ],
        "simple_vendor_items": [
            {"shop_id": SIMPLE_ORE, "item_id": 4001},
            {"shop_id": SIMPLE_ORE, "item_id": 4002, "patch": 510},
            {"shop_id": SIMPLE_SMITHY, "item_id": 4002},
            {"shop_id": SIMPLE_SMITHY, "item_id": 4003, "state_required": 1234},
            {"shop_id": SIMPLE_ORPHAN, "item_id": 4005},
            {"shop_id": SIMPLE_NOBODY, "item_id": 4006},
            {"shop_id": SIMPLE_NOBODY, "item_id": 4007},
            {"shop_id": SIMPLE_LEGACY, "item_id": 4004},
            {"shop_id": 0, "item_id": 4001},
            {"shop_id": SIMPLE_ORE, "item_id": 0},
            {"shop_id": SIMPLE_ORE, "item_id": 4001},
            {"shop_id": SIMPLE_ORE, "item_id": 9999},
            {"shop_id": "bad", "item_id": 4001},
        ],
        "exchange_vendors": [
            {
                "id": EXCHANGE_TOMES,
                "name": "Tomestone Exchange",
                "entries": [
                    {
                        "ItemReceive": [{"Item": 4008, "Count": 1}],
                        "ItemCost": [{"Item": 4009, "Count": 25}, {"Item": 0, "Count": 0}],
                    },
                    {"ItemReceive": [4001], "ItemCost": []},
                ],
            }
        ],
        "npcs": [
            {"id": 1001, "name": "Ore Merchant Ann", "slots": [SIMPLE_ORE, SIMPLE_ORE, 0, EXCHANGE_TOMES]},
            {"id": 1002, "name": "Smith Bob", "slots": [SIMPLE_SMITHY, SIMPLE_ORE]},
            {"id": 1003, "name": "Lost Lenny", "slots": [SIMPLE_ORPHAN]},
            {"id": 1004, "name": "Lost Larry", "slots": [SIMPLE_ORPHAN, SIMPLE_ORE]},
            {"id": 1005, "name": "Legacy Lou", "slots": [0x10000 + SIMPLE_LEGACY]},
            {"id": 1006, "name": "", "slots": [SIMPLE_ORE]},
            {"id": 1009, "name": "Ghost Gary", "slots": [SIMPLE_SMITHY]},
            {"id": 1005422, "name": "Merchant & Mender", "slots": [SIMPLE_SMITHY]},
        ],
        "placements": [
            {"object_id": 1001, "type": 8, "territory_id": 128, "map_id": 10, "x": 0.0, "y": 0.0, "z": 0.0},
            {"object_id": 1005, "type": 8, "territory_id": 130, "map_id": 12, "x": 100.0, "y": 5.0, "z": -100.0},
            {"object_id": 1009, "type": 8, "territory_id": 132, "map_id": 15, "x": 0.0, "y": 0.0, "z": 0.0},
            {"object_id": 1008, "type": 8, "territory_id": 999, "map_id": 10, "x": 0.0, "y": 0.0, "z": 0.0},
            {"object_id": 1002, "type": 5, "territory_id": 129, "map_id": 11, "x": 0.0, "y": 0.0, "z": 0.0},
        ],
        "territories": [
            {"id": 128, "name": "Limsa Lominsa Upper Decks", "bg": "ffxiv/sea_s1/twn/s1t1/level/s1t1"},
            {"id": 129, "name": "Limsa Lominsa Lower Decks", "bg": "ffxiv/sea_s1/twn/s1t2/level/s1t2"},
            {"id": 130, "name": "Ul'dah - Steps of Nald", "bg": "ffxiv/wil_w1/twn/w1t1/level/w1t1"},
            {"id": 131, "name": "Ul'dah - Steps of Nald", "bg": ""},
            {"id": 132, "name": "Unknown", "bg": ""},
            {"id": 339, "name": "Mist", "bg": "ffxiv/sea_s1/hou/s1h1/level/s1h1"},
        ],
        "maps": [
            {"id": 10, "territory_id": 128, "size_factor": 200, "sub_area_name": ""},
            {"id": 11, "territory_id": 129, "size_factor": 200, "sub_area_name": ""},
            {"id": 12, "territory_id": 130, "size_factor": 200, "sub_area_name": ""},
            {"id": 13, "territory_id": 130, "size_factor": 200, "sub_area_name": "Market"},
            {"id": 14, "territory_id": 131, "size_factor": 100, "sub_area_name": ""},
            {"id": 15, "territory_id": 132, "size_factor": 100, "sub_area_name": ""},
            {"id": 71, "territory_id": 339, "size_factor": 400, "sub_area_name": "Subdivision"},
            {"id": 72, "territory_id": 339, "size_factor": 400, "sub_area_name": ""},
        ],
        "variants": [
            {"id": 1, "name": "Snow White", "item_id": 0},
            {"id": 2, "name": "Soot Black", "item_id": 5011},
            {"id": 300, "name": "Out Of Range", "item_id": 5010},
        ],
    }


def reference_doc() -> Dict[str, Any]:
    return {
        "version": 7,
        "manual_npc_locations": [
            {"npc_id": 1005422, "territory_id": 129, "area_name": "Limsa Lominsa Lower Decks", "x": 3.3, "y": 12.9},
            {"npc_id": 1003, "territory_id": 4242, "area_name": "Nowhere", "x": 1.0, "y": 1.0},
        ],
        "housing_territories": [{"id": 339, "name": "Mist"}, {"id": 979, "name": "Empyreum"}],
        "housing_npc_items": {
            "MaterialSupplier": [5594, 5595, 3, 5594, 0, 77777],
            "Junkmonger": [4004],
        },
        "default_area_priority": [129, 128],
    }


def write_catalog_dir(base: Path, rows: Dict[str, List[Any]]) -> Path:
    base.mkdir(parents=True, exist_ok=True)
    for name, data in rows.items():
        # exercise both accepted file shapes
        doc: Any = {"rows": data} if name in ("npcs", "maps") else data
        (base / f"{name}.json").write_text(json.dumps(doc), encoding="utf-8")

    lower = base / "bg" / "ffxiv" / "sea_s1" / "twn" / "s1t2" / "level"
    lower.mkdir(parents=True, exist_ok=True)
    (lower / "planevent.lgb").write_bytes(
        build_scene_layer(
            [
                (
                    1,
                    "npcs",
                    [
                        _obj(8, 1002, 10.0, 1.0, 20.0),
                        _obj(8, 1001, -500.0, 0.0, -500.0),
                        _obj(1, 0, 3.0, 3.0, 3.0),
                        _obj(8, 0, 3.0, 3.0, 3.0),
                    ],
                )
            ]
        )
    )
    upper = base / "bg" / "ffxiv" / "sea_s1" / "twn" / "s1t1" / "level"
    upper.mkdir(parents=True, exist_ok=True)
    (upper / "bg.lgb").write_bytes(b"garbage")
    return base


@pytest.fixture
def catalog_dir(tmp_path) -> Path:
    return write_catalog_dir(tmp_path / "catalogs", catalog_rows())


@pytest.fixture
def catalog(catalog_dir):
    snap = load_catalog_dir(catalog_dir)
    yield snap
    if snap.scene_source is not None:
        snap.scene_source.close()


@pytest.fixture
def raw_reference():
    return parse_reference(reference_doc(), source="test")


@pytest.fixture
def reference(raw_reference, catalog):
    return validate_housing_items(raw_reference, catalog.items)
