# -*- coding: utf-8 -*-
"""Catalog snapshot loader.

The host data layer exports each game sheet as one JSON file in a catalog
directory. A file is either a bare list of row objects or ``{"rows": [...]}``.

Required files
- items.json                {id, name, price}
- simple_vendors.json       {id, name}
- simple_vendor_items.json  {shop_id, item_id, state_required, patch}
- exchange_vendors.json     {id, name, entries: [...]}
- npcs.json                 {id, name, slots: [...]}
- placements.json           {object_id, type, territory_id, map_id, x, y, z}
- territories.json          {id, name, bg}
- maps.json                 {id, territory_id, offset_x, offset_y, size_factor, sub_area_name}

Optional files
- variants.json             {id, name, item_id}
- manifest.json             {exchange_schema: int, ...}

Notes
- Rows that fail to parse are skipped and counted in `skipped_rows`.
- A missing required file aborts the load (`MissingCatalogError`).
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from core.shop.errors import MissingCatalogError, ShopDataError
from core.shop.game_data import GameDataSource, open_game_data
from core.shop.models import Item, Npc, Vendor, VendorKind

logger = logging.getLogger(__name__)

NPC_PLACEMENT_TYPE = 8

REQUIRED_FILES = (
    "items",
    "simple_vendors",
    "simple_vendor_items",
    "exchange_vendors",
    "npcs",
    "placements",
    "territories",
    "maps",
)


@dataclass(frozen=True)
class SimpleVendorItemRow:
    shop_id: int
    item_id: int
    state_required: int = 0
    patch: int = 0


@dataclass(frozen=True)
class ExchangeVendorRow:
    id: int
    name: str
    entries: Tuple[Dict[str, Any], ...] = ()


@dataclass(frozen=True)
class PlacementRow:
    object_id: int
    type: int
    territory_id: int
    map_id: int
    x: float
    y: float
    z: float


@dataclass(frozen=True)
class TerritoryRow:
    id: int
    name: str
    bg: str = ""


@dataclass(frozen=True)
class MapRow:
    id: int
    territory_id: int
    offset_x: int = 0
    offset_y: int = 0
    size_factor: int = 100
    sub_area_name: str = ""


@dataclass(frozen=True)
class VariantRow:
    id: int
    name: str
    item_id: int = 0


@dataclass
class CatalogSnapshot:
    """Immutable-by-convention view of every sheet one build consumes."""

    items: Dict[int, Item]
    simple_vendors: Dict[int, Vendor]
    simple_vendor_items: List[SimpleVendorItemRow]
    exchange_vendors: Dict[int, ExchangeVendorRow]
    npcs: List[Npc]
    placements: List[PlacementRow]
    territories: Dict[int, TerritoryRow]
    maps: List[MapRow]
    variants: List[VariantRow] = field(default_factory=list)
    manifest: Dict[str, Any] = field(default_factory=dict)
    scene_source: Optional[GameDataSource] = None
    skipped_rows: Dict[str, int] = field(default_factory=dict)

    # --------------------------------------------------------
    # derived lookups
    # --------------------------------------------------------

    def maps_by_id(self) -> Dict[int, MapRow]:
        return {m.id: m for m in self.maps}

    def first_map_for(self, territory_id: int) -> Optional[MapRow]:
        for m in self.maps:
            if m.territory_id == territory_id:
                return m
        return None

    def main_map_for(self, territory_id: int) -> Optional[MapRow]:
        """Map row of the territory with an empty sub-area (the overview map)."""
        for m in self.maps:
            if m.territory_id == territory_id and not (m.sub_area_name or "").strip():
                return m
        return None

    def item_name(self, item_id: int) -> str:
        it = self.items.get(item_id)
        return it.name if it else ""

    def territory_name(self, territory_id: int) -> str:
        t = self.territories.get(territory_id)
        return t.name if t else ""

    def vendor_names(self) -> Dict[int, str]:
        out: Dict[int, str] = {vid: v.name for vid, v in self.simple_vendors.items()}
        for vid, v in self.exchange_vendors.items():
            out.setdefault(vid, v.name)
        return out

    def exchange_schema_pin(self) -> Optional[int]:
        raw = self.manifest.get("exchange_schema")
        if raw is None:
            return None
        try:
            return int(raw)
        except (TypeError, ValueError):
            return None


# --------------------------------------------------------
# row parsing
# --------------------------------------------------------


def _int(row: Mapping[str, Any], key: str, default: int = 0) -> int:
    val = row.get(key, default)
    if val is None or val == "":
        return default
    if isinstance(val, bool):
        raise ValueError(f"{key}: bool is not an id")
    return int(val)


def _float(row: Mapping[str, Any], key: str, default: float = 0.0) -> float:
    val = row.get(key, default)
    if val is None or val == "":
        return default
    return float(val)


def _str(row: Mapping[str, Any], key: str) -> str:
    val = row.get(key)
    return "" if val is None else str(val)


def _parse_item(row: Mapping[str, Any]) -> Item:
    return Item(id=_int(row, "id"), name=_str(row, "name"), price=_int(row, "price"))


def _parse_simple_vendor(row: Mapping[str, Any]) -> Vendor:
    return Vendor(id=_int(row, "id"), name=_str(row, "name"), kind=VendorKind.SIMPLE)


def _parse_simple_vendor_item(row: Mapping[str, Any]) -> SimpleVendorItemRow:
    return SimpleVendorItemRow(
        shop_id=_int(row, "shop_id"),
        item_id=_int(row, "item_id"),
        state_required=_int(row, "state_required"),
        patch=_int(row, "patch"),
    )


def _parse_exchange_vendor(row: Mapping[str, Any]) -> ExchangeVendorRow:
    entries = row.get("entries") or []
    if not isinstance(entries, list):
        raise ValueError("entries must be a list")
    return ExchangeVendorRow(
        id=_int(row, "id"),
        name=_str(row, "name"),
        entries=tuple(e for e in entries if isinstance(e, dict)),
    )


def _parse_npc(row: Mapping[str, Any]) -> Npc:
    slots = row.get("slots") or []
    if not isinstance(slots, list):
        raise ValueError("slots must be a list")
    return Npc(id=_int(row, "id"), name=_str(row, "name"), slots=tuple(int(s or 0) for s in slots))


def _parse_placement(row: Mapping[str, Any]) -> PlacementRow:
    return PlacementRow(
        object_id=_int(row, "object_id"),
        type=_int(row, "type"),
        territory_id=_int(row, "territory_id"),
        map_id=_int(row, "map_id"),
        x=_float(row, "x"),
        y=_float(row, "y"),
        z=_float(row, "z"),
    )


def _parse_territory(row: Mapping[str, Any]) -> TerritoryRow:
    return TerritoryRow(id=_int(row, "id"), name=_str(row, "name"), bg=_str(row, "bg"))


def _parse_map(row: Mapping[str, Any]) -> MapRow:
    return MapRow(
        id=_int(row, "id"),
        territory_id=_int(row, "territory_id"),
        offset_x=_int(row, "offset_x"),
        offset_y=_int(row, "offset_y"),
        size_factor=_int(row, "size_factor", 100),
        sub_area_name=_str(row, "sub_area_name"),
    )


def _parse_variant(row: Mapping[str, Any]) -> VariantRow:
    return VariantRow(id=_int(row, "id"), name=_str(row, "name"), item_id=_int(row, "item_id"))


def parse_rows(
    label: str,
    rows: Iterable[Any],
    parser: Callable[[Mapping[str, Any]], Any],
    skipped: Dict[str, int],
) -> List[Any]:
    out: List[Any] = []
    for row in rows:
        if not isinstance(row, dict):
            skipped[label] = skipped.get(label, 0) + 1
            continue
        try:
            out.append(parser(row))
        except (TypeError, ValueError):
            skipped[label] = skipped.get(label, 0) + 1
    return out


def _read_rows(path: Path) -> List[Any]:
    try:
        doc = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ShopDataError(f"cannot read catalog {path.name}: {e}") from e
    if isinstance(doc, dict):
        doc = doc.get("rows")
    if not isinstance(doc, list):
        raise ShopDataError(f"catalog {path.name} is not a row list")
    return doc


def snapshot_from_rows(
    rows: Mapping[str, Iterable[Any]],
    *,
    manifest: Optional[Dict[str, Any]] = None,
    scene_source: Optional[GameDataSource] = None,
) -> CatalogSnapshot:
    """Assemble a snapshot from already-decoded row lists keyed by catalog name."""

    missing = [name for name in REQUIRED_FILES if name not in rows]
    if missing:
        raise MissingCatalogError(missing)

    skipped: Dict[str, int] = {}
    items = parse_rows("items", rows["items"], _parse_item, skipped)
    simple_vendors = parse_rows("simple_vendors", rows["simple_vendors"], _parse_simple_vendor, skipped)
    exchange_vendors = parse_rows("exchange_vendors", rows["exchange_vendors"], _parse_exchange_vendor, skipped)
    territories = parse_rows("territories", rows["territories"], _parse_territory, skipped)

    snap = CatalogSnapshot(
        items={it.id: it for it in items if it.id},
        simple_vendors={v.id: v for v in simple_vendors if v.id},
        simple_vendor_items=parse_rows(
            "simple_vendor_items", rows["simple_vendor_items"], _parse_simple_vendor_item, skipped
        ),
        exchange_vendors={v.id: v for v in exchange_vendors if v.id},
        npcs=parse_rows("npcs", rows["npcs"], _parse_npc, skipped),
        placements=parse_rows("placements", rows["placements"], _parse_placement, skipped),
        territories={t.id: t for t in territories if t.id},
        maps=parse_rows("maps", rows["maps"], _parse_map, skipped),
        variants=parse_rows("variants", rows.get("variants") or [], _parse_variant, skipped),
        manifest=dict(manifest or {}),
        scene_source=scene_source,
        skipped_rows=skipped,
    )
    if skipped:
        logger.warning("Catalog rows skipped: %s", skipped)
    return snap


def load_catalog_dir(path: Path, *, scene_source: Optional[GameDataSource] = None) -> CatalogSnapshot:
    """Load every catalog JSON under `path` into a `CatalogSnapshot`."""

    base = Path(path)
    if not base.is_dir():
        raise MissingCatalogError(list(REQUIRED_FILES), where=str(base))

    missing = [name for name in REQUIRED_FILES if not (base / f"{name}.json").exists()]
    if missing:
        raise MissingCatalogError(missing, where=str(base))

    rows: Dict[str, List[Any]] = {name: _read_rows(base / f"{name}.json") for name in REQUIRED_FILES}
    variants_path = base / "variants.json"
    if variants_path.exists():
        rows["variants"] = _read_rows(variants_path)

    manifest: Dict[str, Any] = {}
    manifest_path = base / "manifest.json"
    if manifest_path.exists():
        try:
            doc = json.loads(manifest_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise ShopDataError(f"cannot read manifest.json: {e}") from e
        if isinstance(doc, dict):
            manifest = doc

    if scene_source is None:
        scene_source = open_game_data(base)

    snap = snapshot_from_rows(rows, manifest=manifest, scene_source=scene_source)
    logger.info(
        "Loaded catalogs from %s: items=%d npcs=%d simple_rows=%d exchange_vendors=%d",
        base,
        len(snap.items),
        len(snap.npcs),
        len(snap.simple_vendor_items),
        len(snap.exchange_vendors),
    )
    return snap
