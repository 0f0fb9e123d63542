# -*- coding: utf-8 -*-
"""Versioned reference tables that the game catalogs do not carry.

Contents
- manual NPC locations for NPCs missing from placement data
- housing territory ids and names (always offered as territory groups)
- per housing-NPC-type item lists (custom shop overlay)
- default area priority list for result sorting

Notes
- A configured override file wins over the embedded copy when it parses and
  carries at least one housing item; otherwise the embedded copy is used.
- Housing item lists are validated against the item catalog separately
  (`validate_housing_items`), since the catalog may not be loaded yet.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

from core.shop.models import HousingNpcType, Item

logger = logging.getLogger(__name__)

EMBEDDED_PATH = Path(__file__).resolve().parent / "data" / "reference_v1.json"

# gil and the elemental shards/crystals/clusters
FORCED_EXCLUDED_IDS = range(2, 20)

_NPC_TYPE_KEYS = {
    "MaterialSupplier": HousingNpcType.MATERIAL_SUPPLIER,
    "Junkmonger": HousingNpcType.JUNKMONGER,
}


class ReferenceDataError(ValueError):
    pass


@dataclass(frozen=True)
class ManualLocation:
    npc_id: int
    territory_id: int
    area_name: str
    x: float
    y: float


@dataclass(frozen=True)
class ReferenceData:
    version: int
    source: str
    manual_npc_locations: Dict[int, ManualLocation]
    housing_territories: Dict[int, str]
    housing_npc_items: Dict[HousingNpcType, Tuple[int, ...]]
    default_area_priority: Tuple[int, ...] = ()
    excluded: Dict[str, Tuple[int, ...]] = field(default_factory=dict)
    validated: bool = False

    def items_for(self, npc_type: HousingNpcType) -> Tuple[int, ...]:
        return self.housing_npc_items.get(npc_type, ())

    @property
    def total_items(self) -> int:
        return sum(len(v) for v in self.housing_npc_items.values())

    @property
    def total_excluded(self) -> int:
        return sum(len(v) for v in self.excluded.values())

    def diagnostics(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "source": self.source,
            "valid_counts": {t.value: len(v) for t, v in self.housing_npc_items.items()},
            "excluded": {k: list(v) for k, v in self.excluded.items()},
            "total_excluded": self.total_excluded,
        }


def _add_excluded(excluded: Dict[str, List[int]], reason: str, item_id: int) -> None:
    excluded.setdefault(reason, []).append(int(item_id))


def _as_list(value: Any, what: str) -> List[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ReferenceDataError(f"{what} must be a list, got {type(value).__name__}")
    return value


def parse_reference(doc: Any, *, source: str) -> ReferenceData:
    """Decode a reference JSON document. Raises ReferenceDataError."""

    if not isinstance(doc, dict):
        raise ReferenceDataError("reference data must be an object")
    try:
        version = int(doc.get("version") or 0)
    except (TypeError, ValueError) as e:
        raise ReferenceDataError(f"bad version: {doc.get('version')!r}") from e

    manual: Dict[int, ManualLocation] = {}
    for row in _as_list(doc.get("manual_npc_locations"), "manual_npc_locations"):
        try:
            loc = ManualLocation(
                npc_id=int(row["npc_id"]),
                territory_id=int(row["territory_id"]),
                area_name=str(row.get("area_name") or ""),
                x=float(row.get("x") or 0.0),
                y=float(row.get("y") or 0.0),
            )
        except (KeyError, TypeError, ValueError):
            logger.warning("Reference data: bad manual location row %r", row)
            continue
        manual.setdefault(loc.npc_id, loc)

    housing: Dict[int, str] = {}
    for row in _as_list(doc.get("housing_territories"), "housing_territories"):
        try:
            housing.setdefault(int(row["id"]), str(row.get("name") or ""))
        except (KeyError, TypeError, ValueError):
            logger.warning("Reference data: bad housing territory row %r", row)

    excluded: Dict[str, List[int]] = {}
    items: Dict[HousingNpcType, Tuple[int, ...]] = {t: () for t in HousingNpcType}
    raw_items = doc.get("housing_npc_items") or {}
    if not isinstance(raw_items, dict):
        raise ReferenceDataError("housing_npc_items must be an object")
    for key, ids in raw_items.items():
        npc_type = _NPC_TYPE_KEYS.get(str(key))
        raw_ids = _as_list(ids, f"housing_npc_items.{key}")
        id_list = [int(i) for i in raw_ids if isinstance(i, int) and not isinstance(i, bool)]
        if npc_type is None:
            for i in id_list:
                _add_excluded(excluded, "UnknownNpcType", i)
            continue
        items[npc_type] = tuple(id_list)

    raw_priority = _as_list(doc.get("default_area_priority"), "default_area_priority")
    priority = tuple(int(t) for t in raw_priority if str(t).strip().isdigit())

    return ReferenceData(
        version=version,
        source=source,
        manual_npc_locations=manual,
        housing_territories=housing,
        housing_npc_items=items,
        default_area_priority=priority,
        excluded={k: tuple(v) for k, v in excluded.items()},
    )


def _read_json(path: Path) -> Any:
    return json.loads(path.read_text(encoding="utf-8"))


def load_reference_data(override_path: Optional[Path] = None) -> ReferenceData:
    """Load the override file when usable, else the embedded copy."""

    if override_path:
        p = Path(override_path).expanduser()
        if p.exists():
            try:
                ref = parse_reference(_read_json(p), source="config")
            except (OSError, ValueError) as e:
                logger.warning("Reference data override unusable (%s): %s; using embedded copy", p, e)
            else:
                if ref.total_items > 0:
                    logger.info("Reference data loaded: source=config version=%d", ref.version)
                    return ref
                logger.warning("Reference data override %s has no housing items; using embedded copy", p)

    ref = parse_reference(_read_json(EMBEDDED_PATH), source="embedded")
    logger.info("Reference data loaded: source=embedded version=%d", ref.version)
    return ref


def validate_housing_items(ref: ReferenceData, items: Mapping[int, Item]) -> ReferenceData:
    """Drop duplicate, zero, forced-excluded and dangling ids from housing lists."""

    excluded: Dict[str, List[int]] = {k: list(v) for k, v in ref.excluded.items()}
    out: Dict[HousingNpcType, Tuple[int, ...]] = {}
    for npc_type, ids in ref.housing_npc_items.items():
        seen = set()
        kept: List[int] = []
        for item_id in ids:
            if item_id in seen:
                _add_excluded(excluded, "Duplicate", item_id)
                continue
            seen.add(item_id)
            if item_id == 0:
                _add_excluded(excluded, "InvalidId", item_id)
                continue
            if item_id in FORCED_EXCLUDED_IDS:
                _add_excluded(excluded, "Forced Exclusion", item_id)
                continue
            item = items.get(item_id)
            if item is None:
                _add_excluded(excluded, "MissingItem", item_id)
                continue
            if not (item.name or "").strip():
                _add_excluded(excluded, "MissingName", item_id)
                continue
            kept.append(item_id)
        out[npc_type] = tuple(kept)

    validated = replace(
        ref,
        housing_npc_items=out,
        excluded={k: tuple(v) for k, v in excluded.items()},
        validated=True,
    )
    logger.info(
        "Housing item lists: source=%s version=%d %s excluded=%d",
        validated.source,
        validated.version,
        " ".join(f"{t.value}={len(v)}" for t, v in out.items()),
        validated.total_excluded,
    )
    return validated
