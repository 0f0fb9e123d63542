# -*- coding: utf-8 -*-
"""User-declared virtual vendors merged into query results.

The new map is computed outside the lock; only the reference swap is guarded.
"""

from __future__ import annotations

import logging
import threading
from types import MappingProxyType
from typing import Dict, List, Mapping, Sequence, Set, Tuple

from core.shop.catalogs import CatalogSnapshot
from core.shop.models import CustomShopEntry, SaleLocation
from core.shop.reference_data import ReferenceData

logger = logging.getLogger(__name__)

CUSTOM_CONDITION = "Custom shop"

_EMPTY: Mapping[int, Tuple[SaleLocation, ...]] = MappingProxyType({})


def build_overlay_map(
    entries: Sequence[CustomShopEntry],
    catalog: CatalogSnapshot,
    reference: ReferenceData,
) -> Dict[int, Tuple[SaleLocation, ...]]:
    rows: Dict[int, List[SaleLocation]] = {}
    keys: Dict[int, Set[Tuple[str, str, int]]] = {}
    dropped = 0

    for entry in entries:
        if not entry.enabled:
            continue
        main_map = catalog.main_map_for(entry.territory_id)
        map_id = main_map.id if main_map is not None else entry.map_id
        area = catalog.territory_name(entry.territory_id) or reference.housing_territories.get(entry.territory_id, "")

        for npc_type in entry.npc_types:
            vendor_name = npc_type.label
            for item_id in reference.items_for(npc_type):
                item = catalog.items.get(item_id)
                if item is None or not (item.name or "").strip():
                    dropped += 1
                    continue
                key = (vendor_name, entry.name, entry.territory_id)
                seen = keys.setdefault(item_id, set())
                if key in seen:
                    continue
                seen.add(key)
                rows.setdefault(item_id, []).append(
                    SaleLocation(
                        vendor_id=0,
                        vendor_name=vendor_name,
                        npc_name=entry.name,
                        territory_id=entry.territory_id,
                        area_name=area,
                        sub_area_name="",
                        map_id=map_id,
                        map_x=entry.x,
                        map_y=entry.y,
                        price=item.price,
                        condition_note=CUSTOM_CONDITION,
                        is_custom=True,
                    )
                )

    if dropped:
        logger.debug("Custom shops: %d dangling item ids dropped", dropped)
    return {item_id: tuple(locs) for item_id, locs in rows.items()}


class CustomShopOverlay:
    def __init__(self):
        self._lock = threading.Lock()
        self._map: Mapping[int, Tuple[SaleLocation, ...]] = _EMPTY

    def refresh(
        self,
        entries: Sequence[CustomShopEntry],
        catalog: CatalogSnapshot,
        reference: ReferenceData,
    ) -> int:
        new_map = MappingProxyType(build_overlay_map(entries, catalog, reference))
        with self._lock:
            self._map = new_map
        logger.info(
            "Custom shops refreshed: entries=%d enabled=%d items=%d",
            len(entries),
            sum(1 for e in entries if e.enabled),
            len(new_map),
        )
        return len(new_map)

    def has_item(self, item_id: int) -> bool:
        return item_id in self._map

    def get(self, item_id: int) -> Tuple[SaleLocation, ...]:
        return self._map.get(item_id, ())

    def item_ids(self) -> Set[int]:
        return set(self._map)
