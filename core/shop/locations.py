# -*- coding: utf-8 -*-
"""NPC id → world location, from three tiers of sources.

Order (a later tier only fills gaps):
1. manual overrides from reference data
2. the placement catalog (type 8 rows)
3. scene-layer files under each territory's background path
"""

from __future__ import annotations

import logging
import threading
from typing import Collection, Dict, Mapping, Optional

from core.shop.catalogs import NPC_PLACEMENT_TYPE, CatalogSnapshot, MapRow, TerritoryRow
from core.shop.coords import convert_from_float
from core.shop.errors import BuildCanceled, SceneLayerError
from core.shop.game_data import GameDataSource
from core.shop.models import WorldLocation
from core.shop.reference_data import ManualLocation
from core.shop.scene_layer import parse_scene_layer, scene_layer_paths

logger = logging.getLogger(__name__)

MAX_LOGGED_SCENE_FAILURES = 3

_PLACEHOLDER_AREAS = {"unknown", "none", "不明"}


def is_valid_location(loc: Optional[WorldLocation]) -> bool:
    if loc is None or loc.territory_id == 0:
        return False
    name = (loc.area_name or "").strip()
    if not name:
        return False
    return name.lower() not in _PLACEHOLDER_AREAS


def _check_cancel(cancel: Optional[threading.Event]) -> None:
    if cancel is not None and cancel.is_set():
        raise BuildCanceled("location resolution canceled")


class LocationResolver:
    """One-shot resolver; the returned map belongs to the caller."""

    def __init__(
        self,
        catalog: CatalogSnapshot,
        manual_overrides: Mapping[int, ManualLocation],
        scene_source: Optional[GameDataSource] = None,
        *,
        cancel: Optional[threading.Event] = None,
        trace_npc_ids: Collection[int] = (),
        verbose: bool = False,
    ):
        self.catalog = catalog
        self.manual_overrides = manual_overrides
        self.scene_source = scene_source
        self.cancel = cancel
        self.trace_npc_ids = frozenset(int(i) for i in trace_npc_ids)
        self.verbose = bool(verbose)
        self.counts: Dict[str, int] = {"manual": 0, "placement": 0, "scene": 0}
        self.scene_territories = 0
        self.scene_failures = 0

    def _log(self, msg: str, *args) -> None:
        if self.verbose:
            logger.info(msg, *args)
        else:
            logger.debug(msg, *args)

    def build(self) -> Dict[int, WorldLocation]:
        result: Dict[int, WorldLocation] = {}
        self._add_manual(result)
        self._add_placements(result)
        if self.scene_source is not None:
            self._add_scene_layers(result)
        logger.info(
            "NPC locations: total=%d manual=%d placement=%d scene=%d (territories=%d, failed files=%d)",
            len(result),
            self.counts["manual"],
            self.counts["placement"],
            self.counts["scene"],
            self.scene_territories,
            self.scene_failures,
        )
        return result

    # --------------------------------------------------------
    # tiers
    # --------------------------------------------------------

    def _add_manual(self, result: Dict[int, WorldLocation]) -> None:
        for npc_id, manual in self.manual_overrides.items():
            if npc_id in result:
                continue
            territory = self.catalog.territories.get(manual.territory_id)
            if territory is None:
                logger.warning("Manual NPC location skipped: territory %d not found (npc %d)", manual.territory_id, npc_id)
                continue
            map_row = self.catalog.first_map_for(manual.territory_id)
            if map_row is None:
                logger.warning("Manual NPC location skipped: no map for territory %d (npc %d)", manual.territory_id, npc_id)
                continue
            result[npc_id] = WorldLocation(
                territory_id=manual.territory_id,
                area_name=manual.area_name,
                sub_area_name="",
                map_id=map_row.id,
                map_x=manual.x,
                map_y=manual.y,
                manually_added=True,
            )
            self.counts["manual"] += 1
            self._log("Manual NPC location: id=%d @ %s (%.1f, %.1f)", npc_id, manual.area_name, manual.x, manual.y)

    def _add_placements(self, result: Dict[int, WorldLocation]) -> None:
        maps = self.catalog.maps_by_id()
        for n, row in enumerate(self.catalog.placements):
            if n % 500 == 0:
                _check_cancel(self.cancel)
            if row.type != NPC_PLACEMENT_TYPE or row.object_id == 0:
                continue
            if row.object_id in result:
                continue
            territory = self.catalog.territories.get(row.territory_id)
            map_row = maps.get(row.map_id)
            if territory is None or map_row is None:
                continue
            result[row.object_id] = WorldLocation(
                territory_id=territory.id,
                area_name=territory.name,
                sub_area_name=map_row.sub_area_name,
                map_id=map_row.id,
                map_x=convert_from_float(row.x, map_row.offset_x, map_row.size_factor),
                map_y=convert_from_float(row.z, map_row.offset_y, map_row.size_factor),
            )
            self.counts["placement"] += 1

    def _add_scene_layers(self, result: Dict[int, WorldLocation]) -> None:
        for territory in self.catalog.territories.values():
            _check_cancel(self.cancel)
            paths = scene_layer_paths(territory.bg)
            if not paths:
                continue
            default_map = self.catalog.first_map_for(territory.id)
            if default_map is None:
                continue
            processed = False
            for path in paths:
                try:
                    data = self.scene_source.read_bytes(path)  # type: ignore[union-attr]
                    if data is None:
                        continue
                    layer_file = parse_scene_layer(data)
                except (OSError, SceneLayerError) as e:
                    self.scene_failures += 1
                    if self.scene_failures <= MAX_LOGGED_SCENE_FAILURES:
                        logger.debug("Scene-layer parse failed: %s - %s", path, e)
                    continue
                if not processed:
                    self.scene_territories += 1
                    processed = True
                self.counts["scene"] += self._apply_scene(layer_file, territory, default_map, result)

    def _apply_scene(self, layer_file, territory: TerritoryRow, default_map: MapRow, result: Dict[int, WorldLocation]) -> int:
        added = 0
        for obj in layer_file.event_npcs():
            npc_id = obj.base_id
            if npc_id == 0:
                continue
            x, _y, z = obj.transform.translation
            if npc_id in self.trace_npc_ids:
                logger.warning(
                    "Traced NPC in scene layer: id=%d @ %s (territory %d, pos %.1f,%.1f)",
                    npc_id,
                    territory.name,
                    territory.id,
                    x,
                    z,
                )
            if npc_id in result:
                continue
            result[npc_id] = WorldLocation(
                territory_id=territory.id,
                area_name=territory.name,
                sub_area_name=default_map.sub_area_name,
                map_id=default_map.id,
                map_x=convert_from_float(x, default_map.offset_x, default_map.size_factor),
                map_y=convert_from_float(z, default_map.offset_y, default_map.size_factor),
            )
            added += 1
        return added


def build_location_map(
    catalog: CatalogSnapshot,
    manual_overrides: Mapping[int, ManualLocation],
    scene_source: Optional[GameDataSource] = None,
    *,
    cancel: Optional[threading.Event] = None,
    trace_npc_ids: Collection[int] = (),
    verbose: bool = False,
) -> Dict[int, WorldLocation]:
    return LocationResolver(
        catalog,
        manual_overrides,
        scene_source,
        cancel=cancel,
        trace_npc_ids=trace_npc_ids,
        verbose=verbose,
    ).build()
