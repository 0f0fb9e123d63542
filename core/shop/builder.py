# -*- coding: utf-8 -*-
"""ShopIndexBuilder (orchestrator)

Joins the vendor catalogs against NPC links and NPC locations and returns an
immutable item → [SaleLocation] snapshot.

Steps
1. NPC locations + NPC → vendor links, once over the whole NPC catalog.
2. Simple-vendor rows (gil price from the item catalog, condition from state/patch).
3. Exchange vendors (price 0, condition from the cost items).
4. Drop items left without any location.
5. Freeze and return; the transient maps go out of scope with this call.

Notes
- Dedup key per item: (vendor id, NPC name, territory id); first wins.
- Cancellation is cooperative (`threading.Event`), checked per NPC, per row
  batch and per vendor; it raises BuildCanceled and publishes nothing.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Callable, Collection, Dict, List, Mapping, Optional, Set, Tuple

from core.shop.catalogs import CatalogSnapshot
from core.shop.diagnostics import DiagnosticsCollector
from core.shop.errors import BuildCanceled
from core.shop.exchange_schema import format_cost_note, select_exchange_schema
from core.shop.game_data import GameDataSource
from core.shop.links import VendorNpcRegistry, build_vendor_registry, vendor_display_name
from core.shop.locations import LocationResolver, is_valid_location
from core.shop.models import BuildStats, SaleLocation, WorldLocation
from core.shop.name_index import NameIndex
from core.shop.reference_data import ReferenceData

logger = logging.getLogger(__name__)

PROGRESS_EVERY = 500

ProgressFn = Callable[[str, int, int], None]


@dataclass(frozen=True)
class ShopIndexSnapshot:
    generation: int
    locations: Mapping[int, Tuple[SaleLocation, ...]]
    item_names: Mapping[int, str]
    territory_names: Mapping[int, str]
    name_index: NameIndex
    stats: BuildStats = field(default_factory=BuildStats)
    npc_location_count: int = 0
    built_at: float = 0.0
    elapsed: float = 0.0

    @property
    def item_count(self) -> int:
        return len(self.locations)

    def has_item(self, item_id: int) -> bool:
        return item_id in self.locations

    def get(self, item_id: int) -> Tuple[SaleLocation, ...]:
        return self.locations.get(item_id, ())

    def territory_ids(self) -> Set[int]:
        out: Set[int] = set()
        for locs in self.locations.values():
            for loc in locs:
                out.add(loc.territory_id)
        return out


def simple_condition_note(state_required: int, patch: int) -> str:
    if state_required:
        return f"Requires state #{state_required}"
    if patch:
        return f"Patch {patch / 100:.1f}+"
    return "No condition"


class _LocationTable:
    """item id → ordered locations with the dedup rule applied on insert."""

    def __init__(self):
        self._rows: Dict[int, List[SaleLocation]] = {}
        self._keys: Dict[int, Set[Tuple[int, str, int]]] = {}

    def ensure(self, item_id: int) -> None:
        self._rows.setdefault(item_id, [])
        self._keys.setdefault(item_id, set())

    def add(self, item_id: int, loc: SaleLocation) -> bool:
        self.ensure(item_id)
        key = loc.dedup_key()
        if key in self._keys[item_id]:
            return False
        self._keys[item_id].add(key)
        self._rows[item_id].append(loc)
        return True

    def freeze(self) -> Tuple[Dict[int, Tuple[SaleLocation, ...]], int]:
        out = {item_id: tuple(rows) for item_id, rows in self._rows.items() if rows}
        return out, len(self._rows) - len(out)


class ShopIndexBuilder:
    def __init__(
        self,
        catalog: CatalogSnapshot,
        *,
        reference: ReferenceData,
        scene_source: Optional[GameDataSource] = None,
        diagnostics: Optional[DiagnosticsCollector] = None,
        cancel: Optional[threading.Event] = None,
        progress: Optional[ProgressFn] = None,
        trace_npc_ids: Collection[int] = (),
        verbose: bool = False,
        generation: int = 0,
    ):
        self.catalog = catalog
        self.reference = reference
        self.scene_source = scene_source if scene_source is not None else catalog.scene_source
        self.diagnostics = diagnostics if diagnostics is not None else DiagnosticsCollector()
        self.cancel = cancel
        self.progress = progress
        self.trace_npc_ids = tuple(trace_npc_ids)
        self.verbose = bool(verbose)
        self.generation = int(generation)
        self.stats = BuildStats()

    def _check_cancel(self) -> None:
        if self.cancel is not None and self.cancel.is_set():
            raise BuildCanceled(f"build generation {self.generation} canceled")

    def _report(self, phase: str, processed: int, total: int) -> None:
        if self.progress is not None:
            self.progress(phase, processed, total)

    def build(self) -> ShopIndexSnapshot:
        t0 = time.time()
        self._report("locations", 0, 0)
        locations = LocationResolver(
            self.catalog,
            self.reference.manual_npc_locations,
            self.scene_source,
            cancel=self.cancel,
            trace_npc_ids=self.trace_npc_ids,
            verbose=self.verbose,
        ).build()

        self._check_cancel()
        self._report("links", 0, len(self.catalog.npcs))
        registry = self._build_registry()

        table = _LocationTable()
        self._process_simple(table, registry, locations)
        self._process_exchange(table, registry, locations)

        frozen, dropped = table.freeze()
        self._check_cancel()

        item_names = {iid: it.name for iid, it in self.catalog.items.items()}
        snap = ShopIndexSnapshot(
            generation=self.generation,
            locations=MappingProxyType(frozen),
            item_names=MappingProxyType(item_names),
            territory_names=MappingProxyType({tid: t.name for tid, t in self.catalog.territories.items()}),
            name_index=NameIndex(self.catalog.items, self.catalog.variants),
            stats=self.stats,
            npc_location_count=len(locations),
            built_at=time.time(),
            elapsed=time.time() - t0,
        )
        logger.info(
            "Shop index built: items=%d dropped_empty=%d excluded_npcs=%d unmatched_vendors=%d (%.2fs)",
            snap.item_count,
            dropped,
            self.diagnostics.excluded_npc_count,
            self.diagnostics.unmatched_vendor_count,
            snap.elapsed,
        )
        logger.info("Simple-vendor pass: %s", self.stats.as_dict())
        return snap

    # --------------------------------------------------------
    # steps
    # --------------------------------------------------------

    def _build_registry(self) -> VendorNpcRegistry:
        simple_ids = frozenset(self.catalog.simple_vendors)
        exchange_ids = frozenset(self.catalog.exchange_vendors)
        names = self.catalog.vendor_names()

        def _npcs():
            for npc in self.catalog.npcs:
                self._check_cancel()
                yield npc

        return build_vendor_registry(_npcs(), simple_ids, exchange_ids, names)

    def _append(
        self,
        table: _LocationTable,
        item_id: int,
        vendor_id: int,
        vendor_name: str,
        npcs: List[Tuple[int, str]],
        locations: Mapping[int, WorldLocation],
        *,
        price: int,
        note: str,
    ) -> int:
        added = 0
        table.ensure(item_id)
        for npc_id, npc_name in npcs:
            loc = locations.get(npc_id)
            if not is_valid_location(loc):
                self.diagnostics.record_excluded_npc(npc_id, npc_name, vendor_id, vendor_name)
                continue
            sale = SaleLocation(
                vendor_id=vendor_id,
                vendor_name=vendor_name,
                npc_name=npc_name,
                territory_id=loc.territory_id,  # type: ignore[union-attr]
                area_name=loc.area_name,  # type: ignore[union-attr]
                sub_area_name=loc.sub_area_name,  # type: ignore[union-attr]
                map_id=loc.map_id,  # type: ignore[union-attr]
                map_x=loc.map_x,  # type: ignore[union-attr]
                map_y=loc.map_y,  # type: ignore[union-attr]
                price=price,
                condition_note=note,
                manually_added=loc.manually_added,  # type: ignore[union-attr]
            )
            if table.add(item_id, sale):
                added += 1
        return added

    def _process_simple(
        self,
        table: _LocationTable,
        registry: VendorNpcRegistry,
        locations: Mapping[int, WorldLocation],
    ) -> None:
        rows = self.catalog.simple_vendor_items
        total = len(rows)
        st = self.stats
        st.total_rows = total
        for n, row in enumerate(rows, 1):
            if n % PROGRESS_EVERY == 0:
                self._check_cancel()
                self._report("simple_vendors", n, total)
            if row.item_id == 0:
                st.no_item_id += 1
                st.skipped += 1
                continue
            if row.shop_id == 0:
                st.no_shop_id += 1
                st.skipped += 1
                continue
            npcs = registry.simple_npcs(row.shop_id)
            if not npcs:
                st.no_npc_match += 1
                st.skipped += 1
                self.diagnostics.record_unmatched_vendor(row.shop_id, row.item_id)
                continue
            item = self.catalog.items.get(row.item_id)
            if item is None:
                st.other += 1
                st.skipped += 1
                continue
            vendor_name = registry.vendor_names.get(row.shop_id) or vendor_display_name(row.shop_id, {}, simple=True)
            self._append(
                table,
                row.item_id,
                row.shop_id,
                vendor_name,
                npcs,
                locations,
                price=item.price,
                note=simple_condition_note(row.state_required, row.patch),
            )
            st.processed += 1
        self._report("simple_vendors", total, total)

    def _process_exchange(
        self,
        table: _LocationTable,
        registry: VendorNpcRegistry,
        locations: Mapping[int, WorldLocation],
    ) -> None:
        vendors = list(self.catalog.exchange_vendors.values())
        schema = select_exchange_schema(vendors, self.catalog.exchange_schema_pin())
        names = {iid: it.name for iid, it in self.catalog.items.items()}
        total = len(vendors)
        for n, vendor in enumerate(vendors, 1):
            self._check_cancel()
            if n % PROGRESS_EVERY == 0:
                self._report("exchange_vendors", n, total)
            npcs = registry.exchange_npcs(vendor.id)
            if not npcs:
                continue
            self.stats.exchange_vendors += 1
            vendor_name = registry.vendor_names.get(vendor.id) or vendor_display_name(
                vendor.id, {vendor.id: vendor.name}, simple=False
            )
            for entry in vendor.entries:
                receive = schema.receive_items(entry)
                if not receive:
                    continue
                self.stats.exchange_entries += 1
                note = format_cost_note(schema.cost_items(entry), names)
                for item_id in receive:
                    if item_id not in self.catalog.items:
                        continue
                    self._append(table, item_id, vendor.id, vendor_name, npcs, locations, price=0, note=note)
        self._report("exchange_vendors", total, total)


def build_shop_index(
    catalog: CatalogSnapshot,
    *,
    reference: ReferenceData,
    scene_source: Optional[GameDataSource] = None,
    diagnostics: Optional[DiagnosticsCollector] = None,
    cancel: Optional[threading.Event] = None,
    progress: Optional[ProgressFn] = None,
    trace_npc_ids: Collection[int] = (),
    verbose: bool = False,
    generation: int = 0,
) -> ShopIndexSnapshot:
    return ShopIndexBuilder(
        catalog,
        reference=reference,
        scene_source=scene_source,
        diagnostics=diagnostics,
        cancel=cancel,
        progress=progress,
        trace_npc_ids=trace_npc_ids,
        verbose=verbose,
        generation=generation,
    ).build()
