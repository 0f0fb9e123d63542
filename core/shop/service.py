# -*- coding: utf-8 -*-
"""IndexQueryService

Public read API over the published shop index.

Responsibilities
- Run the build on one background worker; the first build is memoized.
- Publish a finished snapshot by swapping one reference; a canceled, failed
  or superseded build leaves the previous snapshot in place.
- Answer queries from whatever snapshot is current. Queries never wait on a
  build and never raise; before the first build they return empty values.
- Keep the custom shop overlay in step with the configured entries.

Design notes
- Usable by the CLI, the web API and devtools alike (no UI imports).
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import replace
from pathlib import Path
from typing import Callable, Collection, Dict, List, Optional, Sequence, Set, Tuple

from core.shop.builder import ShopIndexSnapshot, build_shop_index
from core.shop.catalogs import CatalogSnapshot
from core.shop.diagnostics import DiagnosticsCollector, default_report_path
from core.shop.errors import BuildCanceled
from core.shop.exchange_schema import select_exchange_schema
from core.shop.models import BuildState, BuildStatus, CustomShopEntry, ItemHit, SaleLocation, TerritoryGroup
from core.shop.overlay import CustomShopOverlay
from core.shop.reference_data import ReferenceData, load_reference_data, validate_housing_items
from core.shop.sorting import sort_by_priority

logger = logging.getLogger(__name__)

CatalogLoader = Callable[[], CatalogSnapshot]


class IndexQueryService:
    def __init__(
        self,
        loader: CatalogLoader,
        *,
        reference: Optional[ReferenceData] = None,
        reference_path: Optional[Path] = None,
        trace_npc_ids: Collection[int] = (),
        verbose: bool = False,
    ):
        self._loader = loader
        self._reference_base = reference
        self._reference_path = reference_path
        self._trace_npc_ids = tuple(trace_npc_ids)
        self._verbose = bool(verbose)

        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="shop-index")
        self._lock = threading.Lock()
        self._future: Optional[Future] = None
        self._cancel: Optional[threading.Event] = None
        self._generation = 0
        self._status = BuildStatus()

        # published state (replaced together on each successful build)
        self._snapshot: Optional[ShopIndexSnapshot] = None
        self._catalog: Optional[CatalogSnapshot] = None
        self._reference: Optional[ReferenceData] = None
        self._diagnostics = DiagnosticsCollector()

        self._overlay = CustomShopOverlay()
        self._overlay_lock = threading.Lock()
        self._custom_entries: Optional[Tuple[CustomShopEntry, ...]] = None

    # --------------------------------------------------------
    # build lifecycle
    # --------------------------------------------------------

    def build(self) -> Future:
        """Start the build unless one already ran or is running."""
        with self._lock:
            if self._future is not None:
                return self._future
            return self._start_locked("initial")

    def rebuild(self, reason: str = "manual") -> Future:
        """Cancel any in-flight build and start a new generation."""
        with self._lock:
            if self._cancel is not None:
                self._cancel.set()
            return self._start_locked(reason)

    def cancel_build(self) -> bool:
        with self._lock:
            fut = self._future
            if self._cancel is None or fut is None or fut.done():
                return False
            self._cancel.set()
            return True

    def shutdown(self, wait: bool = True) -> None:
        self.cancel_build()
        self._executor.shutdown(wait=wait)

    def _start_locked(self, reason: str) -> Future:
        self._generation += 1
        gen = self._generation
        cancel = threading.Event()
        self._cancel = cancel
        self._status = BuildStatus(state=BuildState.RUNNING, phase="queued", message=reason, generation=gen)
        logger.info("Shop index build queued: generation=%d reason=%s", gen, reason)
        self._future = self._executor.submit(self._run, gen, cancel)
        return self._future

    def _set_status(self, gen: int, **changes) -> None:
        with self._lock:
            if gen != self._generation:
                return
            self._status = replace(self._status, **changes)

    def _load_reference(self, catalog: CatalogSnapshot) -> ReferenceData:
        base = self._reference_base
        if base is None:
            base = load_reference_data(self._reference_path)
        return validate_housing_items(base, catalog.items)

    def _run(self, gen: int, cancel: threading.Event) -> bool:
        try:
            self._set_status(gen, phase="catalogs")
            catalog = self._loader()
            reference = self._load_reference(catalog)
            diagnostics = DiagnosticsCollector()

            def _progress(phase: str, processed: int, total: int) -> None:
                self._set_status(gen, phase=phase, processed=processed, total=total)

            snap = build_shop_index(
                catalog,
                reference=reference,
                diagnostics=diagnostics,
                cancel=cancel,
                progress=_progress,
                trace_npc_ids=self._trace_npc_ids,
                verbose=self._verbose,
                generation=gen,
            )
        except BuildCanceled:
            logger.info("Shop index build canceled: generation=%d", gen)
            self._set_status(gen, state=BuildState.CANCELED, message="canceled")
            return False
        except Exception as e:
            logger.exception("Shop index build failed: generation=%d", gen)
            self._set_status(gen, state=BuildState.FAILED, message=str(e))
            return False

        with self._lock:
            if gen != self._generation or cancel.is_set():
                logger.info("Shop index build superseded: generation=%d", gen)
                return False
            self._snapshot = snap
            self._catalog = catalog
            self._reference = reference
            self._diagnostics = diagnostics
            self._status = replace(
                self._status,
                state=BuildState.COMPLETED,
                phase="done",
                message=f"{snap.item_count} items",
                processed=snap.stats.total_rows,
                total=snap.stats.total_rows,
            )

        self._refresh_overlay()
        return True

    @property
    def is_initialized(self) -> bool:
        return self._snapshot is not None

    @property
    def build_status(self) -> BuildStatus:
        return self._status

    @property
    def snapshot(self) -> Optional[ShopIndexSnapshot]:
        return self._snapshot

    @property
    def reference(self) -> Optional[ReferenceData]:
        return self._reference

    # --------------------------------------------------------
    # custom shops
    # --------------------------------------------------------

    def refresh_custom_shops(self, entries: Sequence[CustomShopEntry]) -> int:
        """Rebuild the overlay; deferred until a catalog has been loaded."""
        with self._lock:
            self._custom_entries = tuple(entries)
            loaded = self._catalog is not None
        if not loaded:
            logger.info("Custom shops deferred until the first build completes (%d entries)", len(entries))
            return 0
        return self._refresh_overlay()

    def _refresh_overlay(self) -> int:
        # one refresh at a time, always from the latest entries and catalog
        with self._overlay_lock:
            with self._lock:
                entries = self._custom_entries
                catalog = self._catalog
                reference = self._reference
            if entries is None or catalog is None or reference is None:
                return 0
            return self._overlay.refresh(entries, catalog, reference)

    # --------------------------------------------------------
    # queries
    # --------------------------------------------------------

    def has_item(self, item_id: int) -> bool:
        snap = self._snapshot
        if snap is None:
            return False
        return snap.has_item(item_id) or self._overlay.has_item(item_id)

    def get_locations(self, item_id: int, *, priority: Optional[Sequence[int]] = None) -> List[SaleLocation]:
        snap = self._snapshot
        if snap is None:
            return []
        out = list(snap.get(item_id)) + list(self._overlay.get(item_id))
        if priority is not None:
            out = sort_by_priority(out, priority)
        return out

    def search_by_name(self, query: str, limit: int = 50, *, sold_only: bool = False) -> List[ItemHit]:
        snap = self._snapshot
        if snap is None or not (query or "").strip():
            return []
        only: Optional[Set[int]] = None
        if sold_only:
            only = set(snap.locations) | self._overlay.item_ids()
        try:
            return snap.name_index.search(query, limit, only_ids=only)
        except Exception:
            logger.exception("Name search failed: %r", query)
            return []

    def get_territory_groups(self) -> List[TerritoryGroup]:
        snap = self._snapshot
        reference = self._reference
        if snap is None:
            return []
        ids: Set[int] = set(snap.territory_ids())
        housing: Dict[int, str] = dict(reference.housing_territories) if reference else {}
        ids |= set(housing)

        groups: Dict[str, List[int]] = {}
        for tid in ids:
            if tid == 0:
                continue
            name = (snap.territory_names.get(tid) or housing.get(tid) or "").strip()
            if not name:
                continue
            groups.setdefault(name, []).append(tid)

        out = [
            TerritoryGroup(name=name, representative_id=min(members), member_ids=tuple(sorted(members)))
            for name, members in groups.items()
        ]
        out.sort(key=lambda g: g.name)
        return out

    def get_item_name(self, item_id: int) -> str:
        snap = self._snapshot
        return snap.item_names.get(item_id, "") if snap else ""

    def get_territory_name(self, territory_id: int) -> str:
        snap = self._snapshot
        if snap is None:
            return ""
        name = snap.territory_names.get(territory_id, "")
        if not name and self._reference is not None:
            name = self._reference.housing_territories.get(territory_id, "")
        return name

    def item_id_from_name(self, name: str) -> int:
        snap = self._snapshot
        return snap.name_index.item_id_from_name(name) if snap else 0

    def item_id_from_variant(self, variant_id: int) -> int:
        snap = self._snapshot
        return snap.name_index.item_id_from_variant(variant_id) if snap else 0

    def item_id_from_variant_name(self, name: str) -> int:
        snap = self._snapshot
        return snap.name_index.item_id_from_variant_name(name) if snap else 0

    def is_variant_item(self, item_id: int) -> bool:
        snap = self._snapshot
        return snap.name_index.is_variant_item(item_id) if snap else False

    def is_likely_colorant(self, item_id: int) -> bool:
        snap = self._snapshot
        return snap.name_index.is_likely_colorant(item_id) if snap else False

    def default_area_priority(self) -> Tuple[int, ...]:
        ref = self._reference
        return ref.default_area_priority if ref else ()

    # --------------------------------------------------------
    # diagnostics
    # --------------------------------------------------------

    @property
    def excluded_npc_count(self) -> int:
        return self._diagnostics.excluded_npc_count

    @property
    def unmatched_vendor_count(self) -> int:
        return self._diagnostics.unmatched_vendor_count

    def generate_diagnostics_report(self, path: Optional[Path] = None, *, directory: Optional[Path] = None) -> str:
        snap = self._snapshot
        if snap is None:
            return "Shop index not built yet"
        if path is None:
            path = default_report_path(Path(directory) if directory else Path.cwd())
        return self._diagnostics.generate_report(Path(path), snap.item_count, snap.item_names)

    def vendor_hits(self, item_id: int) -> List[int]:
        """Vendor ids whose raw catalog rows carry `item_id` (sold or not)."""
        catalog = self._catalog
        if catalog is None or item_id == 0:
            return []
        out: List[int] = []
        for row in catalog.simple_vendor_items:
            if row.item_id == item_id and row.shop_id and row.shop_id not in out:
                out.append(row.shop_id)
        schema = select_exchange_schema(catalog.exchange_vendors.values(), catalog.exchange_schema_pin())
        for vendor in catalog.exchange_vendors.values():
            if any(item_id in schema.receive_items(e) for e in vendor.entries) and vendor.id not in out:
                out.append(vendor.id)
        return out

    def log_search_diagnostics(self, item_id: int) -> List[str]:
        if item_id == 0 or self._snapshot is None:
            return []
        return self._diagnostics.log_search(
            item_id,
            self.get_item_name(item_id),
            self.get_locations(item_id),
            self.vendor_hits(item_id),
        )

    def log_missing_item_diagnostics(self, item_id: int) -> List[str]:
        if item_id == 0 or self._snapshot is None or self.has_item(item_id):
            return []
        return self._diagnostics.explain_missing_item(item_id, self.get_item_name(item_id), self.vendor_hits(item_id))
