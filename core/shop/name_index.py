# -*- coding: utf-8 -*-
"""Name and variant lookups over the item catalog.

Notes
- Built lazily on first use and never mutated afterwards.
- First occurrence wins for every key.
- Normalized names keep letters and digits only; case is preserved.
- Variant ids are single-byte appearance keys (1..255), resolved to the
  consumable item that applies them.
"""

from __future__ import annotations

import logging
import threading
from typing import Dict, List, Mapping, Optional, Sequence, Set

from core.shop.catalogs import VariantRow
from core.shop.models import Item, ItemHit

logger = logging.getLogger(__name__)

MAX_VARIANT_ID = 255

_COLORANT_MARKERS_CI = ("dye", "colorant")
_COLORANT_MARKERS = ("染料", "カララント")


def normalize_name(name: str) -> str:
    if not name or not name.strip():
        return ""
    return "".join(ch for ch in name if ch.isalnum())


def is_likely_colorant_name(name: str) -> bool:
    if not name:
        return False
    if any(m in name for m in _COLORANT_MARKERS):
        return True
    low = name.lower()
    return any(m in low for m in _COLORANT_MARKERS_CI)


class NameIndex:
    def __init__(self, items: Mapping[int, Item], variants: Sequence[VariantRow] = ()):
        self._items = items
        self._variants = list(variants)
        self._lock = threading.RLock()
        self._built = False

        self._name_to_id: Dict[str, int] = {}
        self._normalized_to_id: Dict[str, int] = {}
        self._ordered: List[ItemHit] = []

        self._variant_to_item: Dict[int, int] = {}
        self._variant_name_to_item: Dict[str, int] = {}
        self._variant_normalized_to_item: Dict[str, int] = {}
        self._variant_item_ids: Set[int] = set()

    @property
    def is_built(self) -> bool:
        return self._built

    def ensure_built(self) -> None:
        if self._built:
            return
        with self._lock:
            if self._built:
                return
            self._build_names()
            self._build_variants()
            self._built = True
            logger.info(
                "Name index built: names=%d normalized=%d variants=%d",
                len(self._name_to_id),
                len(self._normalized_to_id),
                len(self._variant_to_item),
            )

    # --------------------------------------------------------
    # build
    # --------------------------------------------------------

    def _build_names(self) -> None:
        for item_id in sorted(self._items):
            item = self._items[item_id]
            if item_id == 0:
                continue
            name = item.name or ""
            if not name.strip():
                continue
            self._ordered.append(ItemHit(item_id, name))
            self._name_to_id.setdefault(name, item_id)
            norm = normalize_name(name)
            if norm:
                self._normalized_to_id.setdefault(norm, item_id)

    def _build_variants(self) -> None:
        names: Set[str] = set()
        normalized: Dict[str, None] = {}
        for row in self._variants:
            if row.id == 0 or not (row.name or "").strip():
                continue
            names.add(row.name)
            norm = normalize_name(row.name)
            if norm:
                normalized.setdefault(norm, None)

        # variant name → item id via item names
        for hit in self._ordered:
            if hit.name in names:
                self._variant_name_to_item.setdefault(hit.name, hit.id)
            norm = normalize_name(hit.name)
            if not norm:
                continue
            if norm in normalized:
                self._variant_normalized_to_item.setdefault(norm, hit.id)
            if not is_likely_colorant_name(hit.name):
                continue
            for vnorm in normalized:
                if vnorm not in self._variant_normalized_to_item and vnorm in norm:
                    self._variant_normalized_to_item[vnorm] = hit.id

        for row in self._variants:
            if row.id <= 0 or row.id > MAX_VARIANT_ID:
                continue
            item_id = 0
            if row.item_id and row.item_id in self._items:
                item_id = row.item_id
            if not item_id and row.name:
                item_id = self._variant_name_to_item.get(row.name, 0)
                if not item_id:
                    item_id = self._variant_normalized_to_item.get(normalize_name(row.name), 0)
            if item_id:
                self._variant_to_item.setdefault(row.id, item_id)
                self._variant_item_ids.add(item_id)

    # --------------------------------------------------------
    # lookups
    # --------------------------------------------------------

    def item_id_from_name(self, name: str) -> int:
        if not name or not name.strip():
            return 0
        self.ensure_built()
        hit = self._name_to_id.get(name)
        if hit:
            return hit
        return self._normalized_to_id.get(normalize_name(name), 0)

    def item_id_from_variant(self, variant_id: int) -> int:
        if variant_id <= 0 or variant_id > MAX_VARIANT_ID:
            return 0
        self.ensure_built()
        return self._variant_to_item.get(variant_id, 0)

    def item_id_from_variant_name(self, name: str) -> int:
        if not name or not name.strip():
            return 0
        self.ensure_built()
        hit = self._variant_name_to_item.get(name)
        if hit:
            return hit
        return self._variant_normalized_to_item.get(normalize_name(name), 0)

    def is_variant_item(self, item_id: int) -> bool:
        self.ensure_built()
        return item_id in self._variant_item_ids

    def is_likely_colorant(self, item_id: int) -> bool:
        item = self._items.get(item_id)
        return bool(item) and is_likely_colorant_name(item.name)  # type: ignore[union-attr]

    def search(self, query: str, limit: int = 50, *, only_ids: Optional[Set[int]] = None) -> List[ItemHit]:
        """Case-insensitive substring match, in item id order."""
        q = (query or "").strip().lower()
        if not q or limit <= 0:
            return []
        self.ensure_built()
        out: List[ItemHit] = []
        for hit in self._ordered:
            if only_ids is not None and hit.id not in only_ids:
                continue
            if q in hit.name.lower():
                out.append(hit)
                if len(out) >= limit:
                    break
        return out
