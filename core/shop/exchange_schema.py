# -*- coding: utf-8 -*-
"""Exchange-vendor entry readers, one per catalog schema revision.

Each revision names its receive/cost list fields and the keys used inside a
reference. A reference is a bare item id or an object ``{item, count}``.
The revision is chosen once per catalog, never per entry.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from core.shop.catalogs import ExchangeVendorRow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CostRef:
    item_id: int
    count: int


@dataclass(frozen=True)
class ExchangeSchema:
    revision: int
    receive_field: str
    cost_field: str
    item_key: str
    count_key: str

    def matches(self, entry: Mapping[str, Any]) -> bool:
        return self.receive_field in entry or self.cost_field in entry

    def _refs(self, entry: Mapping[str, Any], fld: str) -> Iterable[Tuple[int, int]]:
        raw = entry.get(fld)
        if raw is None:
            return
        if not isinstance(raw, list):
            raw = [raw]
        for ref in raw:
            if isinstance(ref, bool):
                continue
            if isinstance(ref, int):
                yield ref, 1
                continue
            if isinstance(ref, dict):
                try:
                    item_id = int(ref.get(self.item_key) or 0)
                    count = int(ref.get(self.count_key, 1) or 0)
                except (TypeError, ValueError):
                    continue
                yield item_id, count

    def receive_items(self, entry: Mapping[str, Any]) -> List[int]:
        return [item_id for item_id, _ in self._refs(entry, self.receive_field) if item_id > 0]

    def cost_items(self, entry: Mapping[str, Any]) -> List[CostRef]:
        return [CostRef(item_id, count) for item_id, count in self._refs(entry, self.cost_field) if item_id > 0 and count > 0]


SCHEMAS: Dict[int, ExchangeSchema] = {
    1: ExchangeSchema(1, "ItemReceive", "ItemCost", "Item", "Count"),
    2: ExchangeSchema(2, "ReceiveItems", "CostItems", "ItemId", "Quantity"),
    3: ExchangeSchema(3, "OutputItem", "InputItem", "Item", "Amount"),
    0: ExchangeSchema(0, "Receive", "Cost", "Item", "Count"),
}

DEFAULT_REVISION = 1

# probe order when no revision is pinned
_PROBE_ORDER = (1, 2, 3, 0)


def select_exchange_schema(vendors: Iterable[ExchangeVendorRow], pinned: Optional[int] = None) -> ExchangeSchema:
    if pinned is not None:
        schema = SCHEMAS.get(int(pinned))
        if schema is not None:
            logger.info("Exchange schema pinned: revision %d", schema.revision)
            return schema
        logger.warning("Unknown pinned exchange schema %r; probing entries", pinned)

    for vendor in vendors:
        for entry in vendor.entries:
            for rev in _PROBE_ORDER:
                if SCHEMAS[rev].matches(entry):
                    logger.info("Exchange schema detected: revision %d", rev)
                    return SCHEMAS[rev]
    return SCHEMAS[DEFAULT_REVISION]


def format_cost_note(costs: Iterable[CostRef], item_names: Mapping[int, str]) -> str:
    parts: List[str] = []
    for cost in costs:
        if cost.count <= 0:
            continue
        name = (item_names.get(cost.item_id) or "").strip() or f"Item #{cost.item_id}"
        parts.append(f"{name} x{cost.count}")
    return ", ".join(parts) if parts else "No condition"
