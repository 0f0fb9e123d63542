# -*- coding: utf-8 -*-
"""NPC → vendor links from per-NPC reference slots.

A slot value is matched against the simple vendor ids, then the exchange
vendor ids, then (fallback) its low 16 bits against the simple vendor ids.
The slot encoding mixes several reference kinds, so the fallback is a
best-effort rule kept exactly as is.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import AbstractSet, Dict, Iterable, List, Mapping, Set, Tuple

from core.shop.models import Npc, NpcVendorLink

logger = logging.getLogger(__name__)

LOW_ID_MASK = 0xFFFF


def vendor_display_name(vendor_id: int, vendor_names: Mapping[int, str], *, simple: bool) -> str:
    name = (vendor_names.get(vendor_id) or "").strip()
    if name:
        return name
    return f"Shop #{vendor_id}" if simple else f"Exchange #{vendor_id}"


def resolve_links(
    npc: Npc,
    simple_vendor_ids: AbstractSet[int],
    exchange_vendor_ids: AbstractSet[int],
    vendor_names: Mapping[int, str],
) -> List[NpcVendorLink]:
    out: List[NpcVendorLink] = []
    seen_simple: Set[int] = set()
    seen_exchange: Set[int] = set()

    for value in npc.slots:
        if value == 0:
            continue
        if value in simple_vendor_ids:
            if value not in seen_simple:
                seen_simple.add(value)
                out.append(NpcVendorLink(npc.id, value, vendor_display_name(value, vendor_names, simple=True), True))
            continue
        if value in exchange_vendor_ids:
            if value not in seen_exchange:
                seen_exchange.add(value)
                out.append(NpcVendorLink(npc.id, value, vendor_display_name(value, vendor_names, simple=False), False))
            continue
        low = value & LOW_ID_MASK
        if low and low in simple_vendor_ids and low not in seen_simple:
            seen_simple.add(low)
            out.append(NpcVendorLink(npc.id, low, vendor_display_name(low, vendor_names, simple=True), True))
    return out


class VendorNpcRegistry:
    """vendor id → [(npc id, npc name)] for one build, one entry per NPC."""

    def __init__(self):
        self._simple: Dict[int, List[Tuple[int, str]]] = defaultdict(list)
        self._exchange: Dict[int, List[Tuple[int, str]]] = defaultdict(list)
        self.vendor_names: Dict[int, str] = {}

    def add(self, link: NpcVendorLink, npc_name: str) -> None:
        bucket = self._simple if link.is_simple else self._exchange
        rows = bucket[link.vendor_id]
        if any(npc_id == link.npc_id for npc_id, _ in rows):
            return
        rows.append((link.npc_id, npc_name))
        self.vendor_names.setdefault(link.vendor_id, link.vendor_name)

    def simple_npcs(self, vendor_id: int) -> List[Tuple[int, str]]:
        return self._simple.get(vendor_id, [])

    def exchange_npcs(self, vendor_id: int) -> List[Tuple[int, str]]:
        return self._exchange.get(vendor_id, [])

    @property
    def simple_count(self) -> int:
        return len(self._simple)

    @property
    def exchange_count(self) -> int:
        return len(self._exchange)


def build_vendor_registry(
    npcs: Iterable[Npc],
    simple_vendor_ids: AbstractSet[int],
    exchange_vendor_ids: AbstractSet[int],
    vendor_names: Mapping[int, str],
) -> VendorNpcRegistry:
    reg = VendorNpcRegistry()
    linked = 0
    for npc in npcs:
        if npc.id == 0 or not (npc.name or "").strip():
            continue
        links = resolve_links(npc, simple_vendor_ids, exchange_vendor_ids, vendor_names)
        if links:
            linked += 1
        for link in links:
            reg.add(link, npc.name)
    logger.info(
        "NPC vendor links: npcs=%d simple vendors=%d exchange vendors=%d",
        linked,
        reg.simple_count,
        reg.exchange_count,
    )
    return reg
