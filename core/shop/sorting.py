# -*- coding: utf-8 -*-
from __future__ import annotations

from typing import List, Sequence

from core.shop.models import SaleLocation


def sort_by_priority(locations: Sequence[SaleLocation], priority_ids: Sequence[int] = ()) -> List[SaleLocation]:
    """Priority territories first (in list order), then area name, manual entries last, then NPC name."""

    rank = {}
    for i, tid in enumerate(priority_ids or ()):
        rank.setdefault(int(tid), i)

    def key(loc: SaleLocation):
        return (
            0 if loc.territory_id in rank else 1,
            rank.get(loc.territory_id, 0),
            loc.area_name,
            loc.manually_added,
            loc.npc_name,
        )

    return sorted(locations, key=key)
