# -*- coding: utf-8 -*-
"""JSON/Markdown renderings of a published snapshot (reports only, never re-read)."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from core.schemas.meta import build_meta
from core.shop.builder import ShopIndexSnapshot
from core.version import SHOP_INDEX_SCHEMA


def snapshot_to_dict(
    snap: ShopIndexSnapshot,
    *,
    tool: str = "build_shop_index",
    sources: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    items: Dict[str, Any] = {}
    for item_id in sorted(snap.locations):
        items[str(item_id)] = {
            "name": snap.item_names.get(item_id, ""),
            "locations": [loc.to_dict() for loc in snap.locations[item_id]],
        }
    return {
        "meta": build_meta(
            schema=SHOP_INDEX_SCHEMA,
            tool=tool,
            sources=sources,
            extra={"generation": snap.generation},
        ),
        "stats": {
            "items": snap.item_count,
            "npc_locations": snap.npc_location_count,
            **snap.stats.as_dict(),
        },
        "items": items,
    }


def render_summary(snap: ShopIndexSnapshot, *, excluded_npcs: int, unmatched_vendors: int) -> str:
    lines: List[str] = []
    lines.append("# Shop Index Summary")
    lines.append("")
    lines.append("## Counts")
    lines.append("```yaml")
    lines.append(f"items: {snap.item_count}")
    lines.append(f"npc_locations: {snap.npc_location_count}")
    lines.append(f"excluded_npcs: {excluded_npcs}")
    lines.append(f"unmatched_vendors: {unmatched_vendors}")
    for k, v in snap.stats.as_dict().items():
        lines.append(f"{k}: {v}")
    lines.append(f"elapsed_s: {snap.elapsed:.2f}")
    lines.append("```")
    return "\n".join(lines) + "\n"
