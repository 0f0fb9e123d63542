# -*- coding: utf-8 -*-
"""Build-time diagnostics for the shop index.

Records
- excluded NPCs: linked to a vendor but without a usable location
  (deduplicated on npc id + vendor id)
- unmatched vendors: vendor rows no NPC links to (≤3 sampled item ids each)

The Markdown report is rotated per directory: while 5 or more
``shop-diagnostics-*`` files exist, the oldest (by name) is removed.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from core.shop.models import ExcludedNpcRecord, SaleLocation, UnmatchedVendorRecord

logger = logging.getLogger(__name__)

REPORT_PREFIX = "shop-diagnostics-"
ROTATION_KEEP = 5
MAX_UNMATCHED_SAMPLES = 3
MAX_UNMATCHED_ROWS = 100
MAX_VENDOR_EXAMPLES = 2


def default_report_path(directory: Path, *, now: Optional[datetime] = None) -> Path:
    ts = (now or datetime.now()).strftime("%Y%m%d-%H%M%S")
    return Path(directory) / f"{REPORT_PREFIX}{ts}.md"


def rotate_reports(directory: Path, *, keep: int = ROTATION_KEEP) -> List[Path]:
    """Delete the oldest reports while `keep` or more exist. Returns deleted paths."""

    d = Path(directory)
    if not d.is_dir():
        return []
    files = sorted((p for p in d.glob(f"{REPORT_PREFIX}*") if p.is_file()), key=lambda p: p.name)
    removed: List[Path] = []
    while len(files) >= keep:
        target = files.pop(0)
        target.unlink()
        removed.append(target)
    return removed


class DiagnosticsCollector:
    def __init__(self):
        self._lock = threading.Lock()
        self._excluded: List[ExcludedNpcRecord] = []
        self._excluded_keys: Set[Tuple[int, int]] = set()
        self._unmatched: Dict[int, List[int]] = {}
        self._logged_missing: Set[int] = set()

    # --------------------------------------------------------
    # recording
    # --------------------------------------------------------

    def reset(self) -> None:
        with self._lock:
            self._excluded = []
            self._excluded_keys = set()
            self._unmatched = {}
            self._logged_missing = set()

    def record_excluded_npc(self, npc_id: int, npc_name: str, vendor_id: int, vendor_name: str) -> None:
        key = (npc_id, vendor_id)
        with self._lock:
            if key in self._excluded_keys:
                return
            self._excluded_keys.add(key)
            self._excluded.append(ExcludedNpcRecord(npc_id, npc_name, vendor_id, vendor_name))

    def record_unmatched_vendor(self, vendor_id: int, item_id: int) -> None:
        with self._lock:
            samples = self._unmatched.setdefault(vendor_id, [])
            if len(samples) < MAX_UNMATCHED_SAMPLES:
                samples.append(item_id)

    # --------------------------------------------------------
    # views
    # --------------------------------------------------------

    @property
    def excluded_npc_count(self) -> int:
        return len(self._excluded)

    @property
    def unmatched_vendor_count(self) -> int:
        return len(self._unmatched)

    def excluded_records(self) -> List[ExcludedNpcRecord]:
        with self._lock:
            return list(self._excluded)

    def unmatched_records(self) -> List[UnmatchedVendorRecord]:
        with self._lock:
            return [UnmatchedVendorRecord(vid, tuple(ids)) for vid, ids in sorted(self._unmatched.items())]

    def is_unmatched(self, vendor_id: int) -> bool:
        return vendor_id in self._unmatched

    def excluded_for_vendor(self, vendor_id: int) -> List[ExcludedNpcRecord]:
        with self._lock:
            return [r for r in self._excluded if r.vendor_id == vendor_id]

    # --------------------------------------------------------
    # report
    # --------------------------------------------------------

    def render_report(self, item_count: int, item_names: Mapping[int, str], *, now: Optional[datetime] = None) -> str:
        excluded = self.excluded_records()
        unmatched = self.unmatched_records()
        ts = (now or datetime.now()).strftime("%Y-%m-%d %H:%M:%S")

        lines: List[str] = [
            "# Shop data diagnostics",
            f"Generated: {ts}",
            "",
            "## Summary",
            f"- Items indexed: {item_count}",
            f"- Excluded NPCs (no location): {len(excluded)}",
            f"- Unmatched vendors (no NPC): {len(unmatched)}",
            "",
            "## Excluded NPCs",
            "| NPC ID | NPC name | Vendors | Examples |",
            "|--------|----------|---------|----------|",
        ]

        groups: Dict[int, List[ExcludedNpcRecord]] = {}
        for rec in excluded:
            groups.setdefault(rec.npc_id, []).append(rec)
        for npc_id, recs in sorted(groups.items(), key=lambda kv: (kv[1][0].npc_name, kv[0])):
            examples: List[str] = []
            for r in recs[:MAX_VENDOR_EXAMPLES]:
                if r.vendor_name not in examples:
                    examples.append(r.vendor_name)
            lines.append(f"| {npc_id} | {recs[0].npc_name} | {len(recs)} | {', '.join(examples)} |")

        lines += [
            "",
            "## Unmatched vendors (sample items)",
            "| Vendor ID | Items |",
            "|-----------|-------|",
        ]
        for rec in unmatched[:MAX_UNMATCHED_ROWS]:
            names = [item_names.get(i) for i in rec.item_ids]
            lines.append(f"| {rec.vendor_id} | {', '.join(n for n in names if n)} |")
        if len(unmatched) > MAX_UNMATCHED_ROWS:
            lines.append(f"| ... | ({len(unmatched) - MAX_UNMATCHED_ROWS} more vendors omitted) |")

        return "\n".join(lines) + "\n"

    def generate_report(self, path: Path, item_count: int, item_names: Mapping[int, str]) -> str:
        """Rotate, then write the report. Returns a human-readable outcome message."""

        out = Path(path)
        logger.info("Diagnostics report: start output=%s", out)
        report = self.render_report(item_count, item_names)
        try:
            rotate_reports(out.parent)
        except OSError as e:
            logger.warning("Diagnostics report rotation failed: %s", e)
        try:
            out.parent.mkdir(parents=True, exist_ok=True)
            out.write_text(report, encoding="utf-8")
        except OSError as e:
            logger.error("Diagnostics report write failed: %s", e)
            return f"Failed to write diagnostics report: {e}"
        logger.info(
            "Diagnostics summary: items=%d excluded_npcs=%d unmatched_vendors=%d",
            item_count,
            self.excluded_npc_count,
            self.unmatched_vendor_count,
        )
        return f"Diagnostics report written: {out}"

    # --------------------------------------------------------
    # troubleshooting logs
    # --------------------------------------------------------

    def log_search(
        self,
        item_id: int,
        item_name: str,
        locations: Sequence[SaleLocation],
        vendor_hits: Iterable[int],
    ) -> List[str]:
        """Log what a query returned and, per vendor carrying the item, how many NPCs were dropped."""

        lines = [f"Search diagnostics: item={item_id} name={item_name} found={len(locations)}"]
        for loc in list(locations)[:5]:
            lines.append(f"  found: {loc.area_name} / {loc.npc_name} ({loc.map_x:.1f}, {loc.map_y:.1f}) vendor={loc.vendor_id}")
        hits: List[str] = []
        for vendor_id in vendor_hits:
            valid = sum(1 for loc in locations if loc.vendor_id == vendor_id)
            dropped = self.excluded_for_vendor(vendor_id)
            hits.append(f"vendor {vendor_id} (valid:{valid}/excluded:{len(dropped)})")
            for rec in dropped:
                lines.append(f"  excluded npc: {rec.npc_name} (id {rec.npc_id}) vendor={vendor_id}")
        if hits:
            lines.append("  vendor hits: " + ", ".join(hits))
        for line in lines:
            logger.info(line)
        return lines

    def explain_missing_item(self, item_id: int, item_name: str, vendor_hits: Iterable[int]) -> List[str]:
        """Log once per item why it has no locations."""

        with self._lock:
            if item_id in self._logged_missing:
                return []
            self._logged_missing.add(item_id)

        lines = [f"Missing item: id={item_id} name={item_name}"]
        vendors = list(vendor_hits)
        if not vendors:
            lines.append("  no vendor row carries this item")
        for vendor_id in vendors:
            if self.is_unmatched(vendor_id):
                lines.append(f"  vendor {vendor_id}: no NPC links to it")
                continue
            dropped = self.excluded_for_vendor(vendor_id)
            if dropped:
                names = ", ".join(f"{r.npc_name}({r.npc_id})" for r in dropped)
                lines.append(f"  vendor {vendor_id}: NPCs without location: {names}")
            else:
                lines.append(f"  vendor {vendor_id}: linked NPCs located")
        for line in lines:
            logger.warning(line)
        return lines
