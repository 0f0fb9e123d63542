#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Build the item → vendor location index offline and export it as JSON."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from core.shop.builder import build_shop_index  # noqa: E402
from core.shop.diagnostics import DiagnosticsCollector, default_report_path  # noqa: E402
from core.shop.export import render_summary, snapshot_to_dict  # noqa: E402
from core.shop.reference_data import load_reference_data, validate_housing_items  # noqa: E402
from core.shop.settings import ShopSettings  # noqa: E402
from devtools.build_cache import dir_sig, file_sig, is_fresh, load_cache, save_cache  # noqa: E402


def main() -> int:
    p = argparse.ArgumentParser(description="Build the shop location index")
    p.add_argument("--game-data", default=None, help="Catalog directory (default from config)")
    p.add_argument("--scene-data", default=None, help="Scene-layer folder or zip (default: inside catalog dir)")
    p.add_argument("--reference", default=None, help="Reference data override JSON")
    p.add_argument("--out", default=None, help="Output JSON path (default: INDEX_DIR/shop_index_v1.json)")
    p.add_argument("--summary", default="data/reports/shop_index_summary.md", help="Output summary Markdown")
    p.add_argument("--report-dir", default=None, help="Write a diagnostics report into this folder")
    p.add_argument("--force", action="store_true", help="Force rebuild even if cache matches")
    p.add_argument("--verbose", action="store_true")
    p.add_argument("--silent", action="store_true")

    args = p.parse_args()

    settings = ShopSettings.from_config(
        game_data=Path(args.game_data).expanduser() if args.game_data else None,
        scene_data=Path(args.scene_data).expanduser() if args.scene_data else None,
        reference_data=Path(args.reference).expanduser() if args.reference else None,
        verbose=True if args.verbose else None,
    )
    level = logging.WARNING if args.silent else (logging.DEBUG if settings.verbose else logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    if not settings.game_data or not Path(settings.game_data).is_dir():
        raise SystemExit(f"Catalog directory not found: {settings.game_data}. Set GAME_DATA or pass --game-data.")

    if args.out:
        out_path = (PROJECT_ROOT / args.out).resolve()
    else:
        out_path = Path(settings.index_dir or PROJECT_ROOT / "data" / "index") / "shop_index_v1.json"
    summary_path = (PROJECT_ROOT / args.summary).resolve()

    inputs_sig = {
        "catalogs": dir_sig(settings.game_data, suffixes=[".json"], label="catalogs"),
        "scene": dir_sig(settings.scene_data, suffixes=[".lgb", ".zip"], label="scene"),
        "reference": file_sig(settings.reference_data),
    }
    outputs_sig = {"out": file_sig(out_path), "summary": file_sig(summary_path)}
    cache = load_cache()
    cache_key = "shop_index"
    if not args.force and not args.report_dir and is_fresh(cache, cache_key, inputs_sig, outputs_sig):
        print("✅ Shop index up-to-date; skip rebuild")
        return 0

    catalog = settings.catalog_loader()()
    reference = validate_housing_items(load_reference_data(settings.reference_data), catalog.items)
    diagnostics = DiagnosticsCollector()
    snap = build_shop_index(
        catalog,
        reference=reference,
        diagnostics=diagnostics,
        trace_npc_ids=settings.trace_npc_ids,
        verbose=settings.verbose,
    )

    doc = snapshot_to_dict(snap, sources={"catalogs": str(settings.game_data), "reference": reference.source})
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(json.dumps(doc, ensure_ascii=False, indent=2), encoding="utf-8")

    summary_path.parent.mkdir(parents=True, exist_ok=True)
    summary_path.write_text(
        render_summary(
            snap,
            excluded_npcs=diagnostics.excluded_npc_count,
            unmatched_vendors=diagnostics.unmatched_vendor_count,
        ),
        encoding="utf-8",
    )

    if args.report_dir:
        msg = diagnostics.generate_report(
            default_report_path(Path(args.report_dir).expanduser()),
            snap.item_count,
            snap.item_names,
        )
        print(f"✅ {msg}")

    cache[cache_key] = {
        "signature": inputs_sig,
        "outputs": {"out": file_sig(out_path), "summary": file_sig(summary_path)},
    }
    save_cache(cache)

    print(f"✅ Shop index written: {out_path} ({snap.item_count} items)")
    print(f"✅ Summary written: {summary_path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
