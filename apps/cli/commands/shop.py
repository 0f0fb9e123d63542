#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""apps/cli/commands/shop.py

Terminal front-end for the shop location index.

Notes
- Thin UI layer; everything goes through `IndexQueryService`.
- Each invocation builds the index once (blocking) before answering.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from apps.cli.cli_common import REPORT_DIR
from core.shop.models import BuildState
from core.shop.service import IndexQueryService
from core.shop.settings import ShopSettings, load_custom_shops

console = Console()


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False, rich_tracebacks=True)],
    )


def _open_service(args) -> IndexQueryService:
    settings = ShopSettings.from_config(
        game_data=Path(args.game_data).expanduser() if args.game_data else None,
        scene_data=Path(args.scene_data).expanduser() if args.scene_data else None,
        verbose=True if args.verbose else None,
    )
    if not settings.game_data or not Path(settings.game_data).is_dir():
        console.print(f"[red]Catalog directory not found: {settings.game_data}[/red]")
        raise SystemExit(2)

    svc = IndexQueryService(
        settings.catalog_loader(),
        reference_path=settings.reference_data,
        trace_npc_ids=settings.trace_npc_ids,
        verbose=settings.verbose,
    )
    with console.status("[cyan]Building shop index...[/cyan]"):
        svc.build().result()
    st = svc.build_status
    if st.state != BuildState.COMPLETED:
        console.print(f"[red]Build {st.state.value}: {st.message}[/red]")
        raise SystemExit(1)

    entries = load_custom_shops(settings.custom_shops)
    if entries:
        svc.refresh_custom_shops(entries)
    args.area_priority = list(settings.area_priority) or list(svc.default_area_priority())
    return svc


def cmd_search(svc: IndexQueryService, args) -> int:
    hits = svc.search_by_name(args.query, args.limit, sold_only=args.sold_only)
    if not hits:
        console.print(f"[yellow]No item matches '{args.query}'[/yellow]")
        return 1
    table = Table(title=f"Items matching '{args.query}'", border_style="blue")
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Name", style="white")
    table.add_column("Sold", justify="center")
    for h in hits:
        table.add_row(str(h.id), h.name, "[green]yes[/green]" if svc.has_item(h.id) else "[dim]-[/dim]")
    console.print(table)
    return 0


def _resolve_item(svc: IndexQueryService, ref: str) -> int:
    ref = (ref or "").strip()
    if ref.isdigit():
        return int(ref)
    return svc.item_id_from_name(ref)


def cmd_where(svc: IndexQueryService, args) -> int:
    item_id = _resolve_item(svc, args.item)
    if not item_id:
        console.print(f"[red]Unknown item: {args.item}[/red]")
        return 1
    name = svc.get_item_name(item_id)
    locs = svc.get_locations(item_id, priority=args.area_priority)
    if not locs:
        console.print(Panel(f"{name} (#{item_id}) is not sold by any located vendor", border_style="yellow"))
        if args.explain:
            for line in svc.log_missing_item_diagnostics(item_id):
                console.print(f"[dim]{line}[/dim]")
        return 1

    table = Table(title=f"{name} (#{item_id})", border_style="blue")
    table.add_column("Area", style="cyan")
    table.add_column("NPC", style="white")
    table.add_column("Vendor", style="dim")
    table.add_column("X,Y", justify="right")
    table.add_column("Price", justify="right")
    table.add_column("Condition", style="magenta")
    for loc in locs:
        area = loc.area_name + (f" / {loc.sub_area_name}" if loc.sub_area_name else "")
        if loc.is_custom:
            area += " [yellow](custom)[/yellow]"
        table.add_row(
            area,
            loc.npc_name,
            loc.vendor_name,
            f"{loc.map_x:.1f}, {loc.map_y:.1f}",
            str(loc.price) if loc.price else "-",
            loc.condition_note,
        )
    console.print(table)
    if args.explain:
        for line in svc.log_search_diagnostics(item_id):
            console.print(f"[dim]{line}[/dim]")
    return 0


def cmd_areas(svc: IndexQueryService, args) -> int:
    table = Table(title="Territories with vendors", border_style="blue")
    table.add_column("Name", style="cyan")
    table.add_column("ID", justify="right")
    table.add_column("Members", style="dim")
    for g in svc.get_territory_groups():
        table.add_row(g.name, str(g.representative_id), ", ".join(str(m) for m in g.member_ids))
    console.print(table)
    return 0


def cmd_diag(svc: IndexQueryService, args) -> int:
    out_dir = Path(args.out_dir).expanduser() if args.out_dir else REPORT_DIR
    msg = svc.generate_diagnostics_report(directory=out_dir)
    snap = svc.snapshot
    console.print(
        Panel(
            f"items: {snap.item_count if snap else 0}\n"
            f"excluded NPCs: {svc.excluded_npc_count}\n"
            f"unmatched vendors: {svc.unmatched_vendor_count}\n\n{msg}",
            title="Shop diagnostics",
            border_style="green",
        )
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="atlas shop", description="Query the item → vendor location index")
    p.add_argument("--game-data", default=None, help="Catalog directory (default from config)")
    p.add_argument("--scene-data", default=None, help="Scene-layer folder or zip")
    p.add_argument("-v", "--verbose", action="store_true")
    sub = p.add_subparsers(dest="cmd", required=True)

    s = sub.add_parser("search", help="Find items by name substring")
    s.add_argument("query")
    s.add_argument("--limit", type=int, default=25)
    s.add_argument("--sold-only", action="store_true")
    s.set_defaults(func=cmd_search)

    w = sub.add_parser("where", help="List vendor locations for an item (id or exact name)")
    w.add_argument("item")
    w.add_argument("--explain", action="store_true", help="Print search/missing diagnostics")
    w.set_defaults(func=cmd_where)

    a = sub.add_parser("areas", help="List territory groups")
    a.set_defaults(func=cmd_areas)

    d = sub.add_parser("diag", help="Write a diagnostics report")
    d.add_argument("--out-dir", default=None)
    d.set_defaults(func=cmd_diag)
    return p


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    _setup_logging(bool(args.verbose))
    svc = _open_service(args)
    try:
        return int(args.func(svc, args))
    finally:
        svc.shutdown()


if __name__ == "__main__":
    sys.exit(main())
