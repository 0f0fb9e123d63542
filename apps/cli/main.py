#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Unified CLI dispatcher for Vendor Atlas."""

from __future__ import annotations

import runpy
import sys
from pathlib import Path
from typing import List, Optional, Tuple

PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


def _tool_path(tool: dict) -> Path:
    folder = tool.get("folder") or "apps/cli/commands"
    return PROJECT_ROOT / folder / str(tool.get("file"))


def _print_tools() -> None:
    from rich.console import Console
    from rich.table import Table

    from apps.cli.registry import get_tools

    table = Table(title="Vendor Atlas tools", border_style="blue")
    table.add_column("Alias", style="cyan")
    table.add_column("Type", style="dim")
    table.add_column("Usage", style="white")
    table.add_column("Description")
    for t in get_tools():
        table.add_row(str(t.get("alias")), str(t.get("type")), str(t.get("usage")), str(t.get("desc")))
    Console().print(table)


def _resolve_tool(alias: Optional[str]) -> Tuple[Optional[Path], List[str]]:
    from apps.cli.registry import get_tools

    key = str(alias or "").strip()
    if not key:
        return None, []
    for tool in get_tools():
        if tool.get("alias") == key or tool.get("file") == key:
            return _tool_path(tool), []
    return None, [key]


def main(argv: Optional[List[str]] = None) -> int:
    argv = list(argv) if argv is not None else list(sys.argv[1:])
    alias = argv[0] if argv else None
    path, unknown = _resolve_tool(alias)

    if path is None:
        _print_tools()
        if unknown:
            print(f"Unknown tool: {unknown[0]}")
            return 2
        return 0

    sys.argv = [str(path)] + argv[1:]
    runpy.run_path(str(path), run_name="__main__")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
