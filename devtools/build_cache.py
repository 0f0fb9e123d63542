#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Input/output signatures so offline builds can skip unchanged work."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

PROJECT_ROOT = Path(__file__).resolve().parent.parent
DEFAULT_CACHE_PATH = PROJECT_ROOT / "data" / "index" / ".build_cache.json"

logger = logging.getLogger(__name__)


def load_cache(path: Optional[Path] = None) -> Dict[str, Any]:
    p = path or DEFAULT_CACHE_PATH
    if not p.exists():
        return {}
    try:
        doc = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.warning("Build cache unreadable, ignoring (%s): %s", p, e)
        return {}
    return doc if isinstance(doc, dict) else {}


def save_cache(cache: Dict[str, Any], path: Optional[Path] = None) -> None:
    p = path or DEFAULT_CACHE_PATH
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(json.dumps(cache, ensure_ascii=False, indent=2), encoding="utf-8")


def file_sig(path: Optional[Path]) -> Dict[str, Any]:
    if path is None:
        return {"path": "", "exists": False}
    p = Path(path)
    if not p.is_file():
        return {"path": str(p), "exists": False}
    st = p.stat()
    return {
        "path": str(p),
        "exists": True,
        "mtime_ns": int(st.st_mtime_ns),
        "size": int(st.st_size),
    }


def files_sig(paths: Iterable[Path], *, label: str = "") -> Dict[str, Any]:
    count = 0
    max_mtime = 0
    total_size = 0
    for p in paths:
        try:
            st = p.stat()
        except OSError:
            continue
        count += 1
        total_size += int(st.st_size)
        max_mtime = max(max_mtime, int(st.st_mtime_ns))
    return {
        "label": label,
        "count": count,
        "max_mtime_ns": max_mtime,
        "total_size": total_size,
    }


def dir_sig(path: Optional[Path], *, suffixes: Iterable[str] = (), label: str = "") -> Dict[str, Any]:
    """Aggregate signature over a catalog folder (or a single zip)."""
    if path is None:
        return {"path": "", "exists": False, "label": label}
    p = Path(path)
    if p.is_file():
        sig = file_sig(p)
        sig["label"] = label
        return sig
    if not p.is_dir():
        return {"path": str(p), "exists": False, "label": label}
    wanted = {s.lower() for s in suffixes}
    files = [fp for fp in p.rglob("*") if fp.is_file() and (not wanted or fp.suffix.lower() in wanted)]
    sig = files_sig(files, label=label)
    sig["path"] = str(p)
    sig["exists"] = True
    return sig


def is_fresh(cache: Dict[str, Any], key: str, inputs: Dict[str, Any], outputs: Dict[str, Any]) -> bool:
    entry = cache.get(key) or {}
    return entry.get("signature") == inputs and entry.get("outputs") == outputs
