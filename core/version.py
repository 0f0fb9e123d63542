# -*- coding: utf-8 -*-
"""Project and artifact version helpers."""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Dict

logger = logging.getLogger(__name__)

# bump when the exported shop index layout changes
SHOP_INDEX_SCHEMA = 1


def _project_root() -> Path:
    return Path(__file__).resolve().parents[1]


@lru_cache(maxsize=1)
def _load_version_file() -> Dict[str, str]:
    path = _project_root() / "conf" / "version.json"
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.warning("Unreadable version file %s: %s", path, e)
        return {}
    if not isinstance(data, dict):
        return {}
    return {k: str(v).strip() for k, v in data.items() if isinstance(v, (str, int)) and str(v).strip()}


def project_version() -> str:
    return _load_version_file().get("project_version", "unknown")


def index_version() -> str:
    return _load_version_file().get("index_version") or str(SHOP_INDEX_SCHEMA)


def versions() -> Dict[str, str]:
    return {
        "project_version": project_version(),
        "index_version": index_version(),
    }
