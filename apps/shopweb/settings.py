# -*- coding: utf-8 -*-
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional


@dataclass(frozen=True)
class ShopWebSettings:
    """Runtime settings for the shop web server.

    Notes
    - game_data is the catalog directory handed to the background build.
    - root_path is for reverse-proxy mount (e.g. '/shops')
    """

    game_data: Path
    root_path: str = ""
    cors_allow_origins: Optional[List[str]] = None
    gzip_minimum_size: int = 800
    build_on_startup: bool = True

    @staticmethod
    def normalize_root_path(root_path: str) -> str:
        rp = (root_path or "").strip()
        if not rp:
            return ""
        if not rp.startswith("/"):
            rp = "/" + rp
        return rp.rstrip("/")
