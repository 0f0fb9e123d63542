# -*- coding: utf-8 -*-
"""Game data source (zip or folder) for binary scene-layer files.

Paths are always forward-slash and relative to the data root, e.g.
``bg/ffxiv/sea_s1/twn/s1t1/level/planevent.lgb``.
"""

from __future__ import annotations

import logging
import os
import zipfile
import zlib
from pathlib import Path
from typing import List, Optional, Union

logger = logging.getLogger(__name__)


class GameDataSource:
    """Read-only mount over a folder or a zip archive."""

    def __init__(self, root: Union[str, Path]):
        p = Path(os.path.expanduser(str(root)))
        self.mode: str = ""  # 'zip' | 'folder'
        self.source: object = None
        self.file_list: List[str] = []

        if p.is_file() and zipfile.is_zipfile(p):
            self.mode = "zip"
            self.source = zipfile.ZipFile(p, "r")
            self.file_list = list(self.source.namelist())  # type: ignore[attr-defined]
        elif p.is_dir():
            self.mode = "folder"
            self.source = str(p)
        else:
            raise FileNotFoundError(f"Cannot mount game data: {p}")
        logger.debug("Mounted game data %s: %s", self.mode, p)

    def __enter__(self) -> "GameDataSource":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        if self.mode == "zip" and self.source is not None:
            try:
                self.source.close()  # type: ignore[attr-defined]
            finally:
                self.source = None

    @staticmethod
    def _norm(path: str) -> str:
        return (path or "").replace("\\", "/").lstrip("/")

    def exists(self, path: str) -> bool:
        p = self._norm(path)
        if not p:
            return False
        if self.mode == "zip":
            return p in self.file_list
        return os.path.isfile(os.path.join(str(self.source), p))

    def read_bytes(self, path: str) -> Optional[bytes]:
        """Return the file content, or None when the file is absent."""
        p = self._norm(path)
        if not p or not self.exists(p):
            return None
        if self.mode == "zip":
            try:
                return self.source.read(p)  # type: ignore[attr-defined]
            except (zipfile.BadZipFile, zlib.error) as e:
                raise OSError(f"Damaged archive member {p}: {e}") from e
        with open(os.path.join(str(self.source), p), "rb") as f:
            return f.read()


def open_game_data(base: Union[str, Path, None]) -> Optional[GameDataSource]:
    """Mount `base` when it looks like a game data root, else None.

    Accepts a zip path, a folder that contains ``bg/``, or a catalog folder
    with a sibling ``scene.zip``.
    """
    if not base:
        return None
    p = Path(os.path.expanduser(str(base)))
    if p.is_file():
        return GameDataSource(p)
    if (p / "bg").is_dir():
        return GameDataSource(p)
    if (p / "scene.zip").is_file():
        return GameDataSource(p / "scene.zip")
    return None
