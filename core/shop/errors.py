# -*- coding: utf-8 -*-
from __future__ import annotations

from typing import Optional, Sequence


class ShopDataError(RuntimeError):
    pass


class MissingCatalogError(ShopDataError):
    """A required catalog is entirely unavailable; the build cannot start."""

    def __init__(self, names: Sequence[str], *, where: Optional[str] = None):
        self.names = list(names)
        self.where = where
        msg = "missing catalog(s): " + ", ".join(self.names)
        if where:
            msg += f" (in {where})"
        super().__init__(msg)


class SceneLayerError(ShopDataError):
    pass


class BuildCanceled(ShopDataError):
    pass
