# -*- coding: utf-8 -*-
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

from core.shop.catalogs import CatalogSnapshot, load_catalog_dir
from core.shop.game_data import open_game_data
from core.shop.models import CustomShopEntry

# Optional project config (exists in repo under core/config/loader.py)
try:
    from core.config import shop_config  # type: ignore
except Exception:  # pragma: no cover
    shop_config = None  # type: ignore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ShopSettings:
    """Runtime settings for the shop index.

    Notes
    - game_data is the catalog directory; scene_data defaults to it.
    - area_priority falls back to the reference data list when empty.
    """

    game_data: Optional[Path] = None
    scene_data: Optional[Path] = None
    report_dir: Optional[Path] = None
    index_dir: Optional[Path] = None
    reference_data: Optional[Path] = None
    custom_shops: Optional[Path] = None
    area_priority: Tuple[int, ...] = ()
    trace_npc_ids: Tuple[int, ...] = field(default_factory=tuple)
    verbose: bool = False

    @classmethod
    def from_config(cls, **overrides) -> "ShopSettings":
        values = {}
        if shop_config is not None:
            values = dict(
                game_data=shop_config.get_path("PATHS", "GAME_DATA"),
                scene_data=shop_config.get_path("PATHS", "SCENE_DATA"),
                report_dir=shop_config.get_path("PATHS", "REPORT_DIR"),
                index_dir=shop_config.get_path("PATHS", "INDEX_DIR"),
                reference_data=shop_config.get_path("SHOP", "REFERENCE_DATA"),
                custom_shops=shop_config.get_path("SHOP", "CUSTOM_SHOPS"),
                area_priority=tuple(shop_config.get_int_list("SHOP", "AREA_PRIORITY")),
                trace_npc_ids=tuple(shop_config.get_int_list("SHOP", "TRACE_NPC_IDS")),
                verbose=shop_config.get_bool("SHOP", "VERBOSE_LOGGING"),
            )
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    def catalog_loader(self):
        if not self.game_data:
            raise SystemExit("GAME_DATA missing. Set conf/settings.ini or pass --game-data.")
        game_data = Path(self.game_data)
        scene_data = self.scene_data

        def _load() -> CatalogSnapshot:
            scene = open_game_data(scene_data) if scene_data else None
            return load_catalog_dir(game_data, scene_source=scene)

        return _load


def load_custom_shops(path: Optional[Path]) -> List[CustomShopEntry]:
    """Read custom shop entries from a JSON list; bad rows are skipped."""

    if not path:
        return []
    p = Path(path)
    if not p.exists():
        return []
    try:
        doc = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.warning("Custom shops file unreadable (%s): %s", p, e)
        return []
    if not isinstance(doc, list):
        logger.warning("Custom shops file must hold a JSON list: %s", p)
        return []
    out: List[CustomShopEntry] = []
    for row in doc:
        if not isinstance(row, dict):
            continue
        try:
            out.append(CustomShopEntry.from_dict(row))
        except (TypeError, ValueError) as e:
            logger.warning("Custom shop entry skipped: %s", e)
    return out
