#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Run the shop index HTTP API (FastAPI + Uvicorn).

Usage:
  python3 devtools/serve_shopweb.py --game-data data/catalogs --host 0.0.0.0 --port 20010
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import uvicorn  # type: ignore  # noqa: E402

from apps.shopweb.app import create_app  # noqa: E402
from apps.shopweb.settings import ShopWebSettings  # noqa: E402
from core.shop.service import IndexQueryService  # noqa: E402
from core.shop.settings import ShopSettings, load_custom_shops  # noqa: E402


def main() -> int:
    parser = argparse.ArgumentParser(description="Vendor Atlas HTTP API server.")
    parser.add_argument("--game-data", default=None, help="Catalog directory (default from config)")
    parser.add_argument("--scene-data", default=None, help="Scene-layer folder or zip")
    parser.add_argument("--custom-shops", default=None, help="Custom shop entries JSON")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8010)
    parser.add_argument("--root-path", default="", help="Reverse proxy mount path, e.g. /shops")
    parser.add_argument("--log-level", default="info", choices=["critical", "error", "warning", "info", "debug", "trace"])
    parser.add_argument("--cors-allow-origin", action="append", default=[], help="CORS allow origin (repeatable)")
    parser.add_argument("--lazy", action="store_true", help="Do not start the index build until POST /api/v1/rebuild")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.log_level in ("debug", "trace") else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    shop = ShopSettings.from_config(
        game_data=Path(args.game_data).expanduser().resolve() if args.game_data else None,
        scene_data=Path(args.scene_data).expanduser().resolve() if args.scene_data else None,
        custom_shops=Path(args.custom_shops).expanduser().resolve() if args.custom_shops else None,
    )
    if not shop.game_data or not Path(shop.game_data).is_dir():
        print(f"❌ Catalog directory not found: {shop.game_data}")
        return 2

    web = ShopWebSettings(
        game_data=Path(shop.game_data),
        root_path=args.root_path,
        cors_allow_origins=(args.cors_allow_origin or None),
        build_on_startup=not args.lazy,
    )

    service = IndexQueryService(
        shop.catalog_loader(),
        reference_path=shop.reference_data,
        trace_npc_ids=shop.trace_npc_ids,
        verbose=shop.verbose,
    )
    app = create_app(
        service,
        root_path=web.root_path,
        cors_allow_origins=web.cors_allow_origins,
        gzip_minimum_size=web.gzip_minimum_size,
        build_on_startup=web.build_on_startup,
        custom_shops=load_custom_shops(shop.custom_shops),
    )

    rp = ShopWebSettings.normalize_root_path(web.root_path)
    print(f"Vendor Atlas API: http://{args.host}:{int(args.port)}{rp}/docs")
    print(f"Catalogs: {web.game_data}")

    uvicorn.run(
        app,
        host=str(args.host),
        port=int(args.port),
        log_level=args.log_level,
        proxy_headers=True,
        forwarded_allow_ips="*",
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
