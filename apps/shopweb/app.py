# -*- coding: utf-8 -*-
from __future__ import annotations

import logging
from typing import Optional, Sequence

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from core.shop.models import CustomShopEntry
from core.shop.service import IndexQueryService

from .api import router as api_router
from .settings import ShopWebSettings

logger = logging.getLogger(__name__)


def create_app(
    service: IndexQueryService,
    *,
    root_path: str = "",
    cors_allow_origins: Optional[Sequence[str]] = None,
    gzip_minimum_size: int = 800,
    build_on_startup: bool = True,
    custom_shops: Optional[Sequence[CustomShopEntry]] = None,
) -> FastAPI:
    """FastAPI app factory."""

    rp = ShopWebSettings.normalize_root_path(root_path)

    app = FastAPI(
        title="Vendor Atlas API",
        version="1.0",
        root_path=rp,
        docs_url="/docs",
        redoc_url=None,
    )

    # state
    app.state.service = service
    if custom_shops is not None:
        service.refresh_custom_shops(list(custom_shops))
    if build_on_startup:
        service.build()

    # middleware
    if gzip_minimum_size and gzip_minimum_size > 0:
        app.add_middleware(GZipMiddleware, minimum_size=int(gzip_minimum_size))

    if cors_allow_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(cors_allow_origins),
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    # routes
    app.include_router(api_router)

    @app.on_event("shutdown")
    def _shutdown() -> None:
        service.shutdown(wait=False)

    @app.get("/healthz")
    def healthz():
        return {"ok": True, "initialized": service.is_initialized}

    return app
