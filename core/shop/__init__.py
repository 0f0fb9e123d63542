# -*- coding: utf-8 -*-
"""Item → vendor location index (catalog loading, build, queries)."""

from .builder import ShopIndexSnapshot, build_shop_index
from .catalogs import CatalogSnapshot, load_catalog_dir, snapshot_from_rows
from .errors import BuildCanceled, MissingCatalogError, SceneLayerError, ShopDataError
from .models import BuildState, CustomShopEntry, HousingNpcType, SaleLocation, TerritoryGroup
from .reference_data import ReferenceData, load_reference_data
from .service import IndexQueryService
from .sorting import sort_by_priority

__all__ = [
    "BuildCanceled",
    "BuildState",
    "CatalogSnapshot",
    "CustomShopEntry",
    "HousingNpcType",
    "IndexQueryService",
    "MissingCatalogError",
    "ReferenceData",
    "SaleLocation",
    "SceneLayerError",
    "ShopDataError",
    "ShopIndexSnapshot",
    "TerritoryGroup",
    "build_shop_index",
    "load_catalog_dir",
    "load_reference_data",
    "snapshot_from_rows",
    "sort_by_priority",
]
