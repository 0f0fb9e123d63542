"""Tests for the JSON export, settings and config loader."""

import json

import pytest

from core.config.loader import ConfigLoader
from core.shop.builder import build_shop_index
from core.shop.export import render_summary, snapshot_to_dict
from core.shop.models import HousingNpcType
from core.shop.settings import ShopSettings, load_custom_shops
from core.version import SHOP_INDEX_SCHEMA


class TestExport:
    def test_document_layout(self, catalog, reference):
        snap = build_shop_index(catalog, reference=reference, generation=4)
        doc = snapshot_to_dict(snap, sources={"catalogs": "x"})
        meta = doc["meta"]
        assert meta["schema"] == SHOP_INDEX_SCHEMA
        assert meta["tool"] == "build_shop_index"
        assert meta["generation"] == 4
        assert meta["sources"] == {"catalogs": "x"}
        assert list(doc["items"]) == ["4001", "4002", "4003", "4004", "4008"]
        assert doc["items"]["4004"]["locations"][0]["npc_name"] == "Legacy Lou"
        assert doc["stats"]["items"] == 5
        json.dumps(doc)

    def test_summary(self, catalog, reference):
        snap = build_shop_index(catalog, reference=reference)
        text = render_summary(snap, excluded_npcs=4, unmatched_vendors=1)
        assert "items: 5" in text
        assert "excluded_npcs: 4" in text


class TestConfigLoader:
    @pytest.fixture
    def ini(self, tmp_path):
        p = tmp_path / "settings.ini"
        p.write_text(
            "[PATHS]\nGAME_DATA = data/catalogs\nABS = /srv/catalogs\nEMPTY =\n"
            "[SHOP]\nAREA_PRIORITY = 129; 128, x\nVERBOSE_LOGGING = yes\n",
            encoding="utf-8",
        )
        return p

    def test_paths(self, ini):
        cfg = ConfigLoader(ini)
        assert cfg.get_path("PATHS", "GAME_DATA") == cfg.project_root / "data" / "catalogs"
        assert str(cfg.get_path("PATHS", "ABS")) == "/srv/catalogs"
        assert cfg.get_path("PATHS", "EMPTY") is None
        assert cfg.get_path("PATHS", "NOPE") is None

    def test_lists_and_flags(self, ini):
        cfg = ConfigLoader(ini)
        assert cfg.get_int_list("SHOP", "AREA_PRIORITY") == [129, 128]
        assert cfg.get_bool("SHOP", "VERBOSE_LOGGING")
        assert not cfg.get_bool("SHOP", "MISSING")

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ConfigLoader(tmp_path / "none.ini")


class TestShopSettings:
    def test_overrides_win_and_none_ignored(self, tmp_path):
        s = ShopSettings.from_config(game_data=tmp_path, scene_data=None, verbose=True)
        assert s.game_data == tmp_path
        assert s.verbose is True
        assert s.index_dir.parts[-2:] == ("data", "index")
        assert s.area_priority == (128, 129, 130, 131, 132, 133)

    def test_catalog_loader(self, catalog_dir):
        snap = ShopSettings(game_data=catalog_dir).catalog_loader()()
        assert len(snap.items) == 14
        assert snap.scene_source is not None

    def test_catalog_loader_requires_path(self):
        with pytest.raises(SystemExit):
            ShopSettings().catalog_loader()


class TestLoadCustomShops:
    def test_reads_valid_rows(self, tmp_path):
        p = tmp_path / "custom.json"
        p.write_text(
            json.dumps(
                [
                    {"id": "a", "name": "Ward NPC", "territory_id": 339, "npc_types": ["Junkmonger"]},
                    {"id": "b", "name": "Bad", "territory_id": 339, "npc_types": ["Armorer"]},
                    "junk",
                ]
            ),
            encoding="utf-8",
        )
        entries = load_custom_shops(p)
        assert [e.id for e in entries] == ["a"]
        assert entries[0].npc_types == (HousingNpcType.JUNKMONGER,)

    def test_missing_or_bad_file(self, tmp_path):
        assert load_custom_shops(None) == []
        assert load_custom_shops(tmp_path / "none.json") == []
        bad = tmp_path / "bad.json"
        bad.write_text("{}", encoding="utf-8")
        assert load_custom_shops(bad) == []
