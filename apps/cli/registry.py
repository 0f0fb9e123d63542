#!/usr/bin/env python3
"""Vendor Atlas 工具注册中心."""

TOOLS = [
    # --- CLI 工具 (apps/cli) ---
    {
        "file": "shop.py",
        "alias": "shop",
        "desc": "物品售卖位置查询 (search / where / areas / diag)",
        "usage": "atlas shop <search|where|areas|diag> ...",
        "type": "CLI",
        "folder": "apps/cli/commands"
    },

    # --- 开发工具 (devtools/) ---
    {
        "file": "build_shop_index.py",
        "alias": "build",
        "desc": "离线生成商店位置索引 (JSON + summary)",
        "usage": "atlas build [--game-data PATH] [--report-dir PATH] [--force]",
        "type": "Dev",
        "folder": "devtools"
    },
    {
        "file": "serve_shopweb.py",
        "alias": "web",
        "desc": "启动查询 API (FastAPI + Uvicorn)",
        "usage": "atlas web [--host 0.0.0.0 --port 8010]",
        "type": "Dev",
        "folder": "devtools"
    },
]


def get_tools():
    return TOOLS
