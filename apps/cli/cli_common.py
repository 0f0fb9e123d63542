#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Shared paths for CLI tools."""

from __future__ import annotations

from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[2]
DATA_DIR = PROJECT_ROOT / "data"
REPORT_DIR = DATA_DIR / "reports"
