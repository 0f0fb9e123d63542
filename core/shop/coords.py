# -*- coding: utf-8 -*-
"""World → map coordinate conversion.

The in-game map grid runs from 1.0 to ~42.0; raw positions are world units
centred on the territory origin. `offset` is part of the signature but the
formula does not use it (kept as-is so callers can pass map rows verbatim).
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal


def round_half_away(value: float, digits: int = 1) -> float:
    q = Decimal(1).scaleb(-digits)
    return float(Decimal(repr(float(value))).quantize(q, rounding=ROUND_HALF_UP))


def _convert(raw: float, size_factor: int) -> float:
    scale = size_factor / 100.0
    c = 41.0 / scale
    adjusted = (raw * scale + 1024.0) / 2048.0
    return c * adjusted + 1.0


def convert_from_float(raw: float, offset: int, size_factor: int, round_to_tenth: bool = True) -> float:
    if not size_factor:
        size_factor = 100
    value = _convert(float(raw), int(size_factor))
    if round_to_tenth:
        return round_half_away(value, 1)
    return value


def convert_from_short(raw: int, offset: int, size_factor: int) -> float:
    return convert_from_float(float(raw), offset, size_factor, True)
