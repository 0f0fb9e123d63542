# -*- coding: utf-8 -*-
"""Domain records shared by the shop index pipeline.

Notes
- Every record is a frozen dataclass; published snapshots hand them out by reference.
- `NpcVendorLink` only exists while a build runs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Tuple


class VendorKind(str, Enum):
    SIMPLE = "simple"
    EXCHANGE = "exchange"


class HousingNpcType(str, Enum):
    MATERIAL_SUPPLIER = "material_supplier"
    JUNKMONGER = "junkmonger"

    @property
    def label(self) -> str:
        return _HOUSING_LABELS[self]

    @classmethod
    def parse(cls, raw: object) -> "HousingNpcType":
        # accepts "material_supplier", "Material Supplier", "MaterialSupplier"
        key = str(raw or "").strip().lower().replace(" ", "").replace("-", "").replace("_", "")
        for member in cls:
            if member.value.replace("_", "") == key:
                return member
        raise ValueError(f"unknown housing npc type: {raw!r}")


_HOUSING_LABELS = {
    HousingNpcType.MATERIAL_SUPPLIER: "Material Supplier",
    HousingNpcType.JUNKMONGER: "Junkmonger",
}


class BuildState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELED = "canceled"
    FAILED = "failed"


@dataclass(frozen=True)
class Item:
    id: int
    name: str
    price: int = 0


@dataclass(frozen=True)
class Vendor:
    id: int
    name: str
    kind: VendorKind


@dataclass(frozen=True)
class Npc:
    id: int
    name: str
    slots: Tuple[int, ...] = ()


@dataclass(frozen=True)
class WorldLocation:
    territory_id: int
    area_name: str
    sub_area_name: str
    map_id: int
    map_x: float
    map_y: float
    manually_added: bool = False


@dataclass(frozen=True)
class NpcVendorLink:
    npc_id: int
    vendor_id: int
    vendor_name: str
    is_simple: bool


@dataclass(frozen=True)
class SaleLocation:
    vendor_id: int
    vendor_name: str
    npc_name: str
    territory_id: int
    area_name: str
    sub_area_name: str
    map_id: int
    map_x: float
    map_y: float
    price: int = 0
    condition_note: str = ""
    manually_added: bool = False
    is_custom: bool = False

    def dedup_key(self) -> Tuple[int, str, int]:
        return (self.vendor_id, self.npc_name, self.territory_id)

    def to_dict(self) -> dict:
        return {
            "vendor_id": self.vendor_id,
            "vendor_name": self.vendor_name,
            "npc_name": self.npc_name,
            "territory_id": self.territory_id,
            "area_name": self.area_name,
            "sub_area_name": self.sub_area_name,
            "map_id": self.map_id,
            "map_x": self.map_x,
            "map_y": self.map_y,
            "price": self.price,
            "condition_note": self.condition_note,
            "manually_added": self.manually_added,
            "is_custom": self.is_custom,
        }


@dataclass(frozen=True)
class CustomShopEntry:
    """User-declared virtual vendor (e.g. a housing-ward NPC the player placed)."""

    id: str
    name: str
    territory_id: int
    map_id: int = 0
    x: float = 0.0
    y: float = 0.0
    enabled: bool = True
    npc_types: Tuple[HousingNpcType, ...] = ()

    @classmethod
    def from_dict(cls, row: dict) -> "CustomShopEntry":
        types = tuple(HousingNpcType.parse(t) for t in (row.get("npc_types") or []))
        return cls(
            id=str(row.get("id") or ""),
            name=str(row.get("name") or ""),
            territory_id=int(row.get("territory_id") or 0),
            map_id=int(row.get("map_id") or 0),
            x=float(row.get("x") or 0.0),
            y=float(row.get("y") or 0.0),
            enabled=bool(row.get("enabled", True)),
            npc_types=types,
        )


@dataclass(frozen=True)
class ExcludedNpcRecord:
    npc_id: int
    npc_name: str
    vendor_id: int
    vendor_name: str


@dataclass(frozen=True)
class UnmatchedVendorRecord:
    vendor_id: int
    item_ids: Tuple[int, ...]


@dataclass(frozen=True)
class TerritoryGroup:
    name: str
    representative_id: int
    member_ids: Tuple[int, ...]


@dataclass(frozen=True)
class ItemHit:
    id: int
    name: str


@dataclass
class BuildStats:
    """Counters for the simple-vendor pass."""

    total_rows: int = 0
    processed: int = 0
    skipped: int = 0
    no_item_id: int = 0
    no_shop_id: int = 0
    no_npc_match: int = 0
    other: int = 0
    exchange_vendors: int = 0
    exchange_entries: int = 0

    def as_dict(self) -> dict:
        return dict(self.__dict__)


@dataclass(frozen=True)
class BuildStatus:
    state: BuildState = BuildState.IDLE
    phase: str = ""
    message: str = ""
    processed: int = 0
    total: int = 0
    generation: int = 0
    extra: dict = field(default_factory=dict)

    @property
    def is_terminal(self) -> bool:
        return self.state in (BuildState.COMPLETED, BuildState.CANCELED, BuildState.FAILED)
