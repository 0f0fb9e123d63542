# -*- coding: utf-8 -*-
"""scene_layer.py

Minimal reader for LGB scene-layer files (per-territory placed objects).

Layout (little-endian)
- header:   magic 'LGB1', u32 file_size, u32 chunk_count
- chunk:    magic 'LGP1', u32 chunk_size, u32 layer_group_id,
            u32 name_offset, u32 layers_offset, u32 layer_count
            (offsets relative to the chunk body, i.e. just after chunk_size)
- layers:   i32[layer_count] offsets into the layer table, each pointing at
            u32 layer_id, u32 name_offset, u32 objects_offset, u32 object_count
- objects:  i32[object_count] offsets relative to the layer record, each object
            u32 asset_type, u32 instance_id, u32 name_offset,
            f32x3 translation, f32x3 rotation, f32x3 scale, then a
            type-specific body; for event NPCs the body starts with u32 base_id

Only event NPC objects are decoded in depth; everything else is skipped.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Iterator, List, Tuple

from core.shop.errors import SceneLayerError

EVENT_NPC_ASSET_TYPE = 8

_HEADER = struct.Struct("<4sII")
_CHUNK = struct.Struct("<4sIIIII")
_LAYER = struct.Struct("<IIII")
_OBJECT = struct.Struct("<III3f3f3f")
_U32 = struct.Struct("<I")
_I32 = struct.Struct("<i")


@dataclass(frozen=True)
class Transform:
    translation: Tuple[float, float, float]
    rotation: Tuple[float, float, float]
    scale: Tuple[float, float, float]


@dataclass(frozen=True)
class InstanceObject:
    asset_type: int
    instance_id: int
    name: str
    transform: Transform
    base_id: int = 0

    @property
    def is_event_npc(self) -> bool:
        return self.asset_type == EVENT_NPC_ASSET_TYPE


@dataclass(frozen=True)
class Layer:
    id: int
    name: str
    objects: Tuple[InstanceObject, ...]


@dataclass(frozen=True)
class SceneLayerFile:
    layer_group_id: int
    name: str
    layers: Tuple[Layer, ...]

    def event_npcs(self) -> Iterator[InstanceObject]:
        for layer in self.layers:
            for obj in layer.objects:
                if obj.is_event_npc:
                    yield obj


def _unpack(fmt: struct.Struct, data: bytes, off: int, what: str):
    if off < 0 or off + fmt.size > len(data):
        raise SceneLayerError(f"truncated {what} at 0x{off:x}")
    return fmt.unpack_from(data, off)


def _cstr(data: bytes, off: int) -> str:
    if off < 0 or off >= len(data):
        return ""
    end = data.find(b"\x00", off)
    if end < 0:
        end = len(data)
    return data[off:end].decode("utf-8", errors="replace")


def _parse_object(data: bytes, off: int) -> InstanceObject:
    vals = _unpack(_OBJECT, data, off, "object")
    asset_type, instance_id, name_off = vals[0], vals[1], vals[2]
    tr = Transform(translation=tuple(vals[3:6]), rotation=tuple(vals[6:9]), scale=tuple(vals[9:12]))
    base_id = 0
    if asset_type == EVENT_NPC_ASSET_TYPE:
        (base_id,) = _unpack(_U32, data, off + _OBJECT.size, "event npc body")
    return InstanceObject(
        asset_type=asset_type,
        instance_id=instance_id,
        name=_cstr(data, off + name_off) if name_off else "",
        transform=tr,  # type: ignore[arg-type]
        base_id=base_id,
    )


def _parse_layer(data: bytes, off: int) -> Layer:
    layer_id, name_off, objects_off, count = _unpack(_LAYER, data, off, "layer")
    table = off + objects_off
    objects: List[InstanceObject] = []
    for i in range(count):
        (rel,) = _unpack(_I32, data, table + i * 4, "object table")
        objects.append(_parse_object(data, off + rel))
    return Layer(id=layer_id, name=_cstr(data, off + name_off) if name_off else "", objects=tuple(objects))


def parse_scene_layer(data: bytes) -> SceneLayerFile:
    """Parse one LGB file. Raises SceneLayerError on malformed input."""

    if not data:
        raise SceneLayerError("empty scene-layer file")
    magic, file_size, chunk_count = _unpack(_HEADER, data, 0, "header")
    if magic != b"LGB1":
        raise SceneLayerError(f"bad magic {magic!r}")
    if file_size > len(data):
        raise SceneLayerError(f"declared size {file_size} exceeds {len(data)} bytes")
    if chunk_count < 1:
        raise SceneLayerError("no layer group chunk")

    chunk_off = _HEADER.size
    cmagic, _chunk_size, group_id, name_off, layers_off, layer_count = _unpack(_CHUNK, data, chunk_off, "chunk")
    if cmagic != b"LGP1":
        raise SceneLayerError(f"bad chunk magic {cmagic!r}")

    body = chunk_off + 8
    table = body + layers_off
    layers: List[Layer] = []
    for i in range(layer_count):
        (rel,) = _unpack(_I32, data, table + i * 4, "layer table")
        layers.append(_parse_layer(data, table + rel))

    return SceneLayerFile(
        layer_group_id=group_id,
        name=_cstr(data, body + name_off) if name_off else "",
        layers=tuple(layers),
    )


def scene_layer_paths(bg: str) -> List[str]:
    """Candidate LGB paths for a territory background path.

    ``ffxiv/sea_s1/twn/s1t1/level/s1t1`` →
    ``bg/ffxiv/sea_s1/twn/s1t1/level/planevent.lgb`` and ``.../level/bg.lgb``.
    """
    idx = (bg or "").find("/level/")
    if idx < 0:
        return []
    base = "bg/" + bg[: idx + len("/level/")]
    return [base + "planevent.lgb", base + "bg.lgb"]


# -----------------------------
# Writer (fixtures / round-trip tooling)
# -----------------------------


def build_scene_layer(layers: List[Tuple[int, str, List[InstanceObject]]], *, group_id: int = 0) -> bytes:
    """Serialize layers into LGB bytes (layout above)."""

    layer_blobs: List[bytes] = []
    for layer_id, name, objects in layers:
        obj_blobs: List[bytes] = []
        for obj in objects:
            tr = obj.transform
            head = _OBJECT.pack(obj.asset_type, obj.instance_id, 0, *tr.translation, *tr.rotation, *tr.scale)
            body = _U32.pack(obj.base_id) if obj.asset_type == EVENT_NPC_ASSET_TYPE else b""
            obj_blobs.append(head + body)
        name_b = name.encode("utf-8") + b"\x00"
        table_off = _LAYER.size
        objects_start = table_off + 4 * len(obj_blobs)
        rels: List[int] = []
        cur = objects_start
        for blob in obj_blobs:
            rels.append(cur)
            cur += len(blob)
        name_off = cur
        rec = _LAYER.pack(layer_id, name_off, table_off, len(obj_blobs))
        rec += b"".join(_I32.pack(r) for r in rels) + b"".join(obj_blobs) + name_b
        layer_blobs.append(rec)

    table_len = 4 * len(layer_blobs)
    rels = []
    cur = table_len
    for blob in layer_blobs:
        rels.append(cur)
        cur += len(blob)
    # chunk body: fixed fields after chunk_size (group id, name, layers offset, count) = 16 bytes
    layers_off = 16
    table = b"".join(_I32.pack(r) for r in rels) + b"".join(layer_blobs)
    body_tail = table
    chunk_size = 16 + len(body_tail)
    chunk = _CHUNK.pack(b"LGP1", chunk_size, group_id, 0, layers_off, len(layer_blobs)) + body_tail
    total = _HEADER.size + len(chunk)
    return _HEADER.pack(b"LGB1", total, 1) + chunk
