# -*- coding: utf-8 -*-
from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from core.shop.models import CustomShopEntry, HousingNpcType
from core.shop.service import IndexQueryService


def get_service(request: Request) -> IndexQueryService:
    """Resolve the query service from app state."""

    return request.app.state.service  # type: ignore[attr-defined]


def _json(data: Dict[str, Any], *, headers: Optional[Dict[str, str]] = None) -> JSONResponse:
    return JSONResponse(content=data, headers=headers or {})


def _parse_priority(raw: Optional[str], fallback) -> List[int]:
    if raw is None:
        return list(fallback or ())
    out: List[int] = []
    for tok in raw.split(","):
        tok = tok.strip()
        if tok.isdigit():
            out.append(int(tok))
    return out


router = APIRouter(prefix="/api/v1")


class CustomShopModel(BaseModel):
    id: str
    name: str
    territory_id: int = Field(..., ge=0)
    map_id: int = 0
    x: float = 0.0
    y: float = 0.0
    enabled: bool = True
    npc_types: List[str] = Field(default_factory=list)

    def to_entry(self) -> CustomShopEntry:
        return CustomShopEntry(
            id=self.id,
            name=self.name,
            territory_id=self.territory_id,
            map_id=self.map_id,
            x=self.x,
            y=self.y,
            enabled=self.enabled,
            npc_types=tuple(HousingNpcType.parse(t) for t in self.npc_types),
        )


class CustomShopsRequest(BaseModel):
    entries: List[CustomShopModel] = Field(default_factory=list)


class RebuildRequest(BaseModel):
    reason: str = "api"


@router.get("/status")
def status(svc: IndexQueryService = Depends(get_service)):
    st = svc.build_status
    snap = svc.snapshot
    return {
        "initialized": svc.is_initialized,
        "state": st.state.value,
        "phase": st.phase,
        "message": st.message,
        "processed": st.processed,
        "total": st.total,
        "generation": st.generation,
        "items": snap.item_count if snap else 0,
        "excluded_npcs": svc.excluded_npc_count,
        "unmatched_vendors": svc.unmatched_vendor_count,
    }


@router.get("/items/search")
def search_items(
    q: str = Query("", max_length=200),
    limit: int = Query(50, ge=1, le=500),
    sold_only: bool = Query(False),
    svc: IndexQueryService = Depends(get_service),
):
    hits = svc.search_by_name(q, limit, sold_only=sold_only)
    items = [{"id": h.id, "name": h.name, "sold": svc.has_item(h.id)} for h in hits]
    return _json({"q": q, "items": items, "count": len(items), "limit": int(limit)})


@router.get("/items/lookup")
def lookup_item(
    name: Optional[str] = Query(None),
    variant: Optional[int] = Query(None, ge=1, le=255),
    svc: IndexQueryService = Depends(get_service),
):
    if not name and variant is None:
        raise HTTPException(status_code=400, detail="name or variant required")
    item_id = svc.item_id_from_variant(int(variant)) if variant is not None else svc.item_id_from_name(str(name))
    if not item_id:
        raise HTTPException(status_code=404, detail="item not found")
    return {"id": item_id, "name": svc.get_item_name(item_id)}


@router.get("/items/{item_id}/locations")
def item_locations(
    item_id: int,
    priority: Optional[str] = Query(None, description="comma-separated territory ids"),
    svc: IndexQueryService = Depends(get_service),
):
    if item_id <= 0:
        raise HTTPException(status_code=400, detail="bad item_id")
    order = _parse_priority(priority, svc.default_area_priority())
    locs = svc.get_locations(item_id, priority=order)
    if not locs:
        svc.log_missing_item_diagnostics(item_id)
    return {
        "item_id": item_id,
        "name": svc.get_item_name(item_id),
        "sold": bool(locs),
        "locations": [loc.to_dict() for loc in locs],
    }


@router.get("/territories")
def territories(svc: IndexQueryService = Depends(get_service)):
    groups = svc.get_territory_groups()
    return {
        "groups": [
            {"name": g.name, "representative_id": g.representative_id, "member_ids": list(g.member_ids)}
            for g in groups
        ]
    }


@router.post("/custom-shops")
def custom_shops(req: CustomShopsRequest, svc: IndexQueryService = Depends(get_service)):
    try:
        entries = [e.to_entry() for e in req.entries]
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    items = svc.refresh_custom_shops(entries)
    return {"entries": len(entries), "items": items, "deferred": not svc.is_initialized}


@router.post("/rebuild")
def rebuild(req: RebuildRequest, svc: IndexQueryService = Depends(get_service)):
    svc.rebuild(req.reason or "api")
    return {"generation": svc.build_status.generation, "state": svc.build_status.state.value}
