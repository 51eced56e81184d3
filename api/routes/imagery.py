"""
Imagery Routes - Earth Imagery chips, GIBS tile proxy and Harmony jobs.
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException
from fastapi.responses import Response

from api.schemas import (
    EarthImageryRequest,
    EarthImageryResponse,
    HarmonyJobRequest,
    HarmonyJobResponse,
)
from modules.errors import SourceFetchError
from modules.harmony import submit_harmony_job
from modules.imagery import fetch_earth_imagery, proxy_gibs_tile

router = APIRouter()

_TILE_CACHE_SECONDS = 3600 * 24


@router.post("/earth-imagery", response_model=EarthImageryResponse)
async def earth_imagery(req: EarthImageryRequest):
    try:
        data = await fetch_earth_imagery(req.lat, req.lng, date=req.date, dim=req.dim)
    except SourceFetchError as exc:
        raise HTTPException(status_code=502, detail=str(exc))
    return EarthImageryResponse(**data)


@router.get("/gibs/{tile_path:path}")
async def gibs_tile(tile_path: str):
    """Proxy ``{layer}/default/{date}/{resolution}/{z}/{y}/{x}.{fmt}`` to GIBS.

    Keeps the NASA key server-side; tiles are cacheable for 24 hours.
    """
    try:
        content, content_type, status = await proxy_gibs_tile(tile_path)
    except SourceFetchError as exc:
        raise HTTPException(status_code=502, detail=str(exc))
    headers = {"Cache-Control": f"public, max-age={_TILE_CACHE_SECONDS}"} if status < 400 else None
    return Response(content=content, media_type=content_type, status_code=status, headers=headers)


@router.post("/harmony-jobs", response_model=HarmonyJobResponse)
async def harmony_job(req: HarmonyJobRequest):
    try:
        data = await submit_harmony_job(
            req.dataset_id, req.bbox,
            output_crs=req.output_crs, max_results=req.max_results,
        )
    except SourceFetchError as exc:
        raise HTTPException(status_code=502, detail=str(exc))
    return HarmonyJobResponse(**data)
