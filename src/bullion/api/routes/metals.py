"""Public read endpoints: health, metal records, schedule and API configuration."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse

from bullion.models import MetalKind

router = APIRouter()


def parse_metal(value: str) -> MetalKind:
    """Path/body metal name to MetalKind, or a 400 response."""
    try:
        return MetalKind(value.lower())
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid metal type") from None


@router.get("/health")
async def health(request: Request) -> JSONResponse:
    clock = request.app.state.clock
    return JSONResponse(content={"status": "ok", "timestamp": clock.now().isoformat()})


@router.get("/metals")
async def get_all_metals(request: Request) -> JSONResponse:
    """Every metal record plus a response timestamp."""
    service = request.app.state.service
    return JSONResponse(content=await service.get_all())


@router.get("/metals/{metal}")
async def get_metal(metal: str, request: Request) -> JSONResponse:
    kind = parse_metal(metal)
    record = await request.app.state.service.get_metal(kind)
    if record is None:
        raise HTTPException(status_code=404, detail="Metal data not found")
    return JSONResponse(content=record.to_dict())


@router.get("/config/schedule")
async def get_schedule(request: Request) -> JSONResponse:
    config = await request.app.state.service.get_schedule_config()
    return JSONResponse(content=config)


@router.get("/config/api")
async def get_api_config(request: Request) -> JSONResponse:
    """Whether the API source key is set (masked) and the exchange rate in use."""
    config = await request.app.state.service.get_api_config()
    return JSONResponse(content=config)
