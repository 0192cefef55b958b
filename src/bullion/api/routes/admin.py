"""Authenticated write endpoints: price updates, sync, repair, configuration."""

import datetime as dt
from decimal import Decimal

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from bullion.api.auth import require_api_key
from bullion.api.routes.metals import parse_metal
from bullion.logging import get_logger
from bullion.models import MetalRate, PriceUnit

logger = get_logger(__name__)

router = APIRouter(dependencies=[Depends(require_api_key)])


class RateIn(BaseModel):
    purity: str
    price: Decimal


class UpdatePricesRequest(BaseModel):
    metal: str
    rates: list[RateIn]
    date: dt.date | None = None


class MetalRatesIn(BaseModel):
    rates: list[RateIn]


class UpdateAllRequest(BaseModel):
    gold: MetalRatesIn | None = None
    silver: MetalRatesIn | None = None
    platinum: MetalRatesIn | None = None


class ManualUpdateRequest(BaseModel):
    metal: str
    price: Decimal
    unit: PriceUnit = PriceUnit.GRAM
    date: dt.date | None = None


class ScheduleConfigRequest(BaseModel):
    enabled: bool | None = None
    frequency: str | None = None
    timezone: str | None = None


class ApiConfigRequest(BaseModel):
    api_ninjas_key: str | None = Field(default=None, alias="apiNinjasKey")
    usd_to_inr_rate: Decimal | None = Field(default=None, alias="usdToInrRate")


def _to_rates(rates: list[RateIn]) -> list[MetalRate]:
    return [MetalRate(purity=r.purity, price=r.price) for r in rates]


@router.post("/update-prices")
async def update_prices(body: UpdatePricesRequest, request: Request) -> JSONResponse:
    """Reconcile caller-supplied rates, optionally for a past date."""
    metal = parse_metal(body.metal)
    service = request.app.state.service
    record = await service.update_prices(metal, _to_rates(body.rates), body.date)
    return JSONResponse(content={
        "success": True,
        "message": f"{metal.value} prices updated successfully",
        "data": record.to_dict(),
    })


@router.post("/update-all")
async def update_all(body: UpdateAllRequest, request: Request) -> JSONResponse:
    """Reconcile today's rates for every metal present in the body."""
    service = request.app.state.service
    updates = {}
    for name in ("gold", "silver", "platinum"):
        entry = getattr(body, name)
        if entry is None or not entry.rates:
            continue
        record = await service.update_prices(parse_metal(name), _to_rates(entry.rates))
        updates[name] = record.to_dict()
    return JSONResponse(content={
        "success": True,
        "message": "All metal prices updated successfully",
        "data": updates,
    })


@router.post("/manual-update")
async def manual_update(body: ManualUpdateRequest, request: Request) -> JSONResponse:
    """Update a metal from one base price quoted in any supported unit."""
    metal = parse_metal(body.metal)
    record = await request.app.state.service.manual_update(
        metal, body.price, body.unit, body.date
    )
    return JSONResponse(content={
        "success": True,
        "message": f"{metal.value} prices updated successfully",
        "data": record.to_dict(),
    })


@router.post("/initialize")
async def initialize(request: Request) -> JSONResponse:
    created = await request.app.state.service.initialize_with_mock_data()
    return JSONResponse(content={
        "success": True,
        "message": "Database initialized with mock data",
        "created": [m.value for m in created],
    })


@router.post("/sync-prices")
async def sync_prices(request: Request) -> JSONResponse:
    """Run a sync against the configured source and wait for it to finish."""
    report = await request.app.state.price_sync.sync_all()
    await request.app.state.service.mark_sync_run()
    return JSONResponse(content=report.to_dict(), status_code=200 if report.success else 502)


@router.post("/recalculate-changes")
async def recalculate_changes(request: Request) -> JSONResponse:
    results = await request.app.state.service.recalculate_all()
    return JSONResponse(content={
        "success": True,
        "message": "Successfully recalculated change values for all metals",
        "results": results,
    })


@router.post("/config/schedule")
async def update_schedule(body: ScheduleConfigRequest, request: Request) -> JSONResponse:
    config = await request.app.state.service.update_schedule_config(body.model_dump())
    return JSONResponse(content={
        "success": True,
        "message": "Schedule configuration updated",
        "config": config,
    })


@router.post("/config/api")
async def update_api_config(body: ApiConfigRequest, request: Request) -> JSONResponse:
    """Rotate the API source key and/or exchange rate without a restart."""
    config = await request.app.state.service.update_api_config(
        api_ninjas_key=body.api_ninjas_key,
        usd_to_inr_rate=body.usd_to_inr_rate,
    )
    return JSONResponse(content={
        "success": True,
        "message": "API configuration updated",
        "config": config,
    })
