"""Entry point for the metal price service.

Subcommands:
  serve        Run the HTTP API (uvicorn) with all components wired.
  sync         Fetch every metal from the configured source once (for cron).
  recalculate  Repair stored change values from history.
  initialize   Seed metals that have no record with mock prices.

Component wiring order (in _build_components):
1. MetalDatabase + SqliteRecordStore (primary store)
2. SnapshotWriter (secondary JSON files, optional)
3. ReferenceClock (fixed reference timezone)
4. HistoryReconciler
5. MetalPriceService (per-metal locking)
6. ObservationSource (selected by SOURCE_NAME)
7. PriceSync
"""

import argparse
import asyncio
import json
from contextlib import asynccontextmanager
from typing import Any

import uvicorn
from fastapi import FastAPI

from bullion.clock import ReferenceClock
from bullion.config import AppSettings, SourceSettings
from bullion.logging import get_logger, setup_logging
from bullion.pricing.reconciler import HistoryReconciler
from bullion.service import MetalPriceService
from bullion.sources.api_ninjas import ApiNinjasSource
from bullion.sources.base import ObservationSource
from bullion.sources.fivepaisa import FivePaisaSource
from bullion.sources.mcx import McxSource
from bullion.store.base import RecordStore
from bullion.store.database import MetalDatabase
from bullion.store.snapshot import SnapshotWriter
from bullion.store.sqlite_store import SqliteRecordStore
from bullion.sync import PriceSync

_SOURCES: dict[str, type] = {
    "fivepaisa": FivePaisaSource,
    "mcx": McxSource,
}


def build_source(settings: SourceSettings, store: RecordStore | None = None) -> ObservationSource:
    """Instantiate the observation source named in settings.

    The API Ninjas source also reads its runtime `api` config from the store.
    """
    if settings.name == "api_ninjas":
        return ApiNinjasSource(settings, config_store=store)
    return _SOURCES[settings.name](settings)


async def _build_components(settings: AppSettings) -> dict[str, Any]:
    """Build and connect all components from settings.

    Returns:
        Dict mapping component names to instances. The caller must close
        "database" and "source" when done (see _close_components).
    """
    database = MetalDatabase(settings.store.db_path)
    await database.connect()
    store = SqliteRecordStore(database)

    snapshots = SnapshotWriter(settings.store.snapshot_dir) if settings.store.snapshots_enabled else None
    clock = ReferenceClock(settings.pricing.utc_offset_minutes)

    reconciler = HistoryReconciler(
        store=store,
        clock=clock,
        snapshots=snapshots,
        history_limit=settings.pricing.history_limit,
    )
    service = MetalPriceService(
        reconciler, store, clock, snapshots, source_settings=settings.source
    )

    source = build_source(settings.source, store)
    price_sync = PriceSync(source, service)

    return {
        "database": database,
        "store": store,
        "clock": clock,
        "service": service,
        "source": source,
        "price_sync": price_sync,
    }


async def _close_components(components: dict[str, Any]) -> None:
    try:
        await components["source"].close()
    finally:
        await components["database"].close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build components on startup, expose them on app.state, close on shutdown."""
    logger = get_logger("bullion.main")
    components = await _build_components(app.state.settings)

    app.state.clock = components["clock"]
    app.state.service = components["service"]
    app.state.price_sync = components["price_sync"]

    logger.info("api_started", source=components["source"].name)
    try:
        yield
    finally:
        await _close_components(components)
        logger.info("api_stopped")


async def _serve(settings: AppSettings) -> None:
    from bullion.api.app import create_app

    app = create_app(settings, lifespan=lifespan)
    config = uvicorn.Config(
        app,
        host=settings.api.host,
        port=settings.api.port,
        log_level="warning",
    )
    await uvicorn.Server(config).serve()


async def _run_once(settings: AppSettings, command: str) -> int:
    """Run a one-shot command and return the process exit code."""
    logger = get_logger("bullion.main")
    components = await _build_components(settings)
    service: MetalPriceService = components["service"]
    try:
        if command == "sync":
            schedule = await service.get_schedule_config()
            if not schedule["enabled"]:
                logger.info("scheduled_sync_disabled")
                return 0
            report = await components["price_sync"].sync_all()
            await service.mark_sync_run()
            print(json.dumps(report.to_dict(), indent=2))
            return 0 if report.success else 1
        if command == "recalculate":
            results = await service.recalculate_all()
            print(json.dumps(results, indent=2))
            return 0
        if command == "initialize":
            created = await service.initialize_with_mock_data()
            print(json.dumps([m.value for m in created]))
            return 0
        raise ValueError(f"unknown command: {command}")
    finally:
        await _close_components(components)


def main(argv: list[str] | None = None) -> int:
    """Synchronous entry point."""
    parser = argparse.ArgumentParser(prog="bullion", description="Metal price service")
    parser.add_argument(
        "command",
        choices=["serve", "sync", "recalculate", "initialize"],
        help="what to run",
    )
    args = parser.parse_args(argv)

    settings = AppSettings()
    setup_logging(settings.log_level)

    if args.command == "serve":
        asyncio.run(_serve(settings))
        return 0
    return asyncio.run(_run_once(settings, args.command))


if __name__ == "__main__":
    raise SystemExit(main())
