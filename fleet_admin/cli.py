"""
Command line entry point.

    fleet-admin serve --port 8000
    fleet-admin reconcile --once
    fleet-admin reconcile --interval 30 --offline
    fleet-admin positions
    fleet-admin archive
"""
import argparse
import asyncio
import json
import logging
import sys
from datetime import datetime, timezone

from fleet_admin.core.config import settings
from fleet_admin.core.logging import configure_logging
from fleet_admin.schemas.trip import TripRecord
from fleet_admin.services.alerts_service import FleetAlerts
from fleet_admin.services.fleet_service import FleetService
from fleet_admin.services.interpolation_service import positions_for_trips
from fleet_admin.services.notification_service import Notifier
from fleet_admin.services.reconciler_service import ReconcilerLoop, TripReconciler
from fleet_admin.store import LocalStore, RemoteSync
from fleet_admin.store.local_store import TRIPS

logger = logging.getLogger("fleet_admin.cli")


def _open_store(args):
    store = LocalStore(args.store_dir)
    sync = None if args.offline else RemoteSync(base_url=args.api_url)
    return store, sync


# ----------------------------------------
# Commands
# ----------------------------------------

def cmd_serve(args) -> int:
    import uvicorn

    uvicorn.run("fleet_admin.main:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def cmd_reconcile(args) -> int:
    store, sync = _open_store(args)
    notifier = Notifier(store, sync)
    reconciler = TripReconciler(store, sync, notifier)
    alerts = FleetAlerts(store, notifier)
    fleet = FleetService(store, sync, notifier)

    loop = ReconcilerLoop(
        reconciler,
        interval=args.interval,
        after_tick=[
            lambda report: alerts.check(report.now),
            lambda report: fleet.archive_completed_trips(report.now),
        ],
    )
    try:
        if args.once:
            report = loop.run_once()
            print(json.dumps({
                "trips": report.trips_updated,
                "trucks": report.trucks_updated,
                "drivers": report.drivers_updated,
                "notifications": [list(n) for n in report.notifications],
            }, indent=2))
        else:
            asyncio.run(loop.run())
    except KeyboardInterrupt:
        logger.info("Interrupted")
    finally:
        if sync is not None:
            sync.close()
    return 0


def cmd_positions(args) -> int:
    store = LocalStore(args.store_dir)
    trips = store.records(TRIPS, TripRecord)
    positions = positions_for_trips(trips, datetime.now(timezone.utc))
    print(json.dumps({key: {"lat": p.lat, "lng": p.lng} for key, p in positions.items()}, indent=2))
    return 0


def cmd_archive(args) -> int:
    store, sync = _open_store(args)
    try:
        archived = FleetService(store, sync).archive_completed_trips()
    finally:
        if sync is not None:
            sync.close()
    print(json.dumps(archived, indent=2))
    return 0


# ----------------------------------------
# Parser
# ----------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="fleet-admin", description="Fleet management backend and trip reconciler")
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL (DEBUG, INFO, ...)")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the REST and WebSocket API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    serve.add_argument("--reload", action="store_true", help="Reload on code changes")
    serve.set_defaults(func=cmd_serve)

    def local_store_options(p):
        p.add_argument("--store-dir", default=settings.LOCAL_STORE_DIR, help="Directory of the local JSON collections")
        p.add_argument("--api-url", default=settings.API_BASE_URL, help="Backend to mirror writes to")
        p.add_argument("--offline", action="store_true", help="Do not mirror writes to the backend")

    reconcile = sub.add_parser("reconcile", help="Run the trip lifecycle reconciler")
    local_store_options(reconcile)
    reconcile.add_argument("--interval", type=float, default=settings.RECONCILE_INTERVAL_SECONDS)
    reconcile.add_argument("--once", action="store_true", help="Run a single tick and print what changed")
    reconcile.set_defaults(func=cmd_reconcile)

    positions = sub.add_parser("positions", help="Print interpolated positions of trucks in transit")
    positions.add_argument("--store-dir", default=settings.LOCAL_STORE_DIR)
    positions.set_defaults(func=cmd_positions)

    archive = sub.add_parser("archive", help="Copy completed trips into trip history")
    local_store_options(archive)
    archive.set_defaults(func=cmd_archive)

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
