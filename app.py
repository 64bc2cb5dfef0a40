#!/usr/bin/env python3
"""
NetSight - Network Topology Dashboard
Entry point: configures logging, wires service instances into the server and runs the Flask app.
"""

import argparse

from config import settings
from toolkit.log import setup_logging

logger = setup_logging(settings.log_level, settings.log_file or None)

# Import server (creates its own globals) then replace with our instances
import server  # noqa: E402
from pipeline import DataPipeline  # noqa: E402
from models import DataPipelineConfig  # noqa: E402
from privilege import PrivilegeManager  # noqa: E402
from services.jobs import ScanJobManager  # noqa: E402
from services.refresh_daemon import RefreshDaemon  # noqa: E402
from services.scan_service import run_profile_scan  # noqa: E402


def _scan_finished(job_id: str, status: str) -> None:
    logger.info("scan job %s finished: %s", job_id, status)
    server._broadcast_topology(f"scan.{status}")


def wire() -> None:
    """Rebind server globals with delay-aware simulators and job callbacks."""
    server.privilege_manager = PrivilegeManager(prompt_delay=settings.simulated_delay)
    server.pipeline = DataPipeline(
        DataPipelineConfig(enable_real_data_collection=settings.enable_live_collection),
        privilege_manager=server.privilege_manager,
    )
    server.scan_jobs = ScanJobManager(
        server.datastore,
        server.state,
        lambda state, datastore, profile, target, progress_cb: run_profile_scan(
            state, datastore, profile, target, progress_cb, event_bus=server.event_bus
        ),
        default_target=server.state.discovery_config.ip_ranges[0],
        on_finished=_scan_finished,
    )
    server.refresh_daemon = RefreshDaemon(
        server.state,
        lambda event, payload: server.socketio.emit(event, payload, to=server.TOPOLOGY_ROOM),
        interval_seconds=settings.refresh_interval_seconds,
    )


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(description="NetSight - Network Topology Server")
    parser.add_argument("--host", default="0.0.0.0", help="Host to bind to")
    parser.add_argument("--port", type=int, default=5001, help="Port to bind to")
    parser.add_argument("--demo", action="store_true", help="Load demo data on startup")
    parser.add_argument("--seed", type=int, default=None, help="Seed for generated demo data")
    parser.add_argument("--no-refresh", action="store_true", help="Disable periodic device refresh broadcasts")
    args = parser.parse_args(argv)

    wire()
    if args.demo:
        summary = server.generate_demo_data(seed=args.seed)
        logger.info("demo data loaded: %d devices, %d connections", summary["devices"], summary["connections"])
    else:
        restored = server.restore_snapshot()
        if restored:
            logger.info("restored last snapshot: %d devices", restored["devices"])
    if not args.no_refresh:
        server.refresh_daemon.start()

    logger.info("starting NetSight server on %s:%s (db=%s)", args.host, args.port, server.datastore.db_path)
    server.socketio.run(
        server.app,
        host=args.host,
        port=args.port,
        debug=settings.debug,
        allow_unsafe_werkzeug=settings.debug,
    )


if __name__ == "__main__":
    main()
