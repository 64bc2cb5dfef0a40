"""
NetSight scan service.
Profile-based discovery run that updates the live topology and persists a snapshot.
"""

import copy
import logging
import random
from typing import Callable, Optional

from constants import SCAN_PROFILES
from discovery import DiscoveryEngine
from models import DiscoveryConfig
from toolkit.utils import ensure_private_target

logger = logging.getLogger(__name__)

PHASE_LABELS = [
    (25, "Discovering hosts"),
    (45, "Discovering services"),
    (70, "Querying SNMP"),
    (85, "Discovering layer 2 neighbours"),
    (90, "Querying SSH/API sources"),
    (100, "Inferring connections"),
]


def phase_label(progress: float) -> str:
    for upper, label in PHASE_LABELS:
        if progress < upper:
            return label
    return "Finalizing"


def discovery_config_for(profile: str, target: Optional[str], base: Optional[DiscoveryConfig] = None) -> DiscoveryConfig:
    """Overlay a scan profile (and optional single target range) on a base config."""
    cfg = copy.deepcopy(base) if base is not None else DiscoveryConfig()
    prof = SCAN_PROFILES[profile]
    cfg.scan_ports = list(prof["ports"])
    cfg.enabled_protocols = dict(prof["protocols"])
    cfg.max_concurrent_scans = int(prof["max_concurrent"])
    cfg.max_hosts_per_range = int(prof["max_hosts_per_range"])
    if target:
        cfg.ip_ranges = [target]
    return cfg


def run_profile_scan(
    state,
    datastore,
    profile: str = "standard",
    target_network: Optional[str] = None,
    progress_callback: Optional[Callable[[int, str], None]] = None,
    *,
    event_bus=None,
    rng: Optional[random.Random] = None,
    log_dir=None,
    retry_base_delay: float = 0.05,
) -> dict:
    """Run discovery for a profile, swap it into ``state`` and snapshot it to ``datastore``."""
    profile = profile if profile in SCAN_PROFILES else "standard"
    if target_network:
        ensure_private_target(target_network)
    cfg = discovery_config_for(profile, target_network, state.discovery_config)

    def _progress(p: float):
        state.set_discovery_progress(p)
        if progress_callback:
            progress_callback(int(p), phase_label(p))

    engine = DiscoveryEngine(
        cfg,
        rng=rng,
        event_bus=event_bus,
        on_progress=_progress,
        retry_base_delay=retry_base_delay,
        log_dir=log_dir,
    )
    state.set_discovery_status(True)
    try:
        topology = engine.start_discovery()
    finally:
        state.set_discovery_status(False)

    stats = topology.discovery_stats
    results = {
        "profile": profile,
        "network": ", ".join(cfg.ip_ranges),
        "session_id": engine.session_id,
        "devices_found": stats.total_devices,
        "connections_found": stats.total_connections,
        "duration": stats.last_scan_duration,
        "coverage": stats.coverage,
        "partial": stats.partial,
        "errors": list(stats.errors),
        "snapshot_id": None,
    }
    if not topology.devices:
        logger.warning("%s scan found no devices; keeping current topology", profile)
        return results

    state.set_topology(topology, source=f"discovery:{profile}")
    results["snapshot_id"] = datastore.save_snapshot(topology, f"discovery:{profile}", is_live=False)
    datastore.add_audit_entry(
        "scan.completed",
        actor="scan-job",
        entity=results["network"],
        details={k: results[k] for k in ("profile", "devices_found", "connections_found", "partial")},
    )
    return results
