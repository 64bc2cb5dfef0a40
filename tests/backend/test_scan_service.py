import random

import pytest

from events import EventBus
from models import DiscoveryConfig
from services.scan_service import discovery_config_for, phase_label, run_profile_scan
from state import TopologyState


@pytest.mark.parametrize(
    "progress, label",
    [(0, "Discovering hosts"), (30, "Discovering services"), (69.9, "Querying SNMP"), (99, "Inferring connections"), (100, "Finalizing")],
)
def test_phase_label(progress, label):
    assert phase_label(progress) == label


def test_profile_overlays_base_config():
    base = DiscoveryConfig(ip_ranges=["10.1.0.0/24", "10.2.0.0/24"], timeout=9)
    cfg = discovery_config_for("quick", None, base)

    assert cfg.scan_ports == [22, 80, 443]
    assert cfg.enabled_protocols["snmp"] is False
    assert cfg.max_hosts_per_range == 64
    assert cfg.ip_ranges == ["10.1.0.0/24", "10.2.0.0/24"]
    assert cfg.timeout == 9

    targeted = discovery_config_for("deep", "172.16.0.0/28", base)
    assert targeted.ip_ranges == ["172.16.0.0/28"]
    assert base.ip_ranges == ["10.1.0.0/24", "10.2.0.0/24"]


def test_profile_scan_swaps_topology_and_persists(isolated_store, tmp_path):
    state = TopologyState()
    bus = EventBus(max_events=1000)
    progress = []

    results = run_profile_scan(
        state,
        isolated_store,
        "quick",
        "192.168.1.0/26",
        lambda p, msg: progress.append((p, msg)),
        event_bus=bus,
        rng=random.Random(11),
        log_dir=tmp_path,
        retry_base_delay=0,
    )

    assert results["profile"] == "quick"
    assert results["network"] == "192.168.1.0/26"
    assert results["devices_found"] > 0
    assert results["snapshot_id"] is not None
    assert progress[-1] == (100, "Finalizing")

    assert state.source == "discovery:quick"
    assert state.is_discovering is False
    assert state.discovery_progress == 100.0
    assert len(state.snapshot().devices) == results["devices_found"]

    snap = isolated_store.load_snapshot(results["snapshot_id"])
    assert len(snap.devices) == results["devices_found"]
    audit = isolated_store.list_audit_entries(limit=5)
    assert audit[0]["action"] == "scan.completed"
    assert audit[0]["details"]["profile"] == "quick"
    assert any(e["type"] == "discovery.completed" for e in bus.list_events(limit=1000))


def test_unknown_profile_falls_back_to_standard(isolated_store):
    results = run_profile_scan(
        TopologyState(), isolated_store, "turbo", "10.0.0.0/29", rng=random.Random(3), retry_base_delay=0
    )
    assert results["profile"] == "standard"


def test_public_target_is_refused(isolated_store):
    state = TopologyState()
    with pytest.raises(ValueError):
        run_profile_scan(state, isolated_store, "quick", "8.8.8.0/24")
    assert state.is_discovering is False
    assert isolated_store.list_snapshots() == []
