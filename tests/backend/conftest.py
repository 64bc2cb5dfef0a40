from pathlib import Path
import random

import pytest

import server
from events import EventBus
from mock_data import compute_discovery_stats, generate_mock_network_data
from models import DataPipelineConfig, NetworkConnection, NetworkDevice, NetworkTopology
from pipeline import DataPipeline
from privilege import PrivilegeManager
from state import TopologyState
from store import DataStore


class ScanJobsStub:
    """Simple stub for scan job creation route tests."""

    def __init__(self, job_id: str = "job-test-123"):
        self.job_id = job_id
        self.calls = []

    def start(self, profile: str, target: str | None):
        self.calls.append((profile, target))
        return self.job_id


def make_topology(devices, links):
    """Topology from (id, type, ip) tuples and (conn_id, source, target[, latency]) tuples."""
    devs = [
        NetworkDevice(id=i, hostname=i, label=i, type=t, status="online", ip_addresses=[ip], location="Lab")
        for i, t, ip in devices
    ]
    conns = [
        NetworkConnection(id=link[0], source=link[1], target=link[2], latency=link[3] if len(link) > 3 else 1.0)
        for link in links
    ]
    return NetworkTopology(devices=devs, connections=conns, discovery_stats=compute_discovery_stats(devs, conns))


@pytest.fixture()
def small_topology():
    return make_topology(
        [
            ("rtr", "router", "10.0.0.1"),
            ("sw", "switch", "10.0.0.2"),
            ("srv", "server", "10.0.0.20"),
            ("ws", "workstation", "10.0.0.100"),
            ("island", "workstation", "10.0.9.9"),
        ],
        [
            ("c1", "rtr", "sw", 2.0),
            ("c2", "sw", "srv", 3.0),
            ("c3", "sw", "ws", 4.0),
        ],
    )


@pytest.fixture()
def campus():
    return generate_mock_network_data(random.Random(7))


@pytest.fixture()
def isolated_store(tmp_path):
    """Fresh sqlite store per test."""
    return DataStore(Path(tmp_path) / "test_netsight.db")


@pytest.fixture()
def client_ctx(monkeypatch, isolated_store):
    """
    Flask test client with isolated backend globals.
    Uses a temp datastore, a fresh topology state, and a mock-only pipeline.
    """
    scan_jobs_stub = ScanJobsStub()
    state = TopologyState(stale_after_seconds=300)
    privilege_manager = PrivilegeManager(rng=random.Random(1), grant_rate=1.0)
    pipeline = DataPipeline(
        DataPipelineConfig(enable_real_data_collection=False, scan_interval=0),
        privilege_manager=privilege_manager,
        rng=random.Random(1),
        platform_name="linux",
    )

    monkeypatch.setattr(server, "datastore", isolated_store)
    monkeypatch.setattr(server, "state", state)
    monkeypatch.setattr(server, "scan_jobs", scan_jobs_stub)
    monkeypatch.setattr(server, "pipeline", pipeline)
    monkeypatch.setattr(server, "privilege_manager", privilege_manager)
    monkeypatch.setattr(server, "event_bus", EventBus(max_events=100))
    monkeypatch.setattr(server, "monitoring_data", None)
    monkeypatch.setattr(server, "monitoring_key", None)
    monkeypatch.setattr(server, "inventory_topology", None)
    monkeypatch.setattr(server, "user_data", None)
    monkeypatch.setattr(server, "API_KEY", "", raising=False)

    return {
        "client": server.app.test_client(),
        "store": isolated_store,
        "state": state,
        "scan_jobs": scan_jobs_stub,
        "pipeline": pipeline,
    }
