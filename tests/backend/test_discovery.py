import json
import random
import threading
import time

import pytest

from constants import INFRASTRUCTURE_TYPES
from discovery import DiscoveryEngine, SimulatedProber
from errors import ScanInProgressError, TransientProbeError
from events import EventBus
from models import DiscoveryConfig, ServiceInfo, SnmpInfo
from topology import topology_violations


class ScriptedProber:
    """Prober with fixed answers keyed by address."""

    def __init__(self, replies=(), ports=None, snmp=(), neighbours=None, flaky=None):
        self.replies = set(replies)
        self.ports = ports or {}
        self.snmp = set(snmp)
        self.peer_map = neighbours or {}
        self.flaky = flaky or {}
        self.ping_calls = []

    def ping(self, ip, attempt=0):
        self.ping_calls.append((ip, attempt))
        if attempt < self.flaky.get(ip, 0):
            raise TransientProbeError(f"ping {ip}: dropped")
        if ip not in self.replies:
            return None
        return {"hostname": f"host-{ip.rsplit('.', 1)[-1]}", "latency": 1.0}

    def scan_port(self, ip, port):
        services = {22: "ssh", 80: "http", 161: "snmp"}
        if port in self.ports.get(ip, ()):
            return ServiceInfo(port=port, protocol="tcp", service=services.get(port, "unknown"))
        return None

    def snmp_query(self, ip, community):
        if ip in self.snmp and community == "public":
            return SnmpInfo(community=community, sys_up_time=4242, sys_name=ip)
        return None

    def neighbours(self, device, candidates):
        wanted = self.peer_map.get(device.primary_ip, [])
        return [c for c in candidates if c.primary_ip in wanted]


def _config(**kw):
    cfg = DiscoveryConfig(ip_ranges=["10.0.0.0/29"], timeout=5, probe_retries=2)
    for k, v in kw.items():
        setattr(cfg, k, v)
    return cfg


def _engine(prober, cfg=None, **kw):
    kw.setdefault("rng", random.Random(0))
    kw.setdefault("retry_base_delay", 0)
    return DiscoveryEngine(cfg or _config(), prober=prober, **kw)


def test_full_pass_builds_valid_topology_with_inferred_links():
    prober = ScriptedProber(
        replies=["10.0.0.1", "10.0.0.2", "10.0.0.5"],
        ports={"10.0.0.1": [161], "10.0.0.2": [22]},
        snmp=["10.0.0.1"],
    )
    progress = []
    bus = EventBus()
    engine = _engine(prober, event_bus=bus, on_progress=progress.append)

    topo = engine.start_discovery()

    assert topology_violations(topo) == []
    index = topo.device_index()
    assert set(index) == {"device-10.0.0.1", "device-10.0.0.2", "device-10.0.0.5"}
    assert index["device-10.0.0.1"].type in INFRASTRUCTURE_TYPES
    assert index["device-10.0.0.1"].uptime == 4242
    assert "snmp" in index["device-10.0.0.1"].discovery_methods
    assert index["device-10.0.0.2"].type == "server"
    assert index["device-10.0.0.2"].open_ports == [22]
    assert index["device-10.0.0.5"].type == "workstation"

    assert {c.id for c in topo.connections} == {
        "arp-device-10.0.0.1-device-10.0.0.2",
        "arp-device-10.0.0.1-device-10.0.0.5",
    }

    stats = topo.discovery_stats
    assert stats.coverage == 100.0
    assert stats.errors == []
    assert stats.partial is False
    assert stats.discovery_methods["snmp-failed"] == 2
    assert progress[-1] == 100
    assert progress == sorted(progress)

    types = [e["type"] for e in bus.list_events(limit=500)]
    assert types[0] == "discovery.started"
    assert types[-1] == "discovery.completed"
    assert types.count("discovery.device") == 3
    assert types.count("discovery.connection") == 2


def test_layer2_neighbours_are_linked_once():
    prober = ScriptedProber(
        replies=["10.0.0.1", "10.0.0.2"],
        ports={"10.0.0.1": [161], "10.0.0.2": [161]},
        neighbours={"10.0.0.1": ["10.0.0.2"], "10.0.0.2": ["10.0.0.1"]},
    )
    topo = _engine(prober).start_discovery()

    assert len(topo.connections) == 1
    link = topo.connections[0]
    assert {link.source, link.target} == {"device-10.0.0.1", "device-10.0.0.2"}
    assert link.id == f"cdp-{link.source}-{link.target}"
    assert link.discovery_method == "cdp"
    for device in topo.devices:
        assert "cdp" in device.discovery_methods


def test_lldp_used_when_cdp_disabled():
    prober = ScriptedProber(
        replies=["10.0.0.1", "10.0.0.2"],
        ports={"10.0.0.1": [161]},
        neighbours={"10.0.0.1": ["10.0.0.2"]},
    )
    protocols = {"ping": True, "snmp": False, "cdp": False, "lldp": True, "ssh": False, "api": False}
    topo = _engine(prober, _config(enabled_protocols=protocols)).start_discovery()

    assert [c.discovery_method for c in topo.connections] == ["lldp"]


def test_disabled_protocols_skip_their_phases():
    prober = ScriptedProber(replies=["10.0.0.1", "10.0.0.3"], ports={"10.0.0.1": [161]}, snmp=["10.0.0.1"])
    protocols = {"ping": True, "snmp": False, "cdp": False, "lldp": False, "ssh": False, "api": False}
    topo = _engine(prober, _config(enabled_protocols=protocols)).start_discovery()

    assert all("snmp" not in d.discovery_methods for d in topo.devices)
    assert "snmp-failed" not in topo.discovery_stats.discovery_methods
    assert [c.discovery_method for c in topo.connections] == ["arp"]


def test_transient_ping_failures_are_retried():
    prober = ScriptedProber(replies=["10.0.0.3"], flaky={"10.0.0.3": 2})
    topo = _engine(prober).start_discovery()

    assert [d.id for d in topo.devices] == ["device-10.0.0.3"]
    assert [a for ip, a in prober.ping_calls if ip == "10.0.0.3"] == [0, 1, 2]
    assert topo.discovery_stats.partial is False


def test_exhausted_retries_are_reported_as_partial():
    prober = ScriptedProber(replies=["10.0.0.1", "10.0.0.4"], flaky={"10.0.0.4": 10})
    topo = _engine(prober).start_discovery()

    assert [d.id for d in topo.devices] == ["device-10.0.0.1"]
    assert topo.discovery_stats.errors == ["1 host probe(s) failed: TransientProbeError"]
    assert topo.discovery_stats.partial is True


def test_invalid_and_excluded_ranges():
    prober = ScriptedProber(replies=["10.0.0.1", "10.0.0.2"])
    cfg = _config(ip_ranges=["not-a-network", "10.0.0.0/29", "10.0.0.0/29"], exclude_ranges=["10.0.0.2/32"])
    topo = _engine(prober, cfg).start_discovery()

    assert [d.id for d in topo.devices] == ["device-10.0.0.1"]
    assert "10.0.0.2" not in {ip for ip, _ in prober.ping_calls}
    assert topo.discovery_stats.errors[0].startswith("not-a-network:")
    assert topo.discovery_stats.partial is True


def test_host_cap_lowers_coverage():
    prober = ScriptedProber()
    topo = _engine(prober, _config(ip_ranges=["10.0.0.0/24"], max_hosts_per_range=10)).start_discovery()

    assert len(prober.ping_calls) == 10
    assert topo.devices == []
    assert topo.discovery_stats.coverage == pytest.approx(10 / 254 * 100, abs=1e-3)


def test_reentrant_start_is_rejected():
    prober = ScriptedProber(replies=["10.0.0.1"])
    rejected = []

    def on_progress(_value):
        if rejected:
            return
        try:
            engine.start_discovery()
        except ScanInProgressError:
            rejected.append(True)

    engine = _engine(prober, on_progress=on_progress)
    engine.start_discovery()
    assert rejected == [True]
    assert engine.is_running is False


def test_abort_stops_after_current_phase():
    prober = ScriptedProber(replies=["10.0.0.1", "10.0.0.2"], ports={"10.0.0.1": [22]})
    engine = _engine(prober)
    engine.on_device = lambda _device: engine.abort()

    topo = engine.start_discovery()

    assert "Discovery aborted" in topo.discovery_stats.errors
    assert topo.connections == []
    assert all(d.open_ports == [] for d in topo.devices)


def test_discovery_log_is_written(tmp_path):
    prober = ScriptedProber(replies=["10.0.0.1"])
    engine = _engine(prober, log_dir=tmp_path)
    engine.start_discovery()

    log_file = tmp_path / "discovery" / f"{engine.session_id}.json"
    payload = json.loads(log_file.read_text(encoding="utf-8"))
    assert payload["device_ids"] == ["device-10.0.0.1"]
    assert payload["stats"]["total_devices"] == 1


def test_simulated_prober_is_repeatable_per_seed():
    a = SimulatedProber(random.Random(42), transient_failure_rate=0)
    b = SimulatedProber(random.Random(42), transient_failure_rate=0)
    hosts = [f"192.168.1.{i}" for i in range(1, 40)]

    assert [a.ping(h) for h in hosts] == [b.ping(h) for h in hosts]
    assert [a.scan_port(h, 22) for h in hosts] == [b.scan_port(h, 22) for h in hosts]
    assert any(a.ping(h) for h in hosts)


def test_simulated_prober_neighbours_exclude_self():
    prober = SimulatedProber(random.Random(1))
    engine = _engine(ScriptedProber(replies=[f"10.0.0.{i}" for i in range(1, 7)]))
    devices = engine.start_discovery().devices

    for device in devices:
        peers = prober.neighbours(device, devices)
        assert 1 <= len(peers) <= 5
        assert device.id not in {p.id for p in peers}


def test_seeded_engines_find_the_same_hosts():
    cfg = _config(ip_ranges=["192.168.1.0/27"])
    first = DiscoveryEngine(cfg, rng=random.Random(42), retry_base_delay=0).start_discovery()
    second = DiscoveryEngine(cfg, rng=random.Random(42), retry_base_delay=0).start_discovery()

    assert sorted(d.id for d in first.devices) == sorted(d.id for d in second.devices)


class HangingProber(ScriptedProber):
    """Never answers pings for `hung` addresses until released."""

    def __init__(self, hung, **kw):
        super().__init__(**kw)
        self.hung = set(hung)
        self.release = threading.Event()

    def ping(self, ip, attempt=0):
        if ip in self.hung:
            self.release.wait(10)
            return None
        return super().ping(ip, attempt)


def test_host_phase_ends_at_timeout():
    prober = HangingProber(hung=["10.0.0.2"], replies=["10.0.0.1"])
    cfg = _config(ip_ranges=["10.0.0.0/30"], timeout=0.2)
    try:
        started = time.monotonic()
        topo = _engine(prober, cfg).start_discovery()
        elapsed = time.monotonic() - started
    finally:
        prober.release.set()

    assert elapsed < 5
    assert [d.id for d in topo.devices] == ["device-10.0.0.1"]
    assert "1 host probe(s) failed: timeout" in topo.discovery_stats.errors
