import random
from dataclasses import asdict

from mock_data import (
    compute_discovery_stats,
    generate_inventory_topology,
    generate_mock_alerts,
    generate_mock_data,
    generate_mock_device_inventory,
    generate_mock_network_data,
)
from topology import connected_components, topology_violations


def test_campus_shape_is_fixed(campus):
    stats = campus.discovery_stats
    assert stats.total_devices == 110
    assert stats.total_connections == 109
    assert stats.devices_by_type == {
        "router": 1,
        "switch": 15,
        "firewall": 1,
        "server": 15,
        "access-point": 18,
        "workstation": 60,
    }
    assert len(campus.subnets) == 3
    assert 60 <= stats.last_scan_duration < 360


def test_campus_is_a_single_tree(campus):
    assert len(connected_components(campus)) == 1
    assert len(campus.connections) == len(campus.devices) - 1


def test_campus_generation_is_repeatable_with_same_seed():
    a = generate_mock_network_data(random.Random(99))
    b = generate_mock_network_data(random.Random(99))
    assert [(d.id, d.status, d.cpu, d.memory) for d in a.devices] == [
        (d.id, d.status, d.cpu, d.memory) for d in b.devices
    ]
    assert [(c.source, c.target) for c in a.connections] == [(c.source, c.target) for c in b.connections]


def test_campus_generation_varies_gauges_between_seeds():
    runs = [generate_mock_network_data(random.Random(seed)) for seed in (1, 2)]
    runs.append(generate_mock_network_data())

    for topo in runs:
        stats = topo.discovery_stats
        assert (stats.total_devices, stats.total_connections) == (110, 109)
        assert sum(stats.devices_by_status.values()) == 110
        assert sum(stats.devices_by_type.values()) == 110
        assert topology_violations(topo) == []

    first, second = runs[0], runs[1]
    assert [d.id for d in first.devices] == [d.id for d in second.devices]
    assert [(d.status, d.cpu, d.memory) for d in first.devices] != [
        (d.status, d.cpu, d.memory) for d in second.devices
    ]


def test_campus_workstations_uplink_to_their_floor():
    topo = generate_mock_network_data(random.Random(1))
    uplinks = {c.target: c.source for c in topo.connections}
    assert uplinks["ws-2-7"] == "access-switch-2-2"
    assert uplinks["ap-3-5"] == "access-switch-3-3"
    assert uplinks["dist-switch-01"] == "core-router-01"


def test_stats_maps_sum_to_device_total(campus):
    stats = compute_discovery_stats(campus.devices[:10], campus.connections[:3], errors=["boom"])
    assert stats.total_devices == 10
    assert sum(stats.devices_by_status.values()) == 10
    assert sum(stats.devices_by_location.values()) == 10
    assert stats.partial is True
    assert stats.coverage == 1.0


def test_dashboard_bundle_is_consistent():
    bundle = generate_mock_data(random.Random(4))
    topo = bundle["topology"]

    assert len(topo.devices) == 59
    assert topology_violations(topo) == []
    ids = {d.id for d in topo.devices}
    assert all(a.metadata["device_id"] in ids for a in bundle["alerts"])
    assert set(bundle["monitoring"].devices) == ids
    assert bundle["monitoring"].summary.total_devices == 59


def test_alerts_are_newest_first_and_classified():
    alerts = generate_mock_alerts(random.Random(8), count=20)
    assert len(alerts) == 20
    assert [a.timestamp for a in alerts] == sorted((a.timestamp for a in alerts), reverse=True)
    for a in alerts:
        assert a.severity in ("critical", "warning", "info", "success")
        assert a.tags[:2] == [a.category, a.severity]


def test_inventory_covers_all_types():
    devices = generate_mock_device_inventory(random.Random(2))
    assert len(devices) == 153
    assert devices[0].id == "device-1" and devices[-1].id == "device-153"
    types = {d.type for d in devices}
    assert {"load-balancer", "ids-ips", "hypervisor", "container-host"} <= types
    assert all(len(d.ip_addresses) == 2 for d in devices)


def test_inventory_topology_is_connected_and_valid():
    topo = generate_inventory_topology(random.Random(2))
    assert topology_violations(topo) == []
    assert len(connected_components(topo)) == 1
    # serializes cleanly for snapshots
    assert asdict(topo)["discovery_stats"]["total_devices"] == 153
