import pytest

from errors import TopologyValidationError
from models import NetworkConnection, TopologyFilter
from topology import (
    compute_layout,
    connected_components,
    critical_devices,
    filter_topology,
    to_cytoscape,
    topology_violations,
    trace_path,
    validate_topology,
)


def test_campus_topology_is_valid(campus):
    assert topology_violations(campus) == []
    assert validate_topology(campus) is campus


def test_validation_lists_dangling_and_duplicate_ids(small_topology):
    small_topology.connections.append(NetworkConnection(id="c1", source="rtr", target="nowhere"))

    problems = topology_violations(small_topology)
    assert "duplicate connection id: c1" in problems
    assert "connection c1 references unknown device nowhere" in problems
    assert any("total_connections" in p for p in problems)

    with pytest.raises(TopologyValidationError) as exc_info:
        validate_topology(small_topology)
    assert exc_info.value.status_code == 400
    assert len(exc_info.value.violations) == len(problems)


def test_trace_path_returns_fewest_hops_with_latency(small_topology):
    trace = trace_path(small_topology, "rtr", "ws")

    assert trace.status == "complete"
    assert [h.device_id for h in trace.hops] == ["rtr", "sw", "ws"]
    assert trace.hops[0].latency == 0
    assert trace.total_latency == pytest.approx(6.0)


def test_trace_path_to_self_is_single_hop(small_topology):
    trace = trace_path(small_topology, "sw", "sw")
    assert trace.status == "complete"
    assert [h.device_id for h in trace.hops] == ["sw"]
    assert trace.total_latency == 0


def test_trace_path_fails_for_disconnected_or_unknown(small_topology):
    disconnected = trace_path(small_topology, "rtr", "island")
    assert disconnected.status == "failed"
    assert disconnected.hops == []

    unknown = trace_path(small_topology, "rtr", "ghost")
    assert unknown.status == "failed"


def test_filter_keeps_only_connections_between_visible_devices(small_topology):
    view = filter_topology(small_topology, TopologyFilter(device_types=["router", "switch"]))

    assert {d.id for d in view.devices} == {"rtr", "sw"}
    assert [c.id for c in view.connections] == ["c1"]
    assert view.discovery_stats.total_devices == 2
    assert topology_violations(view) == []


def test_filter_search_hides_connections_when_requested(small_topology):
    view = filter_topology(small_topology, TopologyFilter(search_term="10.0.0.", show_connections=False))
    assert len(view.devices) == 4
    assert view.connections == []


def test_filter_hides_offline_devices(small_topology):
    small_topology.devices[0].status = "offline"
    view = filter_topology(small_topology, TopologyFilter(show_offline_devices=False))
    assert "rtr" not in {d.id for d in view.devices}
    assert all("rtr" not in (c.source, c.target) for c in view.connections)


def test_components_and_critical_devices(small_topology):
    components = connected_components(small_topology)
    assert components == [["rtr", "srv", "sw", "ws"], ["island"]]

    ranked = critical_devices(small_topology, top=1)
    assert ranked[0]["device_id"] == "sw"
    assert ranked[0]["degree"] == 3


@pytest.mark.parametrize("layout_type", ["hierarchical", "force", "circular", "grid", "custom"])
def test_every_layout_positions_all_devices(small_topology, layout_type):
    positions = compute_layout(small_topology, layout_type, width=500, height=400)

    assert set(positions) == {d.id for d in small_topology.devices}
    for pos in positions.values():
        assert 0 <= pos["x"] <= 500
        assert 0 <= pos["y"] <= 400


def test_hierarchical_layout_puts_core_above_edge(small_topology):
    positions = compute_layout(small_topology, "hierarchical")
    assert positions["rtr"]["y"] < positions["sw"]["y"] < positions["ws"]["y"]


def test_custom_layout_keeps_stored_positions(small_topology):
    small_topology.devices[0].position = {"x": 12.0, "y": 34.0}
    positions = compute_layout(small_topology, "custom")
    assert positions["rtr"] == {"x": 12.0, "y": 34.0}


def test_unknown_layout_is_rejected(small_topology):
    with pytest.raises(ValueError):
        compute_layout(small_topology, "spiral")


def test_cytoscape_export_uses_device_ids(small_topology):
    data = to_cytoscape(small_topology, {"rtr": {"x": 1.0, "y": 2.0}})
    node_ids = {n["data"]["id"] for n in data["elements"]["nodes"]}
    assert node_ids == {"rtr", "sw", "srv", "ws", "island"}
    assert len(data["elements"]["edges"]) == 3
    rtr = next(n for n in data["elements"]["nodes"] if n["data"]["id"] == "rtr")
    assert rtr["position"] == {"x": 1.0, "y": 2.0}
