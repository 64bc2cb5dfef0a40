"""
NetSight topology graph operations.
Validation, BFS path tracing, filtering, graph layouts, and Cytoscape export.
"""

from __future__ import annotations

import math
from collections import deque
from typing import Dict, List, Optional, Tuple

import networkx as nx
import numpy as np

from constants import LAYER_RANK, LAYOUT_TYPES
from errors import TopologyValidationError
from mock_data import compute_discovery_stats
from models import NetworkTopology, PathHop, PathTrace, TopologyFilter
from toolkit.utils import new_session_id, utc_now_iso

DEFAULT_WIDTH = 1000.0
DEFAULT_HEIGHT = 800.0
CANVAS_PADDING = 50.0


# ---------------------------------------------------------------------------
# Invariants
# ---------------------------------------------------------------------------


def topology_violations(topology: NetworkTopology) -> List[str]:
    """List every broken structural rule (empty list means the snapshot is consistent)."""
    problems: List[str] = []
    seen = set()
    for d in topology.devices:
        if d.id in seen:
            problems.append(f"duplicate device id: {d.id}")
        seen.add(d.id)

    conn_ids = set()
    for c in topology.connections:
        if c.id in conn_ids:
            problems.append(f"duplicate connection id: {c.id}")
        conn_ids.add(c.id)
        for end in (c.source, c.target):
            if end not in seen:
                problems.append(f"connection {c.id} references unknown device {end}")

    stats = topology.discovery_stats
    n = len(topology.devices)
    if stats.total_devices != n:
        problems.append(f"discovery_stats.total_devices={stats.total_devices} but {n} devices present")
    if stats.total_connections != len(topology.connections):
        problems.append(
            f"discovery_stats.total_connections={stats.total_connections} "
            f"but {len(topology.connections)} connections present"
        )
    for name in ("devices_by_type", "devices_by_status", "devices_by_location"):
        total = sum(getattr(stats, name).values())
        if total != stats.total_devices:
            problems.append(f"discovery_stats.{name} sums to {total}, expected {stats.total_devices}")
    return problems


def validate_topology(topology: NetworkTopology) -> NetworkTopology:
    problems = topology_violations(topology)
    if problems:
        raise TopologyValidationError(problems)
    return topology


# ---------------------------------------------------------------------------
# Path tracing
# ---------------------------------------------------------------------------


def _adjacency(topology: NetworkTopology) -> Dict[str, Dict[str, Tuple[float, float]]]:
    """Undirected neighbour map; parallel links keep the lowest latency."""
    adj: Dict[str, Dict[str, Tuple[float, float]]] = {d.id: {} for d in topology.devices}
    for c in topology.connections:
        if c.source not in adj or c.target not in adj:
            continue
        link = (float(c.latency), float(c.packet_loss))
        for a, b in ((c.source, c.target), (c.target, c.source)):
            prev = adj[a].get(b)
            if prev is None or link[0] < prev[0]:
                adj[a][b] = link
    return adj


def trace_path(topology: NetworkTopology, source: str, target: str) -> PathTrace:
    """Breadth-first path between two devices (fewest hops).

    A found path yields hops from ``source`` to ``target`` inclusive with status
    ``complete``; unknown or disconnected endpoints yield no hops and status ``failed``.
    """
    trace = PathTrace(id=new_session_id("trace"), source=source, target=target, timestamp=utc_now_iso())
    adj = _adjacency(topology)
    if source not in adj or target not in adj:
        trace.status = "failed"
        return trace

    parent: Dict[str, Optional[str]] = {source: None}
    queue = deque([source])
    while queue:
        current = queue.popleft()
        if current == target:
            break
        for neighbour in adj[current]:
            if neighbour not in parent:
                parent[neighbour] = current
                queue.append(neighbour)

    if target not in parent:
        trace.status = "failed"
        return trace

    path: List[str] = []
    node: Optional[str] = target
    while node is not None:
        path.append(node)
        node = parent[node]
    path.reverse()

    total = 0.0
    for i, device_id in enumerate(path):
        latency, loss = (0.0, 0.0) if i == 0 else adj[path[i - 1]][device_id]
        total += latency
        trace.hops.append(PathHop(device_id=device_id, interface=f"eth{i}", latency=latency, packet_loss=loss))
    trace.total_latency = total
    trace.status = "complete"
    return trace


# ---------------------------------------------------------------------------
# Filtering
# ---------------------------------------------------------------------------


def _device_vlans(device) -> set:
    ids = {v.id for v in device.vlans}
    ids.update(i.vlan_id for i in device.interfaces if i.vlan_id is not None)
    return ids


def filter_topology(topology: NetworkTopology, filt: TopologyFilter) -> NetworkTopology:
    """Visible sub-topology; a connection survives only when both endpoints do."""
    term = filt.search_term.strip().lower()
    visible = []
    for d in topology.devices:
        if filt.device_types and d.type not in filt.device_types:
            continue
        if filt.statuses and d.status not in filt.statuses:
            continue
        if filt.locations and d.location not in filt.locations:
            continue
        if filt.data_centers and d.data_center not in filt.data_centers:
            continue
        if filt.vlans and not (_device_vlans(d) & set(filt.vlans)):
            continue
        if not filt.show_offline_devices and d.status == "offline":
            continue
        if term:
            haystack = " ".join([d.hostname, d.label, d.vendor, d.model, *d.ip_addresses]).lower()
            if term not in haystack:
                continue
        visible.append(d)

    ids = {d.id for d in visible}
    connections = []
    if filt.show_connections:
        connections = [c for c in topology.connections if c.source in ids and c.target in ids]
    stats = topology.discovery_stats
    return NetworkTopology(
        devices=visible,
        connections=connections,
        subnets=list(topology.subnets),
        last_updated=topology.last_updated,
        discovery_stats=compute_discovery_stats(
            visible,
            connections,
            last_scan_duration=stats.last_scan_duration,
            coverage=stats.coverage,
            errors=stats.errors,
        ),
    )


# ---------------------------------------------------------------------------
# Graph views
# ---------------------------------------------------------------------------


def build_graph(topology: NetworkTopology) -> nx.MultiGraph:
    graph = nx.MultiGraph()
    for d in topology.devices:
        graph.add_node(
            d.id,
            label=d.label or d.hostname,
            type=d.type,
            status=d.status,
            ip=d.primary_ip,
            location=d.location,
            layer=LAYER_RANK.get(d.type, 4),
        )
    for c in topology.connections:
        if c.source in graph and c.target in graph:
            graph.add_edge(
                c.source,
                c.target,
                key=c.id,
                id=c.id,
                type=c.type,
                status=c.status,
                latency=float(c.latency),
                utilization=float(c.utilization),
            )
    return graph


def connected_components(topology: NetworkTopology) -> List[List[str]]:
    graph = build_graph(topology)
    return sorted((sorted(comp) for comp in nx.connected_components(graph)), key=len, reverse=True)


def critical_devices(topology: NetworkTopology, top: int = 5) -> List[dict]:
    """Highest degree-centrality devices (most likely single points of failure)."""
    graph = build_graph(topology)
    if graph.number_of_nodes() < 2:
        return []
    centrality = nx.degree_centrality(graph)
    ranked = sorted(centrality.items(), key=lambda kv: kv[1], reverse=True)[: max(1, top)]
    return [{"device_id": node, "degree_centrality": round(score, 4), "degree": graph.degree(node)} for node, score in ranked]


def _grid_positions(ids: List[str]) -> Dict[str, Tuple[float, float]]:
    cols = max(1, math.ceil(math.sqrt(len(ids))))
    return {node: (float(i % cols), float(i // cols)) for i, node in enumerate(ids)}


def _fit_to_canvas(raw: Dict[str, Tuple[float, float]], width: float, height: float) -> Dict[str, Dict[str, float]]:
    if not raw:
        return {}
    ids = list(raw)
    coords = np.array([raw[i] for i in ids], dtype=float)
    lo = coords.min(axis=0)
    span = coords.max(axis=0) - lo
    usable = np.array([width - 2 * CANVAS_PADDING, height - 2 * CANVAS_PADDING])
    scaled = np.where(span > 0, (coords - lo) / np.where(span > 0, span, 1.0), 0.5) * usable + CANVAS_PADDING
    return {node: {"x": round(float(x), 2), "y": round(float(y), 2)} for node, (x, y) in zip(ids, scaled)}


def compute_layout(
    topology: NetworkTopology,
    layout_type: str = "force",
    *,
    width: float = DEFAULT_WIDTH,
    height: float = DEFAULT_HEIGHT,
    seed: Optional[int] = 42,
) -> Dict[str, Dict[str, float]]:
    """Device positions on a width x height canvas for the requested layout."""
    if layout_type not in LAYOUT_TYPES:
        raise ValueError(f"Unknown layout type: {layout_type}")
    graph = build_graph(topology)
    if graph.number_of_nodes() == 0:
        return {}
    ids = [d.id for d in topology.devices]

    if layout_type == "custom":
        fallback = _fit_to_canvas(_grid_positions(ids), width, height)
        return {d.id: dict(d.position) if d.position else fallback[d.id] for d in topology.devices}
    if layout_type == "grid":
        raw = _grid_positions(ids)
    elif layout_type == "circular":
        raw = nx.circular_layout(graph)
    elif layout_type == "hierarchical":
        # multipartite_layout needs contiguous layer numbers to space rows evenly.
        ranks = sorted({graph.nodes[n]["layer"] for n in graph})
        for n in graph:
            graph.nodes[n]["row"] = ranks.index(graph.nodes[n]["layer"])
        # Row 0 (core) lands at the smallest y, i.e. the top of the canvas.
        raw = nx.multipartite_layout(graph, subset_key="row", align="horizontal")
    else:
        raw = nx.spring_layout(graph, seed=seed)
    return _fit_to_canvas({n: (float(p[0]), float(p[1])) for n, p in raw.items()}, width, height)


def to_cytoscape(topology: NetworkTopology, positions: Optional[Dict[str, Dict[str, float]]] = None) -> dict:
    """Cytoscape.js elements JSON for the current graph."""
    data = nx.cytoscape_data(build_graph(topology))
    lookup = positions or {d.id: d.position for d in topology.devices if d.position}
    for node in data["elements"]["nodes"]:
        pos = lookup.get(node["data"]["id"])
        if pos:
            node["position"] = {"x": pos["x"], "y": pos["y"]}
    return data
