"""
NetSight mock data generators.
Randomized but internally consistent topologies, inventories, alerts, and monitoring series.

Every generator takes an optional ``random.Random`` so callers (and tests) can pin the
random stream; the structural shape (device/connection counts, id scheme) never depends on it.
"""

import math
import random
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Sequence

from models import (
    Alert,
    DeviceCredentials,
    DiscoveryStats,
    MetricData,
    MonitoringData,
    MonitoringSummary,
    NetworkConnection,
    NetworkDevice,
    NetworkInterface,
    NetworkTopology,
    RouteEntry,
    ServiceInfo,
    SnmpInfo,
    SubnetInfo,
    VlanInfo,
)
from constants import SERVICE_PORTS
from toolkit.utils import count_by, utc_now_iso

CAMPUS_FLOORS = 3
SWITCHES_PER_FLOOR = 4
APS_PER_FLOOR = 6
WORKSTATIONS_PER_FLOOR = 20
SERVER_ROLES = ["web", "database", "application", "file", "backup"]
SERVER_COUNT = 15


def _rng(rng: Optional[random.Random]) -> random.Random:
    return rng if rng is not None else random.Random()


def _mac(rng: random.Random) -> str:
    return ":".join(f"{rng.randrange(256):02X}" for _ in range(6))


# ---------------------------------------------------------------------------
# Discovery statistics
# ---------------------------------------------------------------------------


def compute_discovery_stats(
    devices: Sequence[NetworkDevice],
    connections: Sequence[NetworkConnection],
    *,
    last_scan_duration: float = 0,
    coverage: Optional[float] = None,
    errors: Optional[List[str]] = None,
) -> DiscoveryStats:
    """Summarize a device/connection set; every by-* map sums to total_devices."""
    methods: Dict[str, int] = {}
    for d in devices:
        for m in d.discovery_methods:
            methods[m] = methods.get(m, 0) + 1
    return DiscoveryStats(
        total_devices=len(devices),
        devices_by_type=count_by(d.type for d in devices),
        devices_by_status=count_by(d.status for d in devices),
        devices_by_location=count_by(d.location for d in devices),
        total_connections=len(connections),
        discovery_methods=methods,
        last_scan_duration=last_scan_duration,
        coverage=min(100.0, len(devices) / 1000 * 100) if coverage is None else coverage,
        errors=list(errors or []),
        partial=bool(errors),
    )


# ---------------------------------------------------------------------------
# Campus topology (generate_mock_network_data)
# ---------------------------------------------------------------------------


def _campus_interfaces(count: int, device_type: str, rng: random.Random) -> List[NetworkInterface]:
    host_like = device_type in ("server", "workstation")
    prefix = "GigabitEthernet" if device_type == "router" else "FastEthernet"
    out = []
    for i in range(count):
        out.append(
            NetworkInterface(
                id=f"int-{i}",
                name=f"eth{i}" if host_like else f"{prefix}{i // 24}/{i % 24}",
                type="ethernet",
                status="up" if rng.random() > 0.1 else "down",
                speed="1000" if device_type == "router" else "100",
                duplex="full",
                utilization=rng.randrange(100),
                errors=rng.randrange(10),
                packets=rng.randrange(1_000_000),
                bytes=rng.randrange(1_000_000_000),
                vlan_id=rng.randrange(100) + 1,
            )
        )
    return out


def _campus_vlans(device_type: str, rng: random.Random) -> List[VlanInfo]:
    if device_type not in ("switch", "router"):
        return []
    vlans = []
    for i in range(rng.randrange(5) + 2):
        vid = (i + 1) * 10
        vlans.append(
            VlanInfo(
                id=vid,
                name=f"VLAN{vid}",
                description=f"Production VLAN {vid}",
                interfaces=[f"GigabitEthernet0/{i}", f"GigabitEthernet0/{i + 1}"],
            )
        )
    return vlans


def _campus_routes() -> List[RouteEntry]:
    return [
        RouteEntry("0.0.0.0/0", "192.168.1.1", "GigabitEthernet0/0/0", 1, "static"),
        RouteEntry("10.0.0.0/8", "10.0.1.1", "GigabitEthernet0/0/1", 110, "ospf"),
    ]


def open_ports_for(device_type: str) -> List[int]:
    common = [22, 161]
    if device_type == "server":
        return common + [80, 443, 3389, 3306, 5432]
    if device_type == "firewall":
        return common + [443, 8080]
    if device_type == "workstation":
        return [22, 3389]
    return common


def _campus_services(device_type: str) -> List[ServiceInfo]:
    return [ServiceInfo(port=p, protocol="tcp", service=SERVICE_PORTS.get(p, "unknown")) for p in open_ports_for(device_type)]


def _os_version(vendor: str, rng: random.Random) -> str:
    v = vendor.lower()
    if v == "cisco":
        return f"IOS {rng.randrange(5) + 15}.{rng.randrange(10)}"
    if v == "fortinet":
        return f"FortiOS {rng.randrange(3) + 6}.{rng.randrange(10)}"
    if v == "dell":
        return f"Ubuntu {rng.randrange(4) + 18}.04"
    return f"{rng.randrange(5) + 1}.{rng.randrange(10)}"


def _campus_device(
    rng: random.Random,
    *,
    id: str,
    hostname: str,
    type: str,
    vendor: str,
    model: str,
    location: str,
    ip_addresses: List[str],
    interface_count: int,
    cpu: Optional[int] = None,
    memory: Optional[int] = None,
) -> NetworkDevice:
    cpu = rng.randrange(50) + 20 if cpu is None else cpu
    memory = rng.randrange(60) + 30 if memory is None else memory
    if rng.random() > 0.1:
        status = "warning" if rng.random() > 0.8 else "online"
    else:
        status = "offline"
    now = utc_now_iso()
    return NetworkDevice(
        id=id,
        hostname=hostname,
        label=hostname,
        ip_addresses=ip_addresses,
        mac_addresses=[_mac(rng)],
        type=type,
        status=status,
        vendor=vendor,
        model=model,
        os_version=_os_version(vendor, rng),
        firmware_version=f"{rng.randrange(10) + 1}.{rng.randrange(10)}.{rng.randrange(100)}",
        location=location,
        data_center="DC1",
        uptime=rng.randrange(8_640_000),
        cpu=cpu,
        memory=memory,
        temperature=rng.randrange(40) + 30,
        interfaces=_campus_interfaces(interface_count, type, rng),
        vlans=_campus_vlans(type, rng),
        routing_table=_campus_routes() if type == "router" else [],
        open_ports=open_ports_for(type),
        services=_campus_services(type),
        snmp_info=SnmpInfo(
            version="2c",
            community="public",
            sys_descr=f"{vendor} {model}",
            sys_name=hostname,
            sys_location=location,
            sys_contact="admin@company.com",
            sys_up_time=rng.randrange(8_640_000),
        ),
        credentials=None,
        last_discovered=now,
        discovery_methods=["ping", "snmp"],
    )


def _campus_link(
    rng: random.Random,
    source: str,
    target: str,
    source_interface: str,
    target_interface: str,
    link_type: str = "ethernet",
) -> NetworkConnection:
    if rng.random() > 0.05:
        status = "active"
    else:
        status = "degraded" if rng.random() > 0.5 else "error"
    return NetworkConnection(
        id=f"conn-{source}-{target}",
        source=source,
        target=target,
        source_interface=source_interface,
        target_interface=target_interface,
        type=link_type,
        bandwidth="1000" if link_type == "ethernet" else "100",
        utilization=rng.randrange(100),
        latency=rng.random() * 10 + 1,
        packet_loss=rng.random() * 0.1,
        status=status,
        discovery_method="cdp",
        last_seen=utc_now_iso(),
    )


def generate_mock_subnets() -> List[SubnetInfo]:
    return [
        SubnetInfo("subnet-1", "10.0.0.0", "255.255.0.0", "10.0.0.1", 1, "Management Network", 25, 45),
        SubnetInfo("subnet-2", "10.1.0.0", "255.255.255.0", "10.1.0.1", 10, "User Network Floor 1", 50, 78),
        SubnetInfo("subnet-3", "10.2.0.0", "255.255.255.0", "10.2.0.1", 20, "User Network Floor 2", 48, 72),
    ]


def generate_mock_network_data(rng: Optional[random.Random] = None) -> NetworkTopology:
    """Three-floor campus: core router, distribution/access switches, firewall, servers, APs, workstations.

    The shape is fixed (110 devices, 109 links forming a tree rooted at the core router);
    health gauges, statuses, and server uplinks are random.
    """
    rng = _rng(rng)
    devices: List[NetworkDevice] = []
    connections: List[NetworkConnection] = []

    core = _campus_device(
        rng,
        id="core-router-01",
        hostname="core-rtr-dc1",
        type="router",
        vendor="Cisco",
        model="ISR4431",
        location="Data Center 1",
        ip_addresses=["10.0.1.1"],
        interface_count=8,
    )
    devices.append(core)

    for i in range(1, CAMPUS_FLOORS + 1):
        dist = _campus_device(
            rng,
            id=f"dist-switch-{i:02d}",
            hostname=f"dist-sw-{i}",
            type="switch",
            vendor="Cisco",
            model="Catalyst 9300",
            location=f"Floor {i}",
            ip_addresses=[f"10.0.{i + 1}.1"],
            interface_count=24,
        )
        devices.append(dist)
        connections.append(_campus_link(rng, core.id, dist.id, "GigabitEthernet0/0/1", "GigabitEthernet1/0/1"))

    for floor in range(1, CAMPUS_FLOORS + 1):
        for sw in range(1, SWITCHES_PER_FLOOR + 1):
            access = _campus_device(
                rng,
                id=f"access-switch-{floor}-{sw}",
                hostname=f"access-sw-{floor}-{sw}",
                type="switch",
                vendor="Cisco",
                model="Catalyst 2960",
                location=f"Floor {floor}",
                ip_addresses=[f"10.{floor}.{sw}.1"],
                interface_count=48,
            )
            devices.append(access)
            connections.append(
                _campus_link(rng, f"dist-switch-{floor:02d}", access.id, f"GigabitEthernet1/0/{sw + 1}", "GigabitEthernet0/1")
            )

    firewall = _campus_device(
        rng,
        id="firewall-01",
        hostname="fw-perimeter",
        type="firewall",
        vendor="Fortinet",
        model="FortiGate 600E",
        location="DMZ",
        ip_addresses=["10.0.0.1", "192.168.1.1"],
        interface_count=6,
    )
    devices.append(firewall)
    connections.append(_campus_link(rng, core.id, firewall.id, "GigabitEthernet0/0/0", "port1"))

    for i in range(SERVER_COUNT):
        role = SERVER_ROLES[i % len(SERVER_ROLES)]
        n = i // len(SERVER_ROLES) + 1
        server = _campus_device(
            rng,
            id=f"server-{role}-{n}",
            hostname=f"{role}-srv-{n}",
            type="server",
            vendor="Dell",
            model="PowerEdge R740",
            location="Server Room",
            ip_addresses=[f"10.10.{i // 10 + 1}.{i % 10 + 10}"],
            interface_count=4,
            cpu=rng.randrange(80) + 10,
            memory=rng.randrange(70) + 20,
        )
        devices.append(server)
        idx = rng.randrange(CAMPUS_FLOORS * SWITCHES_PER_FLOOR)
        uplink = f"access-switch-{idx // SWITCHES_PER_FLOOR + 1}-{idx % SWITCHES_PER_FLOOR + 1}"
        connections.append(_campus_link(rng, uplink, server.id, f"FastEthernet0/{rng.randrange(48) + 1}", "eth0"))

    for floor in range(1, CAMPUS_FLOORS + 1):
        for ap in range(1, APS_PER_FLOOR + 1):
            point = _campus_device(
                rng,
                id=f"ap-{floor}-{ap}",
                hostname=f"ap-floor{floor}-{ap}",
                type="access-point",
                vendor="Cisco",
                model="Aironet 9120",
                location=f"Floor {floor}",
                ip_addresses=[f"10.{floor}.100.{ap}"],
                interface_count=2,
            )
            devices.append(point)
            uplink = f"access-switch-{floor}-{math.ceil(ap / 2)}"
            connections.append(_campus_link(rng, uplink, point.id, f"FastEthernet0/{20 + ap}", "GigabitEthernet0"))

    for floor in range(1, CAMPUS_FLOORS + 1):
        for ws in range(1, WORKSTATIONS_PER_FLOOR + 1):
            station = _campus_device(
                rng,
                id=f"ws-{floor}-{ws}",
                hostname=f"ws-{floor}-{ws:03d}",
                type="workstation",
                vendor="Dell",
                model="OptiPlex 7090",
                location=f"Floor {floor}",
                ip_addresses=[f"10.{floor}.200.{ws}"],
                interface_count=1,
                cpu=rng.randrange(60) + 10,
                memory=rng.randrange(50) + 30,
            )
            devices.append(station)
            uplink = f"access-switch-{floor}-{math.ceil(ws / 5)}"
            connections.append(_campus_link(rng, uplink, station.id, f"FastEthernet0/{ws}", "eth0"))

    return NetworkTopology(
        devices=devices,
        connections=connections,
        subnets=generate_mock_subnets(),
        last_updated=utc_now_iso(),
        discovery_stats=compute_discovery_stats(
            devices,
            connections,
            last_scan_duration=rng.randrange(300) + 60,
        ),
    )


# ---------------------------------------------------------------------------
# Dashboard data (generate_mock_data)
# ---------------------------------------------------------------------------

NODE_GROUPS = [
    ("router", 8, "RTR"),
    ("switch", 15, "SW"),
    ("firewall", 6, "FW"),
    ("server", 12, "SRV"),
    ("workstation", 8, "WS"),
    ("access-point", 10, "AP"),
]
NODE_LOCATIONS = ["Data Center 1", "Data Center 2", "Branch Office", "Remote Site", "Cloud Region"]
NODE_VENDORS = ["Cisco", "Juniper", "Arista", "HP", "Dell", "Fortinet", "Palo Alto", "Ubiquiti"]


def _node_interfaces(node_num: int, device_type: str, rng: random.Random) -> List[NetworkInterface]:
    out = []
    for j in range(rng.randrange(12) + 2):
        if device_type == "server":
            name = f"eth{j}"
        elif device_type == "access-point":
            name = f"wlan{j}"
        elif device_type == "switch":
            name = f"GigabitEthernet0/{j + 1}"
        else:
            name = f"FastEthernet0/{j}"
        fast = device_type in ("server", "switch")
        out.append(
            NetworkInterface(
                id=f"{node_num}-{j}",
                name=name,
                type="wireless" if device_type == "access-point" else "ethernet",
                status="up" if rng.random() > 0.15 else "down",
                speed=rng.choice(["1Gbps", "10Gbps"] if fast else ["100Mbps", "1Gbps"]),
                utilization=rng.randrange(100),
                errors=rng.randrange(50),
                packets=rng.randrange(10_000_000),
            )
        )
    return out


def generate_mock_nodes(rng: Optional[random.Random] = None) -> List[NetworkDevice]:
    rng = _rng(rng)
    nodes: List[NetworkDevice] = []
    num = 1
    for device_type, count, prefix in NODE_GROUPS:
        for i in range(1, count + 1):
            vendor = rng.choice(NODE_VENDORS)
            p = rng.random()
            status = "offline" if p > 0.85 else "warning" if p > 0.75 else "online"
            hostname = f"{prefix}-{i:02d}"
            nodes.append(
                NetworkDevice(
                    id=f"node-{num}",
                    hostname=hostname,
                    label=hostname,
                    ip_addresses=[f"192.168.{num // 254}.{num % 254 + 1}"],
                    type=device_type,
                    status=status,
                    vendor=vendor,
                    model=f"{vendor}-{rng.randrange(1000, 10000)}{device_type[0].upper()}",
                    location=rng.choice(NODE_LOCATIONS),
                    uptime=rng.randrange(8760),
                    cpu=rng.randrange(100),
                    memory=rng.randrange(100),
                    temperature=rng.randrange(40) + 30,
                    interfaces=_node_interfaces(num, device_type, rng),
                    last_discovered=utc_now_iso(),
                    discovery_methods=["ping"],
                )
            )
            num += 1
    return nodes


def _edge(edges: List[NetworkConnection], source: str, target: str, **kw) -> None:
    edges.append(
        NetworkConnection(
            id=f"edge-{len(edges) + 1}",
            source=source,
            target=target,
            last_seen=utc_now_iso(),
            discovery_method="lldp",
            **kw,
        )
    )


def generate_mock_edges(nodes: Sequence[NetworkDevice], rng: Optional[random.Random] = None) -> List[NetworkConnection]:
    """Hierarchical wiring: router ring, then switches/firewalls to routers, hosts to switches."""
    rng = _rng(rng)
    by_type: Dict[str, List[NetworkDevice]] = {}
    for n in nodes:
        by_type.setdefault(n.type, []).append(n)
    routers = by_type.get("router", [])
    switches = by_type.get("switch", [])
    edges: List[NetworkConnection] = []

    for a, b in zip(routers, routers[1:]):
        _edge(edges, a.id, b.id, type="fiber", bandwidth="10Gbps",
              utilization=rng.randrange(80) + 10, latency=rng.randrange(5) + 1)
    if len(routers) > 2:
        _edge(edges, routers[-1].id, routers[0].id, type="fiber", bandwidth="10Gbps",
              utilization=rng.randrange(60) + 20, latency=rng.randrange(5) + 1)

    if routers:
        for i, sw in enumerate(switches):
            _edge(edges, routers[i % len(routers)].id, sw.id, type="fiber",
                  bandwidth=rng.choice(["1Gbps", "10Gbps"]), utilization=rng.randrange(70) + 15,
                  latency=rng.randrange(10) + 1, status="active" if rng.random() > 0.1 else "inactive")
        for i, fw in enumerate(by_type.get("firewall", [])):
            _edge(edges, routers[i % len(routers)].id, fw.id, type="ethernet", bandwidth="1Gbps",
                  utilization=rng.randrange(50) + 10, latency=rng.randrange(15) + 2)

    if switches:
        for i, srv in enumerate(by_type.get("server", [])):
            _edge(edges, switches[i % len(switches)].id, srv.id, type="ethernet",
                  bandwidth=rng.choice(["1Gbps", "10Gbps"]), utilization=rng.randrange(60) + 20,
                  latency=rng.randrange(8) + 1, status="active" if rng.random() > 0.05 else "error")
        for i, ws in enumerate(by_type.get("workstation", [])):
            _edge(edges, switches[i % len(switches)].id, ws.id, type="ethernet", bandwidth="1Gbps",
                  utilization=rng.randrange(40) + 5, latency=rng.randrange(12) + 2,
                  status="active" if rng.random() > 0.1 else "inactive")
        for i, ap in enumerate(by_type.get("access-point", [])):
            _edge(edges, switches[i % len(switches)].id, ap.id, type="ethernet", bandwidth="1Gbps",
                  utilization=rng.randrange(50) + 10, latency=rng.randrange(10) + 2,
                  status="active" if rng.random() > 0.08 else "error")

    linked = {frozenset((e.source, e.target)) for e in edges}
    for a, b in list(zip(switches, switches[1:]))[:10]:
        if frozenset((a.id, b.id)) in linked:
            continue
        _edge(edges, a.id, b.id, type="fiber", bandwidth="1Gbps", utilization=rng.randrange(30) + 5,
              latency=rng.randrange(8) + 1, status="active" if rng.random() > 0.15 else "inactive")
    return edges


ALERT_SOURCES = [
    "RTR-01", "RTR-02", "SW-01", "SW-05", "FW-01", "SRV-03", "AP-12",
    "RTR-03", "SW-08", "FW-02", "SRV-07", "WS-04", "AP-05",
]

ALERT_TEMPLATES = [
    ("High CPU Usage Detected", "CPU utilization exceeded 90% threshold for 5 minutes", "performance"),
    ("Network Interface Down", "Interface GigabitEthernet0/1 is no longer responding", "network"),
    ("Security Breach Attempt", "Multiple failed SSH login attempts detected from external IP", "security"),
    ("Bandwidth Threshold Exceeded", "Network utilization above 85% on primary uplink", "network"),
    ("Temperature Warning", "Device temperature above normal operating range (>70C)", "system"),
    ("Backup Process Failed", "Scheduled configuration backup did not complete successfully", "system"),
    ("Certificate Expiring Soon", "SSL certificate expires in 7 days - renewal required", "security"),
    ("Disk Space Low", "Available disk space below 10% on system partition", "system"),
    ("Memory Usage Critical", "Memory utilization exceeded 95% threshold", "performance"),
    ("Link Flapping Detected", "Interface experiencing frequent up/down state changes", "network"),
    ("OSPF Neighbor Down", "OSPF adjacency lost with neighboring router", "network"),
    ("Power Supply Failure", "Redundant power supply unit has failed", "system"),
    ("Intrusion Detection Alert", "Suspicious network traffic pattern detected", "security"),
    ("SNMP Timeout", "Device not responding to SNMP queries", "network"),
    ("Configuration Drift", "Device configuration differs from approved baseline", "security"),
]


def generate_mock_alerts(
    rng: Optional[random.Random] = None,
    count: int = 35,
    device_ids: Optional[Sequence[str]] = None,
) -> List[Alert]:
    """Alerts from the last 7 days, newest first."""
    rng = _rng(rng)
    device_ids = list(device_ids) if device_ids else [f"node-{i}" for i in range(1, 60)]
    now = datetime.now(timezone.utc)
    alerts = []
    for i in range(count):
        title, description, category = rng.choice(ALERT_TEMPLATES)
        source = rng.choice(ALERT_SOURCES)
        p = rng.random()
        severity = "critical" if p > 0.9 else "warning" if p > 0.7 else "info" if p > 0.4 else "success"
        metadata = {
            "device_id": rng.choice(device_ids),
            "threshold": rng.randrange(100),
            "current_value": rng.randrange(100),
        }
        if rng.random() > 0.5:
            metadata["interface"] = f"GigabitEthernet0/{rng.randrange(8)}"
        if rng.random() > 0.7:
            metadata["protocol"] = rng.choice(["OSPF", "BGP", "EIGRP"])
        alerts.append(
            Alert(
                id=f"alert-{i}",
                title=title,
                description=description,
                severity=severity,
                category=category,
                source=source,
                timestamp=(now - timedelta(seconds=rng.random() * 7 * 24 * 3600)).isoformat(),
                acknowledged=rng.random() > 0.6,
                resolved=rng.random() > 0.7,
                tags=[category, severity, source.split("-")[0].lower()],
                metadata=metadata,
            )
        )
    alerts.sort(key=lambda a: a.timestamp, reverse=True)
    return alerts


def generate_time_series(
    points: int,
    base_value: float,
    variance: float,
    rng: Optional[random.Random] = None,
    unit: str = "",
) -> List[MetricData]:
    """One sample per minute ending now; values clamp at zero."""
    rng = _rng(rng)
    now = datetime.now(timezone.utc)
    series = []
    for i in range(points - 1, -1, -1):
        value = base_value + (rng.random() - 0.5) * variance
        series.append(MetricData(timestamp=(now - timedelta(minutes=i)).isoformat(), value=max(0.0, value), unit=unit))
    return series


def generate_mock_monitoring_data(
    nodes: Sequence[NetworkDevice],
    rng: Optional[random.Random] = None,
    points: int = 60,
) -> MonitoringData:
    rng = _rng(rng)
    network = {
        "bandwidth": {
            "inbound": generate_time_series(points, 750, 300, rng, "Mbps"),
            "outbound": generate_time_series(points, 450, 200, rng, "Mbps"),
        },
        "latency": generate_time_series(points, 28, 15, rng, "ms"),
        "packet_loss": generate_time_series(points, 0.3, 0.4, rng, "%"),
        "availability": generate_time_series(points, 99.2, 0.8, rng, "%"),
    }
    devices = {}
    for n in nodes:
        devices[n.id] = {
            "cpu": generate_time_series(points, n.cpu, 25, rng, "%"),
            "memory": generate_time_series(points, n.memory, 20, rng, "%"),
            "temperature": generate_time_series(points, n.temperature, 8, rng, "C"),
            "disk_usage": generate_time_series(points, rng.random() * 85, 15, rng, "%"),
            "interface_utilization": {
                iface.id: generate_time_series(points, iface.utilization, 25, rng, "%") for iface in n.interfaces
            },
        }
    summary = MonitoringSummary(
        total_devices=len(nodes),
        online_devices=sum(1 for n in nodes if n.status == "online"),
        critical_alerts=rng.randrange(8) + 2,
        average_latency=28 + rng.random() * 15,
        network_uptime=99.2 + rng.random() * 0.8,
    )
    return MonitoringData(network=network, devices=devices, summary=summary)


def generate_mock_data(rng: Optional[random.Random] = None) -> dict:
    """Dashboard bundle: a 59-node topology with its edges, alerts, and monitoring series."""
    rng = _rng(rng)
    nodes = generate_mock_nodes(rng)
    edges = generate_mock_edges(nodes, rng)
    topology = NetworkTopology(
        devices=nodes,
        connections=edges,
        subnets=[],
        last_updated=utc_now_iso(),
        discovery_stats=compute_discovery_stats(nodes, edges, last_scan_duration=120, coverage=95),
    )
    return {
        "topology": topology,
        "alerts": generate_mock_alerts(rng, device_ids=[n.id for n in nodes]),
        "monitoring": generate_mock_monitoring_data(nodes, rng),
    }


# ---------------------------------------------------------------------------
# Device inventory (generate_mock_device_inventory)
# ---------------------------------------------------------------------------

INVENTORY_GROUPS = [
    ("router", 12, "RTR", "Cisco"),
    ("switch", 25, "SW", "Cisco"),
    ("firewall", 8, "FW", "Fortinet"),
    ("load-balancer", 6, "LB", "F5 Networks"),
    ("ids-ips", 4, "IPS", "Palo Alto Networks"),
    ("server", 20, "SRV", "Dell Technologies"),
    ("hypervisor", 15, "ESX", "VMware"),
    ("container-host", 10, "K8S", "Dell Technologies"),
    ("workstation", 35, "WS", "HP Enterprise"),
    ("access-point", 18, "AP", "Ubiquiti"),
]
INVENTORY_LOCATIONS = [
    "Headquarters - Floor 1", "Headquarters - Floor 2", "Headquarters - Floor 3",
    "Data Center East", "Data Center West", "Branch Office NYC", "Branch Office LA",
    "Remote Office Seattle", "Remote Office Austin", "Cloud Region US-East",
    "Cloud Region US-West", "Manufacturing Plant A", "Manufacturing Plant B",
]
INVENTORY_DATA_CENTERS = ["Primary DC", "Secondary DC", "Edge DC", "Cloud DC", "Backup DC"]
INVENTORY_OS = [
    "IOS 15.6", "IOS-XE 16.12", "NX-OS 9.3", "JunOS 20.4", "EOS 4.25",
    "Ubuntu 20.04", "CentOS 8", "Windows Server 2019", "ESXi 7.0", "Proxmox 6.4",
]
VLAN_PURPOSES = ["Management", "Production", "Development", "Guest", "IoT"]

TYPE_SERVICES = {
    "router": [(23, "tcp", "Telnet"), (179, "tcp", "BGP"), (520, "udp", "RIP")],
    "switch": [(23, "tcp", "Telnet"), (443, "tcp", "HTTPS")],
    "firewall": [(443, "tcp", "HTTPS"), (4433, "tcp", "Management")],
    "server": [(80, "tcp", "HTTP"), (443, "tcp", "HTTPS"), (3389, "tcp", "RDP"), (5432, "tcp", "PostgreSQL")],
    "workstation": [(3389, "tcp", "RDP")],
}


def _inventory_interface_count(device_type: str, rng: random.Random) -> int:
    if device_type == "router":
        return rng.randrange(8) + 4
    if device_type == "switch":
        return rng.randrange(20) + 12
    if device_type == "server":
        return rng.randrange(4) + 2
    if device_type == "workstation":
        return 2
    if device_type == "access-point":
        return rng.randrange(3) + 2
    return rng.randrange(6) + 2


def _inventory_interfaces(device_num: int, device_type: str, ipv4: str, rng: random.Random) -> List[NetworkInterface]:
    out = []
    for j in range(_inventory_interface_count(device_type, rng)):
        kind, speed = "ethernet", "1Gbps"
        if device_type == "router":
            name = f"GigabitEthernet0/{j}"
            speed = "10Gbps" if rng.random() > 0.5 else "1Gbps"
        elif device_type == "switch":
            name = f"GigabitEthernet{j // 24 + 1}/{j % 24 + 1}"
            speed = "10Gbps" if rng.random() > 0.7 else "1Gbps"
        elif device_type == "server":
            name = f"eth{j}"
            speed = "10Gbps" if rng.random() > 0.6 else "1Gbps"
        elif device_type == "access-point":
            name = "eth0" if j == 0 else f"wlan{j - 1}"
            kind = "ethernet" if j == 0 else "wireless"
            speed = "1Gbps" if j == 0 else "300Mbps"
        elif device_type == "workstation":
            name = "eth0" if j == 0 else "wlan0"
            kind = "ethernet" if j == 0 else "wireless"
            speed = "1Gbps" if j == 0 else "150Mbps"
        else:
            name = f"eth{j}"
        out.append(
            NetworkInterface(
                id=f"{device_num}-{j}",
                name=name,
                type=kind,
                status="up" if rng.random() > 0.15 else "down",
                speed=speed,
                duplex="full",
                utilization=rng.randrange(80) + 5,
                errors=rng.randrange(100),
                packets=rng.randrange(10_000_000),
                bytes=rng.randrange(1_000_000_000),
                mac_address=":".join(f"{rng.randrange(256):02x}" for _ in range(6)),
                ip_address=ipv4 if j == 0 else None,
                vlan_id=rng.randrange(100) + 1 if rng.random() > 0.5 else None,
            )
        )
    return out


def _inventory_services(device_type: str, rng: random.Random) -> List[ServiceInfo]:
    services = [
        ServiceInfo(22, "tcp", "SSH", "OpenSSH 8.2"),
        ServiceInfo(161, "udp", "SNMP", "v2c"),
    ]
    for port, proto, name in TYPE_SERVICES.get(device_type, []):
        services.append(ServiceInfo(port, proto, name, status="open" if rng.random() > 0.1 else "closed"))
    return services


def generate_mock_device_inventory(rng: Optional[random.Random] = None) -> List[NetworkDevice]:
    """153 devices across all ten device types, ids ``device-1`` .. ``device-153``."""
    rng = _rng(rng)
    devices: List[NetworkDevice] = []
    num = 1
    now = datetime.now(timezone.utc)
    for device_type, count, prefix, vendor in INVENTORY_GROUPS:
        for i in range(1, count + 1):
            hostname = f"{prefix}-{i:03d}"
            location = rng.choice(INVENTORY_LOCATIONS)
            p = rng.random()
            status = "offline" if p > 0.92 else "warning" if p > 0.82 else "online" if p > 0.02 else "unknown"
            subnet = rng.randrange(20) + 10
            host = rng.randrange(200) + 10
            ipv4 = f"192.168.{subnet}.{host}"
            vlans = []
            if device_type in ("switch", "router"):
                for v in range(rng.randrange(5) + 1):
                    vid = rng.randrange(100) + 10
                    vlans.append(VlanInfo(vid, f"VLAN_{vid}", f"VLAN {vid} - {VLAN_PURPOSES[v % 5]}", [f"eth{v}"]))
            devices.append(
                NetworkDevice(
                    id=f"device-{num}",
                    hostname=hostname,
                    label=hostname,
                    ip_addresses=[ipv4, f"2001:db8:{subnet:x}::{host:x}"],
                    mac_addresses=[":".join(f"{rng.randrange(256):02x}" for _ in range(6))],
                    type=device_type,
                    status=status,
                    vendor=vendor,
                    model=f"{vendor}-{rng.randrange(1000, 10000)}{device_type[0].upper()}",
                    os_version=rng.choice(INVENTORY_OS),
                    firmware_version=f"{rng.randrange(10) + 1}.{rng.randrange(20)}.{rng.randrange(100)}",
                    location=location,
                    data_center=rng.choice(INVENTORY_DATA_CENTERS),
                    uptime=rng.randrange(8760),
                    cpu=rng.randrange(90) + 5,
                    memory=rng.randrange(85) + 10,
                    temperature=rng.randrange(35) + 25,
                    interfaces=_inventory_interfaces(num, device_type, ipv4, rng),
                    vlans=vlans,
                    routing_table=[
                        RouteEntry("0.0.0.0/0", "192.168.1.1", "GigabitEthernet0/0", 1, "static"),
                        RouteEntry("192.168.0.0/16", "0.0.0.0", "GigabitEthernet0/1", 0, "connected"),
                    ] if device_type == "router" else [],
                    open_ports=[p for p in (22, 80, 443, 161, 162) if rng.random() > 0.3],
                    services=_inventory_services(device_type, rng),
                    snmp_info=SnmpInfo(
                        version="2c",
                        community="public",
                        sys_descr=f"{vendor} {device_type} running {rng.choice(INVENTORY_OS)}",
                        sys_object_id=f"1.3.6.1.4.1.{rng.randrange(10000)}",
                        sys_up_time=rng.randrange(100_000_000),
                        sys_contact="admin@company.com",
                        sys_name=hostname,
                        sys_location=location,
                    ) if rng.random() > 0.3 else None,
                    credentials=DeviceCredentials(
                        ssh={"username": "admin"},
                        snmp={"version": "2c", "community": "public"},
                    ) if rng.random() > 0.2 else None,
                    last_discovered=(now - timedelta(seconds=rng.random() * 86400)).isoformat(),
                    discovery_methods=[m for m in ("ping", "snmp", "ssh") if rng.random() > 0.3],
                    position={"x": rng.random() * 1000, "y": rng.random() * 800},
                )
            )
            num += 1
    return devices


def generate_inventory_topology(rng: Optional[random.Random] = None) -> NetworkTopology:
    """Inventory devices wired routers-in-a-ring, core appliances to routers, the rest to switches."""
    rng = _rng(rng)
    devices = generate_mock_device_inventory(rng)
    routers = [d for d in devices if d.type == "router"]
    switches = [d for d in devices if d.type == "switch"]
    connections: List[NetworkConnection] = []

    def link(a: NetworkDevice, b: NetworkDevice, kind: str) -> None:
        connections.append(
            NetworkConnection(
                id=f"conn-{a.id}-{b.id}",
                source=a.id,
                target=b.id,
                type=kind,
                bandwidth="10000" if kind == "fiber" else "1000",
                utilization=rng.randrange(90) + 5,
                latency=rng.random() * 10 + 0.5,
                packet_loss=rng.random() * 0.1,
                status="active" if rng.random() > 0.05 else "degraded",
                discovery_method="lldp",
                last_seen=utc_now_iso(),
            )
        )

    for i, r in enumerate(routers):
        nxt = routers[(i + 1) % len(routers)]
        if nxt.id != r.id:
            link(r, nxt, "fiber")
    for i, d in enumerate(devices):
        if d.type == "router":
            continue
        if d.type in ("switch", "firewall", "load-balancer", "ids-ips") and routers:
            link(routers[i % len(routers)], d, "fiber" if d.type == "switch" else "ethernet")
        elif switches:
            link(switches[i % len(switches)], d, "wireless" if d.type == "access-point" and rng.random() > 0.8 else "ethernet")

    return NetworkTopology(
        devices=devices,
        connections=connections,
        subnets=[],
        last_updated=utc_now_iso(),
        discovery_stats=compute_discovery_stats(devices, connections, last_scan_duration=120, coverage=95),
    )
