"""
NetSight data models.
Dataclasses for devices, connections, topology snapshots, alerts, monitoring, users, and discovery results.
"""

from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, List, Optional


@dataclass
class NetworkInterface:
    id: str
    name: str
    type: str = "ethernet"
    status: str = "up"  # up | down | admin-down
    speed: str = "1000"
    duplex: str = "full"
    utilization: float = 0
    errors: int = 0
    packets: int = 0
    bytes: int = 0
    connected_device: Optional[str] = None
    connected_port: Optional[str] = None
    vlan_id: Optional[int] = None
    ip_address: Optional[str] = None
    mac_address: Optional[str] = None


@dataclass
class VlanInfo:
    id: int
    name: str
    description: str = ""
    interfaces: List[str] = field(default_factory=list)


@dataclass
class RouteEntry:
    destination: str
    next_hop: str
    interface: str
    metric: int = 0
    protocol: str = "static"


@dataclass
class ServiceInfo:
    port: int
    protocol: str = "tcp"
    service: str = "unknown"
    version: Optional[str] = None
    status: str = "open"  # open | closed | filtered


@dataclass
class SnmpInfo:
    version: str = "2c"
    community: Optional[str] = None
    sys_descr: str = ""
    sys_object_id: Optional[str] = None
    sys_up_time: int = 0
    sys_contact: str = ""
    sys_name: str = ""
    sys_location: str = ""


@dataclass
class DeviceCredentials:
    ssh: Optional[Dict[str, Any]] = None
    snmp: Optional[Dict[str, Any]] = None
    api: Optional[Dict[str, Any]] = None


@dataclass
class NetworkDevice:
    """A node of the topology graph."""

    id: str
    hostname: str
    label: str = ""
    ip_addresses: List[str] = field(default_factory=list)
    mac_addresses: List[str] = field(default_factory=list)
    type: str = "workstation"
    status: str = "unknown"
    vendor: str = ""
    model: str = ""
    os_version: str = ""
    firmware_version: str = ""
    location: str = "Unknown"
    data_center: str = ""
    uptime: int = 0
    cpu: float = 0
    memory: float = 0
    temperature: float = 0
    interfaces: List[NetworkInterface] = field(default_factory=list)
    vlans: List[VlanInfo] = field(default_factory=list)
    routing_table: List[RouteEntry] = field(default_factory=list)
    open_ports: List[int] = field(default_factory=list)
    services: List[ServiceInfo] = field(default_factory=list)
    snmp_info: Optional[SnmpInfo] = None
    credentials: Optional[DeviceCredentials] = None
    last_discovered: str = ""
    discovery_methods: List[str] = field(default_factory=list)
    position: Optional[Dict[str, float]] = None

    @property
    def primary_ip(self) -> str:
        return self.ip_addresses[0] if self.ip_addresses else ""


@dataclass
class NetworkConnection:
    """An undirected link between two device ids."""

    id: str
    source: str
    target: str
    source_interface: str = ""
    target_interface: str = ""
    type: str = "ethernet"
    bandwidth: str = "1000"
    utilization: float = 0
    latency: float = 0
    packet_loss: float = 0
    status: str = "active"
    vlan_id: Optional[int] = None
    protocol: Optional[str] = None
    discovery_method: str = "manual"
    last_seen: str = ""


@dataclass
class SubnetInfo:
    id: str
    network: str
    mask: str
    gateway: str = ""
    vlan_id: Optional[int] = None
    description: str = ""
    device_count: int = 0
    utilization: float = 0


@dataclass
class DiscoveryStats:
    total_devices: int = 0
    devices_by_type: Dict[str, int] = field(default_factory=dict)
    devices_by_status: Dict[str, int] = field(default_factory=dict)
    devices_by_location: Dict[str, int] = field(default_factory=dict)
    total_connections: int = 0
    discovery_methods: Dict[str, int] = field(default_factory=dict)
    last_scan_duration: float = 0
    coverage: float = 0
    errors: List[str] = field(default_factory=list)
    partial: bool = False


@dataclass
class NetworkTopology:
    devices: List[NetworkDevice] = field(default_factory=list)
    connections: List[NetworkConnection] = field(default_factory=list)
    subnets: List[SubnetInfo] = field(default_factory=list)
    last_updated: str = ""
    discovery_stats: DiscoveryStats = field(default_factory=DiscoveryStats)

    def device_index(self) -> Dict[str, NetworkDevice]:
        return {d.id: d for d in self.devices}


@dataclass
class DiscoveryConfig:
    ip_ranges: List[str] = field(default_factory=lambda: ["192.168.1.0/24", "10.0.0.0/8"])
    exclude_ranges: List[str] = field(default_factory=list)
    snmp_communities: List[str] = field(default_factory=lambda: ["public", "private"])
    ssh_credentials: List[Dict[str, Any]] = field(default_factory=list)
    api_endpoints: List[Dict[str, Any]] = field(default_factory=list)
    scan_ports: List[int] = field(default_factory=lambda: [22, 23, 80, 443, 161, 162])
    enabled_protocols: Dict[str, bool] = field(
        default_factory=lambda: {
            "ping": True,
            "snmp": True,
            "cdp": True,
            "lldp": True,
            "ssh": False,
            "api": False,
        }
    )
    scan_interval: int = 60  # minutes
    max_concurrent_scans: int = 50
    timeout: int = 30  # seconds
    max_hosts_per_range: int = 254
    probe_retries: int = 2


@dataclass
class TopologyFilter:
    device_types: List[str] = field(default_factory=list)
    statuses: List[str] = field(default_factory=list)
    locations: List[str] = field(default_factory=list)
    data_centers: List[str] = field(default_factory=list)
    vlans: List[int] = field(default_factory=list)
    search_term: str = ""
    show_offline_devices: bool = True
    show_connections: bool = True


@dataclass
class PathHop:
    device_id: str
    interface: str = ""
    latency: float = 0
    packet_loss: float = 0


@dataclass
class PathTrace:
    id: str
    source: str
    target: str
    hops: List[PathHop] = field(default_factory=list)
    total_latency: float = 0
    status: str = "complete"  # complete | partial | failed
    timestamp: str = ""


@dataclass
class Alert:
    """Dashboard alert bound to a source device."""

    id: str
    title: str
    description: str
    severity: str  # critical | warning | info | success
    category: str  # network | security | performance | system
    source: str
    timestamp: str
    acknowledged: bool = False
    resolved: bool = False
    assignee: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class MetricData:
    timestamp: str
    value: float
    unit: str = ""


@dataclass
class MonitoringSummary:
    total_devices: int = 0
    online_devices: int = 0
    critical_alerts: int = 0
    average_latency: float = 0
    network_uptime: float = 0


@dataclass
class MonitoringData:
    network: Dict[str, Any] = field(default_factory=dict)
    devices: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    summary: MonitoringSummary = field(default_factory=MonitoringSummary)


@dataclass
class UserProfile:
    id: str
    email: str
    first_name: str
    last_name: str
    role: str  # client | manager | localAdmin | developer
    status: str = "active"  # active | disabled | suspended | deleted
    membership_type: str = "basic"
    phone: str = ""
    address: Dict[str, str] = field(default_factory=dict)
    organization_id: Optional[str] = None
    team_ids: List[str] = field(default_factory=list)
    permissions: List[str] = field(default_factory=list)
    registration_date: str = ""
    last_login: Optional[str] = None
    last_activity: Optional[str] = None
    usage_metrics: Dict[str, float] = field(default_factory=dict)
    communication_preferences: Dict[str, bool] = field(default_factory=dict)
    billing_info: Optional[Dict[str, str]] = None
    api_keys: List[str] = field(default_factory=list)
    session_info: Dict[str, Any] = field(default_factory=dict)


@dataclass
class AuditLog:
    id: str
    user_id: str
    admin_id: str
    admin_name: str
    action: str
    details: Dict[str, Any] = field(default_factory=dict)
    timestamp: str = ""
    ip_address: str = ""
    user_agent: str = ""


@dataclass
class ScanConfig:
    """Settings for a live-path NetworkScanner run; empty subnets means auto-detect."""

    subnets: List[str] = field(default_factory=list)
    protocols: Dict[str, bool] = field(
        default_factory=lambda: {"arp": True, "icmp": True, "dns": True, "snmp": False}
    )
    timeout: int = 5  # seconds per command
    max_concurrent: int = 50
    require_elevation: bool = False


@dataclass
class ScanResult:
    success: bool
    is_live_data: bool
    devices: List[NetworkDevice] = field(default_factory=list)
    connections: List[NetworkConnection] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    scan_duration: float = 0
    privilege_level: str = "user"  # user | elevated | failed


@dataclass
class ElevationRequest:
    reason: str
    commands: List[str] = field(default_factory=list)
    platform: str = "linux"  # windows | linux | darwin
    requires_elevation: bool = True
    timeout: int = 30  # seconds


@dataclass
class ScriptTemplate:
    content: str
    extension: str
    executable: bool = True


@dataclass
class ElevationResult:
    granted: bool
    method: str  # uac | sudo | none | failed
    error: Optional[str] = None
    script_path: Optional[str] = None


@dataclass
class DataPipelineConfig:
    enable_real_data_collection: bool = True
    fallback_to_mock_data: bool = True
    scan_interval: float = 5  # minutes; 0 disables periodic scans
    max_retries: int = 3
    timeout: int = 30  # seconds


@dataclass
class ValidationRules:
    min_devices_required: int = 1
    max_scan_time_allowed: float = 60  # seconds
    required_protocols: List[str] = field(default_factory=lambda: ["icmp"])


@dataclass
class ModuleState:
    module: str
    is_live_data_available: bool = False
    last_scan_time: Optional[str] = None
    error: Optional[str] = None
    scan_duration: Optional[float] = None
    privilege_level: str = "user"


# ---------------------------------------------------------------------------
# dict -> dataclass helpers (JSON payloads, persisted snapshots)
# ---------------------------------------------------------------------------


def _known(cls, data: dict) -> dict:
    names = {f.name for f in fields(cls)}
    return {k: v for k, v in (data or {}).items() if k in names}


def _build(cls, data: Any):
    """Construct ``cls`` from a JSON object; bad shapes raise ValueError."""
    if not isinstance(data, dict):
        raise ValueError(f"{cls.__name__} must be an object")
    try:
        return cls(**_known(cls, data))
    except TypeError as exc:
        raise ValueError(f"Invalid {cls.__name__}: {exc}") from exc


def _build_list(cls, data: dict, key: str) -> list:
    items = data.get(key) or []
    if not isinstance(items, list):
        raise ValueError(f"{key} must be a list")
    return [_build(cls, item) for item in items]


def device_from_dict(data: dict) -> NetworkDevice:
    if not isinstance(data, dict):
        raise ValueError("NetworkDevice must be an object")
    raw = _known(NetworkDevice, data)
    raw["interfaces"] = _build_list(NetworkInterface, raw, "interfaces")
    raw["vlans"] = _build_list(VlanInfo, raw, "vlans")
    raw["routing_table"] = _build_list(RouteEntry, raw, "routing_table")
    raw["services"] = _build_list(ServiceInfo, raw, "services")
    if raw.get("snmp_info"):
        raw["snmp_info"] = _build(SnmpInfo, raw["snmp_info"])
    if raw.get("credentials"):
        raw["credentials"] = _build(DeviceCredentials, raw["credentials"])
    if not raw.get("label"):
        raw["label"] = raw.get("hostname", "")
    return _build(NetworkDevice, raw)


def connection_from_dict(data: dict) -> NetworkConnection:
    return NetworkConnection(**_known(NetworkConnection, data))


def topology_from_dict(data: dict) -> NetworkTopology:
    return NetworkTopology(
        devices=[device_from_dict(d) for d in data.get("devices") or []],
        connections=[connection_from_dict(c) for c in data.get("connections") or []],
        subnets=[SubnetInfo(**_known(SubnetInfo, s)) for s in data.get("subnets") or []],
        last_updated=data.get("last_updated", ""),
        discovery_stats=DiscoveryStats(**_known(DiscoveryStats, data.get("discovery_stats") or {})),
    )


def filter_from_dict(data: dict) -> TopologyFilter:
    return TopologyFilter(**_known(TopologyFilter, data))


def alert_from_dict(data: dict) -> Alert:
    return Alert(**_known(Alert, data))


def to_dict(obj: Any) -> dict:
    return asdict(obj)
