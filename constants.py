"""
NetSight constants.
Device/link vocabularies, service maps, scan profiles, and platform command tables.
"""

DEVICE_TYPES = [
    "router",
    "switch",
    "firewall",
    "server",
    "workstation",
    "access-point",
    "load-balancer",
    "ids-ips",
    "hypervisor",
    "container-host",
]

INFRASTRUCTURE_TYPES = {"router", "switch", "firewall"}

DEVICE_STATUSES = ["online", "warning", "offline", "unknown"]

CONNECTION_TYPES = ["ethernet", "fiber", "wireless", "vpn", "trunk", "access"]
CONNECTION_STATUSES = ["active", "inactive", "error", "degraded"]
DISCOVERY_METHODS = ["cdp", "lldp", "arp", "routing", "manual"]

LAYOUT_TYPES = ["hierarchical", "force", "circular", "grid", "custom"]

ALERT_SEVERITIES = ["critical", "warning", "info", "success"]
ALERT_CATEGORIES = ["network", "security", "performance", "system"]

# Port -> service name for simulated port probes
SERVICE_PORTS = {
    22: "ssh",
    23: "telnet",
    80: "http",
    161: "snmp",
    162: "snmp-trap",
    443: "https",
    3306: "mysql",
    3389: "rdp",
    5432: "postgresql",
    8080: "http-alt",
}

# Layer rank used by hierarchical layouts (lower = closer to the core)
LAYER_RANK = {
    "firewall": 0,
    "router": 0,
    "load-balancer": 1,
    "ids-ips": 1,
    "switch": 2,
    "hypervisor": 3,
    "container-host": 3,
    "server": 3,
    "access-point": 3,
    "workstation": 4,
}

SCAN_PROFILES = {
    "quick": {
        "ports": [22, 80, 443],
        "protocols": {"ping": True, "snmp": False, "cdp": False, "lldp": False, "ssh": False, "api": False},
        "max_concurrent": 50,
        "max_hosts_per_range": 64,
    },
    "standard": {
        "ports": [22, 23, 80, 443, 161, 162],
        "protocols": {"ping": True, "snmp": True, "cdp": True, "lldp": True, "ssh": False, "api": False},
        "max_concurrent": 50,
        "max_hosts_per_range": 254,
    },
    "deep": {
        "ports": [22, 23, 80, 161, 162, 443, 3306, 3389, 5432, 8080],
        "protocols": {"ping": True, "snmp": True, "cdp": True, "lldp": True, "ssh": True, "api": True},
        "max_concurrent": 32,
        "max_hosts_per_range": 1024,
    },
}

# Discovery commands a privileged session may run
ALLOWED_COMMANDS = {
    "ipconfig",
    "arp",
    "ping",
    "nslookup",
    "netstat",
    "route",
    "ip",
    "ifconfig",
    "iwconfig",
    "netdiscover",
    "nmap",
    "whoami",
    "net",
    "powershell",
    "cmd",
}

PLATFORM_COMMANDS = {
    "windows": ["ipconfig /all", "arp -a", "route print", "netstat -rn"],
    "linux": ["ip route show", "arp -a", "ip addr show", "netstat -rn"],
    "darwin": ["route -n get default", "arp -a", "ifconfig", "netstat -rn"],
}

PIPELINE_MODULES = [
    "network-topology",
    "device-monitoring",
    "alert-system",
    "analytics-engine",
    "user-management",
]

# Locally relevant OUI prefixes for simulated ARP entries
MAC_VENDORS = {
    "00:00:0C": "Cisco",
    "00:1A:2B": "Cisco",
    "00:1B:54": "Cisco",
    "00:05:85": "Juniper",
    "00:1C:73": "Arista",
    "00:09:0F": "Fortinet",
    "00:1B:17": "Palo Alto Networks",
    "00:14:22": "Dell",
    "78:2B:CB": "Dell",
    "3C:97:0E": "HP",
    "00:50:56": "VMware",
    "00:0C:29": "VMware",
    "F0:9F:C2": "Ubiquiti",
    "B8:27:EB": "Raspberry Pi",
    "00:18:4D": "Netgear",
}
