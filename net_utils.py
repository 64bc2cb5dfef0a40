"""
NetSight network helpers.
Vendor lookup, device classification, OS fingerprint guesses, and proximity matching.
"""

import ipaddress
import random
from typing import Iterable, List, Optional

from constants import INFRASTRUCTURE_TYPES, MAC_VENDORS
from models import NetworkDevice, ServiceInfo
from toolkit.utils import ip_distance


RFC1918_NETWORKS = [
    ipaddress.ip_network("10.0.0.0/8"),
    ipaddress.ip_network("172.16.0.0/12"),
    ipaddress.ip_network("192.168.0.0/16"),
]


def is_private_ip(ip: str) -> bool:
    """RFC 1918 only; loopback and documentation ranges do not count."""
    try:
        addr = ipaddress.ip_address(ip)
    except ValueError:
        return False
    return any(addr in net for net in RFC1918_NETWORKS)


def mask_to_cidr(ip: str, mask: str) -> Optional[str]:
    """'192.168.1.100' + '255.255.255.0' -> '192.168.1.0/24'; hex masks like 0xffffff00 accepted."""
    try:
        if mask.lower().startswith("0x"):
            mask = str(ipaddress.IPv4Address(int(mask, 16)))
        return str(ipaddress.IPv4Network(f"{ip}/{mask}", strict=False))
    except ValueError:
        return None


def lookup_mac_vendor(mac: str) -> str:
    """Look up vendor from the local OUI table."""
    if not mac or mac == "unknown":
        return ""
    mac_clean = mac.upper().replace("-", ":").replace(".", ":")
    parts = mac_clean.split(":")
    prefix = ":".join(parts[:3]) if len(parts) == 6 else mac_clean[:8]
    return MAC_VENDORS.get(prefix, "")


def guess_device_type(services: Iterable[ServiceInfo], rng: Optional[random.Random] = None) -> str:
    """Classify a host from its open services.

    SNMP suggests infrastructure (switch/router/firewall), web ports a server or
    workstation, SSH alone a server. Ties are broken randomly.
    """
    r = rng or random
    names = {s.service for s in services}
    if "snmp" in names:
        roll = r.random()
        if roll < 0.4:
            return "switch"
        if roll < 0.7:
            return "router"
        return "firewall"
    if "http" in names or "https" in names:
        return "server" if r.random() > 0.5 else "workstation"
    if "ssh" in names:
        return "server"
    return "workstation"


def guess_type_from_vendor(vendor: str, ip: str) -> str:
    v = (vendor or "").lower()
    if not v:
        return guess_type_from_ip(ip)
    if "cisco" in v or "juniper" in v:
        return "router"
    if "dell" in v or "hp" in v or "lenovo" in v:
        return "server"
    return "workstation"


def guess_type_from_ip(ip: str) -> str:
    """Low last octets are usually gateways, the next band servers."""
    try:
        last = int(ip.rsplit(".", 1)[1])
    except (IndexError, ValueError):
        return "workstation"
    if last == 1 or last < 10:
        return "router"
    if last < 50:
        return "server"
    return "workstation"


def guess_os_from_ttl(ttl: int) -> str:
    if ttl <= 0:
        return ""
    if ttl <= 64:
        return "Linux/Unix"
    if ttl <= 128:
        return "Windows"
    return "Network OS"


def nearest_infrastructure(
    device: NetworkDevice,
    candidates: List[NetworkDevice],
    types: Iterable[str] = INFRASTRUCTURE_TYPES,
) -> Optional[NetworkDevice]:
    """Closest infrastructure device by IPv4 proximity, or None when there is none."""
    ip = device.primary_ip
    allowed = set(types)
    best = None
    best_distance = None
    for c in candidates:
        if c.id == device.id or c.type not in allowed or not c.primary_ip:
            continue
        try:
            dist = ip_distance(ip, c.primary_ip)
        except (ValueError, IndexError):
            continue
        if best_distance is None or dist < best_distance:
            best, best_distance = c, dist
    return best
