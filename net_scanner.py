"""
NetSight network scanner.
Live-path discovery: privilege check, subnet detection, ARP table and ping sweep,
DNS/SNMP enrichment, and proximity-based connection mapping.

Commands are answered by SimulatedCommandRunner; their output is parsed with the
same regexes a real ipconfig/ip/ifconfig/arp run would need.
"""

import concurrent.futures
import ipaddress
import logging
import platform
import random
import re
import threading
import time
from typing import Dict, List, Optional

from constants import INFRASTRUCTURE_TYPES
from errors import ScanInProgressError
from models import NetworkConnection, NetworkDevice, ScanConfig, ScanResult, SnmpInfo
from net_utils import (
    guess_os_from_ttl,
    guess_type_from_ip,
    guess_type_from_vendor,
    is_private_ip,
    lookup_mac_vendor,
    mask_to_cidr,
    nearest_infrastructure,
)
from toolkit.utils import chunked, hosts_from_network, utc_now_iso

logger = logging.getLogger(__name__)

DEFAULT_SUBNETS = ["192.168.1.0/24", "192.168.0.0/24", "10.0.0.0/24"]
FALLBACK_SUBNET = "192.168.1.0/24"
MAX_SWEEP_HOSTS = 254

IPCONFIG_IP_RE = re.compile(r"IPv4 Address[.\s]*:\s*(\d+\.\d+\.\d+\.\d+)")
IPCONFIG_MASK_RE = re.compile(r"Subnet Mask[.\s]*:\s*(\d+\.\d+\.\d+\.\d+)")
IP_ROUTE_RE = re.compile(r"(\d+\.\d+\.\d+\.\d+/\d+)\s+dev")
IFCONFIG_RE = re.compile(r"inet (\d+\.\d+\.\d+\.\d+) netmask (0x[a-fA-F0-9]+)")
ARP_WINDOWS_RE = re.compile(r"(\d+\.\d+\.\d+\.\d+)\s+([a-fA-F0-9-]{17})\s+(\w+)")
ARP_UNIX_RE = re.compile(r"\((\d+\.\d+\.\d+\.\d+)\) at ([a-fA-F0-9:]{17})")
PING_REPLY_RE = re.compile(r"time[=<]([\d.]+)ms\s+TTL=(\d+)", re.IGNORECASE)


class CommandFailed(RuntimeError):
    pass


def detect_platform() -> str:
    system = platform.system().lower()
    if system.startswith("win"):
        return "windows"
    if system == "darwin":
        return "darwin"
    return "linux"


class SimulatedCommandRunner:
    """Canned output for the handful of commands the scanner issues."""

    IPCONFIG = """
Windows IP Configuration

Ethernet adapter Local Area Connection:
   Connection-specific DNS Suffix  . : local
   IPv4 Address. . . . . . . . . . . : 192.168.1.100
   Subnet Mask . . . . . . . . . . . : 255.255.255.0
   Default Gateway . . . . . . . . . : 192.168.1.1

Ethernet adapter vEthernet (Lab):
   IPv4 Address. . . . . . . . . . . : 172.16.5.20
   Subnet Mask . . . . . . . . . . . : 255.255.255.0
"""

    IP_ROUTE = """default via 192.168.1.1 dev eth0 proto dhcp metric 100
192.168.1.0/24 dev eth0 proto kernel scope link src 192.168.1.100 metric 100
172.16.5.0/24 dev br-lab proto kernel scope link src 172.16.5.20
"""

    IFCONFIG = """lo0: flags=8049<UP,LOOPBACK,RUNNING,MULTICAST> mtu 16384
\tinet 127.0.0.1 netmask 0xff000000
en0: flags=8863<UP,BROADCAST,SMART,RUNNING,SIMPLEX,MULTICAST> mtu 1500
\tether 3c:97:0e:12:34:56
\tinet 192.168.1.100 netmask 0xffffff00 broadcast 192.168.1.255
"""

    ROUTE_DEFAULT = """   route to: default
destination: default
    gateway: 192.168.1.1
  interface: en0
"""

    ARP_WINDOWS = """
Interface: 192.168.1.100 --- 0x2
  Internet Address      Physical Address      Type
  192.168.1.1           00-1a-2b-dd-ee-ff     dynamic
  192.168.1.10          00-14-22-44-55-66     dynamic
  192.168.1.20          77-88-99-aa-bb-cc     dynamic
  192.168.1.255         ff-ff-ff-ff-ff-ff     static
"""

    ARP_UNIX = """? (192.168.1.1) at 00:1a:2b:dd:ee:ff on en0 ifscope [ethernet]
? (192.168.1.10) at 00:14:22:44:55:66 on en0 ifscope [ethernet]
? (192.168.1.20) at 77:88:99:aa:bb:cc on en0 ifscope [ethernet]
"""

    def __init__(
        self,
        platform_name: Optional[str] = None,
        *,
        elevated: bool = False,
        rng: Optional[random.Random] = None,
        ping_success_rate: float = 0.7,
        delay: float = 0.0,
    ):
        self.platform = platform_name or detect_platform()
        self.elevated = elevated
        self.ping_success_rate = ping_success_rate
        self.delay = max(0.0, float(delay))
        self._seed = (rng or random.Random()).getrandbits(32)
        self.history: List[str] = []
        self._lock = threading.Lock()

    def run(self, command: str, timeout: float = 5) -> str:
        with self._lock:
            self.history.append(command)
        if self.delay:
            time.sleep(min(self.delay, timeout))
        cmd = command.strip()
        if cmd.startswith("ipconfig"):
            return self.IPCONFIG
        if cmd.startswith("ip route"):
            return self.IP_ROUTE
        if cmd.startswith("ifconfig"):
            return self.IFCONFIG
        if cmd.startswith("route"):
            return self.ROUTE_DEFAULT
        if cmd.startswith("arp"):
            return self.ARP_WINDOWS if self.platform == "windows" else self.ARP_UNIX
        if cmd == "whoami":
            return "root\n" if self.elevated else "user\n"
        if cmd == "net session":
            if not self.elevated:
                raise CommandFailed("System error 5 has occurred. Access is denied.")
            return "There are no entries in the list.\n"
        if cmd.startswith("ping"):
            return self._ping(cmd.split()[-1])
        return ""

    def _ping(self, ip: str) -> str:
        r = random.Random(f"{self._seed}:ping:{ip}")
        if r.random() >= self.ping_success_rate:
            return f"Request timed out for {ip}.\n"
        ttl = r.choice([64, 64, 128, 255])
        return f"Reply from {ip}: bytes=32 time={r.uniform(1, 51):.2f}ms TTL={ttl}\n"


class NetworkScanner:
    """Handles live-path device discovery for one ScanConfig."""

    def __init__(
        self,
        config: Optional[ScanConfig] = None,
        *,
        runner: Optional[SimulatedCommandRunner] = None,
        rng: Optional[random.Random] = None,
    ):
        self.config = config or ScanConfig()
        self._rng = rng or random.Random()
        self.runner = runner or SimulatedCommandRunner(rng=self._rng)
        self.platform = self.runner.platform
        self._lock = threading.Lock()
        self._abort = threading.Event()
        self.is_scanning = False

    def _exec(self, command: str) -> str:
        logger.debug("executing command: %s", command)
        return self.runner.run(command, timeout=self.config.timeout)

    def abort(self) -> None:
        if self.is_scanning:
            logger.info("network scan abort requested")
            self._abort.set()

    def perform_network_scan(self) -> ScanResult:
        with self._lock:
            if self.is_scanning:
                raise ScanInProgressError()
            self.is_scanning = True
        self._abort.clear()
        started = time.time()

        try:
            logger.info("starting network discovery scan")
            privilege_level = self.check_privileges()
            if privilege_level == "failed" and self.config.require_elevation:
                logger.warning("insufficient privileges for comprehensive scan")
                return _failure(time.time() - started, "failed", ["Insufficient privileges"])

            subnets = self.config.subnets or self.detect_local_subnets()
            logger.info("scanning subnets: %s", ", ".join(subnets))

            errors: List[str] = []
            devices = self.discover_devices(subnets, privilege_level, errors)
            connections = self.map_connections(devices)
            if self._abort.is_set():
                errors.append("Scan aborted")

            duration = time.time() - started
            logger.info("scan completed in %.2fs, found %d devices", duration, len(devices))
            return ScanResult(
                success=not self._abort.is_set(),
                is_live_data=bool(devices),
                devices=devices,
                connections=connections,
                errors=errors,
                scan_duration=round(duration, 3),
                privilege_level=privilege_level,
            )
        except Exception as exc:
            logger.error("network scan failed: %s", exc)
            return _failure(time.time() - started, "user", [str(exc) or "Unknown error"])
        finally:
            with self._lock:
                self.is_scanning = False

    # -- environment ------------------------------------------------------

    def check_privileges(self) -> str:
        if self.platform == "windows":
            try:
                self._exec("net session")
                return "elevated"
            except CommandFailed:
                return "user"
        if self.platform in ("linux", "darwin"):
            try:
                return "elevated" if self._exec("whoami").strip() == "root" else "user"
            except CommandFailed:
                return "failed"
        return "failed"

    def detect_local_subnets(self) -> List[str]:
        logger.info("auto-detecting local subnets on %s", self.platform)
        if self.platform == "windows":
            subnets = self._subnets_windows()
        elif self.platform == "linux":
            subnets = self._subnets_linux()
        elif self.platform == "darwin":
            subnets = self._subnets_macos()
        else:
            return list(DEFAULT_SUBNETS)
        return subnets or [FALLBACK_SUBNET]

    def _subnets_windows(self) -> List[str]:
        output = self._exec("ipconfig /all")
        ips = IPCONFIG_IP_RE.findall(output)
        masks = IPCONFIG_MASK_RE.findall(output)
        subnets = []
        for ip, mask in zip(ips, masks):
            cidr = mask_to_cidr(ip, mask)
            if cidr and is_private_ip(ip):
                subnets.append(cidr)
        return subnets

    def _subnets_linux(self) -> List[str]:
        output = self._exec("ip route show")
        return [s for s in IP_ROUTE_RE.findall(output) if is_private_ip(s.split("/")[0])]

    def _subnets_macos(self) -> List[str]:
        output = self._exec("ifconfig")
        subnets = []
        for ip, hex_mask in IFCONFIG_RE.findall(output):
            if not is_private_ip(ip):
                continue
            cidr = mask_to_cidr(ip, hex_mask)
            if cidr:
                subnets.append(cidr)
        return subnets

    # -- discovery --------------------------------------------------------

    def discover_devices(self, subnets: List[str], privilege_level: str, errors: List[str]) -> List[NetworkDevice]:
        devices: List[NetworkDevice] = []
        seen = set()
        protocols = self.config.protocols

        def keep(found: List[NetworkDevice]):
            for d in found:
                if d.primary_ip not in seen:
                    seen.add(d.primary_ip)
                    devices.append(d)

        for subnet in subnets:
            if self._abort.is_set():
                break
            logger.info("scanning subnet %s", subnet)
            try:
                if protocols.get("arp") and privilege_level == "elevated":
                    keep(self.arp_scan(subnet))
                if protocols.get("icmp"):
                    keep(self.ping_sweep(subnet))
            except (ValueError, CommandFailed) as exc:
                logger.warning("failed to scan subnet %s: %s", subnet, exc)
                errors.append(f"{subnet}: {exc}")

        if protocols.get("dns"):
            self.enrich_with_dns(devices)
        if protocols.get("snmp"):
            self.enrich_with_snmp(devices)
        return devices

    def parse_arp_output(self, output: str) -> List[Dict[str, str]]:
        entries = []
        for line in output.splitlines():
            if self.platform == "windows":
                m = ARP_WINDOWS_RE.search(line)
                if m:
                    entries.append({"ip": m.group(1), "mac": m.group(2), "type": m.group(3)})
            else:
                m = ARP_UNIX_RE.search(line)
                if m:
                    entries.append({"ip": m.group(1), "mac": m.group(2), "type": "dynamic"})
        return entries

    def arp_scan(self, subnet: str) -> List[NetworkDevice]:
        network = ipaddress.ip_network(subnet, strict=False)
        devices = []
        for entry in self.parse_arp_output(self._exec("arp -a")):
            if ipaddress.ip_address(entry["ip"]) not in network:
                continue
            mac = entry["mac"].replace("-", ":").upper()
            vendor = lookup_mac_vendor(mac)
            last = entry["ip"].rsplit(".", 1)[-1]
            devices.append(
                _base_device(
                    entry["ip"],
                    hostname=f"device-{last}",
                    mac_addresses=[mac],
                    type=guess_type_from_vendor(vendor, entry["ip"]),
                    vendor=vendor or "Unknown",
                    discovery_methods=["arp"],
                )
            )
        return devices

    def ping_host(self, ip: str) -> Optional[Dict[str, float]]:
        m = PING_REPLY_RE.search(self._exec(f"ping -c 1 {ip}"))
        if not m:
            return None
        return {"latency": float(m.group(1)), "ttl": int(m.group(2))}

    def ping_sweep(self, subnet: str) -> List[NetworkDevice]:
        hosts = hosts_from_network(subnet, max_hosts=MAX_SWEEP_HOSTS)
        logger.info("pinging %d hosts in %s", len(hosts), subnet)
        devices = []
        workers = max(1, self.config.max_concurrent)
        with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
            for chunk in chunked(hosts, workers):
                if self._abort.is_set():
                    break
                futures = {executor.submit(self.ping_host, ip): ip for ip in chunk}
                replies = {}
                for future in concurrent.futures.as_completed(futures):
                    if future.exception() is None and future.result():
                        replies[futures[future]] = future.result()
                for ip in chunk:
                    if ip in replies:
                        last = ip.rsplit(".", 1)[-1]
                        devices.append(
                            _base_device(
                                ip,
                                hostname=f"host-{last}",
                                type=guess_type_from_ip(ip),
                                os_version=guess_os_from_ttl(int(replies[ip]["ttl"])) or "Unknown",
                                discovery_methods=["icmp"],
                            )
                        )
        return devices

    def enrich_with_dns(self, devices: List[NetworkDevice]) -> None:
        for device in devices:
            last = device.primary_ip.rsplit(".", 1)[-1]
            device.hostname = f"host-{last}.local"
            device.label = device.hostname
            device.discovery_methods.append("dns")

    def enrich_with_snmp(self, devices: List[NetworkDevice]) -> None:
        for device in devices:
            if device.type not in INFRASTRUCTURE_TYPES:
                continue
            device.snmp_info = SnmpInfo(
                version="2c",
                community="public",
                sys_descr=f"{device.vendor} {device.model}",
                sys_name=device.hostname,
                sys_location=device.location,
                sys_contact="admin@company.com",
                sys_up_time=self._rng.randint(0, 8_640_000),
            )
            device.discovery_methods.append("snmp")

    def map_connections(self, devices: List[NetworkDevice]) -> List[NetworkConnection]:
        """Attach each endpoint to the nearest router or switch by address proximity."""
        connections = []
        for endpoint in devices:
            if endpoint.type in ("router", "switch"):
                continue
            infra = nearest_infrastructure(endpoint, devices, types=("router", "switch"))
            if infra is None:
                continue
            connections.append(
                NetworkConnection(
                    id=f"conn-{endpoint.id}-{infra.id}",
                    source=infra.id,
                    target=endpoint.id,
                    source_interface="eth0",
                    target_interface="eth0",
                    type="ethernet",
                    bandwidth="100",
                    utilization=float(self._rng.randint(0, 49)),
                    latency=round(self._rng.random() * 5, 3),
                    packet_loss=round(self._rng.random() * 0.01, 4),
                    status="active",
                    discovery_method="arp",
                    last_seen=utc_now_iso(),
                )
            )
        return connections


def _base_device(ip: str, *, hostname: str, **kw) -> NetworkDevice:
    fields = dict(
        id=f"device-{ip.replace('.', '-')}",
        hostname=hostname,
        label=hostname,
        ip_addresses=[ip],
        status="online",
        vendor="Unknown",
        model="Unknown",
        os_version="Unknown",
        firmware_version="Unknown",
        location="Local Network",
        data_center="Local",
        last_discovered=utc_now_iso(),
    )
    fields.update(kw)
    return NetworkDevice(**fields)


def _failure(duration: float, privilege_level: str, errors: List[str]) -> ScanResult:
    return ScanResult(
        success=False,
        is_live_data=False,
        errors=errors,
        scan_duration=round(duration, 3),
        privilege_level=privilege_level,
    )
