"""
NetSight discovery engine.
Phased, simulated network discovery producing a NetworkTopology snapshot.

Phases and their progress bands:
  host discovery 0-25, service discovery 25-45, SNMP 45-70,
  layer 2 neighbours 70-85, SSH 85, API 90, connection inference 100.

No real packets are sent. Probe outcomes come from SimulatedProber, whose
randomness is derived from an injectable random.Random so runs are repeatable.
"""

from __future__ import annotations

import concurrent.futures
import ipaddress
import logging
import random
import threading
import time
from typing import Callable, Dict, List, Optional, Sequence

from constants import INFRASTRUCTURE_TYPES, SERVICE_PORTS
from errors import ScanInProgressError, TransientProbeError
from events import EventBus
from mock_data import compute_discovery_stats
from models import (
    DiscoveryConfig,
    NetworkConnection,
    NetworkDevice,
    NetworkTopology,
    ServiceInfo,
    SnmpInfo,
)
from net_utils import guess_device_type, nearest_infrastructure
from topology import validate_topology
from toolkit.utils import hosts_from_network, new_session_id, retry_with_backoff, utc_now_iso, write_json_log

logger = logging.getLogger(__name__)

MAX_BATCH_SIZE = 50

PING_SUCCESS_RATE = 0.7
PORT_OPEN_RATE = 0.3
SNMP_RESPONSE_RATE = 0.4
TRANSIENT_FAILURE_RATE = 0.02


class SimulatedProber:
    """Stand-in for ICMP, TCP, SNMP and CDP/LLDP probes.

    Each probe draws from its own generator keyed on (seed, probe, target, attempt),
    so results do not depend on thread scheduling.
    """

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        *,
        ping_success_rate: float = PING_SUCCESS_RATE,
        port_open_rate: float = PORT_OPEN_RATE,
        snmp_response_rate: float = SNMP_RESPONSE_RATE,
        transient_failure_rate: float = TRANSIENT_FAILURE_RATE,
        delay: float = 0.0,
    ):
        self._seed = (rng or random.Random()).getrandbits(32)
        self.ping_success_rate = ping_success_rate
        self.port_open_rate = port_open_rate
        self.snmp_response_rate = snmp_response_rate
        self.transient_failure_rate = transient_failure_rate
        self.delay = max(0.0, float(delay))

    def _rng(self, *key) -> random.Random:
        return random.Random(f"{self._seed}:" + ":".join(str(k) for k in key))

    def _wait(self) -> None:
        if self.delay:
            time.sleep(self.delay)

    def ping(self, ip: str, attempt: int = 0) -> Optional[dict]:
        self._wait()
        r = self._rng("ping", ip, attempt)
        if r.random() < self.transient_failure_rate:
            raise TransientProbeError(f"ping {ip}: no route (transient)")
        if r.random() >= self.ping_success_rate:
            return None
        last = ip.rsplit(".", 1)[-1]
        return {"hostname": f"host-{last}", "latency": round(r.uniform(0.5, 20.0), 2)}

    def scan_port(self, ip: str, port: int) -> Optional[ServiceInfo]:
        self._wait()
        r = self._rng("port", ip, port)
        if r.random() >= self.port_open_rate:
            return None
        return ServiceInfo(port=port, protocol="tcp", service=SERVICE_PORTS.get(port, "unknown"), status="open")

    def snmp_query(self, ip: str, community: str) -> Optional[SnmpInfo]:
        self._wait()
        r = self._rng("snmp", ip, community)
        if r.random() >= self.snmp_response_rate:
            return None
        return SnmpInfo(
            version="2c",
            community=community,
            sys_descr="Simulated Network Device",
            sys_object_id="1.3.6.1.4.1.9.1.1",
            sys_up_time=r.randint(0, 10_000_000),
            sys_contact="admin@company.com",
            sys_name=f"device-{ip}",
            sys_location="Data Center",
        )

    def neighbours(self, device: NetworkDevice, candidates: Sequence[NetworkDevice]) -> List[NetworkDevice]:
        """1-5 random peers other than the device itself."""
        peers = [c for c in candidates if c.id != device.id]
        if not peers:
            return []
        r = self._rng("neighbours", device.id)
        return r.sample(peers, min(len(peers), r.randint(1, 5)))


class DiscoveryEngine:
    """Run a full discovery pass for one DiscoveryConfig."""

    def __init__(
        self,
        config: DiscoveryConfig,
        *,
        prober: Optional[SimulatedProber] = None,
        rng: Optional[random.Random] = None,
        event_bus: Optional[EventBus] = None,
        on_progress: Optional[Callable[[float], None]] = None,
        on_device: Optional[Callable[[NetworkDevice], None]] = None,
        on_connection: Optional[Callable[[NetworkConnection], None]] = None,
        retry_base_delay: float = 0.05,
        log_dir=None,
    ):
        self.config = config
        self._rng = rng or random.Random()
        self.prober = prober or SimulatedProber(self._rng)
        self.event_bus = event_bus
        self.on_progress = on_progress
        self.on_device = on_device
        self.on_connection = on_connection
        self.retry_base_delay = retry_base_delay
        self.log_dir = log_dir

        self._lock = threading.Lock()
        self._running = False
        self._abort = threading.Event()
        self._devices: Dict[str, NetworkDevice] = {}
        self._connections: Dict[str, NetworkConnection] = {}
        self._errors: List[str] = []
        self._snmp_failures = 0
        self._hosts_total = 0
        self._hosts_probed = 0
        self.progress = 0.0
        self.session_id = ""

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def devices(self) -> List[NetworkDevice]:
        with self._lock:
            return list(self._devices.values())

    @property
    def connections(self) -> List[NetworkConnection]:
        with self._lock:
            return list(self._connections.values())

    def abort(self) -> None:
        self._abort.set()

    # -- notifications ----------------------------------------------------

    def _publish(self, event_type: str, entity: str = "", summary: str = "", data=None) -> None:
        if self.event_bus is not None:
            self.event_bus.publish(
                event_type=event_type,
                source="discovery",
                entity=entity,
                summary=summary,
                data=data,
            )

    def _set_progress(self, value: float) -> None:
        self.progress = max(self.progress, min(100.0, float(value)))
        if self.on_progress:
            self.on_progress(self.progress)
        self._publish("discovery.progress", data={"progress": round(self.progress, 1), "session_id": self.session_id})

    def _add_device(self, device: NetworkDevice) -> None:
        with self._lock:
            self._devices[device.id] = device
        if self.on_device:
            self.on_device(device)
        self._publish("discovery.device", entity=device.id, summary=f"Discovered {device.hostname} ({device.primary_ip})")

    def _add_connection(self, conn: NetworkConnection) -> None:
        with self._lock:
            self._connections[conn.id] = conn
        if self.on_connection:
            self.on_connection(conn)
        self._publish("discovery.connection", entity=conn.id, summary=f"{conn.source} <-> {conn.target}")

    def _linked(self, a: str, b: str) -> bool:
        with self._lock:
            return any({c.source, c.target} == {a, b} for c in self._connections.values())

    # -- entry point ------------------------------------------------------

    def start_discovery(self) -> NetworkTopology:
        with self._lock:
            if self._running:
                raise ScanInProgressError()
            self._running = True
            self._devices = {}
            self._connections = {}
            self._errors = []
            self._snmp_failures = 0
            self._hosts_total = 0
            self._hosts_probed = 0
        self._abort.clear()
        self.progress = 0.0
        self.session_id = new_session_id("discovery")
        started = time.time()
        protocols = self.config.enabled_protocols
        logger.info("starting discovery %s over %s", self.session_id, ", ".join(self.config.ip_ranges))
        self._publish("discovery.started", entity=self.session_id, summary="Discovery started")

        try:
            phases = [
                ("ping", self._discover_hosts),
                (None, self._discover_services),
                ("snmp", self._snmp_discovery),
                ("l2", self._layer2_discovery),
                ("ssh", self._ssh_discovery),
                ("api", self._api_discovery),
                (None, self._infer_connections),
            ]
            for flag, phase in phases:
                if self._abort.is_set():
                    self._errors.append("Discovery aborted")
                    logger.warning("discovery %s aborted", self.session_id)
                    break
                if flag == "l2":
                    enabled = protocols.get("cdp") or protocols.get("lldp")
                else:
                    enabled = flag is None or protocols.get(flag)
                if enabled:
                    phase()
            else:
                self._set_progress(100)

            topology = self._build_topology(time.time() - started)
        finally:
            with self._lock:
                self._running = False

        stats = topology.discovery_stats
        logger.info(
            "discovery %s finished: %d devices, %d connections, %d errors in %.2fs",
            self.session_id,
            stats.total_devices,
            stats.total_connections,
            len(stats.errors),
            stats.last_scan_duration,
        )
        self._publish(
            "discovery.completed",
            entity=self.session_id,
            summary=f"{stats.total_devices} devices, {stats.total_connections} connections",
            data={"partial": stats.partial, "errors": list(stats.errors)},
        )
        if self.log_dir is not None:
            write_json_log(
                "discovery",
                self.session_id,
                {"config": self.config, "stats": stats, "device_ids": [d.id for d in topology.devices]},
                log_dir=self.log_dir,
            )
        return topology

    def _build_topology(self, duration: float) -> NetworkTopology:
        devices = self.devices
        connections = self.connections
        coverage = 0.0
        if self._hosts_total:
            coverage = round(self._hosts_probed / self._hosts_total * 100, 4)
        stats = compute_discovery_stats(
            devices,
            connections,
            last_scan_duration=round(duration, 3),
            coverage=coverage,
            errors=self._errors,
        )
        if self._snmp_failures:
            stats.discovery_methods["snmp-failed"] = self._snmp_failures
        topology = NetworkTopology(
            devices=devices,
            connections=connections,
            last_updated=utc_now_iso(),
            discovery_stats=stats,
        )
        return validate_topology(topology)

    # -- phase 1: hosts ---------------------------------------------------

    def _host_list(self) -> List[str]:
        cfg = self.config
        hosts: List[str] = []
        seen = set()
        for cidr in cfg.ip_ranges:
            try:
                expanded = hosts_from_network(cidr, max_hosts=cfg.max_hosts_per_range, exclude=cfg.exclude_ranges)
            except ValueError as exc:
                self._errors.append(f"{cidr}: {exc}")
                logger.warning("skipping range %s: %s", cidr, exc)
                continue
            size = _usable_hosts(cidr)
            self._hosts_total += size
            if size > len(expanded) and len(expanded) >= cfg.max_hosts_per_range:
                logger.info("range %s capped at %d of %d hosts", cidr, cfg.max_hosts_per_range, size)
            for h in expanded:
                if h not in seen:
                    seen.add(h)
                    hosts.append(h)
        return hosts

    def _ping_host(self, ip: str) -> Optional[NetworkDevice]:
        attempts = [0]

        def probe():
            attempt = attempts[0]
            attempts[0] += 1
            return self.prober.ping(ip, attempt)

        reply = retry_with_backoff(
            probe,
            retries=self.config.probe_retries,
            base_delay=self.retry_base_delay,
            retry_on=(TransientProbeError,),
        )
        if not reply:
            return None
        return NetworkDevice(
            id=f"device-{ip}",
            hostname=reply["hostname"],
            label=reply["hostname"],
            ip_addresses=[ip],
            type="workstation",
            status="online",
            location="Unknown",
            data_center="DC1",
            last_discovered=utc_now_iso(),
            discovery_methods=["ping"],
        )

    def _discover_hosts(self) -> None:
        logger.info("phase 1: host discovery")
        hosts = self._host_list()
        if not hosts:
            self._set_progress(25)
            return
        batch_size = max(1, min(self.config.max_concurrent_scans, MAX_BATCH_SIZE))
        failed: Dict[str, int] = {}
        executor = concurrent.futures.ThreadPoolExecutor(max_workers=batch_size)
        try:
            for start in range(0, len(hosts), batch_size):
                if self._abort.is_set():
                    break
                batch = hosts[start : start + batch_size]
                futures = {executor.submit(self._ping_host, ip): ip for ip in batch}
                done, pending = concurrent.futures.wait(futures, timeout=self.config.timeout)
                for future in pending:
                    future.cancel()
                    failed["timeout"] = failed.get("timeout", 0) + 1
                for future in done:
                    self._hosts_probed += 1
                    exc = future.exception()
                    if exc is not None:
                        failed[type(exc).__name__] = failed.get(type(exc).__name__, 0) + 1
                        logger.debug("probe of %s failed: %s", futures[future], exc)
                        continue
                    device = future.result()
                    if device is not None:
                        self._add_device(device)
                self._set_progress(min(25.0, (start + len(batch)) / len(hosts) * 25))
        finally:
            # Stragglers past the timeout are abandoned, not awaited.
            executor.shutdown(wait=False, cancel_futures=True)
        for reason, count in sorted(failed.items()):
            self._errors.append(f"{count} host probe(s) failed: {reason}")

    # -- phase 2: services ------------------------------------------------

    def _discover_services(self) -> None:
        logger.info("phase 2: service discovery")
        devices = self.devices
        for i, device in enumerate(devices):
            for port in self.config.scan_ports:
                service = self.prober.scan_port(device.primary_ip, port)
                if service is not None:
                    device.services.append(service)
                    device.open_ports.append(port)
            device.type = guess_device_type(device.services, self._rng)
            self._set_progress(25 + (i + 1) / len(devices) * 20)
        self._set_progress(45)

    # -- phase 3: snmp ----------------------------------------------------

    def _snmp_discovery(self) -> None:
        logger.info("phase 3: SNMP discovery")
        devices = self.devices
        for i, device in enumerate(devices):
            info = None
            for community in self.config.snmp_communities:
                info = self.prober.snmp_query(device.primary_ip, community)
                if info is not None:
                    break
            if info is None:
                self._snmp_failures += 1
                logger.debug("no SNMP community answered on %s", device.primary_ip)
            else:
                device.snmp_info = info
                device.uptime = info.sys_up_time
                device.discovery_methods.append("snmp")
            self._set_progress(45 + (i + 1) / len(devices) * 25)
        self._set_progress(70)

    # -- phase 4: cdp/lldp ------------------------------------------------

    def _layer2_discovery(self) -> None:
        logger.info("phase 4: layer 2 neighbour discovery")
        method = "cdp" if self.config.enabled_protocols.get("cdp") else "lldp"
        devices = self.devices
        infra = [d for d in devices if d.type in INFRASTRUCTURE_TYPES]
        for i, device in enumerate(infra):
            for n, peer in enumerate(self.prober.neighbours(device, devices)):
                if self._linked(device.id, peer.id):
                    continue
                self._add_connection(
                    NetworkConnection(
                        id=f"{method}-{device.id}-{peer.id}",
                        source=device.id,
                        target=peer.id,
                        source_interface=f"eth{n}",
                        target_interface="eth0",
                        type="ethernet",
                        status="active",
                        discovery_method=method,
                        last_seen=utc_now_iso(),
                    )
                )
            if method not in device.discovery_methods:
                device.discovery_methods.append(method)
            self._set_progress(70 + (i + 1) / len(infra) * 15)
        self._set_progress(85)

    # -- phases 5/6: ssh, api ---------------------------------------------

    def _ssh_discovery(self) -> None:
        logger.info("phase 5: SSH discovery")
        if self.config.ssh_credentials:
            for device in self.devices:
                if device.type in INFRASTRUCTURE_TYPES and 22 in device.open_ports:
                    device.discovery_methods.append("ssh")
        self._set_progress(85)

    def _api_discovery(self) -> None:
        logger.info("phase 6: API discovery")
        for endpoint in self.config.api_endpoints:
            logger.info("querying API endpoint %s", endpoint.get("url", endpoint.get("name", "?")))
        self._set_progress(90)

    # -- phase 7: inference -----------------------------------------------

    def _infer_connections(self) -> None:
        """Attach each unlinked host to its nearest infrastructure device (ARP-style)."""
        logger.info("phase 7: connection inference")
        devices = self.devices
        linked = set()
        for c in self.connections:
            linked.update((c.source, c.target))
        for device in devices:
            if device.id in linked or device.type in INFRASTRUCTURE_TYPES:
                continue
            peer = nearest_infrastructure(device, devices)
            if peer is None:
                continue
            self._add_connection(
                NetworkConnection(
                    id=f"arp-{peer.id}-{device.id}",
                    source=peer.id,
                    target=device.id,
                    type="access",
                    status="active",
                    discovery_method="arp",
                    last_seen=utc_now_iso(),
                )
            )
            linked.add(device.id)
        self._set_progress(100)


def _usable_hosts(cidr: str) -> int:
    net = ipaddress.ip_network(cidr, strict=False)
    return max(1, net.num_addresses - 2) if net.prefixlen < net.max_prefixlen - 1 else net.num_addresses
