"""
NetSight data pipeline.
Decides per dashboard module whether live scan data is usable, runs periodic
scans, and serves topology data with a mock fallback.
"""

import copy
import logging
import math
import random
import threading
from dataclasses import fields
from typing import Any, Callable, Dict, List, Optional

from constants import PIPELINE_MODULES, PLATFORM_COMMANDS
from errors import PipelineConfigError
from mock_data import compute_discovery_stats, generate_mock_network_data
from models import (
    DataPipelineConfig,
    ModuleState,
    NetworkTopology,
    ScanConfig,
    ScanResult,
    ValidationRules,
)
from net_scanner import NetworkScanner, SimulatedCommandRunner, detect_platform
from privilege import PrivilegeManager
from toolkit.utils import utc_now_iso

logger = logging.getLogger(__name__)

MOCK_PREFIX = "[MOCK] "
LIVE_PREFIX = "[LIVE] "
CRITICAL_ERROR_MARKERS = ("permission", "access denied")
MOCK_MODE_MESSAGE = "Using mock data (real data collection disabled)"


def _prefixed(topology: NetworkTopology, prefix: str) -> NetworkTopology:
    for d in topology.devices:
        if not d.hostname.startswith(prefix):
            d.hostname = prefix + d.hostname
        if not d.label.startswith(prefix):
            d.label = prefix + d.label
    return topology


class DataPipeline:
    """Live/mock data readiness for the dashboard modules."""

    def __init__(
        self,
        config: Optional[DataPipelineConfig] = None,
        *,
        privilege_manager: Optional[PrivilegeManager] = None,
        scanner_factory: Optional[Callable[[ScanConfig], NetworkScanner]] = None,
        rules: Optional[ValidationRules] = None,
        rng: Optional[random.Random] = None,
        platform_name: Optional[str] = None,
    ):
        self.config = config or DataPipelineConfig()
        self.rules = rules or ValidationRules()
        self._rng = rng or random.Random()
        self.platform = platform_name or detect_platform()
        self.privilege_manager = privilege_manager or PrivilegeManager(rng=self._rng)
        self._scanner_factory = scanner_factory or self._default_scanner
        self.modules: Dict[str, ModuleState] = {name: ModuleState(module=name) for name in PIPELINE_MODULES}
        self.scanner: Optional[NetworkScanner] = None
        self.last_result: Optional[ScanResult] = None
        self.is_scanning = False

        self._lock = threading.RLock()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        logger.info("data pipeline initialized with modules: %s", ", ".join(self.modules))

    def _default_scanner(self, scan_config: ScanConfig) -> NetworkScanner:
        runner = SimulatedCommandRunner(self.platform, elevated=self.privilege_manager.is_elevated(), rng=self._rng)
        return NetworkScanner(scan_config, runner=runner, rng=self._rng)

    # -- collection -------------------------------------------------------

    def start_data_collection(self) -> None:
        with self._lock:
            if self.is_scanning:
                logger.warning("data collection already in progress")
                return
            self.is_scanning = True

        logger.info("starting data collection pipeline")
        try:
            if not self.config.enable_real_data_collection:
                logger.info("real data collection disabled, using mock data")
                self._set_all_modules_to_mock()
                return
            self._scan_once()
            if self.config.scan_interval > 0:
                self._start_periodic()
        except Exception as exc:
            logger.error("failed to start data collection: %s", exc)
            if not self.config.fallback_to_mock_data:
                raise
            logger.info("falling back to mock data")
            self._set_all_modules_to_mock()
        finally:
            with self._lock:
                self.is_scanning = False

    def _scan_once(self) -> None:
        scan_config = ScanConfig(
            subnets=[],
            protocols={"arp": True, "icmp": True, "dns": True, "snmp": False},
            timeout=self.config.timeout,
            max_concurrent=10,
            require_elevation=True,
        )
        self.scanner = self._scanner_factory(scan_config)
        result = self.scanner.perform_network_scan()
        self.process_scan_result("network-topology", result)

    def process_scan_result(self, module: str, result: ScanResult) -> bool:
        """Record a scan outcome for one module; returns whether it was accepted as live."""
        logger.info(
            "processing scan result for %s: success=%s live=%s devices=%d connections=%d errors=%d",
            module,
            result.success,
            result.is_live_data,
            len(result.devices),
            len(result.connections),
            len(result.errors),
        )
        if not (result.success and result.is_live_data):
            self._handle_failure(module, ", ".join(result.errors) or "No live data available")
            return False
        problem = self.validate_scan_result(result)
        if problem:
            logger.warning("scan results failed validation: %s", problem)
            self._handle_failure(module, "Scan results failed validation")
            return False

        self.last_result = result
        self._update_module(
            module,
            is_live_data_available=True,
            last_scan_time=utc_now_iso(),
            error=None,
            scan_duration=result.scan_duration,
            privilege_level=result.privilege_level,
        )
        logger.info("network scan for %s accepted", module)
        return True

    def validate_scan_result(self, result: ScanResult) -> Optional[str]:
        """Reason the result is unusable, or None."""
        if len(result.devices) < self.rules.min_devices_required:
            return f"Insufficient devices found: {len(result.devices)} < {self.rules.min_devices_required}"
        if result.scan_duration > self.rules.max_scan_time_allowed:
            return f"Scan took too long: {result.scan_duration}s > {self.rules.max_scan_time_allowed}s"
        critical = [e for e in result.errors if any(m in e.lower() for m in CRITICAL_ERROR_MARKERS)]
        if critical:
            return "Critical errors detected: " + "; ".join(critical)
        return None

    def _handle_failure(self, module: str, error: str) -> None:
        logger.warning("scan failed for %s: %s", module, error)
        self._update_module(module, is_live_data_available=False, error=error, last_scan_time=utc_now_iso())
        if self.config.fallback_to_mock_data:
            logger.info("using mock data for %s", module)

    def _update_module(self, module: str, **changes: Any) -> None:
        with self._lock:
            state = self.modules.get(module)
            if state is None:
                return
            for k, v in changes.items():
                setattr(state, k, v)

    def _set_all_modules_to_mock(self) -> None:
        now = utc_now_iso()
        for name in list(self.modules):
            self._update_module(name, is_live_data_available=False, error=MOCK_MODE_MESSAGE, last_scan_time=now)

    # -- periodic scans -----------------------------------------------------

    def _start_periodic(self) -> None:
        self._stop_periodic()
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="pipeline-periodic", daemon=True)
        self._thread.start()
        logger.info("periodic scanning every %s minutes", self.config.scan_interval)

    def _stop_periodic(self) -> None:
        thread = self._thread
        if thread is not None and thread.is_alive():
            self._stop.set()
            thread.join(timeout=2)
        self._thread = None

    def _loop(self) -> None:
        while not self._stop.wait(max(1.0, float(self.config.scan_interval) * 60)):
            with self._lock:
                if self.is_scanning:
                    continue
                self.is_scanning = True
            try:
                logger.info("performing periodic network scan")
                self._scan_once()
            except Exception:
                logger.exception("periodic network scan failed")
            finally:
                with self._lock:
                    self.is_scanning = False

    @property
    def periodic_running(self) -> bool:
        return bool(self._thread and self._thread.is_alive())

    def stop_data_collection(self) -> None:
        logger.info("stopping data collection pipeline")
        self._stop_periodic()
        if self.scanner is not None:
            self.scanner.abort()
            self.scanner = None
        self.privilege_manager.cleanup()
        with self._lock:
            self.is_scanning = False
        logger.info("data collection pipeline stopped")

    # -- readiness ----------------------------------------------------------

    def all_modules_have_live_data(self) -> bool:
        with self._lock:
            return all(s.is_live_data_available for s in self.modules.values())

    def get_data_readiness_status(self) -> Dict[str, Any]:
        ready: List[str] = []
        pending: List[str] = []
        failed: List[str] = []
        with self._lock:
            for name, state in self.modules.items():
                if state.is_live_data_available:
                    ready.append(name)
                elif state.error:
                    failed.append(name)
                else:
                    pending.append(name)
            total = len(self.modules)
        return {
            "all_ready": len(ready) == total,
            "ready_modules": ready,
            "pending_modules": pending,
            "failed_modules": failed,
        }

    def get_module_states(self) -> Dict[str, ModuleState]:
        with self._lock:
            return copy.deepcopy(self.modules)

    def get_topology_data(self) -> Dict[str, Any]:
        """Live scan topology when the network module has accepted data, else prefixed mock data."""
        with self._lock:
            live = self.modules["network-topology"].is_live_data_available and self.last_result is not None
            result = copy.deepcopy(self.last_result) if live else None

        if result is not None:
            logger.info("returning live network topology data")
            for d in result.devices:
                d.discovery_methods = sorted(set(d.discovery_methods) | {"icmp"})
            topology = NetworkTopology(
                devices=result.devices,
                connections=result.connections,
                last_updated=utc_now_iso(),
                discovery_stats=compute_discovery_stats(
                    result.devices,
                    result.connections,
                    last_scan_duration=result.scan_duration,
                    errors=result.errors,
                ),
            )
            return {"topology": _prefixed(topology, LIVE_PREFIX), "is_live_data": True, "source": "live-scan"}

        logger.info("returning mock network topology data")
        topology = generate_mock_network_data(self._rng)
        return {"topology": _prefixed(topology, MOCK_PREFIX), "is_live_data": False, "source": "mock-data"}

    # -- privileges ---------------------------------------------------------

    def required_commands(self, platform_name: Optional[str] = None) -> List[str]:
        return list(PLATFORM_COMMANDS.get(platform_name or self.platform, ["ping -c 1 8.8.8.8"]))

    def request_privilege_elevation(self, reason: str) -> bool:
        result = self.privilege_manager.execute_elevated_commands(
            self.required_commands(), reason, self.platform
        )
        if not result["success"]:
            logger.warning("privilege elevation failed: %s", result.get("error"))
            return False
        logger.info("privilege elevation successful")
        for name in list(self.modules):
            self._update_module(name, privilege_level="elevated")
        return True

    # -- configuration ------------------------------------------------------

    def update_config(self, changes: Dict[str, Any]) -> DataPipelineConfig:
        types = {f.name: f.type for f in fields(DataPipelineConfig)}
        unknown = set(changes) - set(types)
        if unknown:
            raise PipelineConfigError(f"Unknown pipeline settings: {', '.join(sorted(unknown))}")
        updated = copy.deepcopy(self.config)
        for k, v in changes.items():
            expected = types[k]
            if expected is bool:
                if not isinstance(v, bool):
                    raise PipelineConfigError(f"{k} must be true or false")
            elif isinstance(v, bool) or not isinstance(v, (int, float)) or not math.isfinite(v):
                raise PipelineConfigError(f"{k} must be a number")
            elif expected is int and v != int(v):
                raise PipelineConfigError(f"{k} must be a whole number")
            else:
                v = expected(v)
            setattr(updated, k, v)
        if updated.scan_interval < 0:
            raise PipelineConfigError("scan_interval must be >= 0")
        if updated.timeout <= 0:
            raise PipelineConfigError("timeout must be > 0")
        if updated.max_retries < 0:
            raise PipelineConfigError("max_retries must be >= 0")

        self.config = updated
        logger.info("pipeline configuration updated: %s", changes)
        if "scan_interval" in changes and self.periodic_running:
            if updated.scan_interval > 0:
                self._start_periodic()
            else:
                self._stop_periodic()
        return copy.deepcopy(self.config)

    def get_config(self) -> DataPipelineConfig:
        return copy.deepcopy(self.config)
