"""
NetSight topology snapshot state.
In-memory holder of the live topology plus discovery/filter/layout UI state,
with staleness reporting and optimistic-update rollback.
"""

from __future__ import annotations

import copy
import logging
import threading
import time
import uuid
from dataclasses import asdict, fields
from typing import Any, Callable, Dict, Optional, Tuple, TypeVar

from constants import LAYOUT_TYPES
from errors import NotFoundError, TopologyValidationError
from mock_data import compute_discovery_stats
from models import (
    DiscoveryConfig,
    NetworkConnection,
    NetworkDevice,
    NetworkTopology,
    PathTrace,
    TopologyFilter,
    connection_from_dict,
    device_from_dict,
)
from topology import validate_topology
from toolkit.utils import utc_now_iso

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _merge_dataclass(obj, changes: Dict[str, Any]):
    names = {f.name for f in fields(obj)}
    unknown = set(changes) - names
    if unknown:
        raise ValueError(f"Unknown fields: {', '.join(sorted(unknown))}")
    for k, v in changes.items():
        setattr(obj, k, v)
    return obj


_FILTER_STR_LISTS = ("device_types", "statuses", "locations", "data_centers")
_FILTER_FLAGS = ("show_offline_devices", "show_connections")


def _check_filter_values(changes: Dict[str, Any]) -> None:
    for k in _FILTER_STR_LISTS:
        if k in changes:
            v = changes[k]
            if not isinstance(v, list) or not all(isinstance(x, str) for x in v):
                raise ValueError(f"{k} must be a list of strings")
    if "vlans" in changes:
        v = changes["vlans"]
        if not isinstance(v, list) or any(isinstance(x, bool) or not isinstance(x, int) for x in v):
            raise ValueError("vlans must be a list of integers")
    if "search_term" in changes and not isinstance(changes["search_term"], str):
        raise ValueError("search_term must be a string")
    for k in _FILTER_FLAGS:
        if k in changes and not isinstance(changes[k], bool):
            raise ValueError(f"{k} must be true or false")


class TopologyState:
    """Thread-safe holder of the current topology snapshot."""

    def __init__(self, *, stale_after_seconds: int = 300, clock: Callable[[], float] = time.time):
        self._lock = threading.RLock()
        self._clock = clock
        self.stale_after_seconds = max(1, int(stale_after_seconds))
        self._topology = NetworkTopology()
        self._updated_epoch: Optional[float] = None
        self._pending: Dict[str, Tuple[NetworkTopology, Optional[float]]] = {}
        # Bumped on every change to the live topology.
        self.revision = 0
        self.source = "empty"
        self.selected_device_id: Optional[str] = None
        self.is_discovering = False
        self.discovery_progress = 0.0
        self.discovery_config = DiscoveryConfig()
        self.filters = TopologyFilter()
        self.layout_type = "hierarchical"
        self.path_trace: Optional[PathTrace] = None
        self.real_time_updates = True

    # -- snapshot ---------------------------------------------------------

    def set_topology(self, topology: NetworkTopology, *, source: str = "mock-data") -> None:
        validate_topology(topology)
        with self._lock:
            self._topology = copy.deepcopy(topology)
            self.revision += 1
            self.source = source
            self.path_trace = None
            self._updated_epoch = self._clock()
            if not self._topology.last_updated:
                self._topology.last_updated = utc_now_iso()
        logger.info(
            "topology replaced from %s: %d devices, %d connections",
            source,
            len(topology.devices),
            len(topology.connections),
        )

    def snapshot(self) -> NetworkTopology:
        with self._lock:
            return copy.deepcopy(self._topology)

    def has_data(self) -> bool:
        with self._lock:
            return bool(self._topology.devices)

    def _touch(self, *, reset_age: bool = True) -> None:
        topo = self._topology
        old = topo.discovery_stats
        topo.discovery_stats = compute_discovery_stats(
            topo.devices,
            topo.connections,
            last_scan_duration=old.last_scan_duration,
            coverage=old.coverage,
            errors=old.errors,
        )
        topo.last_updated = utc_now_iso()
        self.revision += 1
        if reset_age:
            self._updated_epoch = self._clock()

    def _find_device(self, device_id: str) -> NetworkDevice:
        for d in self._topology.devices:
            if d.id == device_id:
                return d
        raise NotFoundError(f"Device not found: {device_id}")

    def _find_connection(self, connection_id: str) -> NetworkConnection:
        for c in self._topology.connections:
            if c.id == connection_id:
                return c
        raise NotFoundError(f"Connection not found: {connection_id}")

    # -- devices ----------------------------------------------------------

    def get_device(self, device_id: str) -> NetworkDevice:
        with self._lock:
            return copy.deepcopy(self._find_device(device_id))

    def add_device(self, device: NetworkDevice) -> NetworkDevice:
        """Insert, or replace the device with the same id."""
        with self._lock:
            devices = self._topology.devices
            for i, d in enumerate(devices):
                if d.id == device.id:
                    devices[i] = device
                    break
            else:
                devices.append(device)
            self._touch()
            return copy.deepcopy(device)

    def update_device(self, device_id: str, changes: Dict[str, Any]) -> NetworkDevice:
        if "id" in changes and changes["id"] != device_id:
            raise ValueError("Device id cannot be changed")
        with self._lock:
            current = self._find_device(device_id)
            merged = asdict(current)
            merged.update(changes)
            updated = device_from_dict(merged)
            devices = self._topology.devices
            devices[devices.index(current)] = updated
            self._touch()
            return copy.deepcopy(updated)

    def remove_device(self, device_id: str) -> int:
        """Drop a device and every connection touching it; returns connections removed."""
        with self._lock:
            target = self._find_device(device_id)
            self._topology.devices.remove(target)
            before = len(self._topology.connections)
            self._topology.connections = [
                c for c in self._topology.connections if c.source != device_id and c.target != device_id
            ]
            if self.selected_device_id == device_id:
                self.selected_device_id = None
            self._touch()
            return before - len(self._topology.connections)

    def apply_device_metrics(self, updates: Dict[str, Dict[str, Any]]) -> int:
        """Bulk in-place gauge/status updates keyed by device id; unknown ids are skipped."""
        allowed = {"cpu", "memory", "temperature", "status", "uptime"}
        applied = 0
        with self._lock:
            index = self._topology.device_index()
            for device_id, changes in updates.items():
                device = index.get(device_id)
                if device is None:
                    continue
                for k, v in changes.items():
                    if k in allowed:
                        setattr(device, k, v)
                applied += 1
            if applied:
                # Gauge drift is not a rediscovery; staleness keeps counting.
                self._touch(reset_age=False)
        return applied

    def update_device_position(self, device_id: str, x: float, y: float) -> None:
        with self._lock:
            self._find_device(device_id).position = {"x": float(x), "y": float(y)}

    def select_device(self, device_id: Optional[str]) -> None:
        with self._lock:
            if device_id is not None:
                self._find_device(device_id)
            self.selected_device_id = device_id

    # -- connections ------------------------------------------------------

    def add_connection(self, connection: NetworkConnection) -> NetworkConnection:
        with self._lock:
            ids = {d.id for d in self._topology.devices}
            missing = [e for e in (connection.source, connection.target) if e not in ids]
            if missing:
                raise TopologyValidationError(
                    [f"connection {connection.id} references unknown device {m}" for m in missing]
                )
            conns = self._topology.connections
            for i, c in enumerate(conns):
                if c.id == connection.id:
                    conns[i] = connection
                    break
            else:
                conns.append(connection)
            self._touch()
            return copy.deepcopy(connection)

    def update_connection(self, connection_id: str, changes: Dict[str, Any]) -> NetworkConnection:
        with self._lock:
            current = self._find_connection(connection_id)
            merged = asdict(current)
            merged.update(changes)
            merged["id"] = connection_id
            updated = connection_from_dict(merged)
            ids = {d.id for d in self._topology.devices}
            if updated.source not in ids or updated.target not in ids:
                raise TopologyValidationError([f"connection {connection_id} references unknown device"])
            conns = self._topology.connections
            conns[conns.index(current)] = updated
            self._touch()
            return copy.deepcopy(updated)

    def remove_connection(self, connection_id: str) -> None:
        with self._lock:
            self._topology.connections.remove(self._find_connection(connection_id))
            self._touch()

    # -- discovery / view state --------------------------------------------

    def set_discovery_status(self, is_discovering: bool) -> None:
        with self._lock:
            self.is_discovering = bool(is_discovering)
            if is_discovering:
                self.discovery_progress = 0.0

    def set_discovery_progress(self, progress: float) -> None:
        with self._lock:
            self.discovery_progress = max(0.0, min(100.0, float(progress)))

    def update_discovery_config(self, changes: Dict[str, Any]) -> DiscoveryConfig:
        with self._lock:
            updated = copy.deepcopy(self.discovery_config)
            if "enabled_protocols" in changes:
                protocols = dict(updated.enabled_protocols)
                protocols.update(changes["enabled_protocols"] or {})
                changes = {**changes, "enabled_protocols": protocols}
            self.discovery_config = _merge_dataclass(updated, changes)
            return copy.deepcopy(self.discovery_config)

    def set_filters(self, changes: Dict[str, Any]) -> TopologyFilter:
        _check_filter_values(changes)
        with self._lock:
            self.filters = _merge_dataclass(copy.deepcopy(self.filters), changes)
            return copy.deepcopy(self.filters)

    def reset_filters(self) -> None:
        with self._lock:
            self.filters = TopologyFilter()

    def set_layout_type(self, layout_type: str) -> None:
        if layout_type not in LAYOUT_TYPES:
            raise ValueError(f"Unknown layout type: {layout_type}")
        with self._lock:
            self.layout_type = layout_type

    def set_path_trace(self, trace: Optional[PathTrace]) -> None:
        with self._lock:
            self.path_trace = trace

    # -- staleness --------------------------------------------------------

    def age_seconds(self) -> Optional[float]:
        with self._lock:
            if self._updated_epoch is None:
                return None
            return max(0.0, self._clock() - self._updated_epoch)

    def staleness(self) -> dict:
        age = self.age_seconds()
        if age is None:
            return {
                "has_data": False,
                "age_seconds": None,
                "stale_after_seconds": self.stale_after_seconds,
                "stale": True,
                "rescan_recommended": True,
                "message": "No topology loaded, run a scan",
                "source": self.source,
            }
        stale = age > self.stale_after_seconds
        message = f"Data is {int(age)} seconds old"
        if stale:
            message += ", re-scan recommended"
        return {
            "has_data": self.has_data(),
            "age_seconds": round(age, 1),
            "stale_after_seconds": self.stale_after_seconds,
            "stale": stale,
            "rescan_recommended": stale,
            "message": message,
            "source": self.source,
        }

    # -- optimistic updates -------------------------------------------------

    def optimistic(self, mutation: Callable[["TopologyState"], T]) -> Tuple[str, T]:
        """Apply a mutation now and keep a rollback point until commit/rollback."""
        with self._lock:
            token = uuid.uuid4().hex
            checkpoint = (copy.deepcopy(self._topology), self._updated_epoch)
            result = mutation(self)
            self._pending[token] = checkpoint
            return token, result

    def commit(self, token: str) -> None:
        with self._lock:
            self._pending.pop(token, None)

    def rollback(self, token: str) -> bool:
        with self._lock:
            checkpoint = self._pending.pop(token, None)
            if checkpoint is None:
                return False
            self._topology, self._updated_epoch = checkpoint
            self.revision += 1
            logger.warning("rolled back optimistic topology update %s", token)
            return True
