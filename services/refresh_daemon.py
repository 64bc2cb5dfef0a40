"""
NetSight refresh daemon.
Periodic device health drift on the live topology, broadcast to dashboard clients.
"""

import logging
import random
import threading
from dataclasses import asdict
from typing import Any, Callable, Dict, Optional

from toolkit.utils import utc_now_iso

logger = logging.getLogger(__name__)

STATUS_FLIP_RATE = 0.02


def _drift(value: float, spread: float, rng: random.Random, lo: float = 0.0, hi: float = 100.0) -> float:
    return round(max(lo, min(hi, float(value) + rng.uniform(-spread, spread))), 1)


class RefreshDaemon:
    """Jitter device gauges every interval and emit a topology_update payload."""

    def __init__(
        self,
        state,
        emit: Callable[[str, Dict[str, Any]], None],
        *,
        interval_seconds: int = 30,
        rng: Optional[random.Random] = None,
    ):
        self.state = state
        self.emit = emit
        self.interval_seconds = max(2, int(interval_seconds))
        self._rng = rng or random.Random()
        self.running = False
        self.thread: Optional[threading.Thread] = None
        self._stop = threading.Event()
        self._lock = threading.Lock()
        self._last_tick_at = ""
        self._ticks = 0

    def configure(self, *, interval_seconds: Optional[int] = None) -> None:
        with self._lock:
            if interval_seconds is not None:
                self.interval_seconds = max(2, int(interval_seconds))

    def start(self) -> None:
        with self._lock:
            if self.running:
                return
            self.running = True
            self._stop.clear()
            self.thread = threading.Thread(target=self._loop, name="refresh-daemon", daemon=True)
            self.thread.start()
        logger.info("refresh daemon started (every %ss)", self.interval_seconds)

    def stop(self) -> None:
        with self._lock:
            self.running = False
            self._stop.set()
        if self.thread:
            self.thread.join(timeout=2)
        logger.info("refresh daemon stopped")

    def status(self) -> dict:
        with self._lock:
            return {
                "running": bool(self.running),
                "interval_seconds": int(self.interval_seconds),
                "ticks": self._ticks,
                "last_tick_at": self._last_tick_at,
            }

    def _loop(self) -> None:
        while True:
            with self._lock:
                if not self.running:
                    return
                interval = int(self.interval_seconds)
            try:
                self.tick()
            except Exception:
                logger.exception("refresh tick failed")
            if self._stop.wait(max(0.5, interval)):
                return

    def tick(self) -> Optional[dict]:
        """One refresh pass; returns the emitted payload, or None when there is no topology."""
        if not self.state.has_data() or not self.state.real_time_updates:
            return None
        snapshot = self.state.snapshot()
        rng = self._rng
        updates: Dict[str, Dict[str, Any]] = {}
        for d in snapshot.devices:
            if d.status == "offline":
                continue
            change = {
                "cpu": _drift(d.cpu, 5, rng),
                "memory": _drift(d.memory, 3, rng),
                "temperature": _drift(d.temperature, 1.5, rng, 0, 120),
            }
            if rng.random() < STATUS_FLIP_RATE:
                change["status"] = "warning" if d.status == "online" else "online"
            updates[d.id] = change
        self.state.apply_device_metrics(updates)

        payload = {
            "timestamp": utc_now_iso(),
            "devices": [{"id": k, **v} for k, v in updates.items()],
            "stats": asdict(self.state.snapshot().discovery_stats),
            "staleness": self.state.staleness(),
        }
        self.emit("topology_update", payload)
        with self._lock:
            self._ticks += 1
            self._last_tick_at = payload["timestamp"]
        return payload
