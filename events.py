"""
NetSight in-process event bus.

Discovery progress, device/connection discoveries, pipeline state changes, and
topology refreshes are published here; the server forwards them to Socket.IO
clients and keeps a bounded buffer for polling.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import asdict, dataclass
from typing import Any, Callable, Deque, Dict, List, Optional

from toolkit.utils import new_session_id, utc_now_iso

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Event:
    id: str
    ts: str
    type: str
    source: str
    entity: str
    summary: str
    data: Dict[str, Any]


Subscriber = Callable[[Event], None]


class EventBus:
    def __init__(self, *, max_events: int = 2000):
        self._events: Deque[Event] = deque(maxlen=max(1, int(max_events)))
        self._subscribers: List[Subscriber] = []
        self._lock = threading.Lock()

    def subscribe(self, fn: Subscriber) -> None:
        with self._lock:
            self._subscribers.append(fn)

    def unsubscribe(self, fn: Subscriber) -> None:
        with self._lock:
            if fn in self._subscribers:
                self._subscribers.remove(fn)

    def publish(
        self,
        *,
        event_type: str,
        source: str,
        entity: str = "",
        summary: str = "",
        data: Optional[Dict[str, Any]] = None,
    ) -> Event:
        ev = Event(
            id=new_session_id("evt"),
            ts=utc_now_iso(),
            type=str(event_type),
            source=str(source),
            entity=str(entity or ""),
            summary=str(summary or ""),
            data=dict(data or {}),
        )

        with self._lock:
            self._events.append(ev)
            subs = list(self._subscribers)

        for fn in subs:
            try:
                fn(ev)
            except Exception:
                # A broken subscriber is logged and skipped; the publisher keeps going.
                logger.exception("event subscriber failed for %s", ev.type)
        return ev

    def list_events(self, *, limit: int = 200, event_type: str = "") -> List[Dict[str, Any]]:
        lim = max(1, int(limit))
        with self._lock:
            items = [ev for ev in self._events if not event_type or ev.type == event_type]
        return [asdict(ev) for ev in items[-lim:]]
