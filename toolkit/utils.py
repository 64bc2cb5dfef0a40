#!/usr/bin/env python3
"""Common helpers for NetSight discovery and mock-data modules."""

from __future__ import annotations

import ipaddress
import json
import logging
import random
import time
import uuid
from dataclasses import asdict, is_dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Iterator, List, Sequence, Tuple, Type, TypeVar


PROJECT_ROOT = Path(__file__).resolve().parents[1]
LOG_DIR = PROJECT_ROOT / "logs"

T = TypeVar("T")

logger = logging.getLogger(__name__)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def new_session_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


def ensure_private_target(target: str) -> None:
    """Raise ValueError unless ``target`` (address or CIDR) is private, loopback or link-local.

    Scan jobs and profile scans call this before any probe is issued.
    """
    if target is None:
        raise ValueError("Target must not be None")
    t = str(target).strip()
    if not t:
        raise ValueError("Target must not be empty")

    try:
        if "/" in t:
            net = ipaddress.ip_network(t, strict=False)
            ok = bool(net.is_private or net.is_loopback or net.is_link_local)
        else:
            ip = ipaddress.ip_address(t)
            ok = bool(ip.is_private or ip.is_loopback or ip.is_link_local)
    except ValueError as exc:
        raise ValueError(f"Invalid target (expected IP or CIDR): {t}") from exc

    if not ok:
        raise ValueError(f"Refusing to scan non-private target: {t}")


def hosts_from_network(
    network: str,
    max_hosts: int | None = None,
    exclude: Sequence[str] = (),
) -> List[str]:
    """Expand a CIDR into host addresses, skipping excluded networks/addresses."""
    net = ipaddress.ip_network(network, strict=False)
    excluded = [ipaddress.ip_network(x, strict=False) for x in exclude if str(x).strip()]
    hosts: List[str] = []
    for h in net.hosts():
        if any(h in ex for ex in excluded):
            continue
        hosts.append(str(h))
        if max_hosts is not None and len(hosts) >= max_hosts:
            break
    return hosts


def ip_distance(a: str, b: str) -> int:
    """Rough IPv4 proximity: host delta plus weighted third-octet delta."""
    pa = [int(x) for x in a.split(".")]
    pb = [int(x) for x in b.split(".")]
    return abs(pa[3] - pb[3]) + abs(pa[2] - pb[2]) * 256


def chunked(items: Sequence[T], size: int) -> Iterator[List[T]]:
    step = max(1, int(size))
    for i in range(0, len(items), step):
        yield list(items[i : i + step])


def count_by(values: Iterable[str]) -> Dict[str, int]:
    out: Dict[str, int] = {}
    for v in values:
        out[v] = out.get(v, 0) + 1
    return out


def safe_json(value: Any) -> Any:
    if is_dataclass(value):
        return safe_json(asdict(value))
    if isinstance(value, dict):
        return {str(k): safe_json(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [safe_json(v) for v in value]
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    return str(value)


def write_json_log(module: str, session_id: str, payload: Dict[str, Any], log_dir: Path | None = None) -> Path:
    out_dir = (log_dir or LOG_DIR) / module
    out_dir.mkdir(parents=True, exist_ok=True)
    out_file = out_dir / f"{session_id}.json"
    data = {
        "session_id": session_id,
        "module": module,
        "generated_at": utc_now_iso(),
        **payload,
    }
    out_file.write_text(json.dumps(safe_json(data), indent=2), encoding="utf-8")
    return out_file


def retry_with_backoff(
    fn: Callable[[], T],
    *,
    retries: int = 2,
    base_delay: float = 0.05,
    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
    sleep: Callable[[float], Any] = time.sleep,
) -> T:
    """Call fn, retrying `retry_on` errors with exponential backoff plus jitter.

    The last error is re-raised once retries are exhausted.
    """
    attempt = 0
    while True:
        try:
            return fn()
        except retry_on as exc:
            if attempt >= retries:
                raise
            delay = base_delay * (2 ** attempt)
            delay += random.uniform(0, delay / 2) if delay > 0 else 0
            logger.debug("retrying after %s (attempt %d, %.3fs)", exc, attempt + 1, delay)
            sleep(delay)
            attempt += 1
