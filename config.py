"""
NetSight runtime settings.
Read once from NETSIGHT_* environment variables; app.py adds CLI flags on top.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

PROJECT_ROOT = Path(__file__).resolve().parent


def _flag(value: Optional[str]) -> bool:
    return str(value or "").strip().lower() in ("1", "true", "yes", "on")


def _int(value: Optional[str], default: int) -> int:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return default


def _float(value: Optional[str], default: float) -> float:
    try:
        return float(str(value).strip())
    except (TypeError, ValueError):
        return default


@dataclass
class Settings:
    api_key: str = ""
    debug: bool = False
    data_dir: Path = PROJECT_ROOT / "data"
    log_level: str = "INFO"
    log_file: str = ""
    stale_after_seconds: int = 300
    refresh_interval_seconds: int = 30
    enable_live_collection: bool = True
    simulated_delay: float = 0.0

    @property
    def db_path(self) -> Path:
        return self.data_dir / "netsight.db"


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    env = os.environ if env is None else env
    data_dir = env.get("NETSIGHT_DATA_DIR", "").strip()
    return Settings(
        api_key=env.get("NETSIGHT_API_KEY", "").strip(),
        debug=_flag(env.get("NETSIGHT_DEBUG")),
        data_dir=Path(data_dir) if data_dir else PROJECT_ROOT / "data",
        log_level=(env.get("NETSIGHT_LOG_LEVEL", "INFO").strip().upper() or "INFO"),
        log_file=env.get("NETSIGHT_LOG_FILE", "").strip(),
        stale_after_seconds=max(1, _int(env.get("NETSIGHT_STALE_AFTER"), 300)),
        refresh_interval_seconds=max(2, _int(env.get("NETSIGHT_REFRESH_INTERVAL"), 30)),
        enable_live_collection=_flag(env.get("NETSIGHT_ENABLE_LIVE", "1")),
        simulated_delay=max(0.0, _float(env.get("NETSIGHT_SIMULATED_DELAY"), 0.0)),
    )


settings = load_settings()
