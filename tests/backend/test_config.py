from pathlib import Path

from config import PROJECT_ROOT, load_settings


def test_defaults():
    settings = load_settings({})
    assert settings.api_key == ""
    assert settings.debug is False
    assert settings.enable_live_collection is True
    assert settings.stale_after_seconds == 300
    assert settings.db_path == PROJECT_ROOT / "data" / "netsight.db"


def test_environment_overrides():
    settings = load_settings(
        {
            "NETSIGHT_API_KEY": " secret ",
            "NETSIGHT_DEBUG": "yes",
            "NETSIGHT_DATA_DIR": "/var/lib/netsight",
            "NETSIGHT_LOG_LEVEL": "debug",
            "NETSIGHT_STALE_AFTER": "45",
            "NETSIGHT_REFRESH_INTERVAL": "1",
            "NETSIGHT_ENABLE_LIVE": "0",
            "NETSIGHT_SIMULATED_DELAY": "0.25",
        }
    )
    assert settings.api_key == "secret"
    assert settings.debug is True
    assert settings.db_path == Path("/var/lib/netsight/netsight.db")
    assert settings.log_level == "DEBUG"
    assert settings.stale_after_seconds == 45
    assert settings.refresh_interval_seconds == 2
    assert settings.enable_live_collection is False
    assert settings.simulated_delay == 0.25


def test_malformed_numbers_use_defaults():
    settings = load_settings({"NETSIGHT_STALE_AFTER": "soon", "NETSIGHT_SIMULATED_DELAY": "-3"})
    assert settings.stale_after_seconds == 300
    assert settings.simulated_delay == 0.0
