"""
Tests for settings module.
"""

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from chainsync.infra.settings import load_settings
from chainsync.scheduler import ExecutionOrder


@pytest.fixture(autouse=True)
def clean_environ():
    """Isolate os.environ; load_dotenv writes into it."""
    with patch.dict(os.environ, {}, clear=True):
        yield


@pytest.fixture
def no_env_file(tmp_path) -> Path:
    return tmp_path / "missing.env"


class TestDefaults:

    def test_defaults(self, no_env_file):
        settings = load_settings(no_env_file)

        assert settings.db_path == Path("data/chainsync.db")
        assert settings.source == "default"
        assert settings.idle_interval == 2.0
        assert settings.sync_interval_seconds == 300
        assert settings.weight_interval_seconds == 3600
        assert settings.sync_steps == ()
        assert settings.execution_order == ExecutionOrder.REVERSE_REGISTRATION
        assert settings.api_enabled is False
        assert (settings.api_host, settings.api_port) == ("127.0.0.1", 8010)
        assert settings.log_level == "INFO"
        assert settings.log_dir == Path("logs")


class TestEnvironment:

    def test_reads_environment(self, no_env_file):
        os.environ.update({
            "CHAINSYNC_DB_PATH": "/tmp/x.db",
            "CHAINSYNC_SOURCE": "mainnet",
            "CHAINSYNC_IDLE_INTERVAL": "0.5",
            "CHAINSYNC_SYNC_STEPS": "pkg.a:StepA, pkg.b:StepB,",
            "CHAINSYNC_EXECUTION_ORDER": "Registration",
            "CHAINSYNC_API_ENABLED": "yes",
            "LOG_LEVEL": "debug",
        })

        settings = load_settings(no_env_file)

        assert settings.db_path == Path("/tmp/x.db")
        assert settings.source == "mainnet"
        assert settings.idle_interval == 0.5
        assert settings.sync_steps == ("pkg.a:StepA", "pkg.b:StepB")
        assert settings.execution_order == ExecutionOrder.REGISTRATION
        assert settings.api_enabled is True
        assert settings.log_level == "DEBUG"

    @pytest.mark.parametrize(
        "key, value, attr, default",
        [
            ("CHAINSYNC_SYNC_INTERVAL_SECONDS", "five", "sync_interval_seconds", 300),
            ("CHAINSYNC_IDLE_INTERVAL", "soon", "idle_interval", 2.0),
            ("CHAINSYNC_EXECUTION_ORDER", "random", "execution_order", ExecutionOrder.REVERSE_REGISTRATION),
            ("CHAINSYNC_API_ENABLED", "maybe", "api_enabled", False),
        ],
    )
    def test_invalid_values_fall_back_to_default(self, no_env_file, key, value, attr, default):
        os.environ[key] = value

        assert getattr(load_settings(no_env_file), attr) == default


class TestEnvFile:

    def test_reads_env_file(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("CHAINSYNC_SOURCE=from-file\nCHAINSYNC_API_PORT=9000\n")

        settings = load_settings(env_file)

        assert settings.source == "from-file"
        assert settings.api_port == 9000

    def test_environment_wins_over_env_file(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("CHAINSYNC_SOURCE=from-file\n")
        os.environ["CHAINSYNC_SOURCE"] = "from-env"

        assert load_settings(env_file).source == "from-env"
