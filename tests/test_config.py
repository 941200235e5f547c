"""
Configuration Unit Tests
========================

Tests for SimulatorConfig defaults and environment overrides.
"""

import logging

import pytest
from mano_sim.config import SimulatorConfig


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("MANO_MAX_TICKS", "MANO_STRICT", "MANO_TRACE"):
        monkeypatch.delenv(name, raising=False)


class TestDefaults:

    def test_defaults(self):
        config = SimulatorConfig()
        assert config.max_ticks == 1_000_000
        assert config.strict is False
        assert config.trace is False

    def test_from_env_without_variables(self):
        assert SimulatorConfig.from_env() == SimulatorConfig()


class TestEnvironment:
    """Test MANO_* environment variables."""

    def test_max_ticks(self, monkeypatch):
        monkeypatch.setenv("MANO_MAX_TICKS", "500")
        assert SimulatorConfig.from_env().max_ticks == 500

    def test_zero_max_ticks_is_unlimited(self, monkeypatch):
        monkeypatch.setenv("MANO_MAX_TICKS", "0")
        assert SimulatorConfig.from_env().max_ticks is None

    @pytest.mark.parametrize("value,expected", [
        ("1", True),
        ("true", True),
        ("YES", True),
        (" on ", True),
        ("0", False),
        ("false", False),
        ("off", False),
    ])
    def test_flags(self, monkeypatch, value, expected):
        monkeypatch.setenv("MANO_STRICT", value)
        monkeypatch.setenv("MANO_TRACE", value)
        config = SimulatorConfig.from_env()
        assert config.strict is expected
        assert config.trace is expected

    def test_invalid_max_ticks_ignored(self, monkeypatch, caplog):
        monkeypatch.setenv("MANO_MAX_TICKS", "lots")
        with caplog.at_level(logging.WARNING, logger="mano_sim.config"):
            config = SimulatorConfig.from_env()
        assert config.max_ticks == 1_000_000
        assert "MANO_MAX_TICKS" in caplog.text

    def test_invalid_flag_ignored(self, monkeypatch, caplog):
        monkeypatch.setenv("MANO_STRICT", "maybe")
        with caplog.at_level(logging.WARNING, logger="mano_sim.config"):
            config = SimulatorConfig.from_env()
        assert config.strict is False
        assert "MANO_STRICT" in caplog.text
