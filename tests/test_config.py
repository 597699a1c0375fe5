"""Tests for configuration module"""
import os
import tempfile
from pathlib import Path
from unittest.mock import patch
import pytest
from pydantic import ValidationError

from config import Config, parse_duration
from probe.models import AddressFamily, ProbeSettings, ProbeTarget


class TestConfig:
    """Test configuration validation and parsing"""

    def test_default_config(self):
        """Test default configuration values"""
        config = Config()

        assert config.listen_address == ":9101"
        assert config.metrics_path == "/metrics"
        assert config.ping_count == 10
        assert config.ping_interval == pytest.approx(0.01)
        assert config.ping_timeout == pytest.approx(3.0)
        assert config.ping_concurrency == 10
        assert config.ping_privileged is True
        assert config.log_level == "INFO"
        assert config.log_file is None
        assert config.enabled_collectors == ["network", "device", "upnp", "interface_ip", "ping"]
        assert config.probe_targets == []

    def test_environment_override(self):
        """Test configuration override from environment variables"""
        env_vars = {
            "LISTEN_ADDRESS": "127.0.0.1:9200",
            "METRICS_PATH": "/probe",
            "PING_COUNT": "5",
            "PING_INTERVAL": "250ms",
            "PING_TIMEOUT": "1m30s",
            "PING_CONCURRENCY": "2",
            "PING_PRIVILEGED": "false",
            "LOG_LEVEL": "debug",
            "ENABLED_COLLECTORS": "ping, network",
        }

        with patch.dict(os.environ, env_vars):
            config = Config()

            assert config.get_listen_host_port() == ("127.0.0.1", 9200)
            assert config.metrics_path == "/probe"
            assert config.probe_settings() == ProbeSettings(
                count=5, interval=0.25, timeout=90.0, concurrency=2, privileged=False
            )
            assert config.log_level == "DEBUG"
            assert config.enabled_collectors == ["ping", "network"]

    def test_probe_targets_parsing(self):
        """IPv4 targets come first, blanks are dropped and whitespace trimmed"""
        env_vars = {
            "PING_TARGETS": " 8.8.8.8, ,example.org,",
            "PING_TARGETS_V6": "2001:4860:4860::8888",
        }

        with patch.dict(os.environ, env_vars):
            config = Config()

            assert config.probe_targets == [
                ProbeTarget("8.8.8.8", AddressFamily.IPV4),
                ProbeTarget("example.org", AddressFamily.IPV4),
                ProbeTarget("2001:4860:4860::8888", AddressFamily.IPV6),
            ]

    @pytest.mark.parametrize("name,value,field,expected", [
        ("PING_COUNT", "abc", "ping_count", 10),
        ("PING_COUNT", "0", "ping_count", 10),
        ("PING_COUNT", "-4", "ping_count", 10),
        ("PING_COUNT", "", "ping_count", 10),
        ("PING_CONCURRENCY", "1.5", "ping_concurrency", 10),
        ("PING_INTERVAL", "fast", "ping_interval", 0.01),
        ("PING_INTERVAL", "10", "ping_interval", 0.01),
        ("PING_TIMEOUT", "-1s", "ping_timeout", 3.0),
        ("PING_TIMEOUT", "0s", "ping_timeout", 3.0),
        ("PING_PRIVILEGED", "maybe", "ping_privileged", True),
        ("PING_PRIVILEGED", "", "ping_privileged", True),
        ("PING_PRIVILEGED", "no", "ping_privileged", False),
        ("PING_PRIVILEGED", "ON", "ping_privileged", True),
    ])
    def test_malformed_probe_values_fall_back_to_defaults(self, name, value, field, expected):
        """Malformed or non-positive probe values are silently ignored"""
        with patch.dict(os.environ, {name: value}):
            config = Config()

            assert getattr(config, field) == pytest.approx(expected)

    def test_config_is_immutable(self):
        """Configuration cannot change after startup"""
        config = Config()

        with pytest.raises(ValidationError):
            config.ping_count = 3

    def test_validation_log_level(self):
        """Test validation of log level"""
        with patch.dict(os.environ, {"LOG_LEVEL": "chatty"}):
            with pytest.raises(ValidationError):
                Config()

    def test_listen_address_without_host(self):
        config = Config()

        assert config.get_listen_host_port() == ("0.0.0.0", 9101)

    def test_listen_address_ipv6(self):
        with patch.dict(os.environ, {"LISTEN_ADDRESS": "[::1]:9101"}):
            assert Config().get_listen_host_port() == ("::1", 9101)

    def test_invalid_listen_address(self):
        with patch.dict(os.environ, {"LISTEN_ADDRESS": "localhost"}):
            with pytest.raises(ValueError):
                Config().get_listen_host_port()

    def test_log_directory_creation(self):
        """Test that parent directories are created for the log file"""
        with tempfile.TemporaryDirectory() as tmp_dir:
            log_file = Path(tmp_dir) / "subdir" / "test.log"

            with patch.dict(os.environ, {"LOG_FILE": str(log_file)}):
                config = Config()

                assert config.log_file == log_file
                assert log_file.parent.exists()


class TestParseDuration:
    """Duration strings with unit suffixes"""

    @pytest.mark.parametrize("text,seconds", [
        ("10ms", 0.01),
        ("3s", 3.0),
        ("1.5s", 1.5),
        ("1m30s", 90.0),
        ("2h", 7200.0),
        ("500us", 0.0005),
        ("500µs", 0.0005),
        ("100ns", 1e-7),
        ("+2s", 2.0),
    ])
    def test_valid_durations(self, text, seconds):
        assert parse_duration(text) == pytest.approx(seconds)

    @pytest.mark.parametrize("text", ["", "10", "ms", "10 ms", "1x", "-3s", "3s junk"])
    def test_invalid_durations(self, text):
        assert parse_duration(text) is None
