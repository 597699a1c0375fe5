"""Shared test fixtures"""
import pytest


EXPORTER_ENV_VARS = [
    "LISTEN_ADDRESS",
    "METRICS_PATH",
    "ENABLED_COLLECTORS",
    "PING_TARGETS",
    "PING_TARGETS_V6",
    "PING_COUNT",
    "PING_INTERVAL",
    "PING_TIMEOUT",
    "PING_CONCURRENCY",
    "PING_PRIVILEGED",
    "LOG_LEVEL",
    "LOG_FILE",
    "ENVIRONMENT",
]


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep the host environment from leaking into Config()"""
    for name in EXPORTER_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
