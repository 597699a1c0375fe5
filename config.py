"""Configuration management for the OpenWRT Metrics Exporter"""
import re
from pathlib import Path
from typing import List, Literal, Optional, Tuple
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from probe.models import AddressFamily, ProbeSettings, ProbeTarget


DEFAULT_COLLECTORS = "network,device,upnp,interface_ip,ping"

_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")

_TRUE_VALUES = {"1", "true", "t", "yes", "y", "on"}
_FALSE_VALUES = {"0", "false", "f", "no", "n", "off"}


def parse_duration(value: str) -> Optional[float]:
    """Parse a duration such as ``10ms`` or ``1m30s`` into seconds.

    Returns None when the string is not a valid duration.
    """
    text = value.strip()
    if text.startswith("+"):
        text = text[1:]
    if not text:
        return None
    total = 0.0
    position = 0
    for match in _DURATION_PART.finditer(text):
        if match.start() != position:
            return None
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        position = match.end()
    if position != len(text):
        return None
    return total


def _split_list(value: str) -> List[str]:
    return [item.strip() for item in value.split(',') if item.strip()]


class Config(BaseSettings):
    """Process-wide settings, read once from the environment at startup"""

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=False, frozen=True)

    # Server settings
    listen_address: str = Field(default=":9101", description="Address to listen on for metrics")
    metrics_path: str = Field(default="/metrics", description="Path under which to expose metrics")

    # Collector settings
    enabled_collectors_str: str = Field(
        default=DEFAULT_COLLECTORS,
        validation_alias="enabled_collectors",
        description="Enabled collectors in registration order (comma-separated)",
    )

    # Probe settings
    ping_targets: str = Field(default="", description="Comma-separated IPv4 probe targets")
    ping_targets_v6: str = Field(default="", description="Comma-separated IPv6 probe targets")
    ping_count: int = Field(default=10, description="Echo requests per target")
    ping_interval: float = Field(default=0.01, description="Delay between echo requests in seconds")
    ping_timeout: float = Field(default=3.0, description="Reply timeout in seconds")
    ping_concurrency: int = Field(default=10, description="Maximum simultaneous probes")
    ping_privileged: bool = Field(default=True, description="Use raw ICMP sockets (requires root)")

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(default="INFO", description="Log level")
    log_file: Optional[Path] = Field(default=None, description="Optional log file path")

    # Service settings
    service_name: str = Field(default="openwrt-metrics-exporter", description="Service name")
    service_version: str = Field(default="1.0.0", description="Service version")

    @field_validator('ping_count', 'ping_concurrency', mode='before')
    @classmethod
    def positive_int_or_default(cls, v, info):
        """Malformed or non-positive values fall back to the default"""
        default = cls.model_fields[info.field_name].default
        try:
            number = int(str(v).strip())
        except (TypeError, ValueError):
            return default
        return number if number > 0 else default

    @field_validator('ping_interval', 'ping_timeout', mode='before')
    @classmethod
    def duration_or_default(cls, v, info):
        """Accept duration strings such as 250ms; invalid or non-positive values use the default"""
        default = cls.model_fields[info.field_name].default
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            seconds = float(v)
        else:
            seconds = parse_duration(str(v))
        if seconds is None or seconds <= 0:
            return default
        return seconds

    @field_validator('ping_privileged', mode='before')
    @classmethod
    def bool_or_default(cls, v, info):
        """Unrecognised boolean strings fall back to the default"""
        if isinstance(v, bool):
            return v
        text = str(v).strip().lower()
        if text in _TRUE_VALUES:
            return True
        if text in _FALSE_VALUES:
            return False
        return cls.model_fields[info.field_name].default

    @field_validator('log_level', mode='before')
    @classmethod
    def normalize_log_level(cls, v):
        return v.upper() if isinstance(v, str) else v

    @field_validator('log_file')
    @classmethod
    def ensure_parent_directory(cls, v):
        """Ensure the log file directory exists"""
        if isinstance(v, Path):
            v.parent.mkdir(parents=True, exist_ok=True)
        return v

    @property
    def enabled_collectors(self) -> List[str]:
        """Enabled collectors as a list, in registration order"""
        return _split_list(self.enabled_collectors_str)

    @property
    def probe_targets(self) -> List[ProbeTarget]:
        """IPv4 targets followed by IPv6 targets"""
        targets = [ProbeTarget(host, AddressFamily.IPV4) for host in _split_list(self.ping_targets)]
        targets.extend(ProbeTarget(host, AddressFamily.IPV6) for host in _split_list(self.ping_targets_v6))
        return targets

    def probe_settings(self) -> ProbeSettings:
        """Build the immutable settings handed to the probe dispatcher"""
        return ProbeSettings(
            count=self.ping_count,
            interval=self.ping_interval,
            timeout=self.ping_timeout,
            concurrency=self.ping_concurrency,
            privileged=self.ping_privileged,
        )

    def get_listen_host_port(self) -> Tuple[str, int]:
        """Split LISTEN_ADDRESS into host and port; an empty host binds all interfaces"""
        address = self.listen_address.strip()
        host, sep, port = address.rpartition(':')
        if not sep:
            raise ValueError(f"Invalid listen address: {self.listen_address!r}")
        host = host.strip('[]') or "0.0.0.0"
        return host, int(port)
