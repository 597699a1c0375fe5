"""miniupnpd lease file parsing"""
from dataclasses import dataclass
from typing import Iterable, List, Sequence
from logging_config import get_logger
from .devices import open_first

logger = get_logger(__name__)

UPNP_LEASE_PATHS = (
    "/var/run/miniupnpd.leases",
    "/tmp/miniupnpd.leases",
    "/var/lib/miniupnpd/leases",
)

UNKNOWN_DESCRIPTION = "unknown"


@dataclass
class MappingRecord:
    """An active UPnP port mapping"""
    protocol: str
    external_port: str
    internal_ip: str
    internal_port: str
    lease_seconds: float = 0.0
    description: str = UNKNOWN_DESCRIPTION


def _to_float(value: str) -> float:
    try:
        return float(value)
    except ValueError:
        return 0.0


def parse_upnp_leases(lines: Iterable[str]) -> List[MappingRecord]:
    """Parse miniupnpd leases.

    Two layouts are accepted::

        PROTOCOL:EXT_PORT:INT_IP:INT_PORT:LEASE_DURATION:DESCRIPTION
        PROTOCOL:EXT_PORT:INT_IP:INT_PORT:TIMESTAMP:LEASE_DURATION:DESCRIPTION

    The line is split into at most seven parts, so a description may itself
    contain colons in the timestamped layout. Blank lines and comments are
    skipped, as are lines with fewer than six parts.
    """
    mappings = []
    for raw in lines:
        line = raw.strip()
        if not line or line.startswith("#"):
            continue

        fields = line.split(":", 6)
        if len(fields) < 6:
            logger.debug(f"Skipping malformed UPnP lease line: {line!r}")
            continue

        if len(fields) == 6:
            lease, description = fields[4], fields[5]
        else:
            lease, description = fields[5], fields[6]

        mappings.append(MappingRecord(
            protocol=fields[0].upper(),
            external_port=fields[1],
            internal_ip=fields[2],
            internal_port=fields[3],
            lease_seconds=_to_float(lease),
            description=description.strip() or UNKNOWN_DESCRIPTION,
        ))
    return mappings


def read_upnp_leases(paths: Sequence[str] = UPNP_LEASE_PATHS) -> List[MappingRecord]:
    with open_first(paths) as f:
        return parse_upnp_leases(f)
