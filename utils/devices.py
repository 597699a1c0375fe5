"""Connected device discovery from DHCP leases and the neighbour table"""
import subprocess
import time
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
from logging_config import get_logger

logger = get_logger(__name__)

DHCP_LEASE_PATHS = (
    "/tmp/dhcp.leases",
    "/var/lib/misc/dnsmasq.leases",
    "/tmp/dnsmasq.leases",
)
PROC_NET_ARP = "/proc/net/arp"
IP_NEIGH_COMMAND = ("ip", "neigh", "show")

INCOMPLETE_MAC = "00:00:00:00:00:00"


class SourceUnavailable(Exception):
    """None of the candidate files or commands could be read"""


@dataclass
class DeviceRecord:
    """A device seen on the LAN"""
    ip: str
    mac: str
    hostname: Optional[str] = None
    online_seconds: float = 0.0
    lease_remaining_seconds: float = 0.0

    @property
    def key(self) -> Tuple[str, str]:
        return (self.mac, self.ip)


def open_first(paths: Sequence[str]):
    """Open the first readable path; raises SourceUnavailable listing every failure"""
    errors = []
    for path in paths:
        try:
            return open(path, "r")
        except OSError as e:
            errors.append(f"{path}: {e.strerror or e}")
    raise SourceUnavailable("; ".join(errors) or "no candidate paths")


def parse_dhcp_leases(lines: Iterable[str], now: Optional[float] = None) -> List[DeviceRecord]:
    """Parse a dnsmasq lease file.

    Format: ``<expiry_time> <mac> <ip> <hostname> [client_id]``. A ``*``
    hostname means none was sent. Lines with fewer than four fields are
    skipped; an unparsable expiry counts as an expired lease.
    """
    if now is None:
        now = time.time()
    now = int(now)

    devices = []
    for line in lines:
        fields = line.split()
        if len(fields) < 4:
            if fields:
                logger.debug(f"Skipping malformed lease line: {line.strip()!r}")
            continue

        try:
            expiry = int(fields[0])
        except ValueError:
            expiry = 0

        hostname = fields[3]
        devices.append(DeviceRecord(
            ip=fields[2],
            mac=fields[1],
            hostname=None if hostname == "*" else hostname,
            lease_remaining_seconds=float(expiry - now) if expiry > now else 0.0,
        ))
    return devices


def parse_ip_neigh(output: str) -> List[DeviceRecord]:
    """Parse ``ip neigh show`` output: ``<ip> dev <interface> lladdr <mac> <state>``"""
    devices = []
    for line in output.splitlines():
        fields = line.split()
        if len(fields) < 5:
            continue

        mac = ""
        for i, field in enumerate(fields[:-1]):
            if field == "lladdr":
                mac = fields[i + 1]
                break

        if mac:
            devices.append(DeviceRecord(ip=fields[0], mac=mac))
    return devices


def parse_proc_arp(lines: Iterable[str]) -> List[DeviceRecord]:
    """Parse /proc/net/arp: ``IP HWtype Flags HWaddress Mask Device`` after a header line"""
    devices = []
    for index, line in enumerate(lines):
        if index == 0:
            continue
        fields = line.split()
        if len(fields) < 4:
            continue

        ip, flags, mac = fields[0], fields[2], fields[3]
        if mac == INCOMPLETE_MAC or flags == "0x0":
            continue
        devices.append(DeviceRecord(ip=ip, mac=mac))
    return devices


def read_dhcp_leases(paths: Sequence[str] = DHCP_LEASE_PATHS, now: Optional[float] = None) -> List[DeviceRecord]:
    with open_first(paths) as f:
        return parse_dhcp_leases(f, now=now)


def read_neighbours(command: Sequence[str] = IP_NEIGH_COMMAND, arp_path: str = PROC_NET_ARP) -> List[DeviceRecord]:
    """Neighbour table from ``ip neigh`` when available, otherwise /proc/net/arp"""
    try:
        result = subprocess.run(list(command), capture_output=True, text=True, check=True)
        return parse_ip_neigh(result.stdout)
    except (OSError, subprocess.CalledProcessError) as e:
        logger.debug(f"'{' '.join(command)}' unavailable, falling back to {arp_path}: {e}")

    with open_first([arp_path]) as f:
        return parse_proc_arp(f)


def merge_devices(dhcp_devices: Iterable[DeviceRecord], arp_devices: Iterable[DeviceRecord]) -> List[DeviceRecord]:
    """Merge both sources keyed by (mac, ip); DHCP records win over ARP records.

    Records with neither an IP nor a MAC are dropped. Output keeps first-seen
    order, DHCP records first.
    """
    devices: Dict[Tuple[str, str], DeviceRecord] = {}
    for device in dhcp_devices:
        devices[device.key] = device
    for device in arp_devices:
        devices.setdefault(device.key, device)
    return [d for d in devices.values() if d.ip or d.mac]
