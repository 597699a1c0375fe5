"""Network utilities for interface statistics and addresses"""
import ipaddress
import socket
from dataclasses import dataclass
from typing import Iterable, List
import psutil
from logging_config import get_logger

logger = get_logger(__name__)

PROC_NET_DEV = "/proc/net/dev"
PROC_UPTIME = "/proc/uptime"

# Interfaces never exported
EXCLUDED_INTERFACES = {"lo"}

_IPV6_ULA = ipaddress.ip_network("fc00::/7")


@dataclass
class InterfaceRecord:
    """Cumulative counters of one network interface"""
    name: str
    rx_bytes: int = 0
    rx_packets: int = 0
    tx_bytes: int = 0
    tx_packets: int = 0


@dataclass
class InterfaceAddress:
    """One address assigned to an interface"""
    interface: str
    ip: str
    version: str
    scope: str


def _to_int(value: str) -> int:
    try:
        return int(value)
    except ValueError:
        return 0


def parse_proc_net_dev(lines: Iterable[str]) -> List[InterfaceRecord]:
    """Parse /proc/net/dev content.

    Format (after two header lines)::

        Interface| Receive: bytes packets errs drop fifo frame compressed multicast
                 | Transmit: bytes packets errs drop fifo colls carrier compressed

    Lines with fewer than 17 fields are skipped and the loopback interface is
    excluded. Unparsable counters read as zero.
    """
    records = []
    for index, line in enumerate(lines):
        if index < 2:
            continue
        # "eth0:123" has no space after the colon when counters are large
        parts = line.replace(':', ': ', 1).split()
        if len(parts) < 17:
            continue

        name = parts[0].rstrip(':')
        if name in EXCLUDED_INTERFACES:
            continue

        records.append(InterfaceRecord(
            name=name,
            rx_bytes=_to_int(parts[1]),
            rx_packets=_to_int(parts[2]),
            tx_bytes=_to_int(parts[9]),
            tx_packets=_to_int(parts[10]),
        ))
    return records


def read_interface_stats(path: str = PROC_NET_DEV) -> List[InterfaceRecord]:
    """Read interface counters; raises OSError when the file is unavailable"""
    with open(path, "r") as f:
        return parse_proc_net_dev(f)


def read_uptime(path: str = PROC_UPTIME) -> float:
    """System uptime in seconds, 0 when unavailable"""
    try:
        with open(path, "r") as f:
            fields = f.read().split()
        return float(fields[0]) if fields else 0.0
    except (OSError, ValueError) as e:
        logger.debug(f"Error reading {path}: {e}")
        return 0.0


def classify_address(ip: str) -> InterfaceAddress:
    """Version and scope of an address; the interface field is left empty"""
    address = ipaddress.ip_address(ip)
    if address.version == 4:
        if address.is_loopback:
            scope = "loopback"
        elif address.is_link_local:
            scope = "link-local"
        elif address.is_private:
            scope = "private"
        else:
            scope = "public"
    else:
        if address.is_loopback:
            scope = "loopback"
        elif address.is_link_local:
            scope = "link-local"
        elif address in _IPV6_ULA:
            scope = "private"
        elif address.is_global:
            scope = "global"
        else:
            scope = "other"
    return InterfaceAddress(interface="", ip=str(address), version=str(address.version), scope=scope)


def list_interface_addresses() -> List[InterfaceAddress]:
    """Addresses of interfaces that are up and not loopback"""
    stats = psutil.net_if_stats()
    addresses = []
    for interface, snics in psutil.net_if_addrs().items():
        if interface in EXCLUDED_INTERFACES:
            continue
        if_stats = stats.get(interface)
        if if_stats is None or not if_stats.isup:
            continue

        for snic in snics:
            if snic.family not in (socket.AF_INET, socket.AF_INET6):
                continue
            ip = snic.address.split('%', 1)[0]
            try:
                info = classify_address(ip)
            except ValueError:
                logger.debug(f"Skipping unparsable address {snic.address} on {interface}")
                continue
            if info.scope == "loopback":
                continue
            info.interface = interface
            addresses.append(info)
    return addresses
