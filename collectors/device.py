"""Connected device collector"""
from typing import List, Optional
from .base import BaseCollector
from metrics.models import MetricDescriptor, MetricSample, MetricType
from utils.devices import (
    DHCP_LEASE_PATHS,
    IP_NEIGH_COMMAND,
    PROC_NET_ARP,
    SourceUnavailable,
    merge_devices,
    read_dhcp_leases,
    read_neighbours,
)
from logging_config import get_logger

logger = get_logger(__name__)

LABELS = ("hostname", "ip", "mac")


class DeviceCollector(BaseCollector):
    """Collect devices seen in DHCP leases and the neighbour table"""

    collector_name = "device"

    def __init__(self, config=None,
                 lease_paths=DHCP_LEASE_PATHS,
                 neigh_command=IP_NEIGH_COMMAND,
                 arp_path: str = PROC_NET_ARP,
                 clock=None):
        super().__init__(config, self.collector_name, "Connected devices from DHCP leases and ARP")
        self.lease_paths = tuple(lease_paths)
        self.neigh_command = tuple(neigh_command)
        self.arp_path = arp_path
        self._clock = clock

        self.device_info = MetricDescriptor(
            "openwrt_device_info",
            "information about connected devices",
            LABELS, MetricType.GAUGE,
        )
        self.online_seconds = MetricDescriptor(
            "openwrt_device_online_seconds",
            "device online time in seconds",
            LABELS, MetricType.GAUGE,
        )
        self.lease_remaining = MetricDescriptor(
            "openwrt_device_dhcp_lease_remaining_seconds",
            "dhcp lease remaining time in seconds",
            LABELS, MetricType.GAUGE,
        )

    def describe(self) -> List[MetricDescriptor]:
        return [self.device_info, self.online_seconds, self.lease_remaining]

    def _now(self) -> Optional[float]:
        return self._clock() if self._clock else None

    def collect(self) -> List[MetricSample]:
        """Collect device metrics; either source may be missing"""
        metrics = []

        dhcp_devices = []
        try:
            dhcp_devices = read_dhcp_leases(self.lease_paths, now=self._now())
        except (SourceUnavailable, OSError) as e:
            logger.warning("DHCP leases unavailable", error=str(e), event_type="source_unavailable")

        arp_devices = []
        try:
            arp_devices = read_neighbours(self.neigh_command, self.arp_path)
        except (SourceUnavailable, OSError) as e:
            logger.warning("Neighbour table unavailable", error=str(e), event_type="source_unavailable")

        for device in merge_devices(dhcp_devices, arp_devices):
            labels = (device.hostname or "", device.ip, device.mac)
            metrics.append(self.device_info.sample(1, *labels))

            if device.online_seconds > 0:
                metrics.append(self.online_seconds.sample(device.online_seconds, *labels))

            if device.lease_remaining_seconds > 0:
                metrics.append(self.lease_remaining.sample(device.lease_remaining_seconds, *labels))

        logger.debug(f"Collected {len(metrics)} device metrics")
        return metrics
