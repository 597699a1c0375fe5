"""Network interface counters collector"""
from typing import List
from .base import BaseCollector
from metrics.models import MetricDescriptor, MetricSample, MetricType
from utils.network import PROC_NET_DEV, PROC_UPTIME, read_interface_stats, read_uptime
from logging_config import get_logger

logger = get_logger(__name__)

LABELS = ("interface",)


class NetworkCollector(BaseCollector):
    """Collect per-interface byte and packet counters from /proc/net/dev"""

    collector_name = "network"

    def __init__(self, config=None, stats_path: str = PROC_NET_DEV, uptime_path: str = PROC_UPTIME):
        super().__init__(config, self.collector_name, "Network interface traffic counters")
        self.stats_path = stats_path
        self.uptime_path = uptime_path

        self.rx_bytes = MetricDescriptor(
            "openwrt_network_receive_bytes_total",
            "total number of bytes received on network interface",
            LABELS, MetricType.COUNTER,
        )
        self.tx_bytes = MetricDescriptor(
            "openwrt_network_transmit_bytes_total",
            "total number of bytes transmitted on network interface",
            LABELS, MetricType.COUNTER,
        )
        self.rx_packets = MetricDescriptor(
            "openwrt_network_receive_packets_total",
            "total number of packets received on network interface",
            LABELS, MetricType.COUNTER,
        )
        self.tx_packets = MetricDescriptor(
            "openwrt_network_transmit_packets_total",
            "total number of packets transmitted on network interface",
            LABELS, MetricType.COUNTER,
        )
        self.uptime = MetricDescriptor(
            "openwrt_network_uptime_seconds",
            "network interface uptime in seconds (system uptime)",
            LABELS, MetricType.GAUGE,
        )

    def describe(self) -> List[MetricDescriptor]:
        return [self.rx_bytes, self.tx_bytes, self.rx_packets, self.tx_packets, self.uptime]

    def collect(self) -> List[MetricSample]:
        """Collect network interface metrics"""
        metrics = []

        try:
            interfaces = read_interface_stats(self.stats_path)
        except OSError as e:
            logger.warning("Network statistics unavailable", path=self.stats_path, error=str(e), event_type="source_unavailable")
            return metrics

        # Interfaces have no uptime of their own; system uptime stands in
        uptime = read_uptime(self.uptime_path)

        for interface in interfaces:
            metrics.extend([
                self.rx_bytes.sample(interface.rx_bytes, interface.name),
                self.tx_bytes.sample(interface.tx_bytes, interface.name),
                self.rx_packets.sample(interface.rx_packets, interface.name),
                self.tx_packets.sample(interface.tx_packets, interface.name),
                self.uptime.sample(uptime, interface.name),
            ])

        logger.debug(f"Collected {len(metrics)} network metrics from {len(interfaces)} interfaces")
        return metrics
