"""Interface IP address collector"""
from typing import List
from .base import BaseCollector
from metrics.models import MetricDescriptor, MetricSample, MetricType
from utils.network import list_interface_addresses
from logging_config import get_logger

logger = get_logger(__name__)


class InterfaceIPCollector(BaseCollector):
    """Collect the addresses assigned to interfaces that are up"""

    collector_name = "interface_ip"

    def __init__(self, config=None):
        super().__init__(config, self.collector_name, "IP addresses of network interfaces")
        self.ip_info = MetricDescriptor(
            "openwrt_interface_ip_info",
            "ip address information for network interfaces",
            ("interface", "ip", "version", "family"), MetricType.GAUGE,
        )

    def describe(self) -> List[MetricDescriptor]:
        return [self.ip_info]

    def collect(self) -> List[MetricSample]:
        metrics = []

        try:
            addresses = list_interface_addresses()
        except Exception as e:
            logger.warning("Interface addresses unavailable", error=str(e), event_type="source_unavailable")
            return metrics

        seen = set()
        for address in addresses:
            labels = (address.interface, address.ip, address.version, address.scope)
            if labels in seen:
                continue
            seen.add(labels)
            metrics.append(self.ip_info.sample(1, *labels))

        return metrics
