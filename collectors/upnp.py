"""UPnP port mapping collector"""
from typing import List
from .base import BaseCollector
from metrics.models import MetricDescriptor, MetricSample, MetricType
from utils.devices import SourceUnavailable
from utils.upnp import UPNP_LEASE_PATHS, read_upnp_leases
from logging_config import get_logger

logger = get_logger(__name__)

LABELS = ("protocol", "external_port", "internal_ip", "internal_port", "description")


class UPnPCollector(BaseCollector):
    """Collect active miniupnpd port mappings"""

    collector_name = "upnp"

    def __init__(self, config=None, lease_paths=UPNP_LEASE_PATHS):
        super().__init__(config, self.collector_name, "UPnP port mappings")
        self.lease_paths = tuple(lease_paths)

        self.mapping_info = MetricDescriptor(
            "openwrt_upnp_mapping_info",
            "information about UPnP port mappings",
            LABELS, MetricType.GAUGE,
        )
        self.lease_seconds = MetricDescriptor(
            "openwrt_upnp_mapping_lease_seconds",
            "UPnP port mapping lease duration in seconds (0 means permanent)",
            LABELS, MetricType.GAUGE,
        )
        self.mapping_count = MetricDescriptor(
            "openwrt_upnp_mapping_count",
            "total number of active UPnP port mappings",
            (), MetricType.GAUGE,
        )

    def describe(self) -> List[MetricDescriptor]:
        return [self.mapping_info, self.lease_seconds, self.mapping_count]

    def collect(self) -> List[MetricSample]:
        """Collect UPnP metrics"""
        metrics = []

        try:
            mappings = read_upnp_leases(self.lease_paths)
        except (SourceUnavailable, OSError) as e:
            logger.warning("UPnP leases unavailable", error=str(e), event_type="source_unavailable")
            return metrics

        metrics.append(self.mapping_count.sample(len(mappings)))

        seen = set()
        for mapping in mappings:
            labels = (
                mapping.protocol,
                mapping.external_port,
                mapping.internal_ip,
                mapping.internal_port,
                mapping.description,
            )
            # the same mapping listed twice would break the exposition
            if labels in seen:
                logger.debug("Skipping duplicate UPnP mapping", labels=labels)
                continue
            seen.add(labels)

            metrics.append(self.mapping_info.sample(1, *labels))
            metrics.append(self.lease_seconds.sample(mapping.lease_seconds, *labels))

        return metrics
