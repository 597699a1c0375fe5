"""Network latency collector"""
import time
from typing import List, Optional, Sequence
from .base import BaseCollector
from metrics.models import MetricDescriptor, MetricSample, MetricShapeError, MetricType
from probe.dispatcher import ProbeDispatcher
from probe.models import ProbeSettings, ProbeTarget
from logging_config import get_logger, log_probe_cycle

logger = get_logger(__name__)

LABELS = ("target", "ip", "ip_type")


class PingCollector(BaseCollector):
    """Probe configured targets on every scrape and export latency and loss"""

    collector_name = "ping"

    def __init__(self, config=None,
                 targets: Optional[Sequence[ProbeTarget]] = None,
                 dispatcher: Optional[ProbeDispatcher] = None):
        super().__init__(config, self.collector_name, "ICMP latency and packet loss per target")

        if targets is None:
            targets = config.probe_targets if config is not None else []
        # a target listed twice would export duplicate series
        self.targets = tuple(dict.fromkeys(targets))

        if dispatcher is None:
            settings = config.probe_settings() if config is not None else ProbeSettings()
            dispatcher = ProbeDispatcher(settings)
        self.dispatcher = dispatcher

        self.latency = MetricDescriptor(
            "openwrt_ping_latency_ms",
            "ping latency in milliseconds",
            LABELS, MetricType.GAUGE,
        )
        self.packet_loss = MetricDescriptor(
            "openwrt_ping_packet_loss_percent",
            "ping packet loss percentage",
            LABELS, MetricType.GAUGE,
        )
        self.min_latency = MetricDescriptor(
            "openwrt_ping_min_latency_ms",
            "minimum ping latency in milliseconds",
            LABELS, MetricType.GAUGE,
        )
        self.max_latency = MetricDescriptor(
            "openwrt_ping_max_latency_ms",
            "maximum ping latency in milliseconds",
            LABELS, MetricType.GAUGE,
        )
        self.avg_latency = MetricDescriptor(
            "openwrt_ping_avg_latency_ms",
            "average ping latency in milliseconds",
            LABELS, MetricType.GAUGE,
        )

    def describe(self) -> List[MetricDescriptor]:
        return [self.latency, self.packet_loss, self.min_latency, self.max_latency, self.avg_latency]

    def collect(self) -> List[MetricSample]:
        """Probe all targets; failed targets are logged and produce no samples"""
        metrics = []
        if not self.targets:
            return metrics

        start_time = time.time()
        errors = 0
        try:
            for result in self.dispatcher.dispatch(self.targets):
                if not result.ok:
                    errors += 1
                    logger.warning(
                        "Error probing target",
                        target=result.target.host,
                        ip_type=result.target.family.value,
                        error=result.error,
                        event_type="probe_error",
                    )
                    continue

                labels = (result.target.host, result.address, result.target.family.value)
                metrics.extend([
                    self.latency.sample(result.avg_ms, *labels),
                    self.avg_latency.sample(result.avg_ms, *labels),
                    self.min_latency.sample(result.min_ms, *labels),
                    self.max_latency.sample(result.max_ms, *labels),
                    self.packet_loss.sample(result.packet_loss, *labels),
                ])
        except MetricShapeError:
            raise
        except Exception as e:
            logger.error("Probe dispatch failed", error=str(e), event_type="probe_error", exc_info=True)

        log_probe_cycle(logger, len(self.targets), errors, time.time() - start_time)
        return metrics
