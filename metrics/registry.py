"""Metrics registry for managing collectors and orchestrating scrapes"""
import importlib
import pkgutil
from typing import Dict, List, Optional, Tuple, Type
from .models import MetricDescriptor, MetricSample, MetricShapeError
from collectors.base import BaseCollector
from logging_config import get_logger


logger = get_logger(__name__)


def discover_collector_classes() -> Dict[str, Type[BaseCollector]]:
    """Find collector classes in the collectors package, keyed by collector name"""
    import collectors

    classes: Dict[str, Type[BaseCollector]] = {}
    for _, modname, _ in pkgutil.iter_modules(collectors.__path__, collectors.__name__ + "."):
        if modname.endswith('.base'):
            continue

        try:
            module = importlib.import_module(modname)
        except Exception as e:
            logger.error(f"Failed to load collector module {modname}: {e}")
            continue

        for attr_name in dir(module):
            attr = getattr(module, attr_name)
            if (isinstance(attr, type) and
                    issubclass(attr, BaseCollector) and
                    attr is not BaseCollector and
                    attr.__module__ == module.__name__):
                if attr.collector_name:
                    classes[attr.collector_name] = attr

    return classes


class MetricsRegistry:
    """Fixed, ordered set of collectors built once at startup"""

    def __init__(self, config=None, collectors: Optional[List[BaseCollector]] = None):
        self.config = config
        self.collectors: Dict[str, BaseCollector] = {}
        self._frozen = False

        if collectors is None:
            self.register_enabled_collectors()
        else:
            for collector in collectors:
                self.register_collector(collector)

    def register_enabled_collectors(self):
        """Instantiate the collectors named in the configuration, in that order"""
        available = discover_collector_classes()
        names = self.config.enabled_collectors if self.config is not None else list(available)

        for name in names:
            collector_class = available.get(name)
            if collector_class is None:
                logger.warning(f"Unknown collector '{name}' in configuration, skipping")
                continue
            try:
                self.register_collector(collector_class(self.config))
            except Exception as e:
                logger.error(f"Failed to create collector {name}: {e}", exc_info=True)

    def register_collector(self, collector: BaseCollector):
        """Register a new collector"""
        if self._frozen:
            raise RuntimeError("Registry is frozen; collectors are registered at startup only")
        if not isinstance(collector, BaseCollector):
            raise ValueError("Collector must inherit from BaseCollector")
        if collector.name in self.collectors:
            raise ValueError(f"Collector {collector.name} is already registered")

        self.collectors[collector.name] = collector
        logger.info(f"Registered collector: {collector.name}")

    def freeze(self):
        """Refuse further registrations"""
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def get_collector(self, name: str) -> Optional[BaseCollector]:
        """Get collector by name"""
        return self.collectors.get(name)

    def list_collectors(self) -> List[str]:
        """List all registered collector names"""
        return list(self.collectors.keys())

    def describe_all(self) -> List[MetricDescriptor]:
        """Descriptors of every collector in registration order"""
        descriptors = []
        for name, collector in self.collectors.items():
            try:
                descriptors.extend(collector.describe())
            except Exception as e:
                logger.error("Collector describe failed", collector=name, error=str(e), event_type="describe_error", exc_info=True)
        return descriptors

    def collect_all(self) -> Tuple[List[MetricSample], List[str]]:
        """Collect samples from all collectors in registration order.

        Returns the samples together with the names of collectors that failed.
        """
        all_metrics = []
        failed = []

        for name, collector in self.collectors.items():
            try:
                logger.debug("Collecting metrics", collector=name, event_type="collection_start")
                metrics = collector.collect()
                all_metrics.extend(metrics)
                logger.debug("Collected metrics", collector=name, metrics_count=len(metrics), event_type="collection_complete")

            except MetricShapeError:
                raise
            except Exception as e:
                logger.error("Collector failed", collector=name, error=str(e), event_type="collection_error", exc_info=True)
                failed.append(name)

        return all_metrics, failed

    def get_collector_status(self) -> Dict[str, Dict]:
        """Get status information for all collectors"""
        status = {}

        for name, collector in self.collectors.items():
            status[name] = {
                "class": collector.__class__.__name__,
                "help": collector.help_text,
                "metric_families": [d.name for d in collector.describe()],
            }

        return status
