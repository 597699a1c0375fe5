"""Base collector class and interfaces"""
from abc import ABC, abstractmethod
from typing import List
from metrics.models import MetricDescriptor, MetricSample


class BaseCollector(ABC):
    """Snapshot source: a fixed set of metric families and a best-effort collect.

    ``describe`` must be pure and return the same descriptors on every call.
    ``collect`` must never raise for partial or total failure; it logs and
    returns whatever samples it could build, possibly none.
    """

    collector_name = ""

    def __init__(self, config=None, name: str = "", help_text: str = ""):
        self.config = config
        self._name = name
        self._help_text = help_text

    @abstractmethod
    def describe(self) -> List[MetricDescriptor]:
        """Static metric metadata for this source"""

    @abstractmethod
    def collect(self) -> List[MetricSample]:
        """Collect current samples"""

    @property
    def name(self) -> str:
        """Collector name for identification"""
        return self._name

    @property
    def help_text(self) -> str:
        """Help text describing what this collector does"""
        return self._help_text or f"{self.name} metrics collector"
