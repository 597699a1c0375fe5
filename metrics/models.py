"""Metric data models"""
from dataclasses import dataclass
from typing import Sequence, Tuple
from enum import Enum


class MetricShapeError(ValueError):
    """A sample does not fit its descriptor; fatal to the scrape that built it"""


class MetricType(Enum):
    """Prometheus metric types"""
    COUNTER = "counter"
    GAUGE = "gauge"


@dataclass(frozen=True)
class MetricDescriptor:
    """Identifies a metric family across scrapes"""
    name: str
    help_text: str
    label_names: Tuple[str, ...] = ()
    metric_type: MetricType = MetricType.GAUGE

    def __post_init__(self):
        # Accept any sequence but store a tuple so descriptors stay hashable
        object.__setattr__(self, "label_names", tuple(self.label_names))

    def sample(self, value: float, *label_values: str) -> "MetricSample":
        """Create a sample of this family"""
        return MetricSample(self, label_values, value)


@dataclass
class MetricSample:
    """A single value of a metric family, created fresh on every scrape"""
    descriptor: MetricDescriptor
    label_values: Sequence[str]
    value: float

    def __post_init__(self):
        self.label_values = tuple("" if v is None else str(v) for v in self.label_values)
        self.value = float(self.value)
        if len(self.label_values) != len(self.descriptor.label_names):
            raise MetricShapeError(
                f"{self.descriptor.name}: expected {len(self.descriptor.label_names)} label values "
                f"{self.descriptor.label_names}, got {len(self.label_values)}"
            )

    @property
    def name(self) -> str:
        return self.descriptor.name

    @property
    def labels(self) -> dict:
        return dict(zip(self.descriptor.label_names, self.label_values))

    def to_prometheus_line(self) -> str:
        """Convert to Prometheus exposition format"""
        labels_str = ""
        if self.label_values:
            label_pairs = [
                f'{k}="{escape_label_value(v)}"'
                for k, v in zip(self.descriptor.label_names, self.label_values)
            ]
            labels_str = "{" + ",".join(label_pairs) + "}"

        return f"{self.name}{labels_str} {format_value(self.value)}"


def escape_label_value(value: str) -> str:
    return value.replace("\\", "\\\\").replace("\n", "\\n").replace('"', '\\"')


def format_value(value: float) -> str:
    """Render a float the way Prometheus clients do"""
    if value != value:
        return "NaN"
    if value in (float("inf"), float("-inf")):
        return "+Inf" if value > 0 else "-Inf"
    if value == int(value) and abs(value) < 1e15:
        return f"{int(value)}"
    return repr(value)
