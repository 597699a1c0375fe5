"""Prometheus text format exporter"""
from typing import Dict, List, Sequence
from ..models import MetricDescriptor, MetricSample


CONTENT_TYPE = "text/plain; version=0.0.4; charset=utf-8"


class ExpositionError(ValueError):
    """The scrape produced samples that cannot be exposed"""


class PrometheusExporter:
    """Render described metric families and their samples as exposition text"""

    def export_metrics(self, descriptors: Sequence[MetricDescriptor], samples: Sequence[MetricSample]) -> str:
        """Convert one scrape to Prometheus text format.

        Families are written in describe order; families without samples are
        omitted. Samples of an undescribed family or duplicated label sets
        raise ExpositionError.
        """
        families: Dict[str, List[MetricSample]] = {}
        known: Dict[str, MetricDescriptor] = {}
        for descriptor in descriptors:
            existing = known.get(descriptor.name)
            if existing is not None and existing != descriptor:
                raise ExpositionError(f"conflicting descriptors for {descriptor.name}")
            known[descriptor.name] = descriptor
            families.setdefault(descriptor.name, [])

        seen = set()
        for sample in samples:
            descriptor = known.get(sample.name)
            if descriptor is None:
                raise ExpositionError(f"sample for undescribed metric {sample.name}")
            if descriptor != sample.descriptor:
                raise ExpositionError(f"sample for {sample.name} does not match its descriptor")
            key = (sample.name, sample.label_values)
            if key in seen:
                raise ExpositionError(f"duplicate sample {sample.name}{dict(sample.labels)}")
            seen.add(key)
            families[sample.name].append(sample)

        lines = []
        for name, family in families.items():
            if not family:
                continue
            descriptor = known[name]
            lines.append(f"# HELP {name} {escape_help(descriptor.help_text)}")
            lines.append(f"# TYPE {name} {descriptor.metric_type.value}")
            for sample in family:
                lines.append(sample.to_prometheus_line())

        if not lines:
            return ""
        return "\n".join(lines) + "\n"


def escape_help(text: str) -> str:
    return text.replace("\\", "\\\\").replace("\n", "\\n")
