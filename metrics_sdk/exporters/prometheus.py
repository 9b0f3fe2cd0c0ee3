"""Prometheus text exposition of the latest checkpoint"""
import math
import re
from datetime import datetime
from typing import Dict, List
from .base import ExportResult, MetricExporter
from ..models import Distribution, MetricKind, MetricRecord
from logging_config import get_logger


logger = get_logger(__name__)

_INVALID_NAME_CHARS = re.compile(r"[^a-zA-Z0-9_:]")

_PROMETHEUS_TYPES = {
    MetricKind.COUNTER: "counter",
    MetricKind.UP_DOWN_COUNTER: "gauge",
    MetricKind.VALUE_RECORDER: "summary",
    MetricKind.VALUE_OBSERVER: "summary",
}


def sanitize_metric_name(name: str) -> str:
    """Map an instrument name onto the Prometheus name charset"""
    return _INVALID_NAME_CHARS.sub("_", name)


def _escape_label_value(value: str) -> str:
    return str(value).replace("\\", "\\\\").replace("\n", "\\n").replace('"', '\\"')


def _format_labels(labels: Dict[str, str]) -> str:
    if not labels:
        return ""
    pairs = [f'{sanitize_metric_name(k)}="{_escape_label_value(v)}"' for k, v in sorted(labels.items())]
    return "{" + ",".join(pairs) + "}"


def _format_value(value) -> str:
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "+Inf" if value > 0 else "-Inf"
    return str(value)


class PrometheusExporter(MetricExporter):
    """Renders the checkpoint handed to ``export`` for scraping"""

    def __init__(self):
        self._healthy = True
        self._content = "# No metrics available\n"

    async def export(self, records: List[MetricRecord]) -> ExportResult:
        try:
            self._content = self.render(records)
            logger.debug("Rendered Prometheus exposition", records_count=len(records),
                         event_type="prometheus_render")
            return ExportResult.SUCCESS
        except Exception as e:
            logger.error("Failed to render Prometheus metrics", error=str(e), event_type="prometheus_render_error")
            self._healthy = False
            return ExportResult.FAILED_NOT_RETRYABLE

    async def shutdown(self) -> None:
        self._healthy = False
        logger.info("Prometheus exporter shutdown")

    def is_healthy(self) -> bool:
        return self._healthy

    def get_content(self) -> str:
        """Return the most recently rendered exposition text"""
        return self._content

    def render(self, records: List[MetricRecord]) -> str:
        """Generate Prometheus exposition format output"""
        if not records:
            return "# No metrics available\n"

        lines = [f"# Generated at {datetime.now().isoformat()}"]

        for name, group in self._group_records_by_name(records).items():
            descriptor = group[0].descriptor
            lines.append(f"# HELP {name} {descriptor.description or descriptor.name}")
            lines.append(f"# TYPE {name} {_PROMETHEUS_TYPES[descriptor.metric_kind]}")

            for record in group:
                value = record.aggregator.to_point().value
                if isinstance(value, Distribution):
                    lines.extend(self._distribution_lines(name, record.labels, value))
                else:
                    lines.append(f"{name}{_format_labels(record.labels)} {_format_value(value)}")

        lines.append("")
        return "\n".join(lines)

    def _distribution_lines(self, name: str, labels: Dict[str, str], value: Distribution) -> List[str]:
        lines = []
        if value.count:
            for quantile, bound in (("0", value.min), ("1", value.max)):
                quantile_labels = dict(labels, quantile=quantile)
                lines.append(f"{name}{_format_labels(quantile_labels)} {_format_value(bound)}")
        lines.append(f"{name}_sum{_format_labels(labels)} {_format_value(value.sum)}")
        lines.append(f"{name}_count{_format_labels(labels)} {value.count}")
        return lines

    def _group_records_by_name(self, records: List[MetricRecord]) -> Dict[str, List[MetricRecord]]:
        """Group records by sanitized name, preserving order"""
        grouped = {}
        for record in records:
            grouped.setdefault(sanitize_metric_name(record.descriptor.name), []).append(record)
        return grouped
