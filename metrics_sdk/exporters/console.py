"""Exporter that writes each record to the structured log"""
from dataclasses import asdict, is_dataclass
from typing import List
from .base import ExportResult, MetricExporter
from ..models import MetricRecord
from logging_config import get_logger


logger = get_logger(__name__)


class ConsoleMetricExporter(MetricExporter):
    """Logs descriptor, labels and value of every record"""

    def __init__(self):
        self._healthy = True

    async def export(self, records: List[MetricRecord]) -> ExportResult:
        for record in records:
            point = record.aggregator.to_point()
            value = asdict(point.value) if is_dataclass(point.value) else point.value
            logger.info(
                "Metric record",
                metric_name=record.descriptor.name,
                metric_kind=record.descriptor.metric_kind.value,
                description=record.descriptor.description,
                unit=record.descriptor.unit,
                labels=dict(record.labels),
                value=value,
                timestamp=point.timestamp,
                event_type="metric_record"
            )
        return ExportResult.SUCCESS

    async def shutdown(self) -> None:
        self._healthy = False

    def is_healthy(self) -> bool:
        return self._healthy
