"""Base exporter interface and factory"""
import abc
from enum import Enum
from typing import List
from config import Config, ExportFormat
from ..models import MetricRecord


class ExportResult(Enum):
    """Outcome of one export call"""
    SUCCESS = "success"
    FAILED_NOT_RETRYABLE = "failed_not_retryable"
    FAILED_RETRYABLE = "failed_retryable"


class MetricExporter(abc.ABC):
    """Abstract base class for checkpoint exporters"""

    @abc.abstractmethod
    async def export(self, records: List[MetricRecord]) -> ExportResult:
        """Export the records of one checkpoint"""
        pass

    async def shutdown(self) -> None:
        """Release exporter resources"""
        pass

    @abc.abstractmethod
    def is_healthy(self) -> bool:
        """Check if exporter is healthy"""
        pass


class ExporterFactory:
    """Factory for creating exporters based on configuration"""

    @staticmethod
    def create_exporter(config: Config) -> MetricExporter:
        """Create an exporter based on the configured export format"""
        if config.export_format == ExportFormat.CONSOLE:
            from .console import ConsoleMetricExporter
            return ConsoleMetricExporter()
        elif config.export_format == ExportFormat.PROMETHEUS:
            from .prometheus import PrometheusExporter
            return PrometheusExporter()
        elif config.export_format == ExportFormat.COLLECTOR:
            from .collector import CollectorMetricExporter
            return CollectorMetricExporter(
                url=config.collector_url,
                headers=config.collector_headers,
                attributes=config.collector_attributes,
                service_name=config.service_name,
            )
        else:
            raise ValueError(f"Unsupported export format: {config.export_format}")
