"""Checkpoint exporters"""
from .base import ExportResult, ExporterFactory, MetricExporter
from .collector import CollectorExporterError, CollectorMetricExporter
from .console import ConsoleMetricExporter
from .prometheus import PrometheusExporter

__all__ = [
    'ExportResult',
    'ExporterFactory',
    'MetricExporter',
    'CollectorExporterError',
    'CollectorMetricExporter',
    'ConsoleMetricExporter',
    'PrometheusExporter',
]
