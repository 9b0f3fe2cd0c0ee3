"""Collector exporter: JSON POST of the checkpoint over HTTP or HTTPS"""
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional
from urllib.parse import urlparse
import httpx
from .base import ExportResult, MetricExporter
from .transform import to_collector_export_metric_service_request
from ..models import MetricRecord
from logging_config import get_logger


logger = get_logger(__name__)

DEFAULT_COLLECTOR_URL = "http://localhost:55681/v1/metrics"
DEFAULT_SERVICE_NAME = "collector-metric-exporter"


@dataclass
class CollectorExporterError:
    """Failure reported to the error callback"""
    message: Optional[str] = None
    code: Optional[int] = None


class CollectorMetricExporter(MetricExporter):
    """Sends checkpoints to a collector endpoint.

    Any status below 299 counts as success. Failures never raise; they go to
    ``on_error`` and become a failed ``ExportResult``.
    """

    def __init__(self, url: str = DEFAULT_COLLECTOR_URL, headers: Optional[Dict[str, str]] = None,
                 attributes: Optional[Dict[str, str]] = None, service_name: str = DEFAULT_SERVICE_NAME,
                 on_error: Optional[Callable[[CollectorExporterError], None]] = None,
                 client: Optional[httpx.AsyncClient] = None, timeout: float = 10.0):
        scheme = urlparse(url).scheme
        if scheme not in ("http", "https"):
            raise ValueError(f"Unsupported collector URL scheme: {scheme!r}")

        self.url = url
        self.headers = dict(headers or {})
        self.attributes = dict(attributes or {})
        self.service_name = service_name
        self._on_error = on_error
        self._client = client
        self._owns_client = client is None
        self._timeout = timeout
        self._start_time = time.time_ns()
        self._healthy = True
        self._shutdown = False

    async def export(self, records: List[MetricRecord]) -> ExportResult:
        if self._shutdown:
            logger.debug("Export called after shutdown", event_type="collector_export_skipped")
            return ExportResult.FAILED_NOT_RETRYABLE

        body = to_collector_export_metric_service_request(
            records, self._start_time, self.service_name, self.attributes
        )

        try:
            response = await self._get_client().post(
                self.url,
                json=body,
                headers={"Content-Type": "application/json", **self.headers},
                timeout=self._timeout,
            )
        except httpx.HTTPError as e:
            logger.error("Collector transport error", error=str(e), endpoint=self.url,
                         event_type="collector_transport_error")
            self._healthy = False
            self._report(CollectorExporterError(message=str(e)))
            return ExportResult.FAILED_RETRYABLE

        if response.status_code < 299:
            logger.debug("Exported metrics to collector", status_code=response.status_code,
                         records_count=len(records), endpoint=self.url, event_type="collector_export")
            self._healthy = True
            return ExportResult.SUCCESS

        logger.error("Collector rejected export", status_code=response.status_code,
                     reason=response.reason_phrase, endpoint=self.url, event_type="collector_export_error")
        self._healthy = False
        self._report(CollectorExporterError(message=response.reason_phrase, code=response.status_code))
        if response.status_code < 500:
            return ExportResult.FAILED_NOT_RETRYABLE
        return ExportResult.FAILED_RETRYABLE

    async def shutdown(self) -> None:
        """Close the HTTP client"""
        self._shutdown = True
        if self._client is not None and self._owns_client:
            await self._client.aclose()
        self._client = None
        logger.info("Collector exporter shutdown", endpoint=self.url)

    def is_healthy(self) -> bool:
        return self._healthy and not self._shutdown

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient()
        return self._client

    def _report(self, error: CollectorExporterError) -> None:
        if self._on_error is None:
            return
        try:
            self._on_error(error)
        except Exception as e:
            logger.error("Collector error callback failed", error=str(e), event_type="collector_callback_error")
