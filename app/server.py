"""FastAPI server setup and routes"""
import os
import time
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI, Response, HTTPException
from config import Config
from metrics_sdk import MeterProvider, Resource, ValueType
from metrics_sdk.exporters import ExporterFactory, MetricExporter, PrometheusExporter
from metrics_sdk.observer_result import ObserverResult
from app.middleware import RequestMetricsMiddleware
from logging_config import get_logger, log_error


logger = get_logger(__name__)

SERVER_METER_NAME = "app.server"


class MetricsServer:
    """FastAPI server exposing the SDK's collection state and exposition endpoint"""

    def __init__(self, config: Config, provider: Optional[MeterProvider] = None,
                 exporter: Optional[MetricExporter] = None):
        self.config = config
        self.app = FastAPI(
            title="Metrics SDK Exporter",
            version=config.service_version,
            docs_url=None,
            redoc_url=None,
            openapi_url=None,
            lifespan=self._lifespan
        )
        self.start_time = time.time()

        if provider is None:
            exporter = exporter or ExporterFactory.create_exporter(config)
            provider = MeterProvider(
                resource=Resource(config.get_resource_attributes()),
                config=config,
                exporter=exporter,
            )
        self.provider = provider
        self.controller = provider.controller
        self.exporter = self.controller.exporter if self.controller else exporter

        self._setup_instruments()
        self._setup_middleware()
        self._setup_routes()

    def _setup_instruments(self):
        """Instrument the server itself"""
        self.meter = self.provider.get_meter(SERVER_METER_NAME, self.config.service_version)
        self.request_counter = self.meter.create_counter(
            "http.server.requests",
            description="Number of HTTP requests served",
            value_type=ValueType.INT,
        )
        self.request_duration = self.meter.create_value_recorder(
            "http.server.duration",
            description="HTTP request duration",
            unit="ms",
        )
        self.meter.create_value_observer(
            "process.uptime",
            callback=self._observe_uptime,
            description="Seconds since the server started",
            unit="s",
        )

    def _observe_uptime(self, result: ObserverResult):
        result.observe(time.time() - self.start_time, {"service": self.config.service_name})

    def _setup_middleware(self):
        self.app.add_middleware(
            RequestMetricsMiddleware,
            request_counter=self.request_counter,
            request_duration=self.request_duration,
            log_requests=self.config.enable_request_logging,
        )

    def _setup_routes(self):
        """Setup FastAPI routes"""

        @self.app.get('/metrics', response_class=Response)
        def get_metrics():
            """Serve the last checkpoint in Prometheus format (only available for Prometheus export)"""
            if isinstance(self.exporter, PrometheusExporter):
                return Response(self.exporter.get_content(), media_type='text/plain')
            return Response("# Metrics endpoint only available for Prometheus export format\n",
                            media_type='text/plain')

        @self.app.get('/health')
        def health_check():
            """Health check endpoint"""
            if self.controller is None:
                return {"status": "healthy", "export_enabled": False}

            age = self._last_collection_age()
            is_healthy = age < self.controller.interval * 2

            health_data = {
                "status": "healthy" if is_healthy else "unhealthy",
                "last_collection_seconds_ago": round(age, 1) if age != float('inf') else None,
                "collection_interval": self.controller.interval,
                "total_collections": self.controller.collection_count,
                "collection_errors": self.controller.collection_errors,
                "export_format": self.config.export_format.value,
                "exporter_healthy": self.exporter.is_healthy()
            }

            if not is_healthy:
                raise HTTPException(status_code=503, detail=health_data)

            return health_data

        @self.app.get('/status')
        def get_status():
            """Detailed status information"""
            status = {
                "service": {
                    "name": self.config.service_name,
                    "version": self.config.service_version,
                    "uptime_seconds": round(time.time() - self.start_time, 1),
                    "hostname": os.uname().nodename
                },
                "meters": [
                    {
                        "name": meter.instrumentation_scope.name,
                        "version": meter.instrumentation_scope.version,
                        "instruments": [metric.name for metric in meter.metrics],
                    }
                    for meter in self.provider.meters
                ],
                "resource": dict(self.provider.resource.attributes),
            }

            if self.controller is not None:
                age = self._last_collection_age()
                count = self.controller.collection_count
                errors = self.controller.collection_errors
                status["collection"] = {
                    "interval_seconds": self.controller.interval,
                    "last_collection_seconds_ago": round(age, 1) if age != float('inf') else None,
                    "total_collections": count,
                    "collection_errors": errors,
                    "success_rate": round((count - errors) / max(count, 1) * 100, 1),
                    "last_result": self.controller.last_result.value if self.controller.last_result else None
                }
                status["exporter"] = {
                    "format": self.config.export_format.value,
                    "type": type(self.exporter).__name__,
                    "healthy": self.exporter.is_healthy(),
                }

            return status

        @self.app.post('/collect')
        async def manual_collect():
            """Manually trigger a collect-and-export cycle"""
            if self.controller is None:
                raise HTTPException(status_code=409, detail={"error": "No exporter configured"})
            try:
                result = await self.controller.collect_and_export()
                return {
                    "success": True,
                    "message": "Metrics collection triggered",
                    "export_result": result.value,
                    "collection_count": self.controller.collection_count
                }
            except Exception as e:
                log_error(logger, e, {"component": "manual_collection", "endpoint": "/collect"})
                raise HTTPException(status_code=500, detail={"error": str(e)})

    @asynccontextmanager
    async def _lifespan(self, app: FastAPI):
        """Start periodic export with the app; flush the final checkpoint on exit"""
        logger.info(
            "Application startup initiated",
            service_name=self.config.service_name,
            service_version=self.config.service_version,
            export_format=self.config.export_format.value,
            event_type="server_startup"
        )
        await self.provider.start()
        try:
            yield
        finally:
            logger.info("Shutting down metrics server", event_type="server_shutdown")
            await self.provider.shutdown()

    def _last_collection_age(self) -> float:
        last = self.controller.last_collection_time
        return time.time() - last if last > 0 else float('inf')

    def get_app(self) -> FastAPI:
        """Get the FastAPI application"""
        return self.app
