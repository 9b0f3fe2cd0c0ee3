"""Tests for FastAPI server module"""
from unittest.mock import patch, AsyncMock
from fastapi.testclient import TestClient

from app.server import MetricsServer
from config import Config, ExportFormat
from metrics_sdk import MeterProvider
from metrics_sdk.exporters import ConsoleMetricExporter, ExportResult, PrometheusExporter


class TestMetricsServer:
    """Test FastAPI server functionality"""

    def setup_method(self):
        """Setup test fixtures"""
        self.config = Config(service_name="test-service", enable_request_logging=False)
        self.server = MetricsServer(self.config)
        self.client = TestClient(self.server.get_app())

    def test_default_exporter(self):
        assert isinstance(self.server.exporter, ConsoleMetricExporter)
        assert self.server.controller.interval == self.config.collection_interval
        assert self.server.provider.resource.attributes["service.name"] == "test-service"

    def test_health_endpoint_healthy(self):
        """Test health endpoint when service is healthy"""
        self.server.controller.last_collection_time = 1234567890
        self.server.controller.collection_count = 10

        with patch('time.time', return_value=1234567890 + 10):
            response = self.client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["total_collections"] == 10
        assert data["collection_errors"] == 0
        assert data["export_format"] == "console"

    def test_health_endpoint_unhealthy(self):
        """Test health endpoint when the last collection is too old"""
        self.server.controller.last_collection_time = 1234567890

        with patch('time.time', return_value=1234567890 + self.config.collection_interval * 3):
            response = self.client.get("/health")

        assert response.status_code == 503
        assert response.json()["detail"]["status"] == "unhealthy"

    def test_health_without_exporter(self):
        server = MetricsServer(self.config, provider=MeterProvider())
        client = TestClient(server.get_app())

        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "export_enabled": False}

    def test_metrics_endpoint_non_prometheus(self):
        response = self.client.get("/metrics")

        assert response.status_code == 200
        assert "only available for Prometheus" in response.text

    def test_metrics_endpoint_prometheus(self):
        """Exposition reflects the last checkpoint, including the server's own instruments"""
        config = Config(export_format=ExportFormat.PROMETHEUS, enable_request_logging=False)
        server = MetricsServer(config)
        client = TestClient(server.get_app())

        assert isinstance(server.exporter, PrometheusExporter)
        client.get("/status")
        client.post("/collect")
        response = client.get("/metrics")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert 'http_server_requests{method="GET",route="/status",status_code="200"} 1' in response.text
        assert "# TYPE process_uptime summary" in response.text

    def test_request_counter(self):
        self.client.get("/status")
        self.client.get("/status")

        bound = self.server.request_counter.bind({"method": "GET", "route": "/status", "status_code": "200"})
        assert bound.aggregator.to_point().value == 2

    def test_unknown_paths_share_one_series(self):
        """Label sets are bounded by routes, not by requested URLs"""
        for i in range(50):
            assert self.client.get(f"/nope/{i}").status_code == 404

        records = self.server.request_counter.get_metric_records()

        assert len(records) == 1
        assert records[0].labels == {"method": "GET", "route": "unmatched", "status_code": "404"}
        assert records[0].aggregator.to_point().value == 50
        assert len(self.server.request_duration.get_metric_records()) == 1

    def test_status_endpoint(self):
        """Test status endpoint"""
        self.server.controller.collection_count = 10
        self.server.controller.collection_errors = 2

        with patch('os.uname') as mock_uname:
            mock_uname.return_value.nodename = "test-host"
            response = self.client.get("/status")

        assert response.status_code == 200
        data = response.json()
        assert data["service"]["name"] == "test-service"
        assert data["service"]["hostname"] == "test-host"
        assert data["collection"]["total_collections"] == 10
        assert data["collection"]["collection_errors"] == 2
        assert data["collection"]["success_rate"] == 80.0
        assert data["exporter"]["type"] == "ConsoleMetricExporter"
        meter, = data["meters"]
        assert meter["name"] == "app.server"
        assert set(meter["instruments"]) == {"http.server.requests", "http.server.duration", "process.uptime"}

    def test_manual_collect_success(self):
        """Test manual collection endpoint success"""
        response = self.client.post("/collect")

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["export_result"] == "success"
        assert data["collection_count"] == 1

    def test_manual_collect_failure(self):
        with patch.object(self.server.controller, 'collect_and_export',
                          new_callable=AsyncMock, side_effect=RuntimeError("boom")):
            response = self.client.post("/collect")

        assert response.status_code == 500
        assert response.json()["detail"]["error"] == "boom"

    def test_manual_collect_reports_export_result(self):
        with patch.object(self.server.exporter, 'export', new_callable=AsyncMock,
                          return_value=ExportResult.FAILED_RETRYABLE):
            response = self.client.post("/collect")

        assert response.json()["export_result"] == "failed_retryable"
        assert self.server.controller.collection_errors == 1

    def test_manual_collect_without_exporter(self):
        server = MetricsServer(self.config, provider=MeterProvider())
        client = TestClient(server.get_app())

        assert client.post("/collect").status_code == 409

    def test_lifespan_starts_and_flushes(self):
        with patch.object(self.server.exporter, 'export', new_callable=AsyncMock,
                          return_value=ExportResult.SUCCESS) as mock_export:
            with TestClient(self.server.get_app()) as client:
                assert self.server.controller.running is True
                client.get("/status")

            mock_export.assert_awaited_once()
            assert self.server.controller.running is False
