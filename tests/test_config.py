"""Tests for configuration module"""
import os
import tempfile
from pathlib import Path
from unittest.mock import patch
import pytest
from pydantic import ValidationError

from config import Config, ExportFormat


class TestConfig:
    """Test configuration validation and parsing"""

    def test_default_config(self):
        """Test default configuration values"""
        config = Config()

        assert config.collection_interval == 60
        assert config.batch_observer_timeout_ms == 500
        assert config.export_format == ExportFormat.CONSOLE
        assert config.collector_url == "http://localhost:55681/v1/metrics"
        assert config.metrics_port == 9464
        assert config.metrics_host == "0.0.0.0"
        assert config.log_level == "INFO"
        assert config.collector_headers == {}

    def test_environment_override(self):
        """Test configuration override from environment variables"""
        env_vars = {
            "COLLECTION_INTERVAL": "15",
            "BATCH_OBSERVER_TIMEOUT_MS": "250",
            "EXPORT_FORMAT": "collector",
            "COLLECTOR_URL": "https://collector.example.com/v1/metrics",
            "METRICS_PORT": "8080",
            "METRICS_HOST": "127.0.0.1",
            "LOG_LEVEL": "debug",
        }

        with patch.dict(os.environ, env_vars):
            config = Config()

            assert config.collection_interval == 15
            assert config.batch_observer_timeout_ms == 250
            assert config.batch_observer_timeout == 0.25
            assert config.export_format == ExportFormat.COLLECTOR
            assert config.collector_url == "https://collector.example.com/v1/metrics"
            assert config.metrics_port == 8080
            assert config.metrics_host == "127.0.0.1"
            assert config.log_level == "DEBUG"

    def test_validation_collection_interval(self):
        """Test validation of collection interval"""
        with patch.dict(os.environ, {"COLLECTION_INTERVAL": "0"}):
            with pytest.raises(ValidationError):
                Config()

    def test_validation_batch_observer_timeout(self):
        with patch.dict(os.environ, {"BATCH_OBSERVER_TIMEOUT_MS": "0"}):
            with pytest.raises(ValidationError):
                Config()

    def test_validation_metrics_port(self):
        """Test validation of metrics port"""
        with patch.dict(os.environ, {"METRICS_PORT": "0"}):
            with pytest.raises(ValidationError):
                Config()

        with patch.dict(os.environ, {"METRICS_PORT": "70000"}):
            with pytest.raises(ValidationError):
                Config()

    def test_validation_collector_url_scheme(self):
        """Test that only http and https collector URLs are accepted"""
        with patch.dict(os.environ, {"COLLECTOR_URL": "grpc://localhost:4317"}):
            with pytest.raises(ValidationError):
                Config()

    def test_validation_export_format(self):
        with patch.dict(os.environ, {"EXPORT_FORMAT": "statsd"}):
            with pytest.raises(ValidationError):
                Config()

    def test_collector_headers_parsing(self):
        """Test collector headers parsing"""
        headers_str = "Authorization=Bearer token123, X-Custom-Header=value456"

        with patch.dict(os.environ, {"COLLECTOR_HEADERS_STR": headers_str}):
            config = Config()

            assert config.collector_headers == {
                "Authorization": "Bearer token123",
                "X-Custom-Header": "value456"
            }

    def test_collector_attributes_parsing(self):
        """Entries without '=' are ignored"""
        with patch.dict(os.environ, {"COLLECTOR_ATTRIBUTES_STR": "env=prod,broken,region=eu"}):
            config = Config()

            assert config.collector_attributes == {"env": "prod", "region": "eu"}

    def test_get_resource_attributes(self):
        """Test resource attributes"""
        with patch.dict(os.environ, {"SERVICE_NAME": "checkout", "INSTANCE_ID": "node-7"}):
            config = Config()
            attrs = config.get_resource_attributes()

            assert attrs == {
                "service.name": "checkout",
                "service.version": "1.0.0",
                "service.instance.id": "node-7",
            }

    def test_resource_instance_id_defaults_to_hostname(self):
        config = Config()

        with patch("socket.gethostname", return_value="test-host"):
            attrs = config.get_resource_attributes()

        assert attrs["service.instance.id"] == "test-host"

    def test_directory_creation(self):
        """Test that parent directories are created for file paths"""
        with tempfile.TemporaryDirectory() as tmp_dir:
            log_file = Path(tmp_dir) / "subdir" / "test.log"

            with patch.dict(os.environ, {"LOG_FILE": str(log_file)}):
                config = Config()

                assert config.log_file == log_file
                assert config.log_file.parent.exists()
