"""Configuration for the metrics SDK and its exporter service"""
import socket
from enum import Enum
from pathlib import Path
from typing import Dict, Optional, Literal
from urllib.parse import urlparse
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ExportFormat(Enum):
    """Where checkpointed records are sent"""
    CONSOLE = "console"
    COLLECTOR = "collector"
    PROMETHEUS = "prometheus"


def _parse_pairs(raw: str) -> Dict[str, str]:
    pairs = {}
    if raw:
        for item in raw.split(','):
            if '=' in item:
                key, value = item.split('=', 1)
                pairs[key.strip()] = value.strip()
    return pairs


class Config(BaseSettings):
    """Environment-driven settings with Pydantic validation"""

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=False)

    # Collection settings
    collection_interval: int = Field(default=60, ge=1, description="Push interval in seconds")
    batch_observer_timeout_ms: int = Field(default=500, ge=1, description="Default batch observer timeout in milliseconds")

    # Export settings
    export_format: ExportFormat = Field(default=ExportFormat.CONSOLE, description="Export format")
    collector_url: str = Field(default="http://localhost:55681/v1/metrics", description="Collector endpoint URL")
    collector_headers_str: str = Field(default="", description="Extra collector headers (k=v,comma-separated)")
    collector_attributes_str: str = Field(default="", description="Extra resource attributes (k=v,comma-separated)")

    # Service identification
    service_name: str = Field(default="metrics-sdk", description="Service name")
    service_version: str = Field(default="1.0.0", description="Service version")
    instance_id: str = Field(default="", description="Override instance ID")

    # Server settings
    metrics_port: int = Field(default=9464, ge=1, le=65535, description="HTTP server port")
    metrics_host: str = Field(default="0.0.0.0", description="HTTP server host")
    enable_request_logging: bool = Field(default=True, description="Enable HTTP request logging")

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(default="INFO", description="Log level")
    log_file: Optional[Path] = Field(default=None, description="Optional log file")

    @field_validator('collector_url')
    @classmethod
    def validate_collector_url(cls, v):
        scheme = urlparse(v).scheme
        if scheme not in ("http", "https"):
            raise ValueError("COLLECTOR_URL must use http or https")
        return v

    @field_validator('log_level', mode='before')
    @classmethod
    def normalize_log_level(cls, v):
        if isinstance(v, str):
            return v.upper()
        return v

    @field_validator('log_file')
    @classmethod
    def ensure_log_directory(cls, v):
        if isinstance(v, Path):
            v.parent.mkdir(parents=True, exist_ok=True)
        return v

    @property
    def collector_headers(self) -> Dict[str, str]:
        """Get collector headers as a dict"""
        return _parse_pairs(self.collector_headers_str)

    @property
    def collector_attributes(self) -> Dict[str, str]:
        """Get extra resource attributes as a dict"""
        return _parse_pairs(self.collector_attributes_str)

    @property
    def batch_observer_timeout(self) -> float:
        """Batch observer timeout in seconds"""
        return self.batch_observer_timeout_ms / 1000

    def get_resource_attributes(self) -> Dict[str, str]:
        """Get resource attributes describing this service"""
        return {
            "service.name": self.service_name,
            "service.version": self.service_version,
            "service.instance.id": self.instance_id or socket.gethostname(),
        }
