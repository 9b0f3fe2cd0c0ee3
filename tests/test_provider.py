"""Tests for the meter provider, plugins and push controller"""
import asyncio
from unittest.mock import AsyncMock, Mock
import pytest

from config import Config
from metrics_sdk.controller import PushController
from metrics_sdk.exporters.base import ExportResult, MetricExporter
from metrics_sdk.models import SDK_INFO, Resource
from metrics_sdk.plugin import BaseMetricPlugin
from metrics_sdk.provider import MeterProvider


class RecordingExporter(MetricExporter):
    """Exporter keeping every checkpoint it receives"""

    def __init__(self, result=ExportResult.SUCCESS):
        self.result = result
        self.exports = []
        self.shutdown_called = False

    async def export(self, records):
        self.exports.append(list(records))
        return self.result

    async def shutdown(self):
        self.shutdown_called = True

    def is_healthy(self):
        return not self.shutdown_called


class CountingPlugin(BaseMetricPlugin):
    """Plugin that registers one counter on its meter"""

    def __init__(self):
        super().__init__("plugin.module", "0.1")
        self.unpatched = False

    def patch(self):
        self.counter = self._meter.create_counter("plugin.calls")
        return self._module_exports

    def unpatch(self):
        self.unpatched = True


class TestMeterProvider:
    """Test meter lookup and resource handling"""

    def setup_method(self):
        self.provider = MeterProvider(Resource({"service.name": "test"}))

    def test_get_meter_is_cached(self):
        first = self.provider.get_meter("module", "1.0")

        assert self.provider.get_meter("module", "1.0") is first
        assert self.provider.get_meter("module", "2.0") is not first
        assert self.provider.get_meter("other") is not first

    def test_meter_scope(self):
        meter = self.provider.get_meter("module", "1.0")

        assert meter.instrumentation_scope.name == "module"
        assert meter.instrumentation_scope.version == "1.0"

    def test_resource_merges_sdk_info(self):
        attributes = self.provider.resource.attributes

        assert attributes["service.name"] == "test"
        assert attributes["telemetry.sdk.language"] == SDK_INFO["telemetry.sdk.language"]
        assert self.provider.get_meter("module").resource == self.provider.resource

    def test_user_resource_wins_on_collision(self):
        provider = MeterProvider(Resource({"telemetry.sdk.name": "custom"}))

        assert provider.resource.attributes["telemetry.sdk.name"] == "custom"

    def test_config_sets_batch_observer_timeout(self):
        config = Config(batch_observer_timeout_ms=42)
        provider = MeterProvider(config=config)

        batch = provider.get_meter("module").create_batch_observer("batch", lambda result: None)

        assert batch.max_timeout_update_ms == 42

    def test_no_controller_without_exporter(self):
        assert self.provider.controller is None

    @pytest.mark.asyncio
    async def test_collect_combines_meters(self):
        self.provider.get_meter("a").create_counter("a.requests").add(1)
        self.provider.get_meter("b").create_counter("b.requests").add(2)

        records = await self.provider.collect()

        assert sorted(r.descriptor.name for r in records) == ["a.requests", "b.requests"]

    @pytest.mark.asyncio
    async def test_plugins_enabled_and_disabled(self):
        plugin = CountingPlugin()
        provider = MeterProvider(plugins=[plugin])

        plugin.counter.add(3)
        records = await provider.collect()
        await provider.shutdown()

        assert [r.descriptor.name for r in records] == ["plugin.calls"]
        assert records[0].instrumentation_scope.name == "plugin.module"
        assert plugin.unpatched is True

    @pytest.mark.asyncio
    async def test_shutdown_flushes_final_checkpoint(self):
        exporter = RecordingExporter()
        provider = MeterProvider(exporter=exporter, interval=3600)
        provider.get_meter("module").create_counter("requests").add(5)

        await provider.start()
        await provider.shutdown()
        await provider.shutdown()

        assert len(exporter.exports) == 1
        assert exporter.exports[0][0].aggregator.to_point().value == 5
        assert exporter.shutdown_called is True


class TestPushController:
    """Test the periodic collect-and-export loop"""

    def setup_method(self):
        self.exporter = RecordingExporter()
        self.provider = MeterProvider(exporter=self.exporter, interval=0.01)
        self.controller = self.provider.controller
        self.provider.get_meter("module").create_counter("requests").add(1)

    def test_controller_created(self):
        assert isinstance(self.controller, PushController)
        assert self.controller.exporter is self.exporter
        assert self.controller.interval == 0.01

    def test_interval_from_config(self):
        provider = MeterProvider(config=Config(collection_interval=15), exporter=self.exporter)

        assert provider.controller.interval == 15

    @pytest.mark.asyncio
    async def test_collect_and_export(self):
        result = await self.controller.collect_and_export()

        assert result is ExportResult.SUCCESS
        assert self.controller.collection_count == 1
        assert self.controller.collection_errors == 0
        assert self.controller.last_collection_time > 0

    @pytest.mark.asyncio
    async def test_failed_export_counted(self):
        self.exporter.result = ExportResult.FAILED_RETRYABLE

        await self.controller.collect_and_export()

        assert self.controller.collection_errors == 1
        assert self.controller.last_result is ExportResult.FAILED_RETRYABLE

    @pytest.mark.asyncio
    async def test_loop_exports_periodically(self):
        await self.controller.start()
        assert self.controller.running is True

        await asyncio.sleep(0.1)
        await self.provider.shutdown()

        assert self.controller.running is False
        assert len(self.exporter.exports) >= 2

    @pytest.mark.asyncio
    async def test_loop_survives_collect_errors(self):
        calls = []

        async def collect():
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("boom")
            return []

        provider = Mock()
        provider.collect = AsyncMock(side_effect=collect)
        controller = PushController(provider, self.exporter, interval=0.01)

        await controller.start()
        await asyncio.sleep(0.1)
        await controller.shutdown()

        assert controller.collection_errors == 1
        assert len(calls) >= 3
        assert self.exporter.shutdown_called is True
