"""MeterProvider: process-wide factory of meters sharing one resource"""
from typing import Dict, List, Optional, Sequence
from config import Config
from .batcher import Batcher
from .controller import DEFAULT_EXPORT_INTERVAL, PushController
from .exporters.base import MetricExporter
from .meter import Meter
from .models import InstrumentationScope, MetricRecord, Resource
from .plugin import BaseMetricPlugin
from logging_config import get_logger


logger = get_logger(__name__)


class MeterProvider:
    """Hands out meters by scope name and version.

    Construct one per process and pass it to the code that needs meters.
    When an exporter is given, ``start`` begins periodic export and
    ``shutdown`` flushes a final checkpoint.
    """

    def __init__(self, resource: Optional[Resource] = None, config: Optional[Config] = None,
                 exporter: Optional[MetricExporter] = None, interval: Optional[float] = None,
                 plugins: Optional[Sequence[BaseMetricPlugin]] = None):
        self._config = config
        self._resource = (resource or Resource.empty()).merge(Resource.create_default())
        self._meters: Dict[str, Meter] = {}
        self._shutdown = False

        if interval is None:
            interval = config.collection_interval if config else DEFAULT_EXPORT_INTERVAL
        self._controller = PushController(self, exporter, interval) if exporter else None

        self._plugins = list(plugins or [])
        for plugin in self._plugins:
            plugin.enable([], self)

    @property
    def resource(self) -> Resource:
        return self._resource

    @property
    def controller(self) -> Optional[PushController]:
        return self._controller

    @property
    def meters(self) -> List[Meter]:
        return list(self._meters.values())

    def get_meter(self, name: str, version: str = "*", batcher: Optional[Batcher] = None) -> Meter:
        """Return the meter for a scope, creating it on first request"""
        key = f"{name}@{version}"
        meter = self._meters.get(key)
        if meter is None:
            options = {}
            if self._config is not None:
                options["default_max_timeout_update_ms"] = self._config.batch_observer_timeout_ms
            meter = Meter(InstrumentationScope(name, version), self._resource, batcher=batcher, **options)
            self._meters[key] = meter
            logger.debug("Created meter", meter=name, version=version, event_type="meter_created")
        return meter

    async def collect(self) -> List[MetricRecord]:
        """Collect every meter and return the combined checkpoint"""
        records: List[MetricRecord] = []
        for meter in self.meters:
            await meter.collect()
            records.extend(meter.batcher.checkpoint_set())
        return records

    async def start(self) -> None:
        """Start periodic export, if an exporter was configured"""
        if self._controller is not None:
            await self._controller.start()

    async def shutdown(self) -> None:
        """Disable plugins and flush the final checkpoint"""
        if self._shutdown:
            return
        self._shutdown = True

        for plugin in self._plugins:
            plugin.disable()

        if self._controller is not None:
            await self._controller.shutdown()
