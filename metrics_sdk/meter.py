"""Meter: instrument registry and collection cycle for one instrumentation scope"""
import asyncio
import re
import threading
import time
from enum import Enum
from typing import Callable, Dict, List, Optional, Union
from .batcher import Batcher, UngroupedBatcher
from .instruments import (
    DEFAULT_MAX_TIMEOUT_UPDATE_MS,
    BatchObserverMetric,
    CounterMetric,
    Metric,
    UpDownCounterMetric,
    ValueObserverMetric,
    ValueRecorderMetric,
)
from .models import InstrumentationScope, MetricRecord, Resource, ValueType
from .noop import (
    NOOP_BATCH_OBSERVER_METRIC,
    NOOP_COUNTER_METRIC,
    NOOP_UP_DOWN_COUNTER_METRIC,
    NOOP_VALUE_OBSERVER_METRIC,
    NOOP_VALUE_RECORDER_METRIC,
    NoopMetric,
)
from .observer_result import BatchObserverResult, ObserverResult
from logging_config import get_logger, log_collection_cycle


logger = get_logger(__name__)

# Letter first, then letters, digits, '_', '.' or '-'
NAME_PATTERN = re.compile(r"[A-Za-z][A-Za-z0-9_.\-]*")


class CollectionPhase(Enum):
    """Phases of a collection cycle"""
    IDLE = "idle"
    REFRESHING = "refreshing"
    CHECKPOINTING = "checkpointing"


class Meter:
    """Creates instruments for one scope and drives their collection cycle"""

    def __init__(self, instrumentation_scope: InstrumentationScope, resource: Optional[Resource] = None,
                 batcher: Optional[Batcher] = None,
                 default_max_timeout_update_ms: int = DEFAULT_MAX_TIMEOUT_UPDATE_MS):
        self._instrumentation_scope = instrumentation_scope
        self._resource = resource or Resource.empty()
        self._batcher = batcher or UngroupedBatcher()
        self._default_max_timeout_update_ms = default_max_timeout_update_ms
        self._metrics: Dict[str, Metric] = {}
        self._registry_lock = threading.Lock()
        self._collect_lock = asyncio.Lock()
        self._phase = CollectionPhase.IDLE

    @property
    def batcher(self) -> Batcher:
        return self._batcher

    @property
    def resource(self) -> Resource:
        return self._resource

    @property
    def instrumentation_scope(self) -> InstrumentationScope:
        return self._instrumentation_scope

    @property
    def phase(self) -> CollectionPhase:
        return self._phase

    @property
    def metrics(self) -> List[Metric]:
        """Registered instruments in creation order"""
        with self._registry_lock:
            return list(self._metrics.values())

    def create_counter(self, name: str, description: str = "", unit: str = "1",
                       value_type: ValueType = ValueType.DOUBLE,
                       disabled: bool = False) -> Union[CounterMetric, NoopMetric]:
        """Create a monotonic counter"""
        if not self._is_valid_name(name):
            return NOOP_COUNTER_METRIC
        return self._register_metric(name, lambda: CounterMetric(
            name, self._batcher, self._resource, self._instrumentation_scope,
            description=description, unit=unit, value_type=value_type, disabled=disabled,
        ))

    def create_up_down_counter(self, name: str, description: str = "", unit: str = "1",
                               value_type: ValueType = ValueType.DOUBLE,
                               disabled: bool = False) -> Union[UpDownCounterMetric, NoopMetric]:
        """Create a counter that accepts negative deltas"""
        if not self._is_valid_name(name):
            return NOOP_UP_DOWN_COUNTER_METRIC
        return self._register_metric(name, lambda: UpDownCounterMetric(
            name, self._batcher, self._resource, self._instrumentation_scope,
            description=description, unit=unit, value_type=value_type, disabled=disabled,
        ))

    def create_value_recorder(self, name: str, description: str = "", unit: str = "1",
                              value_type: ValueType = ValueType.DOUBLE, disabled: bool = False,
                              absolute: bool = True) -> Union[ValueRecorderMetric, NoopMetric]:
        """Create a recorder of value distributions"""
        if not self._is_valid_name(name):
            return NOOP_VALUE_RECORDER_METRIC
        return self._register_metric(name, lambda: ValueRecorderMetric(
            name, self._batcher, self._resource, self._instrumentation_scope,
            absolute=absolute, description=description, unit=unit, value_type=value_type,
            disabled=disabled,
        ))

    def create_value_observer(self, name: str, callback: Optional[Callable[[ObserverResult], object]] = None,
                              description: str = "", unit: str = "1",
                              value_type: ValueType = ValueType.DOUBLE,
                              disabled: bool = False) -> Union[ValueObserverMetric, NoopMetric]:
        """Create an observer whose callback runs once per collection cycle"""
        if not self._is_valid_name(name):
            return NOOP_VALUE_OBSERVER_METRIC
        return self._register_metric(name, lambda: ValueObserverMetric(
            name, self._batcher, self._resource, self._instrumentation_scope,
            callback=callback, description=description, unit=unit, value_type=value_type,
            disabled=disabled,
        ))

    def create_batch_observer(self, name: str, callback: Callable[[BatchObserverResult], object],
                              description: str = "", unit: str = "1",
                              value_type: ValueType = ValueType.DOUBLE, disabled: bool = False,
                              max_timeout_update_ms: Optional[int] = None) -> Union[BatchObserverMetric, NoopMetric]:
        """Create a batch observer feeding several observer metrics from one callback"""
        if not self._is_valid_name(name):
            return NOOP_BATCH_OBSERVER_METRIC
        if max_timeout_update_ms is None:
            max_timeout_update_ms = self._default_max_timeout_update_ms
        return self._register_metric(name, lambda: BatchObserverMetric(
            name, self._batcher, self._resource, self._instrumentation_scope,
            callback=callback, max_timeout_update_ms=max_timeout_update_ms,
            description=description, unit=unit, value_type=value_type, disabled=disabled,
        ))

    async def collect(self) -> None:
        """Run one collection cycle: refresh observers, then checkpoint every bound instrument"""
        async with self._collect_lock:
            start_time = time.time()
            metrics = self.metrics

            self._phase = CollectionPhase.REFRESHING
            try:
                batch_observers = [m for m in metrics if isinstance(m, BatchObserverMetric)]
                results = await asyncio.gather(*(m.refresh() for m in batch_observers))
                timed_out = sum(1 for result in results if result.cancelled)

                for metric in metrics:
                    if not isinstance(metric, BatchObserverMetric):
                        await metric.refresh()

                self._phase = CollectionPhase.CHECKPOINTING
                records: List[MetricRecord] = []
                for metric in metrics:
                    records.extend(metric.get_metric_records())
                for record in records:
                    self._batcher.process(record)
            finally:
                self._phase = CollectionPhase.IDLE

            log_collection_cycle(logger, len(records), time.time() - start_time, timed_out=timed_out)

    def _register_metric(self, name: str, factory: Callable[[], Metric]) -> Metric:
        # First registration wins; later configs for the same name are ignored
        with self._registry_lock:
            existing = self._metrics.get(name)
            if existing is not None:
                logger.debug("Metric already registered, returning existing instrument", metric=name,
                             event_type="duplicate_metric")
                return existing
            metric = factory()
            self._metrics[name] = metric
            return metric

    def _is_valid_name(self, name: str) -> bool:
        if name and NAME_PATTERN.fullmatch(name):
            return True
        logger.warning("Invalid metric name, returning no-op instrument", metric=name,
                       event_type="invalid_metric_name")
        return False
