"""Instruments: named registries of bound instruments keyed by label set"""
import asyncio
import inspect
from typing import Callable, Dict, List, Optional, Set, Union
from .batcher import Batcher
from .bound_instruments import (
    BaseBoundInstrument,
    BoundCounter,
    BoundObserver,
    BoundUpDownCounter,
    BoundValueRecorder,
)
from .models import (
    InstrumentationScope,
    Labels,
    MetricDescriptor,
    MetricKind,
    MetricRecord,
    Resource,
    ValueType,
)
from .observer_result import BatchObserverResult, Observation, ObserverResult
from .utils import hash_labels
from logging_config import get_logger


logger = get_logger(__name__)

DEFAULT_MAX_TIMEOUT_UPDATE_MS = 500


class Metric:
    """Base class for all instruments.

    Owns the bound instruments created by ``bind``; identical label sets
    always resolve to the same bound instrument until it is unbound.
    """

    def __init__(self, name: str, kind: MetricKind, batcher: Batcher, resource: Resource,
                 instrumentation_scope: InstrumentationScope, description: str = "", unit: str = "1",
                 value_type: ValueType = ValueType.DOUBLE, disabled: bool = False, monotonic: bool = False):
        self._descriptor = MetricDescriptor(
            name=name,
            description=description,
            unit=unit,
            metric_kind=kind,
            value_type=value_type,
            monotonic=monotonic,
        )
        self._disabled = disabled
        self._batcher = batcher
        self._resource = resource
        self._instrumentation_scope = instrumentation_scope
        self._instruments: Dict[str, BaseBoundInstrument] = {}

    @property
    def name(self) -> str:
        return self._descriptor.name

    @property
    def descriptor(self) -> MetricDescriptor:
        return self._descriptor

    @property
    def disabled(self) -> bool:
        return self._disabled

    @property
    def resource(self) -> Resource:
        return self._resource

    @property
    def instrumentation_scope(self) -> InstrumentationScope:
        return self._instrumentation_scope

    def bind(self, labels: Labels = None) -> BaseBoundInstrument:
        """Return the bound instrument for a label set, creating it on first use"""
        labels = dict(labels) if labels is not None else {}
        key = hash_labels(labels)
        instrument = self._instruments.get(key)
        if instrument is None:
            instrument = self._make_instrument(labels)
            self._instruments[key] = instrument
        return instrument

    def unbind(self, labels: Labels = None) -> None:
        """Drop the bound instrument for a label set, if any"""
        self._instruments.pop(hash_labels(labels or {}), None)

    def clear(self) -> None:
        """Drop every bound instrument"""
        self._instruments.clear()

    async def refresh(self) -> None:
        """Bring bound instruments up to date before checkpointing.

        Push instruments are always current, so this is a no-op here.
        """

    def get_metric_records(self) -> List[MetricRecord]:
        """Snapshot every bound instrument into a fresh record"""
        return [
            MetricRecord(
                descriptor=self._descriptor,
                labels=instrument.labels,
                aggregator=instrument.aggregator.snapshot(),
                resource=self._resource,
                instrumentation_scope=self._instrumentation_scope,
            )
            for instrument in list(self._instruments.values())
        ]

    def _make_instrument(self, labels: Labels) -> BaseBoundInstrument:
        raise NotImplementedError


class CounterMetric(Metric):
    """Monotonic counter"""

    def __init__(self, name: str, batcher: Batcher, resource: Resource,
                 instrumentation_scope: InstrumentationScope, **options):
        super().__init__(name, MetricKind.COUNTER, batcher, resource, instrumentation_scope,
                         monotonic=True, **options)

    def _make_instrument(self, labels: Labels) -> BoundCounter:
        return BoundCounter(labels, self._disabled, self._descriptor.value_type,
                            self._batcher.aggregator_for(self._descriptor))

    def add(self, value: Union[int, float], labels: Labels = None) -> None:
        """Add a non-negative delta for a label set"""
        self.bind(labels).add(value)


class UpDownCounterMetric(Metric):
    """Counter that accepts positive and negative deltas"""

    def __init__(self, name: str, batcher: Batcher, resource: Resource,
                 instrumentation_scope: InstrumentationScope, **options):
        super().__init__(name, MetricKind.UP_DOWN_COUNTER, batcher, resource, instrumentation_scope,
                         monotonic=False, **options)

    def _make_instrument(self, labels: Labels) -> BoundUpDownCounter:
        return BoundUpDownCounter(labels, self._disabled, self._descriptor.value_type,
                                  self._batcher.aggregator_for(self._descriptor))

    def add(self, value: Union[int, float], labels: Labels = None) -> None:
        """Add a delta of any sign for a label set"""
        self.bind(labels).add(value)


class ValueRecorderMetric(Metric):
    """Records a distribution of values"""

    def __init__(self, name: str, batcher: Batcher, resource: Resource,
                 instrumentation_scope: InstrumentationScope, absolute: bool = True, **options):
        super().__init__(name, MetricKind.VALUE_RECORDER, batcher, resource, instrumentation_scope,
                         monotonic=False, **options)
        self._absolute = absolute

    @property
    def absolute(self) -> bool:
        return self._absolute

    def _make_instrument(self, labels: Labels) -> BoundValueRecorder:
        return BoundValueRecorder(labels, self._disabled, self._absolute, self._descriptor.value_type,
                                  self._batcher.aggregator_for(self._descriptor))

    def record(self, value: Union[int, float], labels: Labels = None) -> None:
        """Record one value for a label set"""
        self.bind(labels).record(value)


class BaseObserverMetric(Metric):
    """Base class for instruments updated by callbacks"""

    def _make_instrument(self, labels: Labels) -> BoundObserver:
        return BoundObserver(labels, self._disabled, self._descriptor.value_type,
                             self._batcher.aggregator_for(self._descriptor))

    def observation(self, value: Union[int, float]) -> Observation:
        """Wrap a value for use with ``BatchObserverResult.observe``"""
        return Observation(observer=self, value=value)


class ValueObserverMetric(BaseObserverMetric):
    """Pull-model gauge; its callback runs once per collection cycle"""

    def __init__(self, name: str, batcher: Batcher, resource: Resource,
                 instrumentation_scope: InstrumentationScope,
                 callback: Optional[Callable[[ObserverResult], object]] = None, **options):
        super().__init__(name, MetricKind.VALUE_OBSERVER, batcher, resource, instrumentation_scope,
                         monotonic=False, **options)
        self._callback = callback

    async def refresh(self) -> None:
        if self._callback is None:
            return

        result = ObserverResult()
        try:
            outcome = self._callback(result)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception as e:
            logger.error("Observer callback failed", metric=self.name, error=str(e),
                         event_type="observer_callback_error", exc_info=True)
            return

        for labels, value in result.observations:
            self.bind(labels).update(value)


class BatchObserverMetric(BaseObserverMetric):
    """One callback feeding several observer metrics under shared label sets.

    ``refresh`` waits for the callback's first ``observe`` for at most
    ``max_timeout_update_ms``; after that the result is cancelled and late
    observations are discarded.
    """

    def __init__(self, name: str, batcher: Batcher, resource: Resource,
                 instrumentation_scope: InstrumentationScope,
                 callback: Callable[[BatchObserverResult], object],
                 max_timeout_update_ms: int = DEFAULT_MAX_TIMEOUT_UPDATE_MS, **options):
        super().__init__(name, MetricKind.VALUE_OBSERVER, batcher, resource, instrumentation_scope,
                         monotonic=False, **options)
        self._callback = callback
        self._max_timeout_update_ms = max_timeout_update_ms
        self._pending: Set[asyncio.Future] = set()

    @property
    def max_timeout_update_ms(self) -> int:
        return self._max_timeout_update_ms

    def get_metric_records(self) -> List[MetricRecord]:
        # Values land on the sibling metrics named in each observation
        return []

    async def refresh(self) -> BatchObserverResult:
        result = BatchObserverResult()
        waiters = [asyncio.ensure_future(result.wait_observed())]

        try:
            outcome = self._callback(result)
        except Exception as e:
            logger.error("Batch observer callback failed", metric=self.name, error=str(e),
                         event_type="observer_callback_error", exc_info=True)
            waiters[0].cancel()
            result.cancel()
            return result

        if inspect.isawaitable(outcome):
            task = asyncio.ensure_future(outcome)
            task.add_done_callback(self._on_callback_done)
            self._pending.add(task)
            waiters.append(task)

        done, _ = await asyncio.wait(waiters, timeout=self._max_timeout_update_ms / 1000,
                                     return_when=asyncio.FIRST_COMPLETED)
        waiters[0].cancel()

        if result.cancel():
            if done:
                logger.debug("Batch observer finished without observing", metric=self.name,
                             event_type="batch_observer_empty")
            else:
                logger.debug("Batch observer timed out", metric=self.name,
                             timeout_ms=self._max_timeout_update_ms, event_type="batch_observer_timeout")
        return result

    def _on_callback_done(self, task: asyncio.Future) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error("Batch observer callback failed", metric=self.name, error=str(error),
                         event_type="observer_callback_error")
