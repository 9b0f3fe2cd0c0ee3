"""Metrics SDK: meters, instruments, batchers and exporters"""
from .version import __version__
from .aggregators import Aggregator, MinMaxLastSumCountAggregator, SumAggregator
from .batcher import Batcher, UngroupedBatcher
from .bound_instruments import (
    BaseBoundInstrument,
    BoundCounter,
    BoundObserver,
    BoundUpDownCounter,
    BoundValueRecorder,
)
from .controller import PushController
from .instruments import (
    BatchObserverMetric,
    CounterMetric,
    Metric,
    UpDownCounterMetric,
    ValueObserverMetric,
    ValueRecorderMetric,
)
from .meter import CollectionPhase, Meter
from .models import (
    Distribution,
    InstrumentationScope,
    MetricDescriptor,
    MetricKind,
    MetricRecord,
    Point,
    Resource,
    ValueType,
)
from .observer_result import BatchObserverResult, BatchState, Observation, ObserverResult
from .plugin import BaseMetricPlugin
from .provider import MeterProvider
from .utils import hash_labels

__all__ = [
    '__version__',
    'Aggregator',
    'SumAggregator',
    'MinMaxLastSumCountAggregator',
    'Batcher',
    'UngroupedBatcher',
    'BaseBoundInstrument',
    'BoundCounter',
    'BoundUpDownCounter',
    'BoundValueRecorder',
    'BoundObserver',
    'PushController',
    'Metric',
    'CounterMetric',
    'UpDownCounterMetric',
    'ValueRecorderMetric',
    'ValueObserverMetric',
    'BatchObserverMetric',
    'CollectionPhase',
    'Meter',
    'Distribution',
    'InstrumentationScope',
    'MetricDescriptor',
    'MetricKind',
    'MetricRecord',
    'Point',
    'Resource',
    'ValueType',
    'BatchObserverResult',
    'BatchState',
    'Observation',
    'ObserverResult',
    'BaseMetricPlugin',
    'MeterProvider',
    'hash_labels',
]
