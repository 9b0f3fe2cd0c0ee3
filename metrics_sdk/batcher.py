"""Batchers select aggregators and hold the checkpoint of each collection cycle"""
from typing import Dict, List
from .aggregators import Aggregator, MinMaxLastSumCountAggregator, SumAggregator
from .models import MetricDescriptor, MetricKind, MetricRecord
from .utils import hash_labels


class Batcher:
    """Base class for batchers.

    Subclasses must implement ``aggregator_for`` and ``process``; there is no
    safe default, so the base versions raise on first use.
    """

    def __init__(self):
        self._batch_map: Dict[str, MetricRecord] = {}

    def aggregator_for(self, descriptor: MetricDescriptor) -> Aggregator:
        """Return a new aggregator for a bound instrument of this descriptor"""
        raise NotImplementedError("aggregator_for method not implemented")

    def process(self, record: MetricRecord) -> None:
        """Accept one record produced during the current collection cycle"""
        raise NotImplementedError("process method not implemented")

    def checkpoint_set(self) -> List[MetricRecord]:
        """Return the records of the last completed cycle"""
        return list(self._batch_map.values())


class UngroupedBatcher(Batcher):
    """Cumulative batcher keeping one record per metric name and label set"""

    def aggregator_for(self, descriptor: MetricDescriptor) -> Aggregator:
        if descriptor.metric_kind in (MetricKind.COUNTER, MetricKind.UP_DOWN_COUNTER):
            return SumAggregator()
        return MinMaxLastSumCountAggregator()

    def process(self, record: MetricRecord) -> None:
        key = record.descriptor.name + hash_labels(record.labels)
        self._batch_map[key] = record
