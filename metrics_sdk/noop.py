"""No-op instruments handed out for invalid instrument names"""
from typing import List, Union
from .models import Labels, MetricRecord
from .observer_result import Observation


class NoopBoundInstrument:
    """Bound instrument that accepts and discards every write"""

    def __init__(self):
        self.labels: Labels = {}
        self.aggregator = None

    def add(self, value: Union[int, float]) -> None:
        pass

    def record(self, value: Union[int, float]) -> None:
        pass

    def update(self, value: Union[int, float]) -> None:
        pass


class NoopMetric:
    """Instrument whose operations all succeed without recording data"""

    def __init__(self):
        self._bound = NoopBoundInstrument()

    def bind(self, labels: Labels = None) -> NoopBoundInstrument:
        return self._bound

    def unbind(self, labels: Labels = None) -> None:
        pass

    def clear(self) -> None:
        pass

    async def refresh(self) -> None:
        pass

    def get_metric_records(self) -> List[MetricRecord]:
        return []


class NoopCounterMetric(NoopMetric):
    def add(self, value: Union[int, float], labels: Labels = None) -> None:
        pass


class NoopUpDownCounterMetric(NoopCounterMetric):
    """Same surface as the counter; negative deltas are discarded like any other"""


class NoopValueRecorderMetric(NoopMetric):
    def record(self, value: Union[int, float], labels: Labels = None) -> None:
        pass


class NoopValueObserverMetric(NoopMetric):
    def observation(self, value: Union[int, float]) -> Observation:
        return Observation(observer=self, value=value)


class NoopBatchObserverMetric(NoopMetric):
    """Batch observers only own a callback; there is nothing to write to"""


NOOP_COUNTER_METRIC = NoopCounterMetric()
NOOP_UP_DOWN_COUNTER_METRIC = NoopUpDownCounterMetric()
NOOP_VALUE_RECORDER_METRIC = NoopValueRecorderMetric()
NOOP_VALUE_OBSERVER_METRIC = NoopValueObserverMetric()
NOOP_BATCH_OBSERVER_METRIC = NoopBatchObserverMetric()
