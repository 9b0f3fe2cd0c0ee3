"""Aggregators: incremental state behind every bound instrument"""
import copy
import math
import time
from abc import ABC, abstractmethod
from typing import Union
from .models import Distribution, Point


class Aggregator(ABC):
    """Base class for aggregators.

    An aggregator is mutated only through ``update`` and read through
    ``to_point``. ``snapshot`` returns a read-only copy that no longer follows
    the source aggregator; batchers keep snapshots, never the live object.
    """

    def __init__(self):
        self._timestamp = 0
        self._read_only = False

    def update(self, value: Union[int, float]) -> None:
        """Apply one measurement"""
        if self._read_only:
            raise TypeError(f"{type(self).__name__} snapshot is read-only")
        self._update(value)
        # Timestamps must strictly increase between updates
        self._timestamp = max(time.time_ns(), self._timestamp + 1)

    @abstractmethod
    def _update(self, value: Union[int, float]) -> None:
        pass

    @abstractmethod
    def to_point(self) -> Point:
        """Return the current value and last-update timestamp"""
        pass

    def snapshot(self) -> "Aggregator":
        """Return a read-only copy of the current state"""
        checkpoint = copy.copy(self)
        checkpoint._read_only = True
        return checkpoint

    @property
    def read_only(self) -> bool:
        return self._read_only


class SumAggregator(Aggregator):
    """Running total of every recorded value"""

    def __init__(self):
        super().__init__()
        self._current: Union[int, float] = 0

    def _update(self, value):
        self._current += value

    def to_point(self) -> Point:
        return Point(value=self._current, timestamp=self._timestamp)


class MinMaxLastSumCountAggregator(Aggregator):
    """Distribution summary: min, max, last, sum and count"""

    def __init__(self):
        super().__init__()
        self._min = math.inf
        self._max = -math.inf
        self._last = 0
        self._sum = 0
        self._count = 0

    def _update(self, value):
        self._min = min(self._min, value)
        self._max = max(self._max, value)
        self._last = value
        self._sum += value
        self._count += 1

    def to_point(self) -> Point:
        distribution = Distribution(
            min=self._min,
            max=self._max,
            last=self._last,
            sum=self._sum,
            count=self._count,
        )
        return Point(value=distribution, timestamp=self._timestamp)
