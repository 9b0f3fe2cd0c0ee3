"""Results handed to observer callbacks during a collection cycle"""
import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, List, Tuple, Union
from .models import Labels


@dataclass(frozen=True)
class Observation:
    """A value bound for one specific observer metric"""
    observer: Any
    value: Union[int, float]


class ObserverResult:
    """Collects ``observe`` calls made by a value observer callback"""

    def __init__(self):
        self._observations: List[Tuple[Labels, Union[int, float]]] = []

    def observe(self, value: Union[int, float], labels: Labels = None) -> None:
        self._observations.append((labels if labels is not None else {}, value))

    @property
    def observations(self) -> List[Tuple[Labels, Union[int, float]]]:
        return list(self._observations)


class BatchState(Enum):
    """Terminal states of one batch observer invocation"""
    PENDING = "pending"
    COMMITTED = "committed"
    CANCELLED = "cancelled"


class BatchObserverResult:
    """Result object for a batch observer callback.

    The first ``observe`` call commits the result and wakes the collection
    cycle. Once cancelled by the timeout, the result stays cancelled and
    every later ``observe`` is dropped.
    """

    def __init__(self):
        self._state = BatchState.PENDING
        self._observed = asyncio.Event()

    @property
    def state(self) -> BatchState:
        return self._state

    @property
    def cancelled(self) -> bool:
        return self._state is BatchState.CANCELLED

    def observe(self, labels: Labels, observations: Iterable[Observation]) -> None:
        if self._state is BatchState.CANCELLED:
            return

        labels = labels if labels is not None else {}
        for observation in observations:
            observation.observer.bind(labels).update(observation.value)

        if self._state is BatchState.PENDING:
            self._state = BatchState.COMMITTED
            self._observed.set()

    def cancel(self) -> bool:
        """Cancel a pending result; returns False if it was already committed"""
        if self._state is BatchState.PENDING:
            self._state = BatchState.CANCELLED
        return self._state is BatchState.CANCELLED

    async def wait_observed(self) -> None:
        await self._observed.wait()
