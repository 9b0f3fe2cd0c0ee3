"""Label-scoped handles that own one aggregator each"""
import math
from typing import Union
from .aggregators import Aggregator
from .models import Labels, ValueType
from logging_config import get_logger


logger = get_logger(__name__)


class BaseBoundInstrument:
    """Base bound instrument; writes are dropped when the instrument is disabled"""

    def __init__(self, labels: Labels, disabled: bool, value_type: ValueType, aggregator: Aggregator):
        self._labels = labels
        self._disabled = disabled
        self._value_type = value_type
        self._aggregator = aggregator

    def update(self, value: Union[int, float]) -> None:
        """Apply a value to the aggregator"""
        if self._disabled:
            return

        if self._value_type is ValueType.INT and not isinstance(value, int):
            if not float(value).is_integer():
                logger.warning(
                    "INT value type cannot accept a floating-point value, ignoring the fractional digits",
                    value=value,
                    event_type="int_truncation"
                )
            value = math.trunc(value)

        self._aggregator.update(value)

    @property
    def labels(self) -> Labels:
        return self._labels

    @property
    def aggregator(self) -> Aggregator:
        return self._aggregator


class BoundCounter(BaseBoundInstrument):
    """Bound counter; only non-negative deltas are applied"""

    def add(self, value: Union[int, float]) -> None:
        self.update(value)

    def update(self, value: Union[int, float]) -> None:
        if value < 0:
            logger.debug("Counter cannot descend, dropping value", value=value, event_type="negative_write")
            return
        super().update(value)


class BoundUpDownCounter(BaseBoundInstrument):
    """Bound up-down counter; accepts deltas of either sign"""

    def add(self, value: Union[int, float]) -> None:
        self.update(value)


class BoundValueRecorder(BaseBoundInstrument):
    """Bound value recorder; absolute recorders drop negative values"""

    def __init__(self, labels: Labels, disabled: bool, absolute: bool, value_type: ValueType,
                 aggregator: Aggregator):
        super().__init__(labels, disabled, value_type, aggregator)
        self._absolute = absolute

    def record(self, value: Union[int, float]) -> None:
        self.update(value)

    def update(self, value: Union[int, float]) -> None:
        if self._absolute and value < 0:
            logger.debug("Absolute value recorder cannot record negative values", value=value,
                         event_type="negative_write")
            return
        super().update(value)


class BoundObserver(BaseBoundInstrument):
    """Bound instrument updated by observer callbacks"""
