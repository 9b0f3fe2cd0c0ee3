"""Metric data models shared by instruments, batchers and exporters"""
import math
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Union
from .version import __version__

Labels = Dict[str, str]
AttributeValue = Union[str, bool, int, float]

SDK_INFO = {
    "telemetry.sdk.name": "metrics-sdk",
    "telemetry.sdk.language": "python",
    "telemetry.sdk.version": __version__,
}


class MetricKind(Enum):
    """Instrument semantics recorded in the descriptor"""
    COUNTER = "counter"
    UP_DOWN_COUNTER = "up_down_counter"
    VALUE_RECORDER = "value_recorder"
    VALUE_OBSERVER = "value_observer"


class ValueType(Enum):
    """Numeric type of recorded values"""
    INT = "int"
    DOUBLE = "double"


@dataclass(frozen=True)
class MetricDescriptor:
    """Static description of an instrument, fixed at creation time"""
    name: str
    description: str = ""
    unit: str = "1"
    metric_kind: MetricKind = MetricKind.COUNTER
    value_type: ValueType = ValueType.DOUBLE
    monotonic: bool = False


@dataclass(frozen=True)
class InstrumentationScope:
    """Name and version of the code that created a meter"""
    name: str
    version: str = "*"


@dataclass(frozen=True)
class Distribution:
    """Min/max/last/sum/count summary of recorded values"""
    min: float = math.inf
    max: float = -math.inf
    last: float = 0
    sum: float = 0
    count: int = 0


@dataclass(frozen=True)
class Point:
    """Aggregated value and the time (ns since epoch) of its last update"""
    value: Union[int, float, Distribution]
    timestamp: int


class Resource:
    """Immutable attribute set describing the entity producing metrics"""

    def __init__(self, attributes: Optional[Mapping[str, AttributeValue]] = None):
        self._attributes = MappingProxyType(dict(attributes or {}))

    @property
    def attributes(self) -> Mapping[str, AttributeValue]:
        return self._attributes

    @staticmethod
    def empty() -> "Resource":
        return Resource()

    @staticmethod
    def create_default() -> "Resource":
        """Resource carrying only the SDK identification attributes"""
        return Resource(SDK_INFO)

    def merge(self, other: Optional["Resource"]) -> "Resource":
        """Combine two resources; on key collision this resource's value wins"""
        if other is None:
            return self
        merged = dict(other.attributes)
        merged.update(self._attributes)
        return Resource(merged)

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Resource):
            return NotImplemented
        return dict(self._attributes) == dict(other._attributes)

    def __hash__(self) -> int:
        return hash(frozenset(self._attributes.items()))

    def __repr__(self) -> str:
        return f"Resource({dict(self._attributes)!r})"


@dataclass(frozen=True)
class MetricRecord:
    """One exported time series entry, created fresh at every checkpoint"""
    descriptor: MetricDescriptor
    labels: Labels
    aggregator: Any
    resource: Resource = field(default_factory=Resource.empty)
    instrumentation_scope: InstrumentationScope = field(default_factory=lambda: InstrumentationScope(""))
