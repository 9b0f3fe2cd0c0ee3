"""Conversion of checkpointed records into collector request bodies.

The shapes follow the collector JSON protocol: typed attribute key/values,
plain string labels, and int64 / double / summary data point lists.
"""
from enum import IntEnum
from typing import Any, Dict, List, Mapping, Optional
from ..aggregators import MinMaxLastSumCountAggregator
from ..models import (
    SDK_INFO,
    Distribution,
    InstrumentationScope,
    MetricDescriptor,
    MetricKind,
    MetricRecord,
    Resource,
    ValueType,
)


class AttributeValueType(IntEnum):
    STRING = 0
    INT = 1
    DOUBLE = 2
    BOOL = 3


class MetricDescriptorType(IntEnum):
    INVALID_TYPE = 0
    INT64 = 1
    MONOTONIC_INT64 = 2
    DOUBLE = 3
    MONOTONIC_DOUBLE = 4
    HISTOGRAM = 5
    SUMMARY = 6


class MetricDescriptorTemporality(IntEnum):
    INVALID_TEMPORALITY = 0
    INSTANTANEOUS = 1
    DELTA = 2
    CUMULATIVE = 3


def to_collector_attribute_key_value(key: str, value: Any) -> Dict[str, Any]:
    """Encode one attribute; every number is sent as a double"""
    attribute: Dict[str, Any] = {"key": key}
    if isinstance(value, bool):
        attribute["type"] = AttributeValueType.BOOL
        attribute["boolValue"] = value
    elif isinstance(value, (int, float)):
        attribute["type"] = AttributeValueType.DOUBLE
        attribute["doubleValue"] = float(value)
    else:
        attribute["type"] = AttributeValueType.STRING
        attribute["stringValue"] = str(value)
    return attribute


def to_collector_attributes(attributes: Mapping[str, Any]) -> List[Dict[str, Any]]:
    return [to_collector_attribute_key_value(key, value) for key, value in attributes.items()]


def to_collector_labels(labels: Mapping[str, str]) -> List[Dict[str, str]]:
    return [{"key": key, "value": value} for key, value in labels.items()]


def to_collector_resource(resource: Optional[Resource],
                          additional_attributes: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
    """Resource attributes layered over exporter-supplied ones"""
    attributes = dict(additional_attributes or {})
    if resource is not None:
        attributes.update(resource.attributes)
    return {
        "attributes": to_collector_attributes(attributes),
        "droppedAttributesCount": 0,
    }


def to_collector_type(descriptor: MetricDescriptor) -> MetricDescriptorType:
    if descriptor.value_type is ValueType.INT:
        return MetricDescriptorType.MONOTONIC_INT64 if descriptor.monotonic else MetricDescriptorType.INT64
    if descriptor.value_type is ValueType.DOUBLE:
        return MetricDescriptorType.MONOTONIC_DOUBLE if descriptor.monotonic else MetricDescriptorType.DOUBLE
    return MetricDescriptorType.INVALID_TYPE


def to_collector_temporality(descriptor: MetricDescriptor) -> MetricDescriptorTemporality:
    if descriptor.metric_kind is MetricKind.COUNTER:
        return MetricDescriptorTemporality.CUMULATIVE
    if descriptor.metric_kind is MetricKind.VALUE_OBSERVER:
        return MetricDescriptorTemporality.INSTANTANEOUS
    if descriptor.metric_kind is MetricKind.VALUE_RECORDER:
        return MetricDescriptorTemporality.DELTA
    return MetricDescriptorTemporality.INVALID_TEMPORALITY


def to_collector_metric_descriptor(record: MetricRecord) -> Dict[str, Any]:
    if isinstance(record.aggregator, MinMaxLastSumCountAggregator):
        descriptor_type = MetricDescriptorType.SUMMARY
    else:
        descriptor_type = to_collector_type(record.descriptor)
    return {
        "name": record.descriptor.name,
        "description": record.descriptor.description,
        "unit": record.descriptor.unit,
        "labels": to_collector_labels(record.labels),
        "type": descriptor_type,
        "temporality": to_collector_temporality(record.descriptor),
    }


def to_collector_metric(record: MetricRecord, start_time: int) -> Dict[str, Any]:
    """Convert one record; the data point list is chosen by value type"""
    point = record.aggregator.to_point()
    int64_points: List[Dict[str, Any]] = []
    double_points: List[Dict[str, Any]] = []
    summary_points: List[Dict[str, Any]] = []

    base = {
        "labels": to_collector_labels(record.labels),
        "startTimeUnixNano": start_time,
        "timeUnixNano": point.timestamp,
    }

    if isinstance(point.value, Distribution):
        summary = dict(base, count=point.value.count, sum=point.value.sum)
        if point.value.count:
            summary["percentileValues"] = [
                {"percentile": 0, "value": point.value.min},
                {"percentile": 100, "value": point.value.max},
            ]
        summary_points.append(summary)
    elif record.descriptor.value_type is ValueType.INT:
        int64_points.append(dict(base, value=int(point.value)))
    elif record.descriptor.value_type is ValueType.DOUBLE:
        double_points.append(dict(base, value=float(point.value)))

    return {
        "metricDescriptor": to_collector_metric_descriptor(record),
        "int64DataPoints": int64_points,
        "doubleDataPoints": double_points,
        "summaryDataPoints": summary_points,
        "histogramDataPoints": [],
    }


def to_collector_export_metric_service_request(records: List[MetricRecord], start_time: int,
                                               service_name: str,
                                               attributes: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
    """Build one resource-metrics envelope, grouping records by instrumentation scope"""
    resource = records[0].resource if records else Resource.empty()
    additional = dict(attributes or {})
    additional["service.name"] = service_name

    by_scope: Dict[InstrumentationScope, List[Dict[str, Any]]] = {}
    for record in records:
        by_scope.setdefault(record.instrumentation_scope, []).append(to_collector_metric(record, start_time))

    library_metrics = []
    for scope, metrics in by_scope.items():
        library_metrics.append({
            "instrumentationLibrary": {
                "name": scope.name or f"{SDK_INFO['telemetry.sdk.name']} - {SDK_INFO['telemetry.sdk.language']}",
                "version": scope.version if scope.name else SDK_INFO["telemetry.sdk.version"],
            },
            "metrics": metrics,
        })

    return {
        "resourceMetrics": [{
            "resource": to_collector_resource(resource, additional),
            "instrumentationLibraryMetrics": library_metrics,
        }]
    }
