"""linkrate - BLE throughput test telemetry aggregator."""

from .aggregator import ThroughputAggregator
from .core.models import (
    AttributeTag,
    PhyStatus,
    RawAttributeUpdate,
    TelemetryField,
    TestDirection,
)
from .decoder import AttributeDecodeError, MalformedPayload, decode
from .telemetry import RateSampler, TelemetryPublisher, TelemetrySnapshot, TestStateController

__all__ = [
    "AttributeDecodeError",
    "AttributeTag",
    "MalformedPayload",
    "PhyStatus",
    "RateSampler",
    "RawAttributeUpdate",
    "TelemetryField",
    "TelemetryPublisher",
    "TelemetrySnapshot",
    "TestDirection",
    "TestStateController",
    "ThroughputAggregator",
    "decode",
]
