"""Core primitives for linkrate."""

from .models import (
    AttributeTag,
    DecodeResult,
    FieldUpdate,
    PhyStatus,
    RawAttributeUpdate,
    TelemetryField,
    TestDirection,
    ToggleSignal,
    TrafficPacket,
)

__all__ = [
    "AttributeTag",
    "DecodeResult",
    "FieldUpdate",
    "PhyStatus",
    "RawAttributeUpdate",
    "TelemetryField",
    "TestDirection",
    "ToggleSignal",
    "TrafficPacket",
]
