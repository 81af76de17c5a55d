"""Decoders for throughput peripheral attribute payloads.

Every attribute has a fixed wire format. Scalar attributes decode into a
:class:`FieldUpdate` for the matching telemetry field, the transmission toggle
decodes into a :class:`ToggleSignal`, and indication/notification payloads are
test traffic that decode into a :class:`TrafficPacket`.
"""

from __future__ import annotations

import struct
from typing import Callable, Dict, Optional

from .core.models import (
    AttributeTag,
    DecodeResult,
    FieldUpdate,
    PhyStatus,
    TelemetryField,
    ToggleSignal,
    TrafficPacket,
)

# Connection interval and slave latency are expressed in 1.25 ms connection-event units.
CONNECTION_EVENT_UNIT_MS = 1.25
SUPERVISION_TIMEOUT_UNIT_MS = 10

FLOAT_PACKET_SIZE = 28
FLOAT_PACKET_FMT = "<7f"

PHY_CODES: Dict[int, PhyStatus] = {
    0x01: PhyStatus.PHY_1M,
    0x02: PhyStatus.PHY_2M,
    0x04: PhyStatus.CODED_S8,
    0x08: PhyStatus.CODED_S2,
}


class AttributeDecodeError(ValueError):
    """Base error for attribute payloads that cannot be decoded."""


class MalformedPayload(AttributeDecodeError):
    """Raised when a payload is shorter than its attribute requires."""

    def __init__(self, tag: AttributeTag, required: int, actual: int) -> None:
        super().__init__(
            f"{tag.value} payload requires at least {required} byte(s), got {actual}"
        )
        self.tag = tag
        self.required = required
        self.actual = actual


def _require(tag: AttributeTag, payload: bytes, size: int) -> None:
    if len(payload) < size:
        raise MalformedPayload(tag, size, len(payload))


def _uint_le(payload: bytes) -> int:
    return int.from_bytes(payload, "little", signed=False)


def phy_status_from_code(code: int) -> PhyStatus:
    return PHY_CODES.get(code, PhyStatus.UNKNOWN)


def format_packet_preview(payload: bytes) -> str:
    """Render a received test packet for display.

    The preview is always an uppercase hex dump. A 28 byte packet is also
    shown as seven little-endian float32 values.
    """
    hex_dump = " ".join(f"{byte:02X}" for byte in payload)
    if len(payload) != FLOAT_PACKET_SIZE:
        return f"Hex: {hex_dump}"
    values = struct.unpack(FLOAT_PACKET_FMT, payload)
    floats = ", ".join(f"{value:.1f}" for value in values)
    return f"Hex: {hex_dump}\nFloats: {floats}"


def _decode_phy_status(tag: AttributeTag, payload: bytes) -> DecodeResult:
    _require(tag, payload, 1)
    return FieldUpdate(TelemetryField.PHY_STATUS, phy_status_from_code(payload[0]))


def _decode_mtu_size(tag: AttributeTag, payload: bytes) -> DecodeResult:
    _require(tag, payload, 1)
    return FieldUpdate(TelemetryField.MTU_SIZE, payload[0])


def _decode_pdu_size(tag: AttributeTag, payload: bytes) -> DecodeResult:
    _require(tag, payload, 1)
    return FieldUpdate(TelemetryField.PDU_SIZE, payload[0])


def _decode_connection_interval(tag: AttributeTag, payload: bytes) -> DecodeResult:
    _require(tag, payload, 2)
    return FieldUpdate(
        TelemetryField.CONNECTION_INTERVAL_MS,
        _uint_le(payload) * CONNECTION_EVENT_UNIT_MS,
    )


def _decode_slave_latency(tag: AttributeTag, payload: bytes) -> DecodeResult:
    _require(tag, payload, 2)
    return FieldUpdate(
        TelemetryField.SLAVE_LATENCY_MS,
        _uint_le(payload) * CONNECTION_EVENT_UNIT_MS,
    )


def _decode_supervision_timeout(tag: AttributeTag, payload: bytes) -> DecodeResult:
    _require(tag, payload, 2)
    return FieldUpdate(
        TelemetryField.SUPERVISION_TIMEOUT_MS,
        _uint_le(payload) * SUPERVISION_TIMEOUT_UNIT_MS,
    )


def _decode_transmission_toggle(tag: AttributeTag, payload: bytes) -> DecodeResult:
    _require(tag, payload, 1)
    return ToggleSignal(enabled=payload[0] == 1)


def _decode_traffic(tag: AttributeTag, payload: bytes) -> DecodeResult:
    return TrafficPacket(
        byte_count=len(payload),
        preview=format_packet_preview(payload),
        acknowledged=tag is AttributeTag.INDICATION_DATA,
    )


_DECODERS: Dict[AttributeTag, Callable[[AttributeTag, bytes], DecodeResult]] = {
    AttributeTag.PHY_STATUS: _decode_phy_status,
    AttributeTag.MTU_SIZE: _decode_mtu_size,
    AttributeTag.PDU_SIZE: _decode_pdu_size,
    AttributeTag.CONNECTION_INTERVAL: _decode_connection_interval,
    AttributeTag.SLAVE_LATENCY: _decode_slave_latency,
    AttributeTag.SUPERVISION_TIMEOUT: _decode_supervision_timeout,
    AttributeTag.TRANSMISSION_TOGGLE: _decode_transmission_toggle,
    AttributeTag.INDICATION_DATA: _decode_traffic,
    AttributeTag.NOTIFICATION_DATA: _decode_traffic,
}


def decode(tag: AttributeTag | str, payload: bytes) -> Optional[DecodeResult]:
    """Decode a raw attribute payload.

    Returns None for tags that are not part of the throughput profile.

    Raises:
        MalformedPayload: If the payload is shorter than the attribute requires.
    """
    resolved = AttributeTag.parse(tag)
    if resolved is None:
        return None
    return _DECODERS[resolved](resolved, bytes(payload))
