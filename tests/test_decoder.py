"""Tests for attribute payload decoding."""

import struct

import pytest

from linkrate.core.models import (
    AttributeTag,
    FieldUpdate,
    PhyStatus,
    TelemetryField,
    ToggleSignal,
    TrafficPacket,
)
from linkrate.decoder import (
    AttributeDecodeError,
    MalformedPayload,
    decode,
    format_packet_preview,
)


@pytest.mark.parametrize(
    ("code", "expected"),
    [
        (0x01, PhyStatus.PHY_1M),
        (0x02, PhyStatus.PHY_2M),
        (0x04, PhyStatus.CODED_S8),
        (0x08, PhyStatus.CODED_S2),
        (0x03, PhyStatus.UNKNOWN),
        (0xFF, PhyStatus.UNKNOWN),
    ],
)
def test_phy_status_codes(code, expected):
    result = decode(AttributeTag.PHY_STATUS, bytes([code]))

    assert result == FieldUpdate(TelemetryField.PHY_STATUS, expected)


def test_connection_interval_scales_by_event_unit():
    result = decode(AttributeTag.CONNECTION_INTERVAL, (80).to_bytes(2, "little"))

    assert isinstance(result, FieldUpdate)
    assert result.field is TelemetryField.CONNECTION_INTERVAL_MS
    assert result.value == 100.0


def test_slave_latency_uses_connection_event_unit():
    result = decode(AttributeTag.SLAVE_LATENCY, b"\x04\x00")

    assert result == FieldUpdate(TelemetryField.SLAVE_LATENCY_MS, 5.0)


def test_supervision_timeout_scales_by_ten():
    result = decode(AttributeTag.SUPERVISION_TIMEOUT, (500).to_bytes(2, "little"))

    assert isinstance(result, FieldUpdate)
    assert result.field is TelemetryField.SUPERVISION_TIMEOUT_MS
    assert result.value == 5000
    assert isinstance(result.value, int)


def test_multi_byte_values_are_little_endian():
    result = decode(AttributeTag.CONNECTION_INTERVAL, b"\x00\x01")

    assert result.value == 256 * 1.25


def test_mtu_and_pdu_are_unsigned():
    assert decode(AttributeTag.MTU_SIZE, b"\xf7") == FieldUpdate(
        TelemetryField.MTU_SIZE, 247
    )
    assert decode(AttributeTag.PDU_SIZE, b"\xfb") == FieldUpdate(
        TelemetryField.PDU_SIZE, 251
    )


@pytest.mark.parametrize(("raw", "enabled"), [(b"\x01", True), (b"\x00", False), (b"\x02", False)])
def test_transmission_toggle(raw, enabled):
    assert decode(AttributeTag.TRANSMISSION_TOGGLE, raw) == ToggleSignal(enabled=enabled)


def test_traffic_hex_preview():
    result = decode(AttributeTag.NOTIFICATION_DATA, bytes([0x0A, 0xFF]))

    assert isinstance(result, TrafficPacket)
    assert result.byte_count == 2
    assert result.preview == "Hex: 0A FF"
    assert result.acknowledged is False


def test_indication_is_acknowledged():
    result = decode(AttributeTag.INDICATION_DATA, b"\x01\x02\x03")

    assert result.acknowledged is True
    assert result.byte_count == 3


def test_float_packet_preview():
    payload = struct.pack("<7f", 1.0, 2.0, 3.0, 4.0, 5.0, 6.0, 7.0)

    result = decode(AttributeTag.NOTIFICATION_DATA, payload)

    assert result.byte_count == 28
    hex_line, float_line = result.preview.split("\n")
    assert hex_line.startswith("Hex: 00 00 80 3F 00 00 00 40")
    assert len(hex_line.split(" ")) == 29
    assert float_line == "Floats: 1.0, 2.0, 3.0, 4.0, 5.0, 6.0, 7.0"


def test_non_float_sized_packet_has_only_hex():
    preview = format_packet_preview(bytes(27))

    assert "Floats" not in preview
    assert preview.startswith("Hex: 00 00")


def test_empty_traffic_packet_is_counted_as_zero():
    result = decode(AttributeTag.NOTIFICATION_DATA, b"")

    assert result.byte_count == 0
    assert result.preview == "Hex: "


@pytest.mark.parametrize(
    ("tag", "payload"),
    [
        (AttributeTag.PHY_STATUS, b""),
        (AttributeTag.MTU_SIZE, b""),
        (AttributeTag.PDU_SIZE, b""),
        (AttributeTag.TRANSMISSION_TOGGLE, b""),
        (AttributeTag.CONNECTION_INTERVAL, b"\x50"),
        (AttributeTag.SLAVE_LATENCY, b""),
        (AttributeTag.SUPERVISION_TIMEOUT, b"\xf4"),
    ],
)
def test_short_payload_is_malformed(tag, payload):
    with pytest.raises(MalformedPayload) as excinfo:
        decode(tag, payload)

    assert isinstance(excinfo.value, AttributeDecodeError)
    assert excinfo.value.tag is tag
    assert excinfo.value.actual == len(payload)


def test_unknown_tag_is_ignored():
    assert decode("battery_level", b"\x64") is None


def test_tag_accepts_member_name():
    result = decode("PHY_STATUS", b"\x02")

    assert result.value is PhyStatus.PHY_2M
