"""Domain models for link attribute updates and throughput telemetry."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union


class AttributeTag(str, Enum):
    """Attributes exposed by the throughput test peripheral."""

    PHY_STATUS = "phy_status"
    CONNECTION_INTERVAL = "connection_interval"
    SLAVE_LATENCY = "slave_latency"
    SUPERVISION_TIMEOUT = "supervision_timeout"
    MTU_SIZE = "mtu_size"
    PDU_SIZE = "pdu_size"
    TRANSMISSION_TOGGLE = "transmission_toggle"
    INDICATION_DATA = "indication_data"
    NOTIFICATION_DATA = "notification_data"

    @classmethod
    def parse(cls, value: Any) -> Optional["AttributeTag"]:
        """Resolve a tag from a member, its value or its name.

        Returns None for anything that is not a known attribute.
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        normalized = value.strip()
        try:
            return cls(normalized.lower())
        except ValueError:
            pass
        return cls.__members__.get(normalized.upper())


class PhyStatus(str, Enum):
    PHY_1M = "1M"
    PHY_2M = "2M"
    CODED_S2 = "Coded S2"
    CODED_S8 = "Coded S8"
    UNKNOWN = "Unknown"


class TestDirection(str, Enum):
    __test__ = False

    UPLOAD = "upload"
    DOWNLOAD = "download"


class TelemetryField(str, Enum):
    PHY_STATUS = "phy_status"
    MTU_SIZE = "mtu_size"
    PDU_SIZE = "pdu_size"
    CONNECTION_INTERVAL_MS = "connection_interval_ms"
    SLAVE_LATENCY_MS = "slave_latency_ms"
    SUPERVISION_TIMEOUT_MS = "supervision_timeout_ms"
    THROUGHPUT_BPS = "throughput_bps"
    LAST_PACKET_PREVIEW = "last_packet_preview"
    DOWNLOAD_ACTIVE = "download_active"
    UPLOAD_ACTIVE = "upload_active"
    NOTIFICATIONS_MODE = "notifications_mode"


@dataclass(frozen=True, slots=True)
class RawAttributeUpdate:
    tag: AttributeTag
    payload: bytes


@dataclass(frozen=True, slots=True)
class FieldUpdate:
    """A decoded value destined for a single telemetry field."""

    field: TelemetryField
    value: Any


@dataclass(frozen=True, slots=True)
class ToggleSignal:
    """Peer request to start or stop the download test."""

    enabled: bool


@dataclass(frozen=True, slots=True)
class TrafficPacket:
    """A test-traffic packet pushed by the peer.

    Attributes:
        byte_count: Payload size counted toward throughput
        preview: Human-readable dump of the payload
        acknowledged: True for indications, False for notifications
    """

    byte_count: int
    preview: str
    acknowledged: bool


DecodeResult = Union[FieldUpdate, ToggleSignal, TrafficPacket]
