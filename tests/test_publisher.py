"""Tests for the latest-value telemetry publisher."""

import logging

from linkrate.core.models import PhyStatus, TelemetryField
from linkrate.telemetry import TelemetryPublisher


def test_set_updates_snapshot(publisher):
    publisher.set(TelemetryField.MTU_SIZE, 247)
    publisher.set(TelemetryField.PHY_STATUS, PhyStatus.PHY_2M)

    snapshot = publisher.snapshot()

    assert snapshot.mtu_size == 247
    assert snapshot.phy_status is PhyStatus.PHY_2M
    assert publisher.get(TelemetryField.MTU_SIZE) == 247


def test_snapshot_is_a_copy(publisher):
    publisher.set(TelemetryField.PDU_SIZE, 27)
    snapshot = publisher.snapshot()

    publisher.set(TelemetryField.PDU_SIZE, 251)

    assert snapshot.pdu_size == 27
    assert publisher.snapshot().pdu_size == 251


def test_initial_snapshot_defaults(publisher):
    snapshot = publisher.snapshot()

    assert snapshot.throughput_bps is None
    assert snapshot.download_active is False
    assert snapshot.upload_active is False
    assert snapshot.notifications_mode is True


def test_subscriber_receives_updates_in_order(publisher):
    received = []
    publisher.subscribe(TelemetryField.THROUGHPUT_BPS, received.append)

    for value in (100, 200, 0):
        publisher.set(TelemetryField.THROUGHPUT_BPS, value)

    assert received == [100, 200, 0]


def test_new_subscriber_receives_latest_value(publisher):
    publisher.set(TelemetryField.CONNECTION_INTERVAL_MS, 7.5)
    publisher.set(TelemetryField.CONNECTION_INTERVAL_MS, 15.0)
    received = []

    publisher.subscribe(TelemetryField.CONNECTION_INTERVAL_MS, received.append)

    assert received == [15.0]


def test_unset_field_is_not_replayed(publisher):
    received = []

    publisher.subscribe(TelemetryField.MTU_SIZE, received.append)

    assert received == []


def test_subscriber_only_sees_its_field(publisher):
    received = []
    publisher.subscribe(TelemetryField.MTU_SIZE, received.append)

    publisher.set(TelemetryField.PDU_SIZE, 27)

    assert received == []


def test_unsubscribe_stops_delivery(publisher):
    received = []
    unsubscribe = publisher.subscribe(TelemetryField.MTU_SIZE, received.append)
    publisher.set(TelemetryField.MTU_SIZE, 23)

    unsubscribe()
    unsubscribe()
    publisher.set(TelemetryField.MTU_SIZE, 247)

    assert received == [23]


def test_subscribe_all_replays_and_forwards(publisher):
    publisher.set(TelemetryField.MTU_SIZE, 23)
    received = []

    unsubscribe = publisher.subscribe_all(lambda field, value: received.append((field, value)))
    publisher.set(TelemetryField.PDU_SIZE, 27)
    unsubscribe()
    publisher.set(TelemetryField.PDU_SIZE, 251)

    assert received == [
        (TelemetryField.MTU_SIZE, 23),
        (TelemetryField.PDU_SIZE, 27),
    ]


def test_failing_subscriber_does_not_block_others(publisher, caplog):
    received = []

    def broken(value):
        raise RuntimeError("observer failure")

    publisher.subscribe(TelemetryField.MTU_SIZE, broken)
    publisher.subscribe(TelemetryField.MTU_SIZE, received.append)

    with caplog.at_level(logging.ERROR, logger="linkrate.telemetry.publisher"):
        publisher.set(TelemetryField.MTU_SIZE, 247)

    assert received == [247]
    assert publisher.get(TelemetryField.MTU_SIZE) == 247
    assert "Telemetry subscriber raised an exception" in caplog.text


def test_dispatch_moves_delivery():
    queued = []
    publisher = TelemetryPublisher(dispatch=lambda fn, *args: queued.append((fn, args)))
    received = []
    publisher.subscribe(TelemetryField.THROUGHPUT_BPS, received.append)

    publisher.set(TelemetryField.THROUGHPUT_BPS, 4000)

    assert received == []
    assert publisher.get(TelemetryField.THROUGHPUT_BPS) == 4000
    for fn, args in queued:
        fn(*args)
    assert received == [4000]


def test_field_accepts_string_value(publisher):
    publisher.set("mtu_size", 185)

    assert publisher.get(TelemetryField.MTU_SIZE) == 185
