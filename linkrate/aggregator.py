"""Throughput test telemetry aggregator.

The host application feeds every raw attribute update into
:meth:`ThroughputAggregator.handle_update` and observes the results through
the :class:`TelemetryPublisher`.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

from .adapters import MQTTClient, MQTTTelemetrySink
from .config import LinkrateConfig, load_config
from .core.models import (
    AttributeTag,
    DecodeResult,
    FieldUpdate,
    RawAttributeUpdate,
    TelemetryField,
    TestDirection,
    ToggleSignal,
    TrafficPacket,
)
from .decoder import MalformedPayload, decode
from .logging import configure_logging
from .telemetry import RateSampler, TelemetryPublisher, TestStateController

LOGGER = logging.getLogger(__name__)


class ThroughputAggregator:
    """Routes decoded attribute updates to telemetry, sampling and test state.

    ``handle_update`` and the sampler's periodic task run on one event loop.
    Feeds that deliver updates on another thread use ``submit_threadsafe``;
    ``toggle_test`` and ``record_sent`` may be called from any thread once
    ``start`` has bound the loop.
    """

    def __init__(
        self,
        config: Optional[LinkrateConfig] = None,
        *,
        publisher: Optional[TelemetryPublisher] = None,
        mqtt_client: Optional[MQTTClient] = None,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        self._config = config or load_config()
        self._publisher = publisher or TelemetryPublisher()
        self._sampler = RateSampler(
            self._publish_rate,
            period_ms=self._config.sampler.period_ms,
            loop=loop,
        )
        self._controller = TestStateController(self._sampler, self._publisher)
        self._mqtt_client = mqtt_client
        self._sink: Optional[MQTTTelemetrySink] = None
        self._loop = loop

    @classmethod
    def from_config_path(cls, path: Optional[Path] = None) -> "ThroughputAggregator":
        """Load configuration, configure logging and build an aggregator."""
        config = load_config(path)
        configure_logging(config.logging)
        return cls(config)

    @property
    def config(self) -> LinkrateConfig:
        return self._config

    @property
    def publisher(self) -> TelemetryPublisher:
        return self._publisher

    @property
    def sampler(self) -> RateSampler:
        return self._sampler

    @property
    def controller(self) -> TestStateController:
        return self._controller

    async def start(self) -> None:
        """Bind to the running loop and connect the MQTT sink when enabled."""

        self._loop = asyncio.get_running_loop()
        self._sampler.bind(self._loop)
        if not self._config.mqtt.enabled or self._sink is not None:
            return

        client = self._mqtt_client or MQTTClient(self._config.mqtt)
        await client.connect()
        self._mqtt_client = client
        self._sink = MQTTTelemetrySink(
            client, self._publisher, topic_prefix=self._config.mqtt.topic_prefix
        )
        self._sink.start()
        LOGGER.info(
            "Forwarding telemetry to MQTT topic prefix %s",
            self._config.mqtt.topic_prefix,
        )

    async def aclose(self) -> None:
        await self._sampler.aclose()
        if self._sink is not None:
            self._sink.stop()
            self._sink = None
            if self._mqtt_client is not None:
                await self._mqtt_client.disconnect()

    def handle_update(self, update: RawAttributeUpdate) -> bool:
        """Decode and apply a single attribute update.

        Returns False when the update was ignored or dropped.
        """
        tag = AttributeTag.parse(update.tag)
        if tag is None:
            LOGGER.debug("Ignoring update for unknown attribute %r", update.tag)
            return False

        try:
            result = decode(tag, update.payload)
        except MalformedPayload as exc:
            LOGGER.warning("Dropping malformed attribute update: %s", exc)
            return False

        if result is None:
            return False
        self._apply(result)
        return True

    def submit_threadsafe(self, update: RawAttributeUpdate) -> None:
        """Queue ``update`` for handling on the aggregator's event loop."""
        loop = self._loop
        if loop is None:
            raise RuntimeError("Aggregator is not bound to an event loop")
        loop.call_soon_threadsafe(self.handle_update, update)

    def toggle_test(self, direction: TestDirection, turn_on: bool) -> None:
        """Start or stop a test. Callable from any thread after ``start``."""
        self._controller.toggle(direction, turn_on)

    def record_sent(self, byte_count: int) -> None:
        """Count bytes written by the local upload test."""
        self._sampler.add_bits(byte_count)

    def _apply(self, result: DecodeResult) -> None:
        if isinstance(result, FieldUpdate):
            self._publisher.set(result.field, result.value)
        elif isinstance(result, ToggleSignal):
            self._controller.toggle(TestDirection.DOWNLOAD, result.enabled)
        elif isinstance(result, TrafficPacket):
            self._publisher.set(TelemetryField.NOTIFICATIONS_MODE, not result.acknowledged)
            self._sampler.add_bits(result.byte_count)
            self._publisher.set(TelemetryField.LAST_PACKET_PREVIEW, result.preview)

    def _publish_rate(self, bits_per_second: int) -> None:
        self._publisher.set(TelemetryField.THROUGHPUT_BPS, bits_per_second)
