"""MQTT adapter forwarding telemetry through the paho-mqtt client."""

from __future__ import annotations

import asyncio
import json
import logging
from enum import Enum
from typing import Any, Callable, Optional

import paho.mqtt.client as mqtt

from ..config import MQTTConfig
from ..core.models import TelemetryField
from ..telemetry.publisher import TelemetryPublisher

LOGGER = logging.getLogger(__name__)


class MQTTConnectionError(RuntimeError):
    """Raised when the MQTT client fails to establish a connection."""


class MQTTClient:
    """Async-friendly wrapper over the threaded paho-mqtt client."""

    def __init__(self, config: MQTTConfig, *, keepalive: int = 60) -> None:
        self.config = config
        self.keepalive = keepalive

        self._client: Optional[mqtt.Client] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._connected_event: Optional[asyncio.Event] = None
        self._disconnect_event: Optional[asyncio.Event] = None
        self._last_connect_rc: Optional[Any] = None

    async def connect(self, timeout: float = 30.0) -> None:
        """Connect to the MQTT broker and wait for acknowledgement."""

        self._loop = asyncio.get_running_loop()
        self._connected_event = asyncio.Event()
        self._disconnect_event = asyncio.Event()
        self._last_connect_rc = None

        client = mqtt.Client(
            mqtt.CallbackAPIVersion.VERSION2, client_id=self.config.client_id
        )
        client.enable_logger(LOGGER.getChild("paho"))

        if self.config.username:
            client.username_pw_set(self.config.username, self.config.password)

        client.on_connect = self._on_connect
        client.on_disconnect = self._on_disconnect

        self._client = client

        LOGGER.info(
            "Connecting to MQTT broker %s:%s",
            self.config.broker_host,
            self.config.broker_port,
        )

        client.connect_async(
            self.config.broker_host, self.config.broker_port, self.keepalive
        )
        client.loop_start()

        try:
            await asyncio.wait_for(self._connected_event.wait(), timeout=timeout)
            if self._last_connect_rc is None or self._last_connect_rc != 0:
                raise MQTTConnectionError(
                    f"MQTT broker rejected connection (rc={self._last_connect_rc})"
                )
        except asyncio.TimeoutError as exc:
            client.loop_stop()
            self._client = None
            raise MQTTConnectionError("Timed out connecting to MQTT broker") from exc
        except MQTTConnectionError:
            client.loop_stop()
            self._client = None
            raise

    async def disconnect(self, timeout: float = 5.0) -> None:
        """Gracefully disconnect from the broker."""

        if not self._client:
            return

        assert self._disconnect_event is not None

        self._client.disconnect()

        try:
            await asyncio.wait_for(self._disconnect_event.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            LOGGER.warning("Timed out waiting for MQTT disconnect acknowledgement")
        finally:
            self._client.loop_stop()
            self._client = None

    def publish(
        self, topic: str, payload: bytes, qos: int = 1, retain: bool = False
    ) -> None:
        if not self._client:
            raise MQTTConnectionError("MQTT client not connected")

        info = self._client.publish(topic, payload, qos=qos, retain=retain)
        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            raise MQTTConnectionError(f"Publish failed with rc={info.rc}")

    # ------------------------------------------------------------------
    # Internal callbacks bridging the threaded paho callbacks into asyncio
    # ------------------------------------------------------------------
    def _on_connect(self, client, userdata, flags, reason_code, properties=None) -> None:
        self._last_connect_rc = reason_code
        if reason_code == 0:
            LOGGER.info("Connected to MQTT broker")
        else:
            LOGGER.error("MQTT connection failed with rc=%s", reason_code)
        self._signal(self._connected_event)

    def _on_disconnect(
        self, client, userdata, disconnect_flags, reason_code=None, properties=None
    ) -> None:
        LOGGER.info("Disconnected from MQTT broker (rc=%s)", reason_code)
        self._signal(self._disconnect_event)

    def _signal(self, event: Optional[asyncio.Event]) -> None:
        if event is None:
            return
        loop = self._loop
        if loop is None or loop.is_closed():
            event.set()
            return
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is loop:
            event.set()
        else:
            loop.call_soon_threadsafe(event.set)


def encode_field_value(value: Any) -> bytes:
    if isinstance(value, Enum):
        value = value.value
    return json.dumps({"value": value}, separators=(",", ":")).encode("utf-8")


class MQTTTelemetrySink:
    """Publish every telemetry field as a retained MQTT message.

    Each field is sent to ``<topic_prefix>/<field>`` as ``{"value": ...}``.
    Publish failures are logged and never reach the telemetry producers.
    """

    def __init__(
        self,
        client: MQTTClient,
        publisher: TelemetryPublisher,
        *,
        topic_prefix: str,
        qos: int = 0,
    ) -> None:
        self._client = client
        self._publisher = publisher
        self._topic_prefix = topic_prefix.rstrip("/")
        self._qos = qos
        self._unsubscribe: Optional[Callable[[], None]] = None

    def topic_for(self, field: TelemetryField) -> str:
        return f"{self._topic_prefix}/{field.value}"

    def start(self) -> None:
        if self._unsubscribe is not None:
            return
        self._unsubscribe = self._publisher.subscribe_all(self._forward)

    def stop(self) -> None:
        if self._unsubscribe is None:
            return
        self._unsubscribe()
        self._unsubscribe = None

    def _forward(self, field: TelemetryField, value: Any) -> None:
        try:
            self._client.publish(
                self.topic_for(field),
                encode_field_value(value),
                qos=self._qos,
                retain=True,
            )
        except MQTTConnectionError as exc:
            LOGGER.warning("Dropping %s telemetry update: %s", field.value, exc)
