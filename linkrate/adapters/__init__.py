"""Adapter modules for external integrations."""

from .mqtt import MQTTClient, MQTTConnectionError, MQTTTelemetrySink

__all__ = [
    "MQTTClient",
    "MQTTConnectionError",
    "MQTTTelemetrySink",
]
