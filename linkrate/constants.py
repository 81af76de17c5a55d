"""Constants used across the linkrate package."""

from __future__ import annotations

from pathlib import Path

APP_NAME = "linkrate"
DEFAULT_CONFIG_FILENAME = f"{APP_NAME}.cfg"
DEFAULT_CONFIG_PATH = Path.home() / ".config" / APP_NAME / DEFAULT_CONFIG_FILENAME

# Throughput display refresh period.
DEFAULT_SAMPLE_PERIOD_MS = 200

DEFAULT_BROKER_HOST = "localhost"
DEFAULT_BROKER_PORT = 1883
DEFAULT_MQTT_CLIENT_ID = APP_NAME
DEFAULT_TOPIC_PREFIX = f"{APP_NAME}/telemetry"
