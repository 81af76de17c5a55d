"""Configuration loader for linkrate."""

from __future__ import annotations

from configparser import ConfigParser
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from . import constants


class LinkrateConfigError(ValueError):
    """Raised when a configuration value is out of range."""


@dataclass(slots=True)
class SamplerConfig:
    period_ms: int = constants.DEFAULT_SAMPLE_PERIOD_MS


@dataclass(slots=True)
class LoggingConfig:
    level: str = "INFO"
    path: Optional[Path] = None
    log_network: bool = False


@dataclass(slots=True)
class MQTTConfig:
    enabled: bool = False
    broker_host: str = constants.DEFAULT_BROKER_HOST
    broker_port: int = constants.DEFAULT_BROKER_PORT
    username: Optional[str] = None
    password: Optional[str] = None
    client_id: str = constants.DEFAULT_MQTT_CLIENT_ID
    topic_prefix: str = constants.DEFAULT_TOPIC_PREFIX


@dataclass(slots=True)
class LinkrateConfig:
    sampler: SamplerConfig
    logging: LoggingConfig
    mqtt: MQTTConfig
    path: Path


def _optional(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def load_config(path: Optional[Path] = None) -> LinkrateConfig:
    """Load configuration from disk, applying defaults where necessary."""

    config_path = path or constants.DEFAULT_CONFIG_PATH
    parser = ConfigParser()
    parser.read_dict(
        {
            "sampler": {
                "period_ms": str(constants.DEFAULT_SAMPLE_PERIOD_MS),
            },
            "logging": {
                "level": "INFO",
                "path": "",
                "log_network": "false",
            },
            "mqtt": {
                "enabled": "false",
                "broker_host": constants.DEFAULT_BROKER_HOST,
                "broker_port": str(constants.DEFAULT_BROKER_PORT),
                "client_id": constants.DEFAULT_MQTT_CLIENT_ID,
                "topic_prefix": constants.DEFAULT_TOPIC_PREFIX,
            },
        }
    )

    if config_path.exists():
        parser.read(config_path)

    period_ms = parser.getint(
        "sampler", "period_ms", fallback=constants.DEFAULT_SAMPLE_PERIOD_MS
    )
    if period_ms <= 0:
        raise LinkrateConfigError(
            f"sampler.period_ms must be positive (got {period_ms})"
        )

    broker_host_value = parser.get("mqtt", "broker_host")
    broker_port_value = parser.getint(
        "mqtt", "broker_port", fallback=constants.DEFAULT_BROKER_PORT
    )

    if ":" in broker_host_value:
        host_part, port_part = broker_host_value.rsplit(":", 1)
        try:
            parsed_port = int(port_part)
        except ValueError:
            pass
        else:
            broker_host_value = host_part
            broker_port_value = parsed_port

    log_path_value = _optional(parser.get("logging", "path", fallback=""))

    logging_config = LoggingConfig(
        level=parser.get("logging", "level", fallback="INFO"),
        path=Path(log_path_value).expanduser() if log_path_value else None,
        log_network=parser.getboolean("logging", "log_network", fallback=False),
    )

    mqtt = MQTTConfig(
        enabled=parser.getboolean("mqtt", "enabled", fallback=False),
        broker_host=broker_host_value,
        broker_port=broker_port_value,
        username=_optional(parser.get("mqtt", "username", fallback=None)),
        password=_optional(parser.get("mqtt", "password", fallback=None)),
        client_id=parser.get(
            "mqtt", "client_id", fallback=constants.DEFAULT_MQTT_CLIENT_ID
        ),
        topic_prefix=parser.get(
            "mqtt", "topic_prefix", fallback=constants.DEFAULT_TOPIC_PREFIX
        ).rstrip("/"),
    )

    return LinkrateConfig(
        sampler=SamplerConfig(period_ms=period_ms),
        logging=logging_config,
        mqtt=mqtt,
        path=config_path,
    )
