"""Logging configuration for the ``linkrate`` logger hierarchy.

Only the ``linkrate`` logger is touched. Handlers installed by the host on the
root logger are left alone, and records emitted under ``linkrate`` do not
propagate to them once :func:`configure_logging` has run.
"""

from __future__ import annotations

import logging

from .config import LoggingConfig
from .constants import APP_NAME

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

# paho-mqtt logs through this child once the MQTT client is created.
NETWORK_LOGGER_NAME = f"{APP_NAME}.adapters.mqtt.paho"


class _LinkrateHandlerMixin:
    """Marks handlers owned by :func:`configure_logging`."""


class _StreamHandler(_LinkrateHandlerMixin, logging.StreamHandler):
    pass


class _FileHandler(_LinkrateHandlerMixin, logging.FileHandler):
    pass


def configure_logging(config: LoggingConfig) -> logging.Logger:
    """Install console and optional file handlers on the ``linkrate`` logger.

    Calling this again replaces the handlers from the previous call, so a
    reloaded configuration never duplicates output.
    """

    logger = logging.getLogger(APP_NAME)
    for handler in list(logger.handlers):
        if isinstance(handler, _LinkrateHandlerMixin):
            logger.removeHandler(handler)
            handler.close()

    logger.setLevel(getattr(logging, config.level.upper(), logging.INFO))
    logger.propagate = False

    formatter = logging.Formatter(LOG_FORMAT)
    console = _StreamHandler()
    console.setFormatter(formatter)
    logger.addHandler(console)

    if config.path:
        config.path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = _FileHandler(config.path)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    network = logging.getLogger(NETWORK_LOGGER_NAME)
    network.setLevel(logging.NOTSET if config.log_network else logging.WARNING)
    return logger
