"""Telemetry state, sampling and test activation."""

from .direction_state import TestStateController
from .publisher import TelemetryPublisher, TelemetrySnapshot
from .sampler import RateSampler, SamplerState

__all__ = [
    "RateSampler",
    "SamplerState",
    "TelemetryPublisher",
    "TelemetrySnapshot",
    "TestStateController",
]
