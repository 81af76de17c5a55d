"""Latest-value telemetry store with per-field subscriptions."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from threading import RLock
from typing import Any, Callable, Dict, List, Optional

from ..core.models import PhyStatus, TelemetryField

LOGGER = logging.getLogger(__name__)

FieldCallback = Callable[[Any], None]
AnyFieldCallback = Callable[[TelemetryField, Any], None]
Dispatcher = Callable[..., Any]


@dataclass
class TelemetrySnapshot:
    phy_status: Optional[PhyStatus] = None
    mtu_size: Optional[int] = None
    pdu_size: Optional[int] = None
    connection_interval_ms: Optional[float] = None
    slave_latency_ms: Optional[float] = None
    supervision_timeout_ms: Optional[int] = None
    throughput_bps: Optional[int] = None
    last_packet_preview: Optional[str] = None
    download_active: bool = False
    upload_active: bool = False
    notifications_mode: bool = True


def _invoke(callback: Callable[..., None], *args: Any) -> None:
    try:
        callback(*args)
    except Exception:
        LOGGER.exception("Telemetry subscriber raised an exception")


class TelemetryPublisher:
    """Hold the latest value of every telemetry field and fan it out.

    Updates are fire-and-forget: ``set`` never waits for observers. Updates
    to the same field reach each subscriber in the order they were applied.
    A ``dispatch`` callable (for example ``loop.call_soon_threadsafe``) can
    move delivery onto the observer's own thread; it must preserve FIFO order.
    """

    def __init__(self, *, dispatch: Optional[Dispatcher] = None) -> None:
        self._snapshot = TelemetrySnapshot()
        self._dispatch = dispatch
        self._subscribers: Dict[TelemetryField, List[FieldCallback]] = {}
        self._any_subscribers: List[AnyFieldCallback] = []
        self._has_value: set[TelemetryField] = set()
        self._lock = RLock()

    def set(self, field: TelemetryField, value: Any) -> None:
        field = TelemetryField(field)
        with self._lock:
            setattr(self._snapshot, field.value, value)
            self._has_value.add(field)
            callbacks = list(self._subscribers.get(field, ()))
            any_callbacks = list(self._any_subscribers)
            # Delivery stays inside the lock so same-field updates cannot interleave.
            for callback in callbacks:
                self._deliver(callback, value)
            for any_callback in any_callbacks:
                self._deliver(any_callback, field, value)

    def get(self, field: TelemetryField) -> Any:
        field = TelemetryField(field)
        with self._lock:
            return getattr(self._snapshot, field.value)

    def snapshot(self) -> TelemetrySnapshot:
        with self._lock:
            return replace(self._snapshot)

    def subscribe(
        self, field: TelemetryField, callback: FieldCallback
    ) -> Callable[[], None]:
        """Register ``callback`` for ``field`` and return an unsubscribe function.

        The current value is replayed immediately when the field has been set.
        """
        field = TelemetryField(field)
        with self._lock:
            self._subscribers.setdefault(field, []).append(callback)
            if field in self._has_value:
                self._deliver(callback, getattr(self._snapshot, field.value))

        def _unsubscribe() -> None:
            with self._lock:
                callbacks = self._subscribers.get(field, [])
                if callback in callbacks:
                    callbacks.remove(callback)

        return _unsubscribe

    def subscribe_all(self, callback: AnyFieldCallback) -> Callable[[], None]:
        """Register ``callback`` for every field; current values are replayed."""
        with self._lock:
            self._any_subscribers.append(callback)
            for field in TelemetryField:
                if field in self._has_value:
                    self._deliver(callback, field, getattr(self._snapshot, field.value))

        def _unsubscribe() -> None:
            with self._lock:
                if callback in self._any_subscribers:
                    self._any_subscribers.remove(callback)

        return _unsubscribe

    def _deliver(self, callback: Callable[..., None], *args: Any) -> None:
        if self._dispatch is None:
            _invoke(callback, *args)
        else:
            self._dispatch(_invoke, callback, *args)

