"""Periodic throughput sampling.

The sampler accumulates received (or sent) bits and converts them into a
bits-per-second rate once every sampling period. Producers may call
``add_bits`` from any thread, and ``start``/``stop`` may be called from any
thread once the sampler is bound to a loop. The periodic tick runs on that
loop. The counter, the running state and the task generation share one lock
so a read-and-reset never loses bits added concurrently, and a stop always
wins over a tick racing it.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from enum import Enum
from threading import RLock
from typing import Callable, Optional

from ..constants import DEFAULT_SAMPLE_PERIOD_MS

LOGGER = logging.getLogger(__name__)

RatePublisher = Callable[[int], None]


class SamplerState(str, Enum):
    STOPPED = "stopped"
    RUNNING = "running"


class RateSampler:
    """Bit counter sampled on a fixed period.

    Args:
        publish: Receives every computed rate in bits per second.
        period_ms: Sampling period in milliseconds.
        loop: Event loop for the periodic task. Defaults to the loop running
            when ``start`` is first called.
    """

    def __init__(
        self,
        publish: RatePublisher,
        *,
        period_ms: int = DEFAULT_SAMPLE_PERIOD_MS,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        if period_ms <= 0:
            raise ValueError(f"period_ms must be positive (got {period_ms})")
        self._publish = publish
        self._period_ms = int(period_ms)
        self._loop = loop
        self._lock = RLock()
        self._bits = 0
        self._state = SamplerState.STOPPED
        self._task: Optional[asyncio.Task[None]] = None
        self._generation = 0

    @property
    def period_ms(self) -> int:
        return self._period_ms

    @property
    def state(self) -> SamplerState:
        with self._lock:
            return self._state

    @property
    def is_running(self) -> bool:
        return self.state is SamplerState.RUNNING

    @property
    def pending_bits(self) -> int:
        with self._lock:
            return self._bits

    def add_bits(self, byte_count: int) -> None:
        if byte_count < 0:
            raise ValueError(f"byte_count must not be negative (got {byte_count})")
        with self._lock:
            self._bits += byte_count * 8

    def bind(self, loop: asyncio.AbstractEventLoop) -> None:
        """Attach the event loop that runs the periodic task."""
        with self._lock:
            self._loop = loop

    def start(self) -> None:
        """Begin periodic sampling. Has no effect while already running.

        Callable from any thread once a loop is bound; off-loop callers have
        the task created on the loop.
        """
        with self._lock:
            if self._state is SamplerState.RUNNING:
                return
            loop = self._loop or asyncio.get_running_loop()
            self._loop = loop
            self._generation += 1
            self._state = SamplerState.RUNNING
            if _on_loop(loop):
                self._spawn(self._generation)
            else:
                loop.call_soon_threadsafe(self._spawn, self._generation)
        LOGGER.debug("Rate sampler started (period=%dms)", self._period_ms)

    def stop(self) -> None:
        """Cancel sampling, clear the counter and publish a zero rate.

        Once this returns no earlier tick can publish, whichever thread calls it.
        """
        with self._lock:
            was_running = self._state is SamplerState.RUNNING
            task = self._task
            self._task = None
            self._state = SamplerState.STOPPED
            self._generation += 1
            self._bits = 0
            if task is not None:
                task_loop = task.get_loop()
                if _on_loop(task_loop):
                    task.cancel()
                elif not task_loop.is_closed():
                    task_loop.call_soon_threadsafe(task.cancel)
            self._publish(0)
        if was_running:
            LOGGER.debug("Rate sampler stopped")

    def sample(self) -> Optional[int]:
        """Publish the rate for the elapsed period and reset the counter.

        Returns the published rate, or None when the sampler is stopped.
        """
        with self._lock:
            if self._state is not SamplerState.RUNNING:
                return None
            rate = self._bits * 1000 // self._period_ms
            self._bits = 0
            # Published under the lock so a concurrent stop always publishes last.
            self._publish(rate)
        return rate

    async def aclose(self) -> None:
        """Stop sampling and wait for the periodic task to finish."""
        task = self._task
        self.stop()
        if task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await task

    def _spawn(self, generation: int) -> None:
        with self._lock:
            if self._state is not SamplerState.RUNNING or generation != self._generation:
                return
            assert self._loop is not None
            self._task = self._loop.create_task(
                self._run(generation), name="linkrate-rate-sampler"
            )

    def _tick(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation:
                return
            self.sample()

    async def _run(self, generation: int) -> None:
        loop = asyncio.get_running_loop()
        period = self._period_ms / 1000
        deadline = loop.time() + period
        while True:
            await asyncio.sleep(max(deadline - loop.time(), 0.0))
            try:
                self._tick(generation)
            except Exception:
                LOGGER.exception("Rate sample failed; counter was reset")
            deadline += period


def _on_loop(loop: asyncio.AbstractEventLoop) -> bool:
    try:
        return asyncio.get_running_loop() is loop
    except RuntimeError:
        return False
