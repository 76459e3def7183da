"""GeoFusion asynchronous delivery
================================

Location sources usually push fixes from callbacks or subscriptions. A
:class:`FusionWorker` funnels them through one ``asyncio.Queue`` consumed
by a single task, so cycles for a session never interleave.

Usage::

    async with FusionWorker(FusionSession(), on_result=display) as worker:
        source.subscribe(worker.submit)
        ...
        await worker.join()

Results are also available on ``worker.results``. Delivering a result never
holds up the next cycle: coroutine callbacks are scheduled as tasks and
callback failures are logged.

License: AGPL-3.0-or-later
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Callable, Optional, Set

from .geofusion_errors import (
    FusionError, InvalidMeasurementError, SessionInactiveError,
)
from .geofusion_session import FusionSession, RejectCallback
from .geofusion_types import FusionResult, Measurement

logger = logging.getLogger(__name__)

ResultCallback = Callable[[FusionResult], Any]


class FusionWorker:
    """Single-consumer queue in front of a :class:`FusionSession`.

    Args:
        session: Session to drive (one worker per session)
        on_result: Sync function or coroutine function called per result
        on_rejected: Called with (measurement, error) for dropped fixes
        maxsize: Input queue bound (0 = unbounded)

    Queues are created by :meth:`start`, inside the running loop, so a
    worker can be built before the loop exists and restarted on a new one.
    """

    def __init__(self, session: FusionSession,
                 on_result: Optional[ResultCallback] = None,
                 on_rejected: Optional[RejectCallback] = None,
                 maxsize: int = 0):
        self.session = session
        self.on_result = on_result
        self.on_rejected = on_rejected
        self.maxsize = maxsize
        self._queue: Optional[asyncio.Queue] = None
        self.results: Optional[asyncio.Queue] = None
        self._task: Optional[asyncio.Task] = None
        self._pending: Set[asyncio.Task] = set()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Launch the consumer task (requires a running event loop)."""
        if self.running:
            return
        loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue(maxsize=self.maxsize)
        self.results = asyncio.Queue()
        if not self.session.active:
            self.session.start()
        self._task = loop.create_task(self._consume())

    async def stop(self) -> None:
        """Cancel the consumer and stop the session. Queued fixes are discarded."""
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        while self._queue is not None and not self._queue.empty():
            self._queue.get_nowait()
            self._queue.task_done()
        self.session.stop()

    def submit(self, measurement: Measurement) -> None:
        """Enqueue a fix without blocking (for source callbacks)."""
        self._check_accepting()
        self._queue.put_nowait(measurement)

    async def put(self, measurement: Measurement) -> None:
        """Enqueue a fix, waiting for room if the queue is bounded."""
        self._check_accepting()
        await self._queue.put(measurement)

    def _check_accepting(self) -> None:
        if not self.session.active:
            raise SessionInactiveError("Worker session is stopped")
        if self._queue is None:
            raise RuntimeError("Worker not started; call start() inside the event loop")

    async def join(self) -> None:
        """Wait until every queued fix has been processed."""
        if self._queue is None:
            return
        await self._queue.join()
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)

    async def _consume(self) -> None:
        while True:
            measurement = await self._queue.get()
            try:
                self._handle(measurement)
            finally:
                self._queue.task_done()

    def _handle(self, measurement: Measurement) -> None:
        try:
            result = self.session.process(measurement)
        except InvalidMeasurementError as exc:
            logger.warning("Dropped measurement: %s", exc)
            self._reject(measurement, exc)
            return
        except FusionError:
            logger.exception("Fusion cycle failed for t=%r", measurement.timestamp)
            return
        self.results.put_nowait(result)
        self._emit(result)

    def _reject(self, measurement: Measurement, exc: InvalidMeasurementError) -> None:
        if self.on_rejected is None:
            return
        try:
            self.on_rejected(measurement, exc)
        except Exception:
            logger.exception("Rejection callback failed for t=%r", measurement.timestamp)

    def _emit(self, result: FusionResult) -> None:
        if self.on_result is None:
            return
        if inspect.iscoroutinefunction(self.on_result):
            task = asyncio.get_running_loop().create_task(self.on_result(result))
            self._pending.add(task)
            task.add_done_callback(self._delivery_done)
            return
        try:
            self.on_result(result)
        except Exception:
            logger.exception("Result callback failed for t=%d", result.timestamp)

    def _delivery_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Async result callback failed: %r", task.exception())

    async def __aenter__(self) -> "FusionWorker":
        self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()
