from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable
from typing import Any, Optional, Tuple

from source_rcon.protocol.constants import DEFAULT_QUEUE_TIMEOUT_MS
from source_rcon.protocol.errors import RequestTimeout, SessionClosed
from source_rcon.utils.common import ms_to_seconds

logger = logging.getLogger(__name__)

Job = Callable[[], Awaitable[Any]]


class RequestSequencer:
    """
    Runs queued jobs strictly one at a time in submission order. Each job is bounded by
    ``timeout`` milliseconds; a job that overruns is cancelled and its caller gets
    RequestTimeout while the next job starts.
    """

    def __init__(self, timeout: float = DEFAULT_QUEUE_TIMEOUT_MS) -> None:
        self.timeout = timeout
        self._queue: asyncio.Queue[Tuple[Job, asyncio.Future]] = asyncio.Queue()
        self._task: Optional[asyncio.Task] = None
        self._busy: bool = False
        self._closed: bool = False

    @property
    def closed(self) -> bool:
        return self._closed

    def start(self) -> None:
        if self._task is None and not self._closed:
            self._task = asyncio.create_task(self._run(), name="rcon-request-sequencer")

    def enqueue(self, job: Job) -> asyncio.Future:
        """Queue ``job`` and return a future resolved with its result. Auto-starts the worker."""
        if self._closed:
            raise SessionClosed("Request sequencer is closed")
        future: asyncio.Future = asyncio.get_running_loop().create_future()
        self._queue.put_nowait((job, future))
        self.start()
        return future

    def shutdown(self) -> None:
        """Stop accepting jobs and fail queued ones. A running job is left to finish."""
        self._closed = True
        while not self._queue.empty():
            _job, future = self._queue.get_nowait()
            if not future.done():
                future.set_exception(SessionClosed("Session closed before the request was sent"))
            self._queue.task_done()
        if self._task is not None and not self._busy:
            self._task.cancel()

    async def close(self) -> None:
        task = self._task
        self.shutdown()
        if task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._task = None

    async def _run(self) -> None:
        while not self._closed:
            job, future = await self._queue.get()
            try:
                if future.done():
                    logger.debug("Skipping request cancelled by its caller")
                    continue
                self._busy = True
                await self._run_job(job, future)
            finally:
                self._busy = False
                self._queue.task_done()

    async def _run_job(self, job: Job, future: asyncio.Future) -> None:
        try:
            result = await asyncio.wait_for(job(), timeout=ms_to_seconds(self.timeout))
        except asyncio.TimeoutError:
            logger.warning("Request exceeded %s ms, moving on", self.timeout)
            if not future.done():
                future.set_exception(RequestTimeout(f"No response within {self.timeout} ms"))
        except asyncio.CancelledError:
            if not future.done():
                future.set_exception(SessionClosed("Session closed while the request was pending"))
            raise
        except Exception as exc:
            if not future.done():
                future.set_exception(exc)
        else:
            if not future.done():
                future.set_result(result)


__all__ = ["RequestSequencer", "Job"]
