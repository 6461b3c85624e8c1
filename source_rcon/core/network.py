from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable
from enum import StrEnum
from typing import Any, Dict, List, Optional, Tuple

from source_rcon.protocol.constants import DEFAULT_HOST, DEFAULT_PORT, DEFAULT_TIMEOUT_MS
from source_rcon.protocol.errors import MalformedPacket, NotWritable, TransportError
from source_rcon.protocol.framing import FrameBuffer
from source_rcon.utils.common import ms_to_seconds

logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 65536

Listener = Callable[..., Any]


class TransportEvent(StrEnum):
    DATA = "data"
    ERROR = "error"
    CLOSE = "close"


class RconTransport:
    """TCP connection that reports deliveries, errors and closure to registered listeners."""

    def __init__(
        self,
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
        timeout: float = DEFAULT_TIMEOUT_MS,
        reassemble_frames: bool = True,
    ) -> None:
        self.host = host
        self.port = port
        self.timeout = timeout
        self.reader: Optional[asyncio.StreamReader] = None
        self.writer: Optional[asyncio.StreamWriter] = None
        self.connected: bool = False
        self.closed: bool = False
        self._closing: bool = False
        self._receive_task: Optional[asyncio.Task] = None
        self._close_task: Optional[asyncio.Task] = None
        self._frames: Optional[FrameBuffer] = FrameBuffer() if reassemble_frames else None
        self._listeners: Dict[TransportEvent, List[Tuple[Listener, bool]]] = {event: [] for event in TransportEvent}

    @property
    def writable(self) -> bool:
        return self.connected and not self._closing and self.writer is not None and not self.writer.is_closing()

    @property
    def destroyed(self) -> bool:
        return self._closing or self.closed

    async def connect(self) -> None:
        if self.connected:
            return
        if self.destroyed:
            raise TransportError("Transport has been destroyed")
        try:
            self.reader, self.writer = await asyncio.wait_for(
                asyncio.open_connection(self.host, self.port), timeout=ms_to_seconds(self.timeout)
            )
        except (OSError, asyncio.TimeoutError) as exc:
            logger.warning("Connect to %s:%s failed: %s", self.host, self.port, exc)
            raise TransportError(f"Unable to connect to {self.host}:{self.port}: {exc!r}") from exc
        self.connected = True
        logger.info("Connected to %s:%s", self.host, self.port)
        self._receive_task = asyncio.create_task(self._receive_loop(), name="rcon-recv-loop")

    def add_listener(self, event: TransportEvent, callback: Listener, once: bool = False) -> None:
        self._listeners[TransportEvent(event)].append((callback, once))

    def remove_listener(self, event: TransportEvent, callback: Listener) -> None:
        listeners = self._listeners[TransportEvent(event)]
        for index, (registered, _once) in enumerate(listeners):
            if registered is callback:
                del listeners[index]
                return

    def listener_count(self, event: TransportEvent) -> int:
        return len(self._listeners[TransportEvent(event)])

    def emit(self, event: TransportEvent, *args: Any) -> bool:
        listeners = list(self._listeners[event])
        for callback, once in listeners:
            if once:
                self.remove_listener(event, callback)
            try:
                callback(*args)
            except Exception as exc:
                logger.exception("Listener error for %s: %s", event, exc)
        return bool(listeners)

    async def write(self, data: bytes) -> None:
        if not self.writable:
            raise NotWritable()
        assert self.writer is not None
        try:
            self.writer.write(data)
            await asyncio.wait_for(self.writer.drain(), timeout=ms_to_seconds(self.timeout))
        except (ConnectionError, OSError, asyncio.TimeoutError) as exc:
            logger.warning("Write to %s:%s failed: %s", self.host, self.port, exc)
            raise TransportError(f"Write failed: {exc!r}") from exc
        logger.debug("Wrote %s bytes to %s:%s", len(data), self.host, self.port)

    def destroy(self) -> None:
        """Force the connection closed; ``close`` (preceded by ``error`` on failure) follows."""
        if self.destroyed:
            return
        self._closing = True
        self._close_task = asyncio.create_task(self._finish_close(None), name="rcon-transport-close")

    async def _receive_loop(self) -> None:
        assert self.reader is not None
        error: Optional[BaseException] = None
        try:
            while True:
                chunk = await self.reader.read(READ_CHUNK_SIZE)
                if not chunk:
                    logger.info("Server %s:%s closed the connection", self.host, self.port)
                    break
                for delivery in self._split(chunk):
                    if not self.emit(TransportEvent.DATA, delivery):
                        logger.debug("Discarding %s bytes with no pending request", len(delivery))
        except (ConnectionError, OSError, MalformedPacket) as exc:
            logger.error("Receive loop terminated: %s", exc)
            error = exc
        if not self.destroyed:
            self._closing = True
            await self._finish_close(error)

    def _split(self, chunk: bytes) -> List[bytes]:
        if self._frames is None:
            return [chunk]
        return self._frames.feed(chunk)

    async def _finish_close(self, error: Optional[BaseException]) -> None:
        self.connected = False
        task = self._receive_task
        if task is not None and task is not asyncio.current_task() and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        if self.writer is not None:
            self.writer.close()
            try:
                await self.writer.wait_closed()
            except (ConnectionError, OSError) as exc:
                error = error or exc
        if self._frames is not None:
            self._frames.clear()
        self.closed = True
        if error is not None:
            self.emit(TransportEvent.ERROR, error)
        self.emit(TransportEvent.CLOSE)
        logger.info("Transport to %s:%s closed", self.host, self.port)


__all__ = ["RconTransport", "TransportEvent", "Listener"]
