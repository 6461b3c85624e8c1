from __future__ import annotations

import asyncio
import os
import struct
from typing import Callable, Dict, List, Optional

import pytest

from source_rcon.config import DEFAULT_CONFIG, RCON_CONFIG
from source_rcon.core.network import RconTransport, TransportEvent
from source_rcon.protocol import NotWritable, Packet, decode, encode

Responder = Callable[[Packet], List[bytes]]


class FakeTransport(RconTransport):
    """In-memory transport: answers each write through ``responder`` on the next loop turn."""

    def __init__(
        self,
        responder: Optional[Responder] = None,
        delays: Optional[Dict[str, float]] = None,
        close_error: Optional[BaseException] = None,
    ) -> None:
        super().__init__("fake.invalid", 27015)
        self.responder = responder
        self.delays = delays or {}
        self.close_error = close_error
        self.written: List[bytes] = []
        self.outstanding = 0
        self.max_outstanding = 0

    @property
    def writable(self) -> bool:
        return self.connected and not self.destroyed

    async def connect(self) -> None:
        self.connected = True

    async def write(self, data: bytes) -> None:
        if not self.writable:
            raise NotWritable()
        self.written.append(data)
        if self.responder is None:
            return
        request = decode(data)
        frames = self.responder(request)
        if not frames:
            return
        self.outstanding += 1
        self.max_outstanding = max(self.max_outstanding, self.outstanding)
        delay = self.delays.get(request.body, 0)
        asyncio.get_running_loop().call_later(delay, self._deliver, frames)

    def _deliver(self, frames: List[bytes]) -> None:
        self.outstanding -= 1
        for frame in frames:
            self.emit(TransportEvent.DATA, frame)

    def destroy(self) -> None:
        if self.destroyed:
            return
        self._closing = True
        asyncio.get_running_loop().call_soon(self._close_now)

    def _close_now(self) -> None:
        self.connected = False
        self.closed = True
        if self.close_error is not None:
            self.emit(TransportEvent.ERROR, self.close_error)
        self.emit(TransportEvent.CLOSE)


def auth_ok(request: Packet) -> List[bytes]:
    if request.type == 3:
        return [encode(2, request.id, "")]
    return [encode(0, request.id, f"{request.body}\n")]


class FakeRconServer:
    """Minimal Source RCON server on localhost for end-to-end tests."""

    def __init__(self, password: str = "secret", send_preamble: bool = True, split_responses: bool = False) -> None:
        self.password = password
        self.send_preamble = send_preamble
        self.split_responses = split_responses
        self.received: List[Packet] = []
        self._server: Optional[asyncio.AbstractServer] = None
        self.port = 0

    async def start(self) -> "FakeRconServer":
        self._server = await asyncio.start_server(self._handle, "127.0.0.1", 0)
        self.port = self._server.sockets[0].getsockname()[1]
        return self

    async def stop(self) -> None:
        if self._server is not None:
            self._server.close()
            await self._server.wait_closed()

    async def _handle(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        try:
            while True:
                (size,) = struct.unpack("<i", await reader.readexactly(4))
                packet = decode(struct.pack("<i", size) + await reader.readexactly(size))
                self.received.append(packet)
                if packet.type == 3:
                    reply_id = packet.id if packet.body == self.password else -1
                    reply = encode(2, reply_id, "")
                    if self.send_preamble:
                        reply = encode(0, packet.id, "") + reply
                    writer.write(reply)
                else:
                    reply = encode(0, packet.id, f"echo: {packet.body}\n")
                    if self.split_responses:
                        writer.write(reply[:5])
                        await writer.drain()
                        await asyncio.sleep(0.01)
                        reply = reply[5:]
                    writer.write(reply)
                await writer.drain()
        except (asyncio.IncompleteReadError, ConnectionError):
            pass
        finally:
            writer.close()


@pytest.fixture
def clean_config():
    saved = dict(RCON_CONFIG)
    env_keys = [f"RCON_{key.upper()}" for key in DEFAULT_CONFIG]
    saved_env = {key: os.environ.pop(key) for key in env_keys if key in os.environ}
    yield RCON_CONFIG
    for key in env_keys:
        os.environ.pop(key, None)
    os.environ.update(saved_env)
    RCON_CONFIG.clear()
    RCON_CONFIG.update(saved)
