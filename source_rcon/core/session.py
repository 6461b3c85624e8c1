from __future__ import annotations

import asyncio
import logging
from enum import StrEnum
from typing import Any, Dict, Optional

from source_rcon.config import RCON_CONFIG, validate_config
from source_rcon.core.network import RconTransport, TransportEvent
from source_rcon.core.sequencer import RequestSequencer
from source_rcon.protocol.constants import (
    AUTH_FAILED_ID,
    AUTH_REQUEST_ID,
    SERVERDATA_AUTH,
    SERVERDATA_AUTH_RESPONSE,
    SERVERDATA_EXECCOMMAND,
    SERVERDATA_RESPONSE_VALUE,
)
from source_rcon.protocol.errors import (
    AlreadyAuthenticated,
    AuthenticationFailed,
    DisconnectError,
    MalformedPacket,
    NotAuthenticated,
    NotWritable,
    PacketTooLarge,
    RequestTimeout,
    SessionClosed,
    TransportError,
)
from source_rcon.protocol.framing import decode, encode
from source_rcon.protocol.messages import Packet
from source_rcon.utils.common import ms_to_seconds, random_request_id

logger = logging.getLogger(__name__)


class SessionState(StrEnum):
    CREATED = "created"
    AUTHENTICATED = "authenticated"
    CLOSED = "closed"


class RconSession:
    """
    One authenticated RCON connection (https://developer.valvesoftware.com/wiki/Source_RCON).

    Commands are funnelled through a RequestSequencer so only one request is ever in
    flight and each response goes to the caller that sent the matching request.
    Authentication talks to the transport directly and must not overlap other calls.
    A closed session cannot be reopened; build a new one to reconnect.
    """

    def __init__(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        maximum_packet_size: Optional[int] = None,
        encoding: Optional[str] = None,
        timeout: Optional[float] = None,
        *,
        skip_auth_preamble: Optional[bool] = None,
        reassemble_frames: Optional[bool] = None,
        queue_timeout: Optional[float] = None,
        config: Optional[Dict[str, Any]] = None,
        transport: Optional[RconTransport] = None,
    ) -> None:
        overrides = {
            "host": host,
            "port": port,
            "maximum_packet_size": maximum_packet_size,
            "encoding": encoding,
            "timeout": timeout,
            "skip_auth_preamble": skip_auth_preamble,
            "reassemble_frames": reassemble_frames,
            "queue_timeout": queue_timeout,
        }
        options = {**RCON_CONFIG, **(config or {})}
        options.update({key: value for key, value in overrides.items() if value is not None})
        validate_config(options)

        self.host: str = options["host"]
        self.port: int = int(options["port"])
        self.maximum_packet_size: int = int(options["maximum_packet_size"])
        self.encoding: str = options["encoding"]
        self.timeout: float = options["timeout"]
        self.skip_auth_preamble: bool = bool(options["skip_auth_preamble"])

        self.state: SessionState = SessionState.CREATED
        self.transport = transport or RconTransport(
            self.host, self.port, self.timeout, reassemble_frames=bool(options["reassemble_frames"])
        )
        self.sequencer = RequestSequencer(options["queue_timeout"])
        self.transport.add_listener(TransportEvent.ERROR, self._on_transport_error)
        self.transport.add_listener(TransportEvent.CLOSE, self._on_transport_close)

    @property
    def authenticated(self) -> bool:
        return self.state is SessionState.AUTHENTICATED

    @property
    def closed(self) -> bool:
        return self.state is SessionState.CLOSED

    async def __aenter__(self) -> "RconSession":
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.disconnect()

    async def connect(self) -> None:
        if self.closed:
            raise SessionClosed("Session was disconnected, create a new one to reconnect")
        await self.transport.connect()

    async def authenticate(self, password: str) -> None:
        if self.authenticated:
            raise AlreadyAuthenticated()
        await self.connect()

        try:
            packet = await asyncio.wait_for(
                self.write(SERVERDATA_AUTH, AUTH_REQUEST_ID, password), timeout=ms_to_seconds(self.timeout)
            )
        except asyncio.TimeoutError as exc:
            raise RequestTimeout(f"No authentication response within {self.timeout} ms") from exc

        # The server answers with an empty RESPONSE_VALUE followed by AUTH_RESPONSE;
        # only the first delivery is inspected unless skip_auth_preamble is set.
        if packet.type != SERVERDATA_AUTH_RESPONSE:
            await self._fail_authentication(f"Unexpected response type {packet.type} to auth request")
        if packet.id == AUTH_FAILED_ID:
            await self._fail_authentication("Server rejected the password")

        self.state = SessionState.AUTHENTICATED
        logger.info("Authenticated to %s:%s", self.host, self.port)

    async def execute(self, command: str) -> str:
        """Run ``command`` on the server and return its output with one trailing newline removed."""
        if not self.authenticated:
            raise NotAuthenticated("Authenticate before executing commands")
        if not self.transport.writable:
            raise NotWritable()

        request_id = random_request_id()
        logger.debug("Queueing command %r as request %s", command, request_id)
        packet = await self.sequencer.enqueue(lambda: self.write(SERVERDATA_EXECCOMMAND, request_id, command))
        return packet.body

    async def disconnect(self) -> None:
        """Tear down the connection. Waits for the transport to report closed."""
        self._mark_closed()
        if self.transport.closed:
            return

        closed: asyncio.Future = asyncio.get_running_loop().create_future()

        def on_close() -> None:
            self.transport.remove_listener(TransportEvent.ERROR, on_error)
            if not closed.done():
                closed.set_result(None)

        def on_error(exc: BaseException) -> None:
            self.transport.remove_listener(TransportEvent.CLOSE, on_close)
            if not closed.done():
                error = DisconnectError(f"Transport errored while closing: {exc!r}")
                error.__cause__ = exc
                closed.set_exception(error)

        self.transport.add_listener(TransportEvent.CLOSE, on_close, once=True)
        self.transport.add_listener(TransportEvent.ERROR, on_error, once=True)
        self.transport.destroy()
        await closed
        logger.info("Disconnected from %s:%s", self.host, self.port)

    async def write(self, type: int, id: int, body: str) -> Packet:
        encoded = encode(type, id, body, self.encoding)
        if self.maximum_packet_size > 0 and len(encoded) > self.maximum_packet_size:
            raise PacketTooLarge(f"Packet of {len(encoded)} bytes exceeds the {self.maximum_packet_size} byte limit")

        response: asyncio.Future = asyncio.get_running_loop().create_future()

        def on_data(data: bytes) -> None:
            if response.done():
                return
            try:
                packet = decode(data, self.encoding)
            except MalformedPacket as exc:
                response.set_exception(exc)
                return
            logger.debug("Received packet id=%s type=%s (%s bytes)", packet.id, packet.type, len(data))
            if (
                type == SERVERDATA_AUTH
                and self.skip_auth_preamble
                and packet.type == SERVERDATA_RESPONSE_VALUE
                and not packet.body
            ):
                self.transport.add_listener(TransportEvent.DATA, on_data, once=True)
                return
            response.set_result(packet)

        def on_error(exc: BaseException) -> None:
            if not response.done():
                error = TransportError(f"Transport error: {exc!r}")
                error.__cause__ = exc
                response.set_exception(error)

        def on_close() -> None:
            if not response.done():
                response.set_exception(TransportError("Connection closed before a response arrived"))

        self.transport.add_listener(TransportEvent.DATA, on_data, once=True)
        self.transport.add_listener(TransportEvent.ERROR, on_error, once=True)
        self.transport.add_listener(TransportEvent.CLOSE, on_close, once=True)
        try:
            await self.transport.write(encoded)
            return await response
        finally:
            self.transport.remove_listener(TransportEvent.DATA, on_data)
            self.transport.remove_listener(TransportEvent.ERROR, on_error)
            self.transport.remove_listener(TransportEvent.CLOSE, on_close)

    async def _fail_authentication(self, reason: str) -> None:
        logger.warning("Authentication to %s:%s failed: %s", self.host, self.port, reason)
        try:
            await self.disconnect()
        except DisconnectError as exc:
            logger.warning("Disconnect after failed authentication errored: %s", exc)
        raise AuthenticationFailed(f"Unable to authenticate: {reason}")

    def _mark_closed(self) -> None:
        self.state = SessionState.CLOSED
        self.sequencer.shutdown()

    def _on_transport_error(self, exc: BaseException) -> None:
        logger.warning("Transport error on %s:%s: %s", self.host, self.port, exc)

    def _on_transport_close(self) -> None:
        if not self.closed:
            logger.warning("Connection to %s:%s lost", self.host, self.port)
            self._mark_closed()


__all__ = ["RconSession", "SessionState"]
