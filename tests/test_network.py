from __future__ import annotations

import asyncio

import pytest

from conftest import FakeRconServer
from source_rcon.core import RconSession, RconTransport, TransportEvent
from source_rcon.protocol import AuthenticationFailed, NotWritable, TransportError, encode


def _run_against(server: FakeRconServer, scenario):
    async def runner():
        await server.start()
        try:
            return await scenario(server.port)
        finally:
            await server.stop()

    return asyncio.run(runner())


def test_full_exchange_with_preamble_skipping():
    server = FakeRconServer(send_preamble=True)

    async def scenario(port):
        async with RconSession(port=port, skip_auth_preamble=True) as session:
            await session.authenticate("secret")
            return await asyncio.gather(session.execute("status"), session.execute("users"))

    assert _run_against(server, scenario) == ["echo: status", "echo: users"]
    assert [packet.type for packet in server.received] == [3, 2, 2]


def test_default_handshake_accepts_bare_auth_response():
    server = FakeRconServer(send_preamble=False)

    async def scenario(port):
        async with RconSession(port=port) as session:
            await session.authenticate("secret")
            return session.authenticated

    assert _run_against(server, scenario) is True


def test_wrong_password_closes_connection():
    server = FakeRconServer(send_preamble=False)

    async def scenario(port):
        session = RconSession(port=port)
        with pytest.raises(AuthenticationFailed):
            await session.authenticate("nope")
        return session

    session = _run_against(server, scenario)
    assert session.authenticated is False
    assert session.transport.closed is True


def test_split_response_is_reassembled():
    server = FakeRconServer(send_preamble=False, split_responses=True)

    async def scenario(port):
        async with RconSession(port=port) as session:
            await session.authenticate("secret")
            return await session.execute("maps *")

    assert _run_against(server, scenario) == "echo: maps *"


def test_transport_emits_raw_chunks_without_reassembly():
    server = FakeRconServer(send_preamble=True)

    async def scenario(port):
        transport = RconTransport("127.0.0.1", port, reassemble_frames=False)
        chunks = []
        received = asyncio.Event()

        def on_data(chunk):
            chunks.append(chunk)
            received.set()

        transport.add_listener(TransportEvent.DATA, on_data)
        await transport.connect()
        await transport.write(encode(3, 1, "secret"))
        await asyncio.wait_for(received.wait(), timeout=1)
        closed = asyncio.Event()
        transport.add_listener(TransportEvent.CLOSE, closed.set, once=True)
        transport.destroy()
        await asyncio.wait_for(closed.wait(), timeout=1)
        return b"".join(chunks), transport

    data, transport = _run_against(server, scenario)
    assert data.startswith(encode(0, 1, ""))
    assert transport.closed is True
    assert transport.writable is False


def test_transport_write_requires_connection():
    async def scenario():
        transport = RconTransport("127.0.0.1", 1)
        with pytest.raises(NotWritable):
            await transport.write(b"\x00")

    asyncio.run(scenario())


def test_connect_failure_is_transport_error():
    async def scenario():
        probe = await asyncio.start_server(lambda r, w: None, "127.0.0.1", 0)
        port = probe.sockets[0].getsockname()[1]
        probe.close()
        await probe.wait_closed()
        session = RconSession(port=port)
        with pytest.raises(TransportError):
            await session.authenticate("secret")

    asyncio.run(scenario())
