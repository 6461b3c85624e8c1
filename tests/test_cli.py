from __future__ import annotations

import asyncio
import logging

from conftest import FakeRconServer, FakeTransport, auth_ok
from source_rcon.config import DEFAULT_CONFIG
from source_rcon.core import RconSession
from source_rcon.main import apply_overrides, build_parser, run_client
from source_rcon.ui import RconCLI


def test_parser_overrides_config():
    args = build_parser().parse_args(["--host", "10.1.1.1", "--port", "27020", "-c", "status", "-c", "users"])
    config = apply_overrides(DEFAULT_CONFIG, args)

    assert config["host"] == "10.1.1.1"
    assert config["port"] == 27020
    assert config["encoding"] == DEFAULT_CONFIG["encoding"]
    assert args.command == ["status", "users"]


def test_run_client_one_shot_commands(capsys):
    server = FakeRconServer(send_preamble=True)

    async def scenario():
        await server.start()
        try:
            config = {**DEFAULT_CONFIG, "port": server.port, "password": "secret", "skip_auth_preamble": True}
            return await run_client(config, ["status"])
        finally:
            await server.stop()

    assert asyncio.run(scenario()) == 0
    assert "echo: status" in capsys.readouterr().out


def test_run_client_reports_auth_failure(capsys):
    server = FakeRconServer(send_preamble=False)

    async def scenario():
        await server.start()
        try:
            config = {**DEFAULT_CONFIG, "port": server.port, "password": "wrong"}
            return await run_client(config, ["status"])
        finally:
            await server.stop()

    assert asyncio.run(scenario()) == 1
    assert "Unable to authenticate" in capsys.readouterr().err


def test_console_forwards_lines_until_quit(monkeypatch, capsys):
    lines = iter(["status", "", ":help", ":quit", "never"])
    monkeypatch.setattr("builtins.input", lambda prompt="": next(lines))

    async def scenario():
        session = RconSession(transport=FakeTransport(auth_ok))
        await session.authenticate("secret")
        await RconCLI(session).run()
        await session.disconnect()

    asyncio.run(scenario())
    out = capsys.readouterr().out
    assert "status" in out
    assert ":help" in out
    assert next(lines) == "never"


def test_console_logs_structured_command_errors(monkeypatch, capsys, caplog):
    lines = iter(["silent", ":quit"])
    monkeypatch.setattr("builtins.input", lambda prompt="": next(lines))

    def responder(request):
        if request.body == "silent":
            return []
        return auth_ok(request)

    async def scenario():
        session = RconSession(transport=FakeTransport(responder), queue_timeout=20)
        await session.authenticate("secret")
        await RconCLI(session).run()
        await session.disconnect()

    with caplog.at_level(logging.WARNING, logger="source_rcon.ui.cli"):
        asyncio.run(scenario())
    assert "Command failed: No response within 20 ms" in capsys.readouterr().out
    assert "'error_name': 'REQUEST_TIMEOUT'" in caplog.text
    assert "'error_code': 2003" in caplog.text
