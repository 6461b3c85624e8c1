from __future__ import annotations

import asyncio
import logging

from source_rcon.core import RconSession
from source_rcon.protocol.errors import NotWritable, RconError, SessionClosed

logger = logging.getLogger(__name__)


class RconCLI:
    """Simple async console that forwards each typed line to the server."""

    def __init__(self, session: RconSession, prompt: str = "rcon> ") -> None:
        self.session = session
        self.prompt = prompt

    async def run(self) -> None:
        logger.info("Console ready. Type ':help' for console commands.")
        loop = asyncio.get_running_loop()
        while True:
            try:
                line = await loop.run_in_executor(None, input, self.prompt)
            except EOFError:
                break
            command = line.strip()
            if not command:
                continue
            match command:
                case ":help":
                    self._show_help()
                case ":quit" | ":exit" | "exit":
                    break
                case _:
                    if not await self._handle_command(command):
                        break

    def _show_help(self) -> None:
        print("Any other input is sent to the server as a console command. Console commands: :help, :quit")

    async def _handle_command(self, command: str) -> bool:
        """Run one command; returns False when the session can no longer be used."""
        try:
            output = await self.session.execute(command)
        except (SessionClosed, NotWritable) as exc:
            logger.warning("Connection unusable: %s", exc.to_payload())
            print(f"Connection lost: {exc.message}")
            return False
        except RconError as exc:
            logger.warning("Command failed: %s", exc.to_payload())
            print(f"Command failed: {exc.message}")
            return not self.session.closed
        if output:
            print(output)
        return True


__all__ = ["RconCLI"]
