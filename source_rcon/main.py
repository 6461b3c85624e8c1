from __future__ import annotations

import argparse
import asyncio
import getpass
import logging
import sys
from typing import Any, Dict, List, Optional

from source_rcon.config import RCON_CONFIG, ConfigError, load_config
from source_rcon.core import RconSession
from source_rcon.protocol.constants import SUPPORTED_ENCODINGS
from source_rcon.protocol.errors import DisconnectError, RconError
from source_rcon.ui import RconCLI

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="source-rcon", description="Source RCON console")
    ap.add_argument("--env-file", default=".env", help="dotenv file with RCON_* settings")
    ap.add_argument("--host")
    ap.add_argument("--port", type=int)
    ap.add_argument("--password", help="falls back to RCON_PASSWORD, then a prompt")
    ap.add_argument("--encoding", choices=SUPPORTED_ENCODINGS)
    ap.add_argument("--timeout", type=int, help="socket timeout in ms")
    ap.add_argument("--maximum-packet-size", type=int, help="0 disables the limit")
    ap.add_argument("--skip-auth-preamble", action=argparse.BooleanOptionalAction, default=None)
    ap.add_argument("-c", "--command", action="append", help="run command(s) and exit instead of the console")
    return ap


def apply_overrides(config: Dict[str, Any], args: argparse.Namespace) -> Dict[str, Any]:
    merged = {**config}
    for key in ("host", "port", "password", "encoding", "timeout", "maximum_packet_size", "skip_auth_preamble"):
        value = getattr(args, key)
        if value is not None:
            merged[key] = value
    return merged


async def run_client(config: Dict[str, Any], commands: Optional[List[str]] = None) -> int:
    password = config.get("password") or getpass.getpass("RCON password: ")
    session = RconSession(config=config)
    try:
        await session.authenticate(password)
        if commands:
            for command in commands:
                print(await session.execute(command))
        else:
            await RconCLI(session, prompt=f"rcon@{session.host}> ").run()
        return 0
    except RconError as exc:
        logger.error("RCON error: %s", exc.to_payload())
        print(f"RCON error: {exc.message}", file=sys.stderr)
        return 1
    finally:
        try:
            await session.disconnect()
        except DisconnectError as exc:
            logger.warning("Disconnect failed: %s", exc)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        load_config(args.env_file)
        config = apply_overrides(RCON_CONFIG, args)
    except ConfigError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 2
    logging.basicConfig(level=config["log_level"])
    try:
        return asyncio.run(run_client(config, args.command))
    except ConfigError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 2
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
