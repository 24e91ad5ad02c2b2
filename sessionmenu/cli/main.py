"""`sessionmenu` command line.

Usage:
    sessionmenu list
    sessionmenu thinking <key> <off|minimal|low|medium|high|clear>
    sessionmenu verbose <key> <on|off|clear>
    sessionmenu reset|compact|delete <key> [--yes]
    sessionmenu log <session_id> <store_path>
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from rich.console import Console

from sessionmenu.cli.prompts import TerminalPrompts
from sessionmenu.cli.render import print_plan
from sessionmenu.config.loader import load_config
from sessionmenu.config.schema import SessionMenuConfig
from sessionmenu.constants import THINKING_LEVELS, VERBOSE_LEVELS
from sessionmenu.core.models import ConnectionState
from sessionmenu.logging_config import get_logger, setup_logging
from sessionmenu.menu.controller import SessionMenuController
from sessionmenu.menu.plan import Plan
from sessionmenu.transport.api_client import GatewayClient
from sessionmenu.transport.connection import GatewayConnection
from sessionmenu.transport.log_opener import TranscriptOpener

logger = get_logger(__name__)

CLEAR = "clear"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="sessionmenu", description="Inspect and manage gateway sessions.")
    parser.add_argument("--config", type=Path, default=None, help="Path to sessionmenu.yml.")
    parser.add_argument("--log-level", default=None, help="Override SESSIONMENU_LOG_LEVEL.")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("list", help="Show active sessions.")

    thinking = sub.add_parser("thinking", help="Set or clear a session's thinking level.")
    thinking.add_argument("key")
    thinking.add_argument("level", choices=[*THINKING_LEVELS, CLEAR])

    verbose = sub.add_parser("verbose", help="Set or clear a session's verbose level.")
    verbose.add_argument("key")
    verbose.add_argument("level", choices=[*VERBOSE_LEVELS, CLEAR])

    for name, help_text in (
        ("reset", "Start a new session id."),
        ("compact", "Trim the session log and archive the rest."),
        ("delete", "Delete the session entry and archive its transcript."),
    ):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("key")
        cmd.add_argument("--yes", "-y", action="store_true", help="Skip the confirmation prompt.")

    log = sub.add_parser("log", help="Open a session transcript in the editor.")
    log.add_argument("session_id")
    log.add_argument("store_path")
    return parser


async def _run_command(args: argparse.Namespace, settings: SessionMenuConfig, console: Console) -> int:
    client = GatewayClient(
        settings.gateway.socket_path,
        timeout=settings.gateway.request_timeout,
        opener=TranscriptOpener(settings.actions.editor_command),
    )
    await client.connect()
    connection = GatewayConnection(client)
    prompts = TerminalPrompts(console, assume_yes=getattr(args, "yes", False))
    plans: list[Plan] = []
    controller = SessionMenuController(
        connection=connection,
        source=client,
        executor=client,
        confirm=prompts.confirm,
        report_error=prompts.report_error,
        on_plan=plans.append,
        settings=settings,
    )
    try:
        if await connection.probe() is not ConnectionState.CONNECTED:
            logger.debug("Gateway not reachable", socket_path=settings.gateway.socket_path)

        if args.command == "list":
            controller.open()
            await controller.lifecycle.wait_idle()
            controller.close()
            print_plan(plans[-1], console)
            return 0

        ok = await _dispatch(controller, args)
        if ok and args.command != "log":
            print_plan(controller.build_plan(), console)
        return 0 if ok else 1
    finally:
        await controller.shutdown()
        await client.close()


async def _dispatch(controller: SessionMenuController, args: argparse.Namespace) -> bool:
    actions = controller.actions
    if args.command == "thinking":
        return await actions.patch_thinking(args.key, None if args.level == CLEAR else args.level)
    if args.command == "verbose":
        return await actions.patch_verbose(args.key, None if args.level == CLEAR else args.level)
    if args.command == "reset":
        return await actions.reset_session(args.key)
    if args.command == "compact":
        return await actions.compact_session(args.key)
    if args.command == "delete":
        return await actions.delete_session(args.key)
    if args.command == "log":
        return await actions.open_session_log(args.session_id, args.store_path)
    raise ValueError(f"Unsupported command: {args.command}")


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    setup_logging(args.log_level)
    settings = load_config(args.config)
    console = Console()
    try:
        return asyncio.run(_run_command(args, settings, console))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
