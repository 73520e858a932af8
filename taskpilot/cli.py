"""
taskpilot — Entry Point
Chat with your project workspace from the terminal.
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from taskpilot import __version__
from taskpilot.config.settings import Settings, load_settings, save_setting
from taskpilot.core.context import ExecutionContext
from taskpilot.core.errors import AssistantError, TaskpilotError
from taskpilot.core.events import AutomationEvent, EventType
from taskpilot.core.formatter import format_result
from taskpilot.core.intents import IntentMatcher
from taskpilot.core.registry import default_registry
from taskpilot.core.session import ChatSession, create_session
from taskpilot.ui.colors import BOLD, ELECTRIC_CYAN, GLITCH_RED, MID_GRAY, NEON_PURPLE, paint

logger = logging.getLogger(__name__)

EXIT_COMMANDS = {"exit", "quit", ":q"}


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _load(args: argparse.Namespace) -> Settings:
    return load_settings(Path(args.config) if args.config else None)


def _initial_context(args: argparse.Namespace) -> ExecutionContext:
    context = ExecutionContext()
    if args.workspace:
        path = f"/{args.workspace}/{args.project}" if args.project else f"/{args.workspace}"
        context.navigate(path)
    return context


def _print_error(message: str) -> None:
    print(paint(f"Error: {message}", GLITCH_RED), file=sys.stderr)


def _write_chunk(chunk: str) -> None:
    sys.stdout.write(chunk)
    sys.stdout.flush()


# =====================================================================
#  COMMANDS
# =====================================================================

async def _chat_loop(session: ChatSession, prefer_local: bool) -> int:
    orchestrator = session.orchestrator
    loop = asyncio.get_running_loop()

    def on_event(event: AutomationEvent) -> None:
        if event.type is EventType.AUTOMATION_ERROR:
            logger.debug(f"Action {event.action} failed: {event.error}")

    session.events.add_listener(on_event)
    print(paint("taskpilot", BOLD, ELECTRIC_CYAN) + paint(f" v{__version__}  (type 'exit' to quit)", MID_GRAY))

    while True:
        try:
            line = await loop.run_in_executor(None, input, "\nyou › ")
        except (EOFError, KeyboardInterrupt):
            print()
            break

        message = line.strip()
        if not message:
            continue
        if message.lower() in EXIT_COMMANDS:
            break
        if message.lower() == "clear":
            orchestrator.clear_history()
            print(paint("History cleared.", MID_GRAY))
            continue

        sys.stdout.write(paint("pilot › ", NEON_PURPLE))
        try:
            await orchestrator.process_message(
                message, stream=True, on_chunk=_write_chunk, prefer_local=prefer_local
            )
        except AssistantError as e:
            print()
            _print_error(str(e))
            continue
        # Let the action's result stream in before prompting again.
        await session.background.drain()
        print()

    return 0


async def _run_chat(args: argparse.Namespace) -> int:
    session = create_session(_load(args), context=_initial_context(args))
    try:
        return await _chat_loop(session, prefer_local=args.local)
    finally:
        await session.close()


async def _run_action(args: argparse.Namespace) -> int:
    try:
        params: Dict[str, Any] = json.loads(args.params) if args.params else {}
    except json.JSONDecodeError as e:
        _print_error(f"Parameters must be a JSON object: {e}")
        return 2
    if not isinstance(params, dict):
        _print_error("Parameters must be a JSON object")
        return 2

    session = create_session(_load(args), context=_initial_context(args), with_assistant=False)
    try:
        resolved = await session.resolver.resolve(params)
        result = await session.executor.execute_action(args.action, resolved)
    finally:
        await session.close()

    print(format_result(result))
    if args.json and result.data is not None:
        print(json.dumps(result.data, indent=2, default=str))
    return 0 if result.success else 1


def cmd_parse(args: argparse.Namespace) -> int:
    intent = IntentMatcher().parse_intent(args.text, _initial_context(args))
    if intent is None:
        print("null")
        return 1
    print(json.dumps(intent.to_dict(), indent=2))
    return 0


def cmd_capabilities(args: argparse.Namespace) -> int:
    print(default_registry.describe_capabilities())
    return 0


def cmd_config(args: argparse.Namespace) -> int:
    config_path: Optional[Path] = Path(args.config) if args.config else None
    if args.config_command == "set":
        value: Any = args.value
        try:
            value = json.loads(args.value)
        except json.JSONDecodeError:
            pass
        if not save_setting(args.key, value, config_path):
            _print_error("Could not write configuration file")
            return 1
        print(f"{args.key} = {value!r}")
        return 0

    settings = load_settings(config_path)
    for key, value in vars(settings).items():
        if key in ("token", "assistant_api_key") and value:
            value = "********"
        print(f"{key}: {value}")
    return 0


# =====================================================================
#  CLI ENTRY WITH SUBCOMMANDS
# =====================================================================

def _create_parser() -> argparse.ArgumentParser:
    """Create the main argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="taskpilot",
        description="taskpilot — chat-driven project management from the terminal",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  taskpilot                                       # Start chatting
  taskpilot --workspace acme chat --local         # Chat inside a workspace, local intents first
  taskpilot parse "create a task called Fix login bug"
  taskpilot run listWorkspaces
  taskpilot run createProject '{"workspaceSlug": "acme", "name": "Website"}'
  taskpilot config set assistant.provider openai
        """
    )

    # Global options
    parser.add_argument(
        "--version",
        action="version",
        version=f"taskpilot {__version__}"
    )
    parser.add_argument(
        "--config",
        type=str,
        help="Path to config file (default: ~/.taskpilot/config.json)"
    )
    parser.add_argument(
        "--workspace",
        type=str,
        help="Start inside this workspace slug"
    )
    parser.add_argument(
        "--project",
        type=str,
        help="Start inside this project slug (needs --workspace)"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging"
    )

    # Subcommands
    subparsers = parser.add_subparsers(
        dest="command",
        help="Available commands"
    )

    # chat
    parser_chat = subparsers.add_parser(
        "chat",
        aliases=["interactive"],
        help="Interactive chat session (default if no command specified)"
    )
    parser_chat.add_argument(
        "--local",
        action="store_true",
        help="Try local intent rules before asking the assistant"
    )

    # parse
    parser_parse = subparsers.add_parser(
        "parse",
        help="Show the local intent a message maps to"
    )
    parser_parse.add_argument("text", help="Message to parse")

    # run
    parser_run = subparsers.add_parser(
        "run",
        help="Execute one action directly"
    )
    parser_run.add_argument("action", help="Action name, e.g. createWorkspace")
    parser_run.add_argument(
        "params",
        nargs="?",
        default=None,
        help="Parameters as a JSON object"
    )
    parser_run.add_argument(
        "--json",
        action="store_true",
        help="Also print the raw result data"
    )

    # capabilities
    subparsers.add_parser(
        "capabilities",
        help="List every supported action"
    )

    # config
    parser_config = subparsers.add_parser(
        "config",
        help="Show or change configuration"
    )
    config_sub = parser_config.add_subparsers(dest="config_command")
    config_sub.add_parser("show", help="Print effective settings")
    parser_set = config_sub.add_parser("set", help="Set a dot-notation key")
    parser_set.add_argument("key", help="e.g. assistant.model")
    parser_set.add_argument("value", help="Value (parsed as JSON when possible)")

    return parser


def main(argv=None):
    """Main entry point with subcommand routing."""
    parser = _create_parser()
    args = parser.parse_args(argv)
    _setup_logging(args.verbose)

    if args.project and not args.workspace:
        parser.error("--project requires --workspace")

    try:
        if args.command == "parse":
            return cmd_parse(args)
        elif args.command == "capabilities":
            return cmd_capabilities(args)
        elif args.command == "config":
            return cmd_config(args)
        elif args.command == "run":
            return asyncio.run(_run_action(args))
        elif args.command in ("chat", "interactive", None):
            if args.command is None:
                args.local = False
            return asyncio.run(_run_chat(args))
        else:
            parser.print_help()
            return 1
    except TaskpilotError as e:
        _print_error(str(e))
        return 1
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main() or 0)
