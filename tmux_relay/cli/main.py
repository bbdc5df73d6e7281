"""Main entry point for the tmux-relay CLI."""

import argparse
import sys
from typing import Optional

from ..config import load_config, setup_logging
from . import commands


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tmux-relay",
        description="Route chat replies into tmux sessions waiting for input",
    )
    parser.add_argument("--config", help="Path to config.yaml (default: $TMUX_RELAY_CONFIG or ./config.yaml)")

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    # tmux-relay relay --session <name> --reply <text>
    relay_parser = subparsers.add_parser("relay", help="Send a reply into a tmux session")
    relay_parser.add_argument("--session", help="tmux session name")
    relay_parser.add_argument("--reply", help="Reply text (digits select an option)")
    relay_parser.add_argument("--options", help="Comma-separated option labels, for validation")
    relay_parser.add_argument("--socket", help="tmux socket path (-S)")
    relay_parser.add_argument("--pane", help="Pane target window.pane (default: 0.0)")
    relay_parser.add_argument("--delay", type=float, help="Seconds between Down presses (default: 0.2)")
    relay_parser.add_argument("--dry-run", action="store_true", help="Print the keys without sending them")
    relay_parser.add_argument("--consume", action="store_true", help="Remove the pending relay after delivery")

    # tmux-relay check <chat-id>
    check_parser = subparsers.add_parser("check", help="Find the pending session for a chat id")
    check_parser.add_argument("identifier", nargs="?", default="", help="Chat/thread identifier from the inbound reply")

    # tmux-relay list
    subparsers.add_parser("list", help="List pending relays and thread bindings")

    # tmux-relay notify (hook: payload on stdin)
    subparsers.add_parser("notify", help="Notification hook: record a pending relay and post it to chat")

    return parser


def _read_stdin() -> Optional[str]:
    if sys.stdin is None or sys.stdin.isatty():
        return None
    return sys.stdin.read()


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 2

    config = load_config(args.config)
    setup_logging(config)

    if args.command == "relay":
        return commands.cmd_relay(args, config, _read_stdin())
    if args.command == "check":
        return commands.cmd_check(args.identifier, config)
    if args.command == "list":
        return commands.cmd_list(config)
    if args.command == "notify":
        return commands.cmd_notify(config, _read_stdin())

    parser.print_help()
    return 2


def run():
    """Entry point for console script."""
    sys.exit(main())


if __name__ == "__main__":
    run()
