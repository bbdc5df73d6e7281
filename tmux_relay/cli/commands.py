"""Command implementations for the tmux-relay CLI.

Every command prints exactly one JSON line on stdout and returns the exit code.
"""

import json
import logging
import sys
from typing import Optional

from ..models import ErrorKind, RelayError
from ..notifier import Notifier
from ..relay import build_registries, check, list_pending, relay
from ..session_injector import SessionInjector
from ..transport import DiscordTransport

logger = logging.getLogger(__name__)


def emit(result: dict) -> None:
    print(json.dumps(result), flush=True)


def parse_options(value) -> Optional[list[str]]:
    """
    Options arrive as a list (stdin JSON) or a comma-separated string (flag).

    Raises:
        ValueError: if value is neither
    """
    if value is None:
        return None
    if isinstance(value, str):
        return [part.strip() for part in value.split(",")]
    if not isinstance(value, list):
        raise ValueError("options must be a list or a comma-separated string")
    return [str(part) for part in value]


def parse_delay(args, request: dict) -> Optional[float]:
    """
    Seconds between Down presses: --delay, then stdin "delay", then "delayMs".

    Raises:
        ValueError: if the stdin value is not a number
    """
    if args.delay is not None:
        return args.delay
    for name, scale in (("delay", 1), ("delayMs", 1000)):
        value = request.get(name)
        if value is None:
            continue
        try:
            return float(value) / scale
        except (TypeError, ValueError):
            raise ValueError(f"{name} must be a number") from None
    return None


def parse_stdin_request(raw: Optional[str]) -> dict:
    """
    Read a relay request piped on stdin.

    A JSON object supplies any of the relay fields; any other non-empty text
    is the reply itself.
    """
    raw = (raw or "").strip()
    if not raw:
        return {}
    if raw.startswith("{"):
        try:
            data = json.loads(raw)
            if isinstance(data, dict):
                return data
        except ValueError:
            pass
    return {"reply": raw}


def cmd_relay(args, config: dict, stdin_text: Optional[str] = None) -> int:
    """Send a reply into a tmux session."""
    request = parse_stdin_request(stdin_text)
    tmux_config = config.get("tmux", {})

    # Flags override stdin
    session = args.session or request.get("session")
    reply = args.reply if args.reply is not None else request.get("reply")
    socket = args.socket or request.get("socket") or tmux_config.get("socket")
    pane = args.pane or request.get("pane") or tmux_config.get("pane")
    dry_run = bool(args.dry_run or request.get("dryRun"))

    try:
        options = parse_options(args.options if args.options is not None else request.get("options"))
        delay = parse_delay(args, request)
    except ValueError as e:
        result = RelayError(ErrorKind.VALIDATION, str(e), session or None).to_dict()
    else:
        try:
            result = relay(
                reply=reply,
                session=session,
                options=options,
                socket=socket,
                pane=pane,
                delay=delay,
                dry_run=dry_run,
                injector=SessionInjector(config),
            )
        except Exception as e:
            logger.exception("Relay failed unexpectedly")
            result = {"ok": False, "error": str(e)}
            if session:
                result["session"] = session

    if result.get("ok") and args.consume and not dry_run:
        try:
            pending, _ = build_registries(config)
            pending.consume(session)
        except OSError as e:
            # Keys are already delivered
            logger.error(f"Failed to consume pending relay for {session}: {e}")

    emit(result)
    if not result.get("ok"):
        print(result.get("error") or "unknown error", file=sys.stderr)
        return 1
    return 0


def cmd_check(identifier: str, config: dict) -> int:
    """Match an inbound chat identifier to a pending session."""
    pending, threads = build_registries(config)
    result = check(identifier, pending, threads)
    emit(result)
    return 0 if result.get("matched") else 1


def cmd_list(config: dict) -> int:
    """Show pending relays and live thread bindings."""
    pending, threads = build_registries(config)
    emit(list_pending(pending, threads))
    return 0


def cmd_notify(config: dict, stdin_text: Optional[str] = None) -> int:
    """Run the notification hook; always exits 0 so the host is never blocked."""
    try:
        event = json.loads(stdin_text or "")
    except ValueError as e:
        logger.error(f"Hook payload is not JSON: {e}")
        emit({"ok": False, "error": "hook payload is not JSON"})
        return 0
    if not isinstance(event, dict):
        emit({"ok": False, "error": "hook payload must be a JSON object"})
        return 0

    pending, threads = build_registries(config)
    transport = DiscordTransport.from_config(config)
    notifier = Notifier(pending, threads, transport=transport, config=config)
    try:
        record = notifier.handle_event(event)
    except Exception as e:
        logger.exception("Notification hook failed")
        emit({"ok": False, "error": str(e)})
        return 0
    finally:
        if transport:
            transport.close()

    if record is None:
        emit({"ok": True, "skipped": True, "notificationType": event.get("notification_type")})
    else:
        emit({"ok": True, "session": record.session_name, "notificationType": record.prompt_kind.notification_type})
    return 0
