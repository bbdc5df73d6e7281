"""Relay operations: deliver a reply to a session, and find the session for a reply."""

import logging
from datetime import datetime, timedelta
from typing import Optional, Sequence

from .keystroke_compiler import compile_keys
from .models import (
    DEFAULT_PANE,
    ErrorKind,
    Matched,
    OptionIntent,
    RelayError,
    RelayTarget,
)
from .registry import PendingRelayRegistry, ThreadBindingRegistry
from .reply_parser import parse_reply
from .session_injector import SessionInjector
from .session_matcher import match_session
from .store import FileStore

logger = logging.getLogger(__name__)


def build_registries(config: dict) -> tuple[PendingRelayRegistry, ThreadBindingRegistry]:
    """Create both registries over the configured state directory."""
    store = FileStore(config.get("paths", {}).get("state_dir"))
    ttl_seconds = config.get("registry", {}).get("thread_ttl_seconds", 2 * 60 * 60)
    return PendingRelayRegistry(store), ThreadBindingRegistry(store, ttl=timedelta(seconds=ttl_seconds))


def relay(
    reply: Optional[str],
    session: Optional[str],
    options: Optional[Sequence[str]] = None,
    socket: Optional[str] = None,
    pane: Optional[str] = None,
    delay: Optional[float] = None,
    dry_run: bool = False,
    injector: Optional[SessionInjector] = None,
) -> dict:
    """
    Route a reply into a tmux pane.

    Args:
        reply: Reply text; digits select a 1-based option, anything else is typed
        session: tmux session name
        options: Option labels shown by the prompt (validation and echo)
        socket: tmux control socket (None for the default server)
        pane: "window.pane" within the session (default "0.0")
        delay: Seconds between Down presses (None for the configured default)
        dry_run: Report the keys without sending them
        injector: SessionInjector to use (defaults to one with default config)

    Returns:
        Result dict: {"ok": True, "session", "pane", "mode", "keysSent", ...}
        or {"ok": False, "error", "session"?}
    """
    if not session:
        return RelayError(ErrorKind.VALIDATION, "session is required").to_dict()
    if reply is None or not str(reply).strip():
        return RelayError(ErrorKind.VALIDATION, "reply is required", session).to_dict()

    intent = parse_reply(reply)
    compiled = compile_keys(intent, options)
    if not compiled.ok:
        compiled.error.session = session
        logger.warning(f"Rejected reply for {session}: {compiled.error.message}")
        return compiled.error.to_dict()

    target = RelayTarget(session_name=session, socket=socket or None, pane=pane or DEFAULT_PANE)
    injector = injector or SessionInjector()
    outcome = injector.inject(target, compiled.sequence, dry_run=dry_run, inter_key_delay=delay)
    if not outcome.ok:
        return outcome.error.to_dict()

    result = {
        "ok": True,
        "session": session,
        "pane": target.tmux_target,
        "keysSent": outcome.report.keys_sent,
    }
    if dry_run:
        result["dryRun"] = True
    if isinstance(intent, OptionIntent):
        result["mode"] = "option"
        result["optionIndex"] = intent.index
        if compiled.option_text is not None:
            result["optionText"] = compiled.option_text
    else:
        result["mode"] = "text"
        result["text"] = intent.content
    return result


def check(
    identifier: str,
    pending_registry: PendingRelayRegistry,
    thread_registry: ThreadBindingRegistry,
    now: Optional[datetime] = None,
) -> dict:
    """Match an inbound chat identifier against the registries."""
    result = match_session(
        identifier,
        pending_registry.list(),
        thread_registry.all(),
        now=now,
        ttl=thread_registry.ttl,
    )
    if isinstance(result, Matched):
        logger.info(f"Reply {identifier!r} routed to {result.record.session_name} (fallback={result.via_fallback})")
    return result.to_dict()


def list_pending(
    pending_registry: PendingRelayRegistry,
    thread_registry: ThreadBindingRegistry,
    now: Optional[datetime] = None,
) -> dict:
    """Summarize pending relays and live thread bindings."""
    now = now or datetime.now()
    return {
        "pendingRelays": [
            {
                "session": record.session_name,
                "notificationType": record.prompt_kind.notification_type,
                "age": f"{round((now - record.created_at).total_seconds())}s ago",
                "stateFile": record.state_file,
            }
            for record in pending_registry.list()
        ],
        "threadMaps": [binding.to_dict() for binding in thread_registry.active(now)],
    }
