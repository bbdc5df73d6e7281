"""Notification hook: record a pending relay and post the prompt to chat."""

import logging
import os
from datetime import datetime
from typing import Callable, Optional

from .models import PendingSessionRecord, PromptKind, RelayTarget, DEFAULT_PANE
from .registry import PendingRelayRegistry, ThreadBindingRegistry
from .summarizer import summarize
from .tmux_controller import TmuxController
from .transport import ChatTransport, TransportError

logger = logging.getLogger(__name__)

DEFAULT_MESSAGE = "Claude Code is waiting for input"


class Notifier:
    """Turns a host 'waiting for input' hook event into a pending relay + chat post."""

    def __init__(
        self,
        pending: PendingRelayRegistry,
        threads: ThreadBindingRegistry,
        transport: Optional[ChatTransport] = None,
        config: Optional[dict] = None,
        tmux_factory: Optional[Callable[[Optional[str]], TmuxController]] = None,
        summarizer: Callable[..., str] = summarize,
    ):
        self.pending = pending
        self.threads = threads
        self.transport = transport
        self.config = config or {}
        self._tmux_factory = tmux_factory or (
            lambda socket: TmuxController(socket=socket, config=self.config)
        )
        self._summarize = summarizer

        notifier_config = self.config.get("notifier", {})
        tmux_config = self.config.get("tmux", {})
        self.session_prefix = notifier_config.get("session_prefix", "claude-")
        self.capture_lines = notifier_config.get("capture_lines", 20)
        self.summary_lines = notifier_config.get("summary_lines", 15)
        self.summary_chars = notifier_config.get("summary_chars", 600)
        self.socket = tmux_config.get("socket")
        self.pane = tmux_config.get("pane", DEFAULT_PANE)
        self.channel_id = self.config.get("discord", {}).get("channel_id")

    def session_name_for(self, cwd: str) -> str:
        """Sessions are named after the project folder: claude-<folder>."""
        return f"{self.session_prefix}{os.path.basename(os.path.normpath(cwd))}"

    def handle_event(self, event: dict) -> Optional[PendingSessionRecord]:
        """
        Process one hook payload.

        Never raises for delivery problems: a notification hook must not
        break the host process.

        Args:
            event: {"notification_type", "cwd", "session_id", "message"}

        Returns:
            The recorded pending relay, or None if the event is not actionable
        """
        notification_type = event.get("notification_type") or ""
        prompt_kind = PromptKind.from_notification_type(notification_type)
        if prompt_kind is None:
            logger.info(f"Skipping notification type '{notification_type}'")
            return None

        cwd = event.get("cwd") or os.getcwd()
        record = PendingSessionRecord(
            session_name=self.session_name_for(cwd),
            socket=self.socket,
            pane=self.pane,
            prompt_kind=prompt_kind,
            message=event.get("message") or DEFAULT_MESSAGE,
            conversation_id=event.get("session_id") or "unknown",
            working_dir=cwd,
            created_at=datetime.now(),
        )
        try:
            self.pending.record(record)
        except OSError as e:
            logger.error(f"Failed to write pending relay for {record.session_name}: {e}")

        text = self.format_message(record, self._capture(record.target))
        self._publish(record.session_name, text)
        return record

    def _capture(self, target: RelayTarget) -> str:
        pane_text = self._tmux_factory(target.socket).capture_pane(target.tmux_target, self.capture_lines)
        if not pane_text:
            return ""
        return self._summarize(pane_text, self.summary_lines, self.summary_chars)

    def format_message(self, record: PendingSessionRecord, context: str) -> str:
        return "\n".join([
            f"🤖 **{record.session_name}** needs your input",
            "```",
            context or record.message,
            "```",
            "Reply with a number or free text and I'll route it back.",
            f"_(session: {record.session_name})_",
        ])

    def _publish(self, session_name: str, text: str) -> None:
        """Post into the session's live thread, or open a new one."""
        if not self.transport or not self.channel_id:
            logger.warning("Chat transport not configured, skipping notification")
            return

        try:
            self.threads.expire()
            binding = self.threads.for_session(session_name)
            if binding:
                self.transport.reply_in_thread(binding.thread_id, text)
                logger.info(f"Notified {session_name} in thread {binding.thread_id}")
                return

            message_id = self.transport.send_message(self.channel_id, text)
            try:
                thread_id = self.transport.create_thread(self.channel_id, message_id, session_name)
            except TransportError as e:
                # The channel message is already out; replies fall back to single-session matching
                logger.warning(f"Could not open thread for {session_name}: {e}")
                return
            self.threads.bind(thread_id, session_name)
            logger.info(f"Notified {session_name} in new thread {thread_id}")

        except TransportError as e:
            logger.error(f"Chat notification failed for {session_name}: {e}")
        except OSError as e:
            logger.error(f"Failed to update thread binding for {session_name}: {e}")
