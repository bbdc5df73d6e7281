"""Deliver compiled key sequences to a live tmux pane."""

import logging
import subprocess
import time
from typing import Callable, Optional

from .models import (
    ErrorKind,
    InjectionReport,
    InjectionResult,
    KeyEvent,
    KeySequence,
    Literal,
    RelayError,
    RelayTarget,
)
from .tmux_controller import TmuxController

logger = logging.getLogger(__name__)

# Substrings tmux prints when the target session (or the whole server) is gone
SESSION_NOT_FOUND_PHRASES = (
    "can't find session",
    "session not found",
    "no server running",
)

# C-u clears the readline-style input buffer
TMUX_KEY_NAMES = {
    KeyEvent.DOWN: "Down",
    KeyEvent.ENTER: "Enter",
    KeyEvent.CLEAR_LINE: "C-u",
}


def is_session_not_found(message: str) -> bool:
    lowered = message.lower()
    return any(phrase in lowered for phrase in SESSION_NOT_FOUND_PHRASES)


class SessionInjector:
    """Sends key sequences to tmux panes, or simulates them on a dry run."""

    def __init__(
        self,
        config: Optional[dict] = None,
        controller_factory: Optional[Callable[[Optional[str]], TmuxController]] = None,
    ):
        self.config = config or {}
        tmux_config = self.config.get("tmux", {})
        self.inter_key_delay_seconds = tmux_config.get("inter_key_delay_seconds", 0.2)
        self.settle_seconds = tmux_config.get("settle_seconds", 0.1)
        self._controller_factory = controller_factory or (
            lambda socket: TmuxController(socket=socket, config=self.config)
        )

    def inject(
        self,
        target: RelayTarget,
        sequence: KeySequence,
        dry_run: bool = False,
        inter_key_delay: Optional[float] = None,
    ) -> InjectionResult:
        """
        Apply a key sequence to a pane.

        Down presses are paced by the inter-key delay; the closing Enter
        follows the last Down immediately. After clearing the line and after
        typing text a short fixed settle delay lets the TUI catch up before
        the next key. No retries are attempted.

        Args:
            target: Session, socket and pane to drive
            sequence: Logical key events to send
            dry_run: Report the sequence without touching tmux
            inter_key_delay: Override for the configured Down pacing

        Returns:
            InjectionResult with a report, or a classified error
        """
        report = InjectionReport(target=target, sequence=list(sequence), dry_run=dry_run)
        if dry_run:
            logger.info(f"Dry run for {target.tmux_target}: {report.keys_sent}")
            return InjectionResult(report=report)

        delay = self.inter_key_delay_seconds if inter_key_delay is None else inter_key_delay
        tmux = self._controller_factory(target.socket)

        if not tmux.is_available():
            return InjectionResult(error=RelayError(
                kind=ErrorKind.TOOL_UNAVAILABLE,
                message="tmux not found on PATH",
                session=target.session_name,
            ))

        pane = target.tmux_target
        try:
            for position, key in enumerate(sequence):
                following = sequence[position + 1] if position + 1 < len(sequence) else None

                if isinstance(key, Literal):
                    tmux.send_literal(pane, key.text)
                    time.sleep(self.settle_seconds)
                    continue

                tmux.send_key(pane, TMUX_KEY_NAMES[key])
                if key is KeyEvent.CLEAR_LINE:
                    time.sleep(self.settle_seconds)
                elif key is KeyEvent.DOWN and following is KeyEvent.DOWN and delay > 0:
                    time.sleep(delay)

        except subprocess.CalledProcessError as e:
            return InjectionResult(error=self._classify((e.stderr or str(e)).strip(), target))
        except subprocess.TimeoutExpired:
            logger.error(f"Timeout sending keys to {pane}")
            return InjectionResult(error=RelayError(
                kind=ErrorKind.INJECTION_FAILED,
                message=f"timed out talking to tmux for {pane}",
                session=target.session_name,
            ))
        except FileNotFoundError:
            return InjectionResult(error=RelayError(
                kind=ErrorKind.TOOL_UNAVAILABLE,
                message="tmux not found on PATH",
                session=target.session_name,
            ))

        logger.info(f"Sent {len(sequence)} keys to {pane}: {report.keys_sent}")
        return InjectionResult(report=report)

    def _classify(self, message: str, target: RelayTarget) -> RelayError:
        if is_session_not_found(message):
            logger.warning(f"tmux session not found: {target.session_name}")
            return RelayError(
                kind=ErrorKind.SESSION_NOT_FOUND,
                message=f"tmux session not found: {target.session_name}",
                session=target.session_name,
            )
        logger.error(f"Failed to send keys to {target.tmux_target}: {message}")
        return RelayError(
            kind=ErrorKind.INJECTION_FAILED,
            message=message or "tmux send-keys failed",
            session=target.session_name,
        )
