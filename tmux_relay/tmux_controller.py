"""tmux operations for driving relay target panes."""

import subprocess
import shutil
from typing import Optional
import logging

logger = logging.getLogger(__name__)


class TmuxController:
    """Runs tmux commands against one control socket (or the ambient server)."""

    def __init__(self, socket: Optional[str] = None, config: Optional[dict] = None):
        self.socket = socket
        self.config = config or {}

        # Load timeout configuration with fallbacks
        tmux_config = self.config.get("tmux", {})
        self.tmux_bin = tmux_config.get("bin") or shutil.which("tmux") or "tmux"
        self.command_timeout_seconds = tmux_config.get("command_timeout_seconds", 5)

    def _base_cmd(self) -> list[str]:
        cmd = [self.tmux_bin]
        if self.socket:
            cmd.extend(["-S", self.socket])
        return cmd

    def _run_tmux(self, *args: str, check: bool = True) -> subprocess.CompletedProcess:
        """
        Run a tmux command with a bounded wait.

        Raises:
            subprocess.CalledProcessError: tmux exited non-zero (when check=True)
            subprocess.TimeoutExpired: tmux did not answer in time
            FileNotFoundError: tmux binary is missing
        """
        cmd = self._base_cmd() + list(args)
        logger.debug(f"Running tmux command: {' '.join(cmd)}")
        return subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            check=check,
            timeout=self.command_timeout_seconds,
        )

    def is_available(self) -> bool:
        """Check that the tmux binary exists and answers `tmux -V`."""
        try:
            result = subprocess.run(
                [self.tmux_bin, "-V"],
                capture_output=True,
                text=True,
                timeout=self.command_timeout_seconds,
            )
            return result.returncode == 0
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.warning(f"tmux unavailable: {e}")
            return False

    def send_key(self, target: str, key: str) -> None:
        """Send one named key (e.g. 'Down', 'Enter', 'C-u') to a pane."""
        self._run_tmux("send-keys", "-t", target, key)

    def send_literal(self, target: str, text: str) -> None:
        """Type text into a pane without key-name lookup."""
        self._run_tmux("send-keys", "-t", target, "-l", "--", text)

    def capture_pane(self, target: str, lines: int = 20) -> Optional[str]:
        """
        Capture recent output from a pane.

        Args:
            target: tmux target ("session:window.pane")
            lines: Number of lines to capture

        Returns:
            Captured text or None on error
        """
        try:
            result = self._run_tmux(
                "capture-pane",
                "-p",  # Print to stdout
                "-J",  # Join wrapped lines
                "-t", target,
                "-S", f"-{lines}",  # Start from N lines back
            )
            return result.stdout

        except subprocess.CalledProcessError as e:
            logger.error(f"Failed to capture pane: {e.stderr}")
            return None
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.error(f"Failed to capture pane {target}: {e}")
            return None
