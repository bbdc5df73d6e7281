"""Unit tests for SessionInjector: pacing, dry runs and failure classification."""

import subprocess
from unittest.mock import MagicMock, call, patch

import pytest

from tmux_relay.models import ErrorKind, KeyEvent, Literal, RelayTarget
from tmux_relay.session_injector import SessionInjector, is_session_not_found
from tmux_relay.tmux_controller import TmuxController


TARGET = RelayTarget(session_name="claude-nomads", socket="/tmp/relay.sock", pane="0.0")


@pytest.fixture
def paced_injector(mock_tmux):
    config = {"tmux": {"inter_key_delay_seconds": 0.2, "settle_seconds": 0.1}}
    return SessionInjector(config=config, controller_factory=lambda socket: mock_tmux)


class TestDryRun:

    def test_dry_run_never_touches_tmux(self):
        factory = MagicMock()
        injector = SessionInjector(controller_factory=factory)

        result = injector.inject(TARGET, [KeyEvent.DOWN, KeyEvent.ENTER], dry_run=True)

        assert result.ok
        assert result.report.dry_run is True
        assert result.report.keys_sent == ["Down", "Enter"]
        factory.assert_not_called()


class TestDelivery:

    def test_option_sequence_paced_between_downs_only(self, paced_injector, mock_tmux):
        with patch("tmux_relay.session_injector.time") as mock_time:
            result = paced_injector.inject(
                TARGET, [KeyEvent.DOWN, KeyEvent.DOWN, KeyEvent.DOWN, KeyEvent.ENTER]
            )

        assert result.ok
        assert mock_tmux.send_key.call_args_list == [
            call("claude-nomads:0.0", "Down"),
            call("claude-nomads:0.0", "Down"),
            call("claude-nomads:0.0", "Down"),
            call("claude-nomads:0.0", "Enter"),
        ]
        # Two gaps between three Downs; Enter follows the last Down immediately
        assert mock_time.sleep.call_args_list == [call(0.2), call(0.2)]

    def test_single_enter_has_no_wait(self, paced_injector, mock_tmux):
        with patch("tmux_relay.session_injector.time") as mock_time:
            paced_injector.inject(TARGET, [KeyEvent.ENTER])

        mock_tmux.send_key.assert_called_once_with("claude-nomads:0.0", "Enter")
        mock_time.sleep.assert_not_called()

    def test_text_sequence_uses_settle_delay(self, paced_injector, mock_tmux):
        with patch("tmux_relay.session_injector.time") as mock_time:
            result = paced_injector.inject(
                TARGET, [KeyEvent.CLEAR_LINE, Literal("fix the imports"), KeyEvent.ENTER]
            )

        assert result.ok
        assert result.report.keys_sent == ["ClearLine", "fix the imports", "Enter"]
        assert mock_tmux.send_key.call_args_list == [
            call("claude-nomads:0.0", "C-u"),
            call("claude-nomads:0.0", "Enter"),
        ]
        mock_tmux.send_literal.assert_called_once_with("claude-nomads:0.0", "fix the imports")
        assert mock_time.sleep.call_args_list == [call(0.1), call(0.1)]

    def test_delay_override(self, paced_injector):
        with patch("tmux_relay.session_injector.time") as mock_time:
            paced_injector.inject(TARGET, [KeyEvent.DOWN, KeyEvent.DOWN, KeyEvent.ENTER], inter_key_delay=0.5)

        assert mock_time.sleep.call_args_list == [call(0.5)]

    def test_controller_built_for_target_socket(self, mock_tmux):
        factory = MagicMock(return_value=mock_tmux)
        injector = SessionInjector(controller_factory=factory)

        with patch("tmux_relay.session_injector.time"):
            injector.inject(TARGET, [KeyEvent.ENTER])

        factory.assert_called_once_with("/tmp/relay.sock")


class TestFailures:

    def test_tmux_missing(self, injector, mock_tmux):
        mock_tmux.is_available.return_value = False

        result = injector.inject(TARGET, [KeyEvent.ENTER])

        assert not result.ok
        assert result.error.kind == ErrorKind.TOOL_UNAVAILABLE
        mock_tmux.send_key.assert_not_called()

    @pytest.mark.parametrize("stderr", [
        "can't find session: claude-nomads",
        "Session not found",
        "no server running on /tmp/relay.sock",
    ])
    def test_session_not_found(self, injector, mock_tmux, stderr):
        mock_tmux.send_key.side_effect = subprocess.CalledProcessError(1, ["tmux"], stderr=stderr)

        result = injector.inject(TARGET, [KeyEvent.ENTER])

        assert result.error.kind == ErrorKind.SESSION_NOT_FOUND
        assert result.error.message == "tmux session not found: claude-nomads"
        assert result.error.session == "claude-nomads"

    def test_other_failure_keeps_raw_message(self, injector, mock_tmux):
        mock_tmux.send_key.side_effect = subprocess.CalledProcessError(
            1, ["tmux"], stderr="can't find pane: 3\n"
        )

        result = injector.inject(TARGET, [KeyEvent.ENTER])

        assert result.error.kind == ErrorKind.INJECTION_FAILED
        assert result.error.message == "can't find pane: 3"

    def test_timeout_is_injection_failure(self, injector, mock_tmux):
        mock_tmux.send_literal.side_effect = subprocess.TimeoutExpired(["tmux"], 5)

        result = injector.inject(TARGET, [KeyEvent.CLEAR_LINE, Literal("hi"), KeyEvent.ENTER])

        assert result.error.kind == ErrorKind.INJECTION_FAILED
        assert "timed out" in result.error.message

    def test_no_retry_after_failure(self, injector, mock_tmux):
        mock_tmux.send_key.side_effect = subprocess.CalledProcessError(1, ["tmux"], stderr="boom")

        injector.inject(TARGET, [KeyEvent.DOWN, KeyEvent.ENTER])

        assert mock_tmux.send_key.call_count == 1


def test_is_session_not_found_case_insensitive():
    assert is_session_not_found("CAN'T FIND SESSION foo")
    assert not is_session_not_found("permission denied")


class TestTmuxController:
    """Command construction for the real controller."""

    def test_socket_and_literal_flags(self):
        tmux = TmuxController(socket="/tmp/relay.sock", config={"tmux": {"bin": "tmux"}})
        with patch("tmux_relay.tmux_controller.subprocess.run") as mock_run:
            tmux.send_literal("s:0.0", "-rf")

        args, kwargs = mock_run.call_args
        assert args[0] == ["tmux", "-S", "/tmp/relay.sock", "send-keys", "-t", "s:0.0", "-l", "--", "-rf"]
        assert kwargs["timeout"] == 5
        assert kwargs["check"] is True

    def test_ambient_server_has_no_socket_flag(self):
        tmux = TmuxController(config={"tmux": {"bin": "tmux", "command_timeout_seconds": 2}})
        with patch("tmux_relay.tmux_controller.subprocess.run") as mock_run:
            tmux.send_key("s:0.0", "Down")

        args, kwargs = mock_run.call_args
        assert args[0] == ["tmux", "send-keys", "-t", "s:0.0", "Down"]
        assert kwargs["timeout"] == 2

    def test_is_available_false_when_binary_missing(self):
        tmux = TmuxController(config={"tmux": {"bin": "/nonexistent/tmux"}})
        with patch("tmux_relay.tmux_controller.subprocess.run", side_effect=FileNotFoundError()):
            assert tmux.is_available() is False

    def test_capture_pane_returns_none_on_error(self):
        tmux = TmuxController(config={"tmux": {"bin": "tmux"}})
        with patch(
            "tmux_relay.tmux_controller.subprocess.run",
            side_effect=subprocess.CalledProcessError(1, ["tmux"], stderr="no such pane"),
        ):
            assert tmux.capture_pane("s:0.0") is None
