"""Unit tests for models."""

from datetime import datetime

from tmux_relay.models import (
    ErrorKind,
    PendingSessionRecord,
    PromptKind,
    RelayError,
    RelayTarget,
    ThreadBindingRecord,
)


class TestPendingSessionRecord:

    def test_from_notifier_file_format(self):
        """Records written by the notification hook load with all fields."""
        data = {
            "session": "claude-nomads",
            "socket": "/tmp/clawdbot-tmux-sockets/clawdbot.sock",
            "pane": "0.0",
            "notificationType": "permission_prompt",
            "message": "Claude needs your permission to use Bash",
            "claudeSessionId": "5f0c2d",
            "cwd": "/Users/dev/nomads",
            "timestamp": 1740830400000,
        }

        record = PendingSessionRecord.from_dict(data, state_file="/tmp/pending-relay-claude-nomads.json")

        assert record.session_name == "claude-nomads"
        assert record.prompt_kind == PromptKind.PERMISSION
        assert record.conversation_id == "5f0c2d"
        assert record.working_dir == "/Users/dev/nomads"
        assert record.created_at == datetime.fromtimestamp(1740830400)
        assert record.state_file == "/tmp/pending-relay-claude-nomads.json"
        assert record.to_dict() == data

    def test_missing_optional_fields_default(self):
        record = PendingSessionRecord.from_dict({"session": "claude-x"})

        assert record.pane == "0.0"
        assert record.socket is None
        assert record.prompt_kind == PromptKind.IDLE
        assert record.target == RelayTarget("claude-x", None, "0.0")


class TestThreadBindingRecord:

    def test_numeric_thread_id_normalized_to_string(self):
        binding = ThreadBindingRecord.from_dict(
            {"threadId": 1477207778727563457, "sessionName": "claude-a", "createdAt": 0}
        )
        assert binding.thread_id == "1477207778727563457"

    def test_age(self):
        binding = ThreadBindingRecord("1", "claude-a", created_at=datetime(2025, 1, 1, 10, 0, 0))
        assert binding.age_seconds(datetime(2025, 1, 1, 11, 0, 0)) == 3600


def test_prompt_kind_mapping():
    assert PromptKind.from_notification_type("idle_prompt") == PromptKind.IDLE
    assert PromptKind.from_notification_type("elicitation_dialog") == PromptKind.ELICITATION
    assert PromptKind.from_notification_type("auth_success") is None
    assert PromptKind.ELICITATION.notification_type == "elicitation_dialog"


def test_notification_type_round_trip():
    for name in ("idle_prompt", "elicitation_dialog", "permission_prompt"):
        assert PromptKind.from_notification_type(name).notification_type == name


def test_relay_target_string():
    assert RelayTarget("claude-nomads", pane="1.2").tmux_target == "claude-nomads:1.2"


def test_relay_error_dict_omits_missing_session():
    assert RelayError(ErrorKind.VALIDATION, "session is required").to_dict() == {
        "ok": False,
        "error": "session is required",
    }
