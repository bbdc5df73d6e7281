"""Shared pytest fixtures for tmux-relay tests."""

from datetime import datetime, timedelta
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from tmux_relay.models import PendingSessionRecord, PromptKind
from tmux_relay.registry import PendingRelayRegistry, ThreadBindingRegistry
from tmux_relay.session_injector import SessionInjector
from tmux_relay.store import FileStore
from tmux_relay.tmux_controller import TmuxController


THREAD_ID = "1477207778727563457"
CHANNEL_ID = "1476953824911425617"


@pytest.fixture
def now() -> datetime:
    """Fixed reference time for expiry calculations."""
    return datetime(2025, 3, 1, 12, 0, 0)


@pytest.fixture
def state_dir(tmp_path: Path) -> Path:
    """Scratch directory standing in for /tmp."""
    path = tmp_path / "state"
    path.mkdir()
    return path


@pytest.fixture
def store(state_dir: Path) -> FileStore:
    return FileStore(str(state_dir))


@pytest.fixture
def pending_registry(store: FileStore) -> PendingRelayRegistry:
    return PendingRelayRegistry(store)


@pytest.fixture
def thread_registry(store: FileStore) -> ThreadBindingRegistry:
    return ThreadBindingRegistry(store)


@pytest.fixture
def config(state_dir: Path) -> dict:
    """Config pointing the registries at the scratch directory, with no pacing delays."""
    return {
        "paths": {"state_dir": str(state_dir)},
        "tmux": {"inter_key_delay_seconds": 0, "settle_seconds": 0},
    }


@pytest.fixture
def mock_tmux() -> MagicMock:
    """
    Mock TmuxController for testing without a tmux server.

    Returns:
        MagicMock with common tmux methods configured
    """
    mock = MagicMock(spec=TmuxController)
    mock.is_available.return_value = True
    mock.send_key.return_value = None
    mock.send_literal.return_value = None
    mock.capture_pane.return_value = "Mock tmux output"
    return mock


@pytest.fixture
def injector(mock_tmux: MagicMock, config: dict) -> SessionInjector:
    """SessionInjector whose tmux calls go to mock_tmux."""
    return SessionInjector(config=config, controller_factory=lambda socket: mock_tmux)


@pytest.fixture
def make_pending(now: datetime):
    """Factory for pending records created a given number of seconds before `now`."""
    def _make(session_name: str, seconds_ago: int = 0, **kwargs) -> PendingSessionRecord:
        defaults = dict(
            socket="/tmp/clawdbot-tmux-sockets/clawdbot.sock",
            pane="0.0",
            prompt_kind=PromptKind.ELICITATION,
            message="Claude Code is waiting for input",
            conversation_id="abc-123",
            working_dir=f"/home/dev/{session_name.removeprefix('claude-')}",
        )
        defaults.update(kwargs)
        return PendingSessionRecord(
            session_name=session_name,
            created_at=now - timedelta(seconds=seconds_ago),
            **defaults,
        )
    return _make
