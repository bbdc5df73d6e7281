"""Data models for tmux-relay."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, List, Union


DEFAULT_PANE = "0.0"


class PromptKind(Enum):
    """Why a session is blocked on input."""
    IDLE = "idle"
    ELICITATION = "elicitation"
    PERMISSION = "permission"

    @classmethod
    def from_notification_type(cls, notification_type: str) -> Optional["PromptKind"]:
        """Map a host hook notification type to a prompt kind (None if not actionable)."""
        return _NOTIFICATION_TYPES.get(notification_type)

    @property
    def notification_type(self) -> str:
        return _NOTIFICATION_TYPE_NAMES[self]


_NOTIFICATION_TYPES = {
    "idle_prompt": PromptKind.IDLE,
    "elicitation_dialog": PromptKind.ELICITATION,
    "permission_prompt": PromptKind.PERMISSION,
}
_NOTIFICATION_TYPE_NAMES = {kind: name for name, kind in _NOTIFICATION_TYPES.items()}


class ErrorKind(Enum):
    """Failure categories surfaced in relay results."""
    VALIDATION = "validation"              # Missing session or reply
    OUT_OF_RANGE = "out_of_range"          # Option beyond the known option count
    TOOL_UNAVAILABLE = "tool_unavailable"  # tmux binary missing or unresponsive
    SESSION_NOT_FOUND = "session_not_found"
    INJECTION_FAILED = "injection_failed"  # Any other delivery failure


@dataclass
class RelayError:
    """A structured, expected failure."""
    kind: ErrorKind
    message: str
    session: Optional[str] = None

    def to_dict(self) -> dict:
        data = {"ok": False, "error": self.message}
        if self.session:
            data["session"] = self.session
        return data


@dataclass(frozen=True)
class OptionIntent:
    """Reply selects a menu option (zero-based)."""
    index: int


@dataclass(frozen=True)
class TextIntent:
    """Reply is literal text for the input line."""
    content: str


ReplyIntent = Union[OptionIntent, TextIntent]


class KeyEvent(Enum):
    """Logical keys understood by the injector."""
    DOWN = "Down"
    ENTER = "Enter"
    CLEAR_LINE = "ClearLine"


@dataclass(frozen=True)
class Literal:
    """Text injected verbatim, never interpreted as key names."""
    text: str


KeyStroke = Union[KeyEvent, Literal]
KeySequence = List[KeyStroke]


def key_names(sequence: KeySequence) -> list[str]:
    """Render a key sequence the way relay results report it."""
    return [k.text if isinstance(k, Literal) else k.value for k in sequence]


@dataclass
class CompileResult:
    """Output of the keystroke compiler."""
    sequence: KeySequence = field(default_factory=list)
    option_text: Optional[str] = None
    error: Optional[RelayError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class RelayTarget:
    """Where keystrokes go: a session, an optional control socket, and a pane."""
    session_name: str
    socket: Optional[str] = None  # None = ambient tmux server
    pane: str = DEFAULT_PANE      # "<window>.<pane>"

    @property
    def tmux_target(self) -> str:
        return f"{self.session_name}:{self.pane}"


@dataclass
class InjectionReport:
    """What the injector sent (or would have sent on a dry run)."""
    target: RelayTarget
    sequence: KeySequence
    dry_run: bool = False

    @property
    def keys_sent(self) -> list[str]:
        return key_names(self.sequence)


@dataclass
class InjectionResult:
    """Outcome of SessionInjector.inject()."""
    report: Optional[InjectionReport] = None
    error: Optional[RelayError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _epoch_ms(value: datetime) -> int:
    return int(value.timestamp() * 1000)


def _from_epoch_ms(value) -> datetime:
    return datetime.fromtimestamp((value or 0) / 1000)


@dataclass
class PendingSessionRecord:
    """A session currently blocked waiting for a human reply."""
    session_name: str
    socket: Optional[str] = None
    pane: str = DEFAULT_PANE
    prompt_kind: PromptKind = PromptKind.IDLE
    message: str = ""
    conversation_id: Optional[str] = None  # Host agent's own session id
    working_dir: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.now)
    state_file: Optional[str] = None  # Set when loaded from storage

    @property
    def target(self) -> RelayTarget:
        return RelayTarget(self.session_name, self.socket, self.pane or DEFAULT_PANE)

    def to_dict(self) -> dict:
        """Serialize using the on-disk field names."""
        return {
            "session": self.session_name,
            "socket": self.socket,
            "pane": self.pane,
            "notificationType": self.prompt_kind.notification_type,
            "message": self.message,
            "claudeSessionId": self.conversation_id,
            "cwd": self.working_dir,
            "timestamp": _epoch_ms(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: dict, state_file: Optional[str] = None) -> "PendingSessionRecord":
        return cls(
            session_name=data["session"],
            socket=data.get("socket"),
            pane=data.get("pane") or DEFAULT_PANE,
            prompt_kind=PromptKind.from_notification_type(data.get("notificationType", "")) or PromptKind.IDLE,
            message=data.get("message") or "",
            conversation_id=data.get("claudeSessionId"),
            working_dir=data.get("cwd"),
            created_at=_from_epoch_ms(data.get("timestamp")),
            state_file=state_file,
        )


@dataclass
class ThreadBindingRecord:
    """Maps a remote chat thread to the session that opened it."""
    thread_id: str
    session_name: str
    created_at: datetime = field(default_factory=datetime.now)

    def age_seconds(self, now: Optional[datetime] = None) -> float:
        return ((now or datetime.now()) - self.created_at).total_seconds()

    def to_dict(self) -> dict:
        return {
            "threadId": self.thread_id,
            "sessionName": self.session_name,
            "createdAt": _epoch_ms(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ThreadBindingRecord":
        return cls(
            thread_id=str(data["threadId"]),
            session_name=data["sessionName"],
            created_at=_from_epoch_ms(data.get("createdAt")),
        )


@dataclass
class Matched:
    """Reply resolved to exactly one pending session."""
    record: PendingSessionRecord
    via_fallback: bool = False

    def to_dict(self) -> dict:
        return {
            "matched": True,
            "session": self.record.session_name,
            "socket": self.record.socket,
            "pane": self.record.pane or DEFAULT_PANE,
            "stateFile": self.record.state_file,
            "fallback": self.via_fallback,
        }


@dataclass
class NoMatch:
    """No pending session could be found for the reply."""
    reason: str

    def to_dict(self) -> dict:
        return {"matched": False, "reason": self.reason}


@dataclass
class Ambiguous:
    """Several pending sessions and nothing to pick between them."""
    candidate_session_names: List[str]

    def to_dict(self) -> dict:
        return {
            "matched": False,
            "ambiguous": True,
            "pendingSessions": list(self.candidate_session_names),
            "reason": "multiple pending relays, thread match required",
        }


MatchResult = Union[Matched, NoMatch, Ambiguous]
