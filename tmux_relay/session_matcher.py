"""Resolve an inbound reply's chat identifier to one pending session."""

import logging
import re
from datetime import datetime, timedelta
from typing import Optional, Sequence

from .models import (
    Ambiguous,
    Matched,
    MatchResult,
    NoMatch,
    PendingSessionRecord,
    ThreadBindingRecord,
)
from .registry import THREAD_TTL

logger = logging.getLogger(__name__)

# Platform snowflake ids (channels, threads, messages) are 17-19 digits
SNOWFLAKE_RE = re.compile(r"\d{17,19}")


def extract_ids(raw_identifier: str) -> list[str]:
    """Long numeric tokens in first-seen order, without duplicates."""
    seen = []
    for token in SNOWFLAKE_RE.findall(str(raw_identifier or "")):
        if token not in seen:
            seen.append(token)
    return seen


def _newest_per_session(pending: Sequence[PendingSessionRecord]) -> list[PendingSessionRecord]:
    newest: dict[str, PendingSessionRecord] = {}
    for record in pending:
        current = newest.get(record.session_name)
        if current is None or record.created_at > current.created_at:
            newest[record.session_name] = record
    return sorted(newest.values(), key=lambda r: r.created_at, reverse=True)


def match_session(
    raw_identifier: str,
    pending: Sequence[PendingSessionRecord],
    bindings: Sequence[ThreadBindingRecord],
    now: Optional[datetime] = None,
    ttl: timedelta = THREAD_TTL,
) -> MatchResult:
    """
    Find the pending session a reply belongs to.

    Thread bindings are the precise path: the first candidate id that names a
    live binding whose session is pending wins. Without one, a lone pending
    session is assumed to be the target (fallback); several pending sessions
    are reported as ambiguous rather than guessed at.

    Args:
        raw_identifier: Chat id string from the inbound event, e.g.
            "channel:1476953824911425617:thread:1477207778727563457"
        pending: Pending relay records
        bindings: Thread binding records (expired ones are ignored)
        now: Reference time for expiry
        ttl: Binding lifetime

    Returns:
        Matched, NoMatch or Ambiguous
    """
    candidates = extract_ids(raw_identifier)
    if not candidates:
        return NoMatch(reason="no identifiers found")

    now = now or datetime.now()
    live = [b for b in bindings if b.age_seconds(now) < ttl.total_seconds()]
    sessions = _newest_per_session(pending)
    by_name = {r.session_name: r for r in sessions}

    for candidate in candidates:
        binding = next((b for b in live if b.thread_id == candidate), None)
        if binding is None:
            continue
        record = by_name.get(binding.session_name)
        if record is not None:
            logger.info(f"Matched thread {candidate} to {record.session_name}")
            return Matched(record=record, via_fallback=False)
        logger.debug(f"Thread {candidate} bound to {binding.session_name}, which has no pending relay")

    if len(sessions) == 1:
        logger.info(f"No thread match; falling back to sole pending session {sessions[0].session_name}")
        return Matched(record=sessions[0], via_fallback=True)
    if not sessions:
        return NoMatch(reason="no pending relay found")
    return Ambiguous(candidate_session_names=[r.session_name for r in sessions])
