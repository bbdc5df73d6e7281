"""Pending-relay and thread-binding registries on top of a KeyValueStore."""

import logging
from datetime import datetime, timedelta
from typing import Optional

from .models import PendingSessionRecord, ThreadBindingRecord
from .store import KeyValueStore

logger = logging.getLogger(__name__)

PENDING_PREFIX = "pending-relay-"
THREAD_PREFIX = "discord-thread-"
THREAD_TTL = timedelta(hours=2)


class PendingRelayRegistry:
    """One record per session currently blocked on input."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    def record(self, pending: PendingSessionRecord) -> str:
        """
        Store a pending relay, superseding any earlier one for the session.

        Returns:
            Location of the stored record
        """
        key = PENDING_PREFIX + pending.session_name
        self.store.put(key, pending.to_dict())
        location = self.store.location(key)
        logger.info(f"Pending relay recorded for {pending.session_name} ({pending.prompt_kind.value})")
        return location

    def list(self) -> list[PendingSessionRecord]:
        """All readable pending records, newest first."""
        records = []
        for key, data in self.store.get_all(PENDING_PREFIX).items():
            try:
                records.append(PendingSessionRecord.from_dict(data, state_file=self.store.location(key)))
            except (KeyError, TypeError, ValueError, OverflowError, OSError) as e:
                logger.debug(f"Skipping malformed pending record {key}: {e}")
        return sorted(records, key=lambda r: r.created_at, reverse=True)

    def get(self, session_name: str) -> Optional[PendingSessionRecord]:
        for record in self.list():
            if record.session_name == session_name:
                return record
        return None

    def consume(self, session_name: str) -> bool:
        """Remove the pending record once its reply has been relayed."""
        removed = self.store.delete(PENDING_PREFIX + session_name)
        if removed:
            logger.info(f"Consumed pending relay for {session_name}")
        return removed


class ThreadBindingRegistry:
    """Maps chat thread ids to the session that opened them, with a hard TTL."""

    def __init__(self, store: KeyValueStore, ttl: timedelta = THREAD_TTL):
        self.store = store
        self.ttl = ttl

    def bind(self, thread_id: str, session_name: str, created_at: Optional[datetime] = None) -> ThreadBindingRecord:
        binding = ThreadBindingRecord(
            thread_id=str(thread_id),
            session_name=session_name,
            created_at=created_at or datetime.now(),
        )
        self.store.put(THREAD_PREFIX + session_name, binding.to_dict())
        logger.info(f"Bound thread {binding.thread_id} to {session_name}")
        return binding

    def is_live(self, binding: ThreadBindingRecord, now: Optional[datetime] = None) -> bool:
        return binding.age_seconds(now) < self.ttl.total_seconds()

    def all(self) -> list[ThreadBindingRecord]:
        """Every readable binding, expired or not."""
        bindings = []
        for key, data in self.store.get_all(THREAD_PREFIX).items():
            try:
                bindings.append(ThreadBindingRecord.from_dict(data))
            except (KeyError, TypeError, ValueError, OverflowError, OSError) as e:
                logger.debug(f"Skipping malformed thread binding {key}: {e}")
        return bindings

    def active(self, now: Optional[datetime] = None) -> list[ThreadBindingRecord]:
        return [b for b in self.all() if self.is_live(b, now)]

    def for_session(self, session_name: str, now: Optional[datetime] = None) -> Optional[ThreadBindingRecord]:
        for binding in self.active(now):
            if binding.session_name == session_name:
                return binding
        return None

    def expire(self, now: Optional[datetime] = None) -> list[str]:
        """Delete bindings past their TTL."""
        return self.store.expire(THREAD_PREFIX, self.ttl.total_seconds(), "createdAt", now)
