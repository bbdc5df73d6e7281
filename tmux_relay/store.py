"""Key-value storage for relay registry records."""

import json
import logging
import os
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


def default_state_dir() -> str:
    return os.environ.get("TMPDIR") or "/tmp"


class KeyValueStore(ABC):
    """Flat store of JSON records addressed by string keys."""

    @abstractmethod
    def put(self, key: str, record: dict) -> None:
        """Create or overwrite the record stored under key."""

    @abstractmethod
    def get_all(self, prefix: str) -> dict[str, dict]:
        """Return every readable record whose key starts with prefix."""

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Remove a record; True if something was removed."""

    @abstractmethod
    def location(self, key: str) -> str:
        """Human-readable address of a record (reported back to callers)."""

    def expire(
        self,
        prefix: str,
        ttl_seconds: float,
        timestamp_field: str = "createdAt",
        now: Optional[datetime] = None,
    ) -> list[str]:
        """
        Delete records under prefix older than ttl_seconds.

        Timestamps are epoch milliseconds; records without one count as expired.

        Returns:
            Keys that were removed
        """
        now_ms = (now or datetime.now()).timestamp() * 1000
        removed = []
        for key, record in self.get_all(prefix).items():
            created = record.get(timestamp_field)
            if not isinstance(created, (int, float)) or now_ms - created >= ttl_seconds * 1000:
                if self.delete(key):
                    removed.append(key)
        if removed:
            logger.info(f"Expired {len(removed)} record(s) under '{prefix}'")
        return removed


class FileStore(KeyValueStore):
    """One `<key>.json` file per record, each a single line of JSON."""

    SUFFIX = ".json"

    def __init__(self, state_dir: Optional[str] = None):
        self.state_dir = Path(state_dir or default_state_dir())

    def _path(self, key: str) -> Path:
        safe_key = key.replace("/", "_").replace(os.sep, "_")
        return self.state_dir / f"{safe_key}{self.SUFFIX}"

    def location(self, key: str) -> str:
        return str(self._path(key))

    def put(self, key: str, record: dict) -> None:
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            f.write(json.dumps(record) + "\n")
        logger.debug(f"Wrote {path}")

    def get_all(self, prefix: str) -> dict[str, dict]:
        """
        Read all records under prefix.

        A missing state directory reads as empty. Files that vanish or fail
        to parse are skipped. Any other error listing the directory propagates.
        """
        if not self.state_dir.is_dir():
            return {}

        records = {}
        for path in sorted(self.state_dir.iterdir()):
            if not (path.name.startswith(prefix) and path.name.endswith(self.SUFFIX)):
                continue
            try:
                with open(path) as f:
                    data = json.load(f)
            except (OSError, ValueError) as e:
                logger.debug(f"Skipping unreadable record {path}: {e}")
                continue
            if not isinstance(data, dict):
                logger.debug(f"Skipping non-object record {path}")
                continue
            records[path.name[:-len(self.SUFFIX)]] = data
        return records

    def delete(self, key: str) -> bool:
        path = self._path(key)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        logger.debug(f"Deleted {path}")
        return True
