"""Chat transport used by the notifier to publish pending prompts."""

import logging
from abc import ABC, abstractmethod
from typing import Optional

import httpx

logger = logging.getLogger(__name__)

DISCORD_API_URL = "https://discord.com/api/v10"
DISCORD_MAX_MESSAGE_LEN = 2000
DISCORD_MAX_THREAD_NAME_LEN = 100


class TransportError(Exception):
    """A chat API call failed or could not be made."""


def _object_id(data) -> str:
    if not isinstance(data, dict) or "id" not in data:
        raise TransportError(f"Discord response has no id: {str(data)[:200]}")
    return str(data["id"])


class ChatTransport(ABC):
    """The four operations the relay needs from a chat platform."""

    @abstractmethod
    def send_message(self, channel_id: str, text: str) -> str:
        """Post to a channel; returns the new message id."""

    @abstractmethod
    def create_thread(self, channel_id: str, message_id: str, name: str) -> str:
        """Open a thread on an existing message; returns the thread id."""

    @abstractmethod
    def reply_in_thread(self, thread_id: str, text: str) -> str:
        """Post inside a thread; returns the new message id."""

    @abstractmethod
    def query(self, channel_id: str, limit: int = 20) -> list[dict]:
        """Fetch recent messages, newest first."""


class DiscordTransport(ChatTransport):
    """Discord REST API over httpx, authenticated as a bot."""

    def __init__(
        self,
        token: str,
        api_url: str = DISCORD_API_URL,
        timeout_seconds: float = 8.0,
        client: Optional[httpx.Client] = None,
    ):
        self.api_url = api_url.rstrip("/")
        self._http = client or httpx.Client(timeout=timeout_seconds)
        self._headers = {"Authorization": f"Bot {token}"}

    @classmethod
    def from_config(cls, config: dict) -> Optional["DiscordTransport"]:
        """Build from the `discord` config section; None when no token is set."""
        discord_config = config.get("discord", {})
        token = discord_config.get("token")
        if not token:
            return None
        return cls(
            token=token,
            api_url=discord_config.get("api_url", DISCORD_API_URL),
            timeout_seconds=discord_config.get("timeout_seconds", 8.0),
        )

    def _request(self, method: str, path: str, **kwargs):
        url = f"{self.api_url}{path}"
        try:
            resp = self._http.request(method, url, headers=self._headers, **kwargs)
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPStatusError as e:
            raise TransportError(
                f"Discord {method} {path} failed with {e.response.status_code}: {e.response.text[:200]}"
            ) from e
        except httpx.HTTPError as e:
            raise TransportError(f"Discord {method} {path} failed: {e}") from e
        except ValueError as e:
            raise TransportError(f"Discord {method} {path} returned invalid JSON") from e

    def send_message(self, channel_id: str, text: str) -> str:
        data = self._request(
            "POST",
            f"/channels/{channel_id}/messages",
            json={"content": text[:DISCORD_MAX_MESSAGE_LEN]},
        )
        return _object_id(data)

    def create_thread(self, channel_id: str, message_id: str, name: str) -> str:
        data = self._request(
            "POST",
            f"/channels/{channel_id}/messages/{message_id}/threads",
            json={"name": name[:DISCORD_MAX_THREAD_NAME_LEN], "auto_archive_duration": 1440},
        )
        return _object_id(data)

    def reply_in_thread(self, thread_id: str, text: str) -> str:
        # Threads are channels in Discord's API
        return self.send_message(thread_id, text)

    def query(self, channel_id: str, limit: int = 20) -> list[dict]:
        data = self._request(
            "GET",
            f"/channels/{channel_id}/messages",
            params={"limit": max(1, min(limit, 100))},
        )
        return data if isinstance(data, list) else []

    def close(self) -> None:
        self._http.close()
