"""ConversationLogStore: persisted message history keyed by session id."""

from __future__ import annotations

import json
import logging

from ..storage.helpers import dt_to_str, str_to_dt
from ..types import Message, Origin
from .store import KeyValueStore

logger = logging.getLogger(__name__)


def message_to_dict(message: Message) -> dict:
    return {
        "type": message.origin.value,
        "text": message.text,
        "timestamp": dt_to_str(message.sent_at),
    }


def message_from_dict(data: dict) -> Message:
    """Rebuild a Message. Raises ValueError/KeyError/TypeError on bad input."""
    text = data["text"]
    if not isinstance(text, str):
        raise TypeError(f"message text must be a string, got {type(text).__name__}")
    return Message(
        origin=Origin(data["type"]),
        text=text,
        sent_at=str_to_dt(data["timestamp"]),
    )


class ConversationLogStore:
    """Serialize the ordered message log into a KeyValueStore."""

    def __init__(self, storage: KeyValueStore, key_prefix: str = "chat_messages_") -> None:
        self._storage = storage
        self._key_prefix = key_prefix

    def key_for(self, session_id: str) -> str:
        return f"{self._key_prefix}{session_id}"

    def load(self, session_id: str) -> list[Message] | None:
        """Return the saved log, or None when absent or unreadable."""
        raw = self._storage.get(self.key_for(session_id))
        if raw is None:
            return None
        try:
            data = json.loads(raw)
            if not isinstance(data, list):
                raise TypeError(f"expected a list, got {type(data).__name__}")
            return [message_from_dict(item) for item in data]
        except (ValueError, KeyError, TypeError) as e:
            logger.warning(
                "Discarding corrupted conversation log for session %s: %s",
                session_id, e,
            )
            return None

    def save(self, session_id: str, messages: list[Message]) -> None:
        payload = json.dumps(
            [message_to_dict(m) for m in messages], ensure_ascii=False,
        )
        self._storage.set(self.key_for(session_id), payload)

    def clear(self, session_id: str) -> None:
        self._storage.delete(self.key_for(session_id))
