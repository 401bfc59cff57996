"""Session identity and the Session context object handed to the engine."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass

from ..types import StorageConfig
from .conversation_log import ConversationLogStore
from .store import KeyValueStore

logger = logging.getLogger(__name__)


def new_session_id() -> str:
    """``user_`` plus 12 hex chars of a UUID4 (48 random bits)."""
    return f"user_{uuid.uuid4().hex[:12]}"


class SessionIdentityStore:
    """Assign a session identifier on first access and keep it thereafter."""

    def __init__(self, storage: KeyValueStore, key: str = "chat_user_id") -> None:
        self._storage = storage
        self._key = key

    def get_or_create(self) -> str:
        existing = self._storage.get(self._key)
        if existing:
            return existing
        session_id = new_session_id()
        self._storage.set(self._key, session_id)
        logger.info("Created session id %s", session_id)
        return session_id


@dataclass
class Session:
    """Everything the engine needs to know about the current session."""

    id: str
    storage: KeyValueStore
    log_store: ConversationLogStore

    @classmethod
    def open(
        cls,
        storage: KeyValueStore,
        config: StorageConfig | None = None,
    ) -> Session:
        config = config or StorageConfig()
        session_id = SessionIdentityStore(storage, key=config.user_id_key).get_or_create()
        return cls(
            id=session_id,
            storage=storage,
            log_store=ConversationLogStore(storage, key_prefix=config.log_key_prefix),
        )

    def end(self) -> None:
        """Forget the session: identifier and history both go."""
        self.storage.clear()
