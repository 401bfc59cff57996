"""All dataclasses, Protocols, and type aliases for paced-chat."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Awaitable, Callable, Protocol, runtime_checkable


# ---------------------------------------------------------------------------
# Message
# ---------------------------------------------------------------------------

class Origin(str, Enum):
    """Who produced a message. Values are the persisted wire names."""
    USER = "user"
    AGENT = "bot"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Message:
    origin: Origin
    text: str
    sent_at: datetime = field(default_factory=utc_now)


# ---------------------------------------------------------------------------
# Gateway
# ---------------------------------------------------------------------------

@dataclass
class GatewayResult:
    """Outcome of one gateway exchange. Always carries at least one segment."""
    segments: list[str]
    failed: bool = False
    error: str | None = None


class GatewayError(Exception):
    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


@runtime_checkable
class ReplyGateway(Protocol):
    async def send(self, session_id: str, text: str) -> GatewayResult: ...


# Coroutine used for every pacing delay; seconds in, nothing out.
Sleep = Callable[[float], Awaitable[None]]
Clock = Callable[[], datetime]


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

DEFAULT_DELIMITER = "\\k"


@dataclass
class GatewayConfig:
    url: str = "http://127.0.0.1:5678/webhook/chat"
    timeout: float = 20.0
    delimiter: str = DEFAULT_DELIMITER
    headers: dict[str, str] = field(default_factory=dict)


@dataclass
class PacingConfig:
    segment_typing_delay: float = 1.0   # typing shown before every segment after the first
    inter_segment_delay: float = 0.2    # pause after a segment when more follow
    inter_turn_delay: float = 2.0       # cooldown before a queued message is dispatched


@dataclass
class CannedReplies:
    welcome: str = "Hi! Welcome. How can we help you today?"
    typing_status: str = "Support agent is typing..."
    empty_reply: str = "Thank you for contacting us. How can we help you today?"
    failure: str = (
        "I apologize for the inconvenience. Please contact us directly "
        "at (615)-285-6193 for immediate assistance."
    )


@dataclass
class StorageConfig:
    backend: str = "memory"  # "memory" or "filesystem"
    root: str = ".paced-chat"
    user_id_key: str = "chat_user_id"
    log_key_prefix: str = "chat_messages_"


@dataclass
class ChatConfig:
    version: str = "0.1"
    gateway: GatewayConfig = field(default_factory=GatewayConfig)
    pacing: PacingConfig = field(default_factory=PacingConfig)
    replies: CannedReplies = field(default_factory=CannedReplies)
    storage: StorageConfig = field(default_factory=StorageConfig)
    quick_questions: list[str] = field(default_factory=list)
