"""Reply gateway base class with shared split and fallback handling."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

import httpx

from ..types import DEFAULT_DELIMITER, CannedReplies, GatewayError, GatewayResult

logger = logging.getLogger(__name__)


def split_reply(raw: str, delimiter: str = DEFAULT_DELIMITER) -> list[str]:
    """Split a raw reply into trimmed, non-empty segments."""
    return [part.strip() for part in raw.split(delimiter) if part.strip()]


class BaseGateway(ABC):
    """Abstract base for reply gateways. Subclasses perform one exchange;
    ``send()`` turns its outcome into segments and never raises for
    transport or decode trouble."""

    def __init__(
        self,
        replies: CannedReplies | None = None,
        delimiter: str = DEFAULT_DELIMITER,
    ) -> None:
        self.replies = replies or CannedReplies()
        self.delimiter = delimiter

    # -- hook subclasses must implement --

    @abstractmethod
    async def _exchange(self, session_id: str, text: str) -> str:
        """Return the raw reply string. Raise GatewayError on failure."""

    # -- shared handling --

    async def send(self, session_id: str, text: str) -> GatewayResult:
        """Exchange one message. Always yields at least one segment."""
        try:
            raw = await self._exchange(session_id, text)
        except (GatewayError, httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
            logger.warning("Gateway exchange failed for session %s: %s", session_id, e)
            return GatewayResult(segments=[self.replies.failure], failed=True, error=str(e))

        segments = split_reply(raw, self.delimiter)
        if not segments:
            logger.info("Gateway returned no usable reply for session %s", session_id)
            segments = [self.replies.empty_reply]
        return GatewayResult(segments=segments)
