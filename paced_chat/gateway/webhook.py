"""WebhookGateway: JSON request/response reply service via httpx.

Wire contract: POST ``{"user_id": ..., "message": ...}``, expect
``{"reply": "..."}`` where ``reply`` may hold several turns separated by the
configured delimiter.
"""

from __future__ import annotations

import json

import httpx

from ..types import CannedReplies, GatewayConfig, GatewayError
from .base import BaseGateway


def parse_reply(body: str) -> str:
    """Validate a response body and return its reply text.

    A missing or null ``reply`` counts as empty. Anything that is not a JSON
    object, or a ``reply`` of another type, is a GatewayError.
    """
    try:
        data = json.loads(body)
    except json.JSONDecodeError as e:
        raise GatewayError(f"Response is not JSON: {e}") from e
    if not isinstance(data, dict):
        raise GatewayError(f"Expected a JSON object, got {type(data).__name__}")
    reply = data.get("reply")
    if reply is None:
        return ""
    if not isinstance(reply, str):
        raise GatewayError(f"'reply' must be a string, got {type(reply).__name__}")
    return reply


class WebhookGateway(BaseGateway):
    """Reply gateway posting to a single webhook URL."""

    def __init__(
        self,
        config: GatewayConfig | None = None,
        replies: CannedReplies | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.config = config or GatewayConfig()
        super().__init__(replies=replies, delimiter=self.config.delimiter)
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=self.config.timeout)

    async def _exchange(self, session_id: str, text: str) -> str:
        headers = {"Content-Type": "application/json", **self.config.headers}
        payload = {"user_id": session_id, "message": text}

        response = await self._client.post(
            self.config.url,
            headers=headers,
            json=payload,
            timeout=self.config.timeout,
        )
        if not response.is_success:
            raise GatewayError(
                f"HTTP {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )
        return parse_reply(response.text)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> WebhookGateway:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
