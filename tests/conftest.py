"""Shared fixtures for paced-chat tests."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from paced_chat.config import load_config
from paced_chat.core.dispatch import DispatchEngine
from paced_chat.core.session import Session
from paced_chat.gateway.base import BaseGateway
from paced_chat.storage.memory import MemoryStore
from paced_chat.types import ChatConfig, GatewayError


class FakeGateway(BaseGateway):
    """Gateway with canned raw replies (no HTTP).

    Each entry in ``replies`` is either a raw reply string or an exception to
    raise. The last entry repeats once the list runs out. When ``gate`` is
    given, every exchange waits on it, which keeps a dispatch in flight until
    the test releases it.
    """

    def __init__(
        self,
        replies: list[str | Exception] | None = None,
        gate: asyncio.Event | None = None,
        config: ChatConfig | None = None,
    ):
        config = config or ChatConfig()
        super().__init__(replies=config.replies, delimiter=config.gateway.delimiter)
        self._replies = replies or ["Hello! I'm a test agent."]
        self.gate = gate
        self.calls: list[tuple[str, str]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def _exchange(self, session_id: str, text: str) -> str:
        self.calls.append((session_id, text))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.gate is not None:
                await self.gate.wait()
            await asyncio.sleep(0)
            idx = min(len(self.calls) - 1, len(self._replies) - 1)
            reply = self._replies[idx]
            if isinstance(reply, Exception):
                raise reply
            return reply
        finally:
            self.in_flight -= 1

    @property
    def texts(self) -> list[str]:
        return [text for _, text in self.calls]


class RecordingSleep:
    """Sleep stand-in: records requested delays, yields once, returns."""

    def __init__(self):
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)
        await asyncio.sleep(0)


class SteppingClock:
    """Deterministic clock advancing one second per reading."""

    def __init__(self, start: datetime):
        self._now = start

    def __call__(self) -> datetime:
        now = self._now
        self._now += timedelta(seconds=1)
        return now


@pytest.fixture
def ts() -> datetime:
    return datetime(2026, 1, 15, 10, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock(ts) -> SteppingClock:
    return SteppingClock(ts)


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def config() -> ChatConfig:
    return load_config(config_dict={
        "gateway": {"url": "http://gateway.test/webhook"},
        # fallback texts stay at their defaults, which FakeGateway also uses
        "replies": {
            "welcome": "Hi! Welcome to R & S Flooring. How can we help you today?",
        },
    })


@pytest.fixture
def make_engine(store, config, sleep, clock):
    """Build a DispatchEngine over the shared store with a FakeGateway."""

    def _make(gateway: FakeGateway | None = None, **kwargs) -> DispatchEngine:
        session = Session.open(kwargs.pop("storage", store), config.storage)
        return DispatchEngine(
            session,
            gateway or FakeGateway(config=config),
            config=kwargs.pop("config", config),
            sleep=kwargs.pop("sleep", sleep),
            clock=kwargs.pop("clock", clock),
        )

    return _make


def gateway_error(message: str = "connection refused") -> GatewayError:
    return GatewayError(message)
