"""DispatchEngine: serializes user messages against one in-flight gateway call.

The engine owns the conversation log and the dispatch state. Presentation
code reads snapshots (``get_messages``, ``get_typing_status``,
``is_input_enabled``) and sends everything through ``submit``.

Flow for one dispatch (the reveal protocol):

1. Show the typing status and call the gateway.
2. For each reply segment: after the first, show typing again and hold the
   segment typing delay; clear typing and append the segment as an agent
   message; if more segments follow, hold the inter-segment delay.
3. Clear typing no matter how the exchange ended.

When a dispatch finishes and messages were queued meanwhile, the head of the
queue goes out after the inter-turn cooldown, on the same worker task.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable

from ..gateway.webhook import WebhookGateway
from ..storage import open_store
from ..types import ChatConfig, Clock, GatewayResult, Message, Origin, ReplyGateway, Sleep, utc_now
from .pacing import Pacer
from .session import Session
from .store import KeyValueStore
from .state_machine import (
    AppendUserMessage,
    BeginDispatch,
    CancelRequested,
    Cancelled,
    DispatchCompleted,
    DispatchState,
    Enqueued,
    Event,
    Phase,
    Submitted,
    transition,
)

logger = logging.getLogger(__name__)

# (kind, payload) where kind is "message", "typing" or "state"
Listener = Callable[[str, Any], None]


class DispatchEngine:
    def __init__(
        self,
        session: Session,
        gateway: ReplyGateway,
        config: ChatConfig | None = None,
        sleep: Sleep | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.session = session
        self.gateway = gateway
        self.config = config or ChatConfig()
        self._pacer = Pacer(self.config.pacing, sleep)
        self._clock: Clock = clock or utc_now
        self._state = DispatchState()
        self._typing: str | None = None
        self._worker: asyncio.Task | None = None
        self._listeners: list[Listener] = []
        self._owned_gateway: WebhookGateway | None = None
        self._messages: list[Message] = self._restore()

    @classmethod
    def from_config(
        cls,
        config: ChatConfig,
        storage: KeyValueStore | None = None,
        gateway: ReplyGateway | None = None,
        sleep: Sleep | None = None,
        clock: Clock | None = None,
    ) -> DispatchEngine:
        """Wire storage, session and the webhook gateway from one config."""
        if storage is None:
            storage = open_store(config.storage)
        session = Session.open(storage, config.storage)
        if gateway is None:
            gateway = WebhookGateway(config.gateway, replies=config.replies)
            engine = cls(session, gateway, config=config, sleep=sleep, clock=clock)
            engine._owned_gateway = gateway
            return engine
        return cls(session, gateway, config=config, sleep=sleep, clock=clock)

    # ------------------------------------------------------------------
    # Presentation-facing API
    # ------------------------------------------------------------------

    @property
    def messages(self) -> list[Message]:
        return list(self._messages)

    def get_messages(self) -> list[Message]:
        return list(self._messages)

    def get_typing_status(self) -> str | None:
        return self._typing

    def is_input_enabled(self) -> bool:
        return not self._state.busy

    @property
    def state(self) -> DispatchState:
        return self._state

    @property
    def phase(self) -> Phase:
        return self._state.phase

    def pending(self) -> list[str]:
        return list(self._state.pending)

    def submit(self, text: str) -> None:
        """Record a user message and dispatch or queue it.

        Must be called while an event loop is running; the dispatch itself
        runs on a worker task so this returns immediately.
        """
        asyncio.get_running_loop()  # RuntimeError before any state changes
        self._apply(Submitted(text))

    def submit_quick_question(self, index: int) -> str:
        """Submit one of the configured quick questions. Returns its text."""
        questions = self.config.quick_questions
        if not 0 <= index < len(questions):
            raise IndexError(f"no quick question at position {index}")
        question = questions[index]
        self.submit(question)
        return question

    def cancel_pending(self, index: int) -> str | None:
        """Drop a queued (not yet dispatching) message. Returns its text."""
        cancelled = self._apply(CancelRequested(index))
        for effect in cancelled:
            if isinstance(effect, Cancelled):
                return effect.text
        return None

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener. Returns a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def wait_idle(self) -> None:
        """Wait until the worker has drained every queued message."""
        while self._worker is not None and not self._worker.done():
            await self._worker

    async def aclose(self) -> None:
        await self.wait_idle()
        self._listeners.clear()
        if self._owned_gateway is not None:
            await self._owned_gateway.aclose()
            self._owned_gateway = None

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _restore(self) -> list[Message]:
        saved = self.session.log_store.load(self.session.id)
        if saved:
            logger.info(
                "Restored %d messages for session %s", len(saved), self.session.id,
            )
            return list(saved)
        welcome = Message(Origin.AGENT, self.config.replies.welcome, self._clock())
        self.session.log_store.save(self.session.id, [welcome])
        return [welcome]

    def _apply(self, event: Event) -> list:
        self._state, effects = transition(self._state, event)
        for effect in effects:
            if isinstance(effect, AppendUserMessage):
                self._append(Origin.USER, effect.text)
            elif isinstance(effect, BeginDispatch):
                self._worker = asyncio.get_running_loop().create_task(self._run(effect))
            elif isinstance(effect, Enqueued):
                logger.debug("Queued message at position %d", effect.position)
            elif isinstance(effect, Cancelled):
                logger.info("Cancelled queued message: %r", effect.text)
        if effects:
            self._notify("state", self._state)
        return effects

    def _complete(self) -> BeginDispatch | None:
        self._state, effects = transition(self._state, DispatchCompleted())
        self._notify("state", self._state)
        for effect in effects:
            if isinstance(effect, BeginDispatch):
                return effect
        return None

    async def _run(self, job: BeginDispatch) -> None:
        """Worker: run dispatches back to back until the queue is empty."""
        current: BeginDispatch | None = job
        while current is not None:
            if current.cooldown:
                await self._pacer.before_turn()
            try:
                await self._reveal(current.text)
            except Exception:
                logger.exception("Dispatch failed for session %s", self.session.id)
            current = self._complete()

    async def _reveal(self, text: str) -> None:
        status = self.config.replies.typing_status
        self._set_typing(status)
        try:
            result = await self._exchange(text)
            last = len(result.segments) - 1
            for i, segment in enumerate(result.segments):
                if i > 0:
                    self._set_typing(status)
                    await self._pacer.before_segment()
                self._set_typing(None)
                self._append(Origin.AGENT, segment)
                if i < last:
                    await self._pacer.between_segments()
        finally:
            self._set_typing(None)

    async def _exchange(self, text: str) -> GatewayResult:
        try:
            result = await self.gateway.send(self.session.id, text)
        except Exception as e:
            logger.exception("Gateway raised for session %s", self.session.id)
            return GatewayResult(
                segments=[self.config.replies.failure], failed=True, error=str(e),
            )
        if not result.segments:
            return GatewayResult(segments=[self.config.replies.empty_reply])
        return result

    def _append(self, origin: Origin, text: str) -> None:
        message = Message(origin, text, self._clock())
        self._messages.append(message)
        self.session.log_store.save(self.session.id, self._messages)
        self._notify("message", message)

    def _set_typing(self, status: str | None) -> None:
        if status == self._typing:
            return
        self._typing = status
        self._notify("typing", status)

    def _notify(self, kind: str, payload: Any) -> None:
        for listener in list(self._listeners):
            try:
                listener(kind, payload)
            except Exception:
                logger.exception("Listener failed on %s event", kind)
