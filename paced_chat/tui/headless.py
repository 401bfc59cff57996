"""Headless replay runner: no TUI, same engine + gateway pipeline."""

from __future__ import annotations

import sys
import time
from pathlib import Path
from typing import Any

from ..core.dispatch import DispatchEngine
from ..types import Message, Origin
from .state import save_transcript


class HeadlessRunner:
    """Feed prompts through a DispatchEngine without a terminal UI.

    Writes the same ``chat-transcript.json`` as the interactive app and prints
    each message to stderr as it is revealed.

    In the default mode each prompt waits for the previous dispatch to drain.
    With ``burst=True`` every prompt is submitted at once, so all but the
    first go through the pending queue and its cooldown.
    """

    def __init__(self, engine: DispatchEngine, burst: bool = False, echo: bool = True) -> None:
        self.engine = engine
        self.burst = burst
        self.echo = echo
        self.timings: list[float] = []
        self._unsubscribe = engine.subscribe(self._on_change) if echo else None

    async def run(
        self,
        prompts: list[str],
        output: Path | str | None = None,
    ) -> list[Message]:
        """Submit prompts, wait for every reply, return the full log.

        Args:
            prompts: User messages to send in order.
            output: Directory to write ``chat-transcript.json`` into.
                    No file is written when omitted.
        """
        if self.burst:
            t0 = time.perf_counter()
            for prompt in prompts:
                self.engine.submit(prompt)
            await self.engine.wait_idle()
            self.timings.append(round((time.perf_counter() - t0) * 1000, 1))
        else:
            for prompt in prompts:
                t0 = time.perf_counter()
                self.engine.submit(prompt)
                await self.engine.wait_idle()
                self.timings.append(round((time.perf_counter() - t0) * 1000, 1))

        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

        messages = self.engine.get_messages()
        if output is not None:
            path = save_transcript(messages, self.engine.session.id, directory=output)
            print(f"\nTranscript saved to {path.resolve()}", file=sys.stderr)
        return messages

    def _on_change(self, kind: str, payload: Any) -> None:
        if kind != "message" or not isinstance(payload, Message):
            return
        who = "You" if payload.origin is Origin.USER else "Agent"
        print(f"{who}: {payload.text}", file=sys.stderr)
