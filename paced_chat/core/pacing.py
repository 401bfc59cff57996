"""Pacing: the fixed delays of the reveal protocol behind an injectable sleep."""

from __future__ import annotations

import asyncio
import logging

from ..types import PacingConfig, Sleep

logger = logging.getLogger(__name__)


class Pacer:
    """Wrap a sleep coroutine with the three named reveal delays.

    Tests hand in a sleep that returns immediately (and records what it was
    asked for) so the reveal protocol runs without real elapsed time.
    """

    def __init__(self, config: PacingConfig | None = None, sleep: Sleep | None = None) -> None:
        self.config = config or PacingConfig()
        self._sleep: Sleep = sleep or asyncio.sleep

    async def _hold(self, seconds: float, label: str) -> None:
        if seconds <= 0:
            return
        logger.debug("Pacing %s: %.2fs", label, seconds)
        await self._sleep(seconds)

    async def before_segment(self) -> None:
        await self._hold(self.config.segment_typing_delay, "typing")

    async def between_segments(self) -> None:
        await self._hold(self.config.inter_segment_delay, "segment gap")

    async def before_turn(self) -> None:
        await self._hold(self.config.inter_turn_delay, "turn cooldown")
