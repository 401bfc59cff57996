"""Chat input: Enter sends, ``/q N`` picks a quick question."""

from __future__ import annotations

import re

from textual.binding import Binding
from textual.events import Key
from textual.message import Message
from textual.widgets import TextArea

_QUICK_RE = re.compile(r"^/q\s+(\d+)$")


class InputBox(TextArea):
    """Message entry. Submissions are never blocked; the engine queues them."""

    class MessageSubmitted(Message):
        """Posted when the user sends free text."""

        def __init__(self, text: str) -> None:
            super().__init__()
            self.text = text

    class QuickQuestionChosen(Message):
        """Posted for ``/q N``; ``index`` is zero-based."""

        def __init__(self, index: int) -> None:
            super().__init__()
            self.index = index

    BINDINGS = [
        Binding("ctrl+n", "newline", "New Line"),
        Binding("ctrl+r", "recall", "Recall Last"),
    ]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._last_sent = ""

    def _on_key(self, event: Key) -> None:
        if event.key != "enter":
            return
        event.prevent_default()
        event.stop()
        text = self.text.strip()
        if not text:
            return
        quick = _QUICK_RE.match(text)
        if quick:
            self.post_message(self.QuickQuestionChosen(int(quick.group(1)) - 1))
        else:
            self._last_sent = text
            self.post_message(self.MessageSubmitted(text))
        self.clear()

    def action_newline(self) -> None:
        self.insert("\n")

    def action_recall(self) -> None:
        """Put the last sent message back into the box."""
        if self._last_sent:
            self.text = self._last_sent
