"""Scrollable chat message display."""

from __future__ import annotations

from rich.markup import escape
from textual.widgets import RichLog

from ...markdown import format_time
from ...types import Message, Origin


class ChatView(RichLog):
    """Displays chat messages with Rich markup, auto-scrolling."""

    def __init__(self, **kwargs) -> None:
        super().__init__(markup=True, wrap=True, auto_scroll=True, **kwargs)
        self._message_log: list[str] = []

    def _write_line(self, markup: str) -> None:
        """Write a line and track it for replay."""
        self._message_log.append(markup)
        self.write(markup)

    def add_message(self, message: Message) -> None:
        stamp = format_time(message.sent_at)
        if message.origin is Origin.USER:
            label = "[bold cyan]You[/bold cyan]"
        else:
            label = "[bold green]Agent[/bold green]"
        self._write_line(f"{label} [dim]{stamp}[/dim]: {escape(message.text)}")
        self._write_line("")

    def add_system_message(self, text: str) -> None:
        self._write_line(f"[dim italic]{escape(text)}[/dim italic]")
        self._write_line("")

    def load(self, messages: list[Message]) -> None:
        """Replace the view with the given history."""
        self.clear()
        self._message_log = []
        for message in messages:
            self.add_message(message)
