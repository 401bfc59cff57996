"""ChatApp: Textual front end that renders a DispatchEngine."""

from __future__ import annotations

from typing import Any

from rich.markup import escape
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.widgets import Footer, Static

from ..config import load_config
from ..core.dispatch import DispatchEngine
from ..core.state_machine import DispatchState
from ..types import ChatConfig, Message
from .state import save_transcript
from .widgets.chat_view import ChatView
from .widgets.input_box import InputBox


class ChatApp(App):
    """Interactive chat against the configured reply service."""

    CSS = """
    #chat-view { height: 1fr; }
    #typing { height: 1; color: $text-muted; }
    #status { height: 1; color: $text-muted; }
    #input-box { height: 5; }
    """

    BINDINGS = [
        Binding("ctrl+q", "quit", "Quit"),
        Binding("ctrl+s", "save_transcript", "Save Log", priority=True),
        Binding("ctrl+o", "show_questions", "Quick Questions", priority=True),
        Binding("ctrl+x", "cancel_last", "Cancel Queued", priority=True),
    ]

    def __init__(
        self,
        config: ChatConfig | None = None,
        config_path: str | None = None,
        engine: DispatchEngine | None = None,
        replay_prompts: list[str] | None = None,
    ) -> None:
        super().__init__()
        self.config = config or load_config(config_path)
        self.engine: DispatchEngine | None = engine
        self._replay_prompts: list[str] = replay_prompts or []
        self._unsubscribe = None

    @property
    def _chat_view(self) -> ChatView:
        return self.query_one("#chat-view", ChatView)

    def on_mount(self) -> None:
        if self.engine is None:
            try:
                self.engine = DispatchEngine.from_config(self.config)
            except (OSError, ValueError) as e:
                self._chat_view.add_system_message(f"Engine init failed: {e}")
                return

        self._chat_view.load(self.engine.get_messages())
        self._chat_view.add_system_message(
            f"Session {self.engine.session.id}. Type a message and press Enter "
            "to send; /q N sends quick question N."
        )
        self._unsubscribe = self.engine.subscribe(self._on_engine_change)

        for prompt in self._replay_prompts:
            self.engine.submit(prompt)
        self.query_one("#input-box", InputBox).focus()

    async def on_unmount(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
        if self.engine is not None:
            await self.engine.aclose()

    # -- engine events --

    def _on_engine_change(self, kind: str, payload: Any) -> None:
        if kind == "message" and isinstance(payload, Message):
            self._chat_view.add_message(payload)
        elif kind == "typing":
            self.query_one("#typing", Static).update(
                f"[dim italic]{escape(payload)}[/dim italic]" if payload else ""
            )
        elif kind == "state" and isinstance(payload, DispatchState):
            self._update_status(payload)

    def _update_status(self, state: DispatchState) -> None:
        status = self.query_one("#status", Static)
        if not state.busy:
            status.update("")
            return
        queued = len(state.pending)
        status.update(f"[dim]Waiting for reply. {queued} queued.[/dim]" if queued else "")

    # -- input --

    def on_input_box_message_submitted(self, event: InputBox.MessageSubmitted) -> None:
        if self.engine is None:
            self._chat_view.add_system_message("No engine available. Cannot send.")
            return
        self.engine.submit(event.text)

    def on_input_box_quick_question_chosen(self, event: InputBox.QuickQuestionChosen) -> None:
        if self.engine is None:
            return
        questions = self.config.quick_questions
        if not 0 <= event.index < len(questions):
            self._chat_view.add_system_message(
                f"No quick question {event.index + 1}. Press Ctrl+O for the list."
            )
            return
        self.engine.submit_quick_question(event.index)

    # -- actions --

    def action_show_questions(self) -> None:
        if not self.config.quick_questions:
            self._chat_view.add_system_message("No quick questions configured.")
            return
        lines = [f"{i}. {q}" for i, q in enumerate(self.config.quick_questions, 1)]
        self._chat_view.add_system_message("Quick questions:\n" + "\n".join(lines))

    def action_cancel_last(self) -> None:
        """Cancel the most recently queued message, if any."""
        if self.engine is None:
            return
        pending = self.engine.pending()
        if not pending:
            self._chat_view.add_system_message("Nothing queued.")
            return
        text = self.engine.cancel_pending(len(pending) - 1)
        if text is not None:
            self._chat_view.add_system_message(f"Cancelled queued message: {text}")

    def action_save_transcript(self) -> None:
        if self.engine is None:
            return
        path = save_transcript(self.engine.get_messages(), self.engine.session.id)
        self._chat_view.add_system_message(f"Transcript saved to {path.resolve()}")

    def compose(self) -> ComposeResult:
        with Vertical(id="chat-area"):
            yield ChatView(id="chat-view")
            yield Static("", id="typing")
            yield Static("", id="status")
            yield InputBox(id="input-box")
        yield Footer()


def run_chat(
    config_path: str | None = None,
    config: ChatConfig | None = None,
    replay_prompts: list[str] | None = None,
) -> None:
    """Entry point for the TUI chat."""
    app = ChatApp(
        config=config,
        config_path=config_path,
        replay_prompts=replay_prompts,
    )
    app.run()
