"""Transcript export and replay-prompt loading for the chat front ends."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

from ..core.conversation_log import message_to_dict
from ..types import Message, Origin

TRANSCRIPT_FILENAME = "chat-transcript.json"


def save_transcript(
    messages: list[Message],
    session_id: str,
    directory: str | Path = ".",
) -> Path:
    """Save the conversation to chat-transcript.json. Returns the file path."""
    path = Path(directory) / TRANSCRIPT_FILENAME
    data = {
        "session_id": session_id,
        "total_messages": len(messages),
        "exported_at": datetime.now(timezone.utc).isoformat(),
        "messages": [message_to_dict(m) for m in messages],
    }
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False))
    return path


def load_replay_prompts(path: str | Path) -> list[str]:
    """Load prompts from a transcript JSON or a plain-text file.

    Supports two formats:
    - **chat-transcript.json**: extracts the text of each user message
    - **Plain text**: one prompt per line (blank lines ignored)

    Returns a list of user prompt strings.
    """
    p = Path(path)
    text = p.read_text()

    # Try JSON transcript format first
    try:
        data = json.loads(text)
        if isinstance(data, dict) and "messages" in data:
            return [
                m["text"] for m in data["messages"]
                if m.get("type") == Origin.USER.value and m.get("text")
            ]
        if isinstance(data, list):
            # Bare list of strings
            return [item for item in data if isinstance(item, str) and item.strip()]
    except (json.JSONDecodeError, KeyError, TypeError, AttributeError):
        pass

    # Fall back to plain text: one prompt per non-blank line
    return [line.strip() for line in text.splitlines() if line.strip()]
