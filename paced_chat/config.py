"""Configuration loading, validation, and defaults."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml

from .types import (
    DEFAULT_DELIMITER,
    CannedReplies,
    ChatConfig,
    GatewayConfig,
    PacingConfig,
    StorageConfig,
)

CONFIG_FILENAMES = [
    "paced-chat.yaml",
    "paced-chat.yml",
    "paced-chat.json",
]

STORAGE_BACKENDS = ("memory", "filesystem")

# Prompts offered as one-tap shortcuts when the config names none.
DEFAULT_QUICK_QUESTIONS = [
    "What types of flooring do you offer?",
    "Do you provide free estimates?",
    "Can you finance my flooring project?",
    "Do you handle installations, refinishing, and repairs?",
    "Where are you located and do you serve my area?",
]


def _discover_config() -> Path | None:
    """Search CWD then parent dirs up to home for a config file."""
    cwd = Path.cwd()
    home = Path.home()
    search = cwd
    while True:
        for name in CONFIG_FILENAMES:
            candidate = search / name
            if candidate.is_file():
                return candidate
        if search == home or search == search.parent:
            break
        search = search.parent
    return None


def _build_config(raw: dict[str, Any]) -> ChatConfig:
    """Build a ChatConfig from a raw dict."""
    gateway_raw = raw.get("gateway") or {}
    defaults = GatewayConfig()
    gateway = GatewayConfig(
        url=gateway_raw.get("url", defaults.url),
        timeout=float(gateway_raw.get("timeout", defaults.timeout)),
        delimiter=gateway_raw.get("delimiter", DEFAULT_DELIMITER),
        headers=dict(gateway_raw.get("headers") or {}),
    )

    pacing_raw = raw.get("pacing") or {}
    pacing = PacingConfig(
        segment_typing_delay=float(pacing_raw.get("segment_typing_delay", 1.0)),
        inter_segment_delay=float(pacing_raw.get("inter_segment_delay", 0.2)),
        inter_turn_delay=float(pacing_raw.get("inter_turn_delay", 2.0)),
    )

    replies_raw = raw.get("replies") or {}
    canned = CannedReplies()
    replies = CannedReplies(
        welcome=replies_raw.get("welcome", canned.welcome),
        typing_status=replies_raw.get("typing_status", canned.typing_status),
        empty_reply=replies_raw.get("empty_reply", canned.empty_reply),
        failure=replies_raw.get("failure", canned.failure),
    )

    storage_raw = raw.get("storage") or {}
    storage = StorageConfig(
        backend=storage_raw.get("backend", "memory"),
        root=storage_raw.get("root", ".paced-chat"),
        user_id_key=storage_raw.get("user_id_key", "chat_user_id"),
        log_key_prefix=storage_raw.get("log_key_prefix", "chat_messages_"),
    )

    quick_questions = raw.get("quick_questions")
    if quick_questions is None:
        quick_questions = DEFAULT_QUICK_QUESTIONS

    return ChatConfig(
        version=str(raw.get("version", "0.1")),
        gateway=gateway,
        pacing=pacing,
        replies=replies,
        storage=storage,
        quick_questions=list(quick_questions),
    )


def validate_config(config: ChatConfig) -> list[str]:
    """Validate a config. Returns list of error strings (empty = valid)."""
    errors: list[str] = []

    if not config.gateway.url:
        errors.append("gateway.url must be set")
    elif not config.gateway.url.startswith(("http://", "https://")):
        errors.append(f"gateway.url must be an http(s) URL, got '{config.gateway.url}'")

    if config.gateway.timeout <= 0:
        errors.append(f"gateway.timeout must be > 0, got {config.gateway.timeout}")

    if not config.gateway.delimiter:
        errors.append("gateway.delimiter must not be empty")

    for name in ("segment_typing_delay", "inter_segment_delay", "inter_turn_delay"):
        value = getattr(config.pacing, name)
        if value < 0:
            errors.append(f"pacing.{name} must be >= 0, got {value}")

    for name in ("welcome", "typing_status", "empty_reply", "failure"):
        if not getattr(config.replies, name).strip():
            errors.append(f"replies.{name} must not be empty")

    if config.storage.backend not in STORAGE_BACKENDS:
        errors.append(
            f"Unknown storage backend '{config.storage.backend}' "
            f"(expected one of: {', '.join(STORAGE_BACKENDS)})"
        )

    if any(not q.strip() for q in config.quick_questions):
        errors.append("quick_questions must not contain blank entries")

    return errors


def load_config(
    config_path: str | Path | None = None,
    config_dict: dict | None = None,
) -> ChatConfig:
    """Load config from dict, explicit path, or auto-discover."""
    if config_dict is not None:
        return _build_config(config_dict)

    if config_path is not None:
        path = Path(config_path)
    else:
        path = _discover_config()

    if path is None:
        # Return defaults
        return _build_config({})

    if not path.is_file():
        raise FileNotFoundError(f"Config file not found: {path}")

    text = path.read_text()
    if path.suffix == ".json":
        raw = json.loads(text)
    else:
        raw = yaml.safe_load(text) or {}

    if not isinstance(raw, dict):
        raise ValueError(f"Config file {path} must contain a mapping")

    return _build_config(raw)
