"""paced-chat: session-scoped chat client that reveals replies at a human pace."""

from .config import load_config
from .core.dispatch import DispatchEngine
from .core.session import Session
from .markdown import render
from .types import (
    ChatConfig,
    GatewayResult,
    Message,
    Origin,
)

__version__ = "0.1.0"

__all__ = [
    "DispatchEngine",
    "Session",
    "load_config",
    "render",
    "ChatConfig",
    "GatewayResult",
    "Message",
    "Origin",
]
