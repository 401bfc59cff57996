from .base import BaseGateway, split_reply
from .webhook import WebhookGateway, parse_reply

__all__ = ["BaseGateway", "WebhookGateway", "parse_reply", "split_reply"]
