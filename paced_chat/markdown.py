"""Markdown-lite rendering of reply text into safe HTML.

Replies come from a remote service, so the text is escaped before any
substitution. Only four constructs ever produce markup: bold, italic,
links and line breaks.
"""

from __future__ import annotations

import html
import re
from datetime import datetime

_BOLD_PATTERNS = [
    re.compile(r"\*\*(.+?)\*\*"),
    re.compile(r"__(.+?)__"),
]
_ITALIC_PATTERNS = [
    re.compile(r"\*(.+?)\*"),
    re.compile(r"_(.+?)_"),
]
# URLs hold no whitespace; one level of balanced parentheses is allowed.
_LINK_RE = re.compile(r"\[(.+?)\]\(((?:[^()\s]|\([^()\s]*\))+)\)")
_SAFE_SCHEMES = ("http://", "https://", "mailto:", "tel:")

# Private-use codepoints mark where a link URL was lifted out; they are
# stripped from the input so a reply cannot forge one.
_MARK_OPEN = "\ue000"
_MARK_CLOSE = "\ue001"
_PLACEHOLDER = _MARK_OPEN + "{}" + _MARK_CLOSE
_PLACEHOLDER_RE = re.compile(_MARK_OPEN + r"(\d+)" + _MARK_CLOSE)


def _is_safe_url(url: str) -> bool:
    return html.unescape(url).strip().lower().startswith(_SAFE_SCHEMES)


def render(text: str) -> str:
    """Render markdown-lite ``text`` to HTML.

    >>> render("**x** and *y*")
    '<strong>x</strong> and <em>y</em>'
    """
    text = text.replace(_MARK_OPEN, "").replace(_MARK_CLOSE, "")
    escaped = html.escape(text, quote=True)

    # Pull URLs out first so the emphasis passes cannot split them.
    urls: list[str] = []

    def _stash(match: re.Match) -> str:
        urls.append(match.group(2))
        return f"[{match.group(1)}]({_PLACEHOLDER.format(len(urls) - 1)})"

    parsed = _LINK_RE.sub(_stash, escaped)

    for pattern in _BOLD_PATTERNS:
        parsed = pattern.sub(r"<strong>\1</strong>", parsed)
    for pattern in _ITALIC_PATTERNS:
        parsed = pattern.sub(r"<em>\1</em>", parsed)

    def _link(match: re.Match) -> str:
        label = match.group(1)
        ref = _PLACEHOLDER_RE.fullmatch(match.group(2))
        if ref is None:
            return match.group(0)
        url = urls[int(ref.group(1))]
        if not _is_safe_url(url):
            return label
        return (
            f'<a href="{url}" target="_blank" rel="noopener noreferrer" '
            f'class="underline">{label}</a>'
        )

    parsed = _LINK_RE.sub(_link, parsed)
    # Any placeholder left (link syntax broken by emphasis) gets its URL back.
    parsed = _PLACEHOLDER_RE.sub(lambda m: urls[int(m.group(1))], parsed)

    return parsed.replace("\n", "<br />")


def format_time(dt: datetime) -> str:
    """Short HH:MM stamp shown under each message."""
    return dt.astimezone().strftime("%H:%M")
