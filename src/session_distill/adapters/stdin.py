from __future__ import annotations

import re
import sys
from typing import TextIO

from ..models import Message, Role
from .markdown import parse_markdown

MARKDOWN_SYNTAX_ONLY = re.compile(r"^(---|#{1,6}\s*$|```)")
SECTION_HEADER = re.compile(r"^##\s+(.+)$")
ANY_HEADER = re.compile(r"^#{1,6}\s")
LIST_MARKER = re.compile(r"^[-*]\s+")


def is_stdin(stream: TextIO | None = None) -> bool:
    """True when input is piped rather than attached to a terminal."""
    stream = stream if stream is not None else sys.stdin
    if stream is None:
        return False
    try:
        return not stream.isatty()
    except (AttributeError, ValueError):
        return False


def parse_structured_markdown(data: str) -> list[Message]:
    """Turn instruction files (AGENTS.md and the like) into messages.

    Each ``## Section`` is treated as its own session so that a rule repeated
    across sections or files counts as recurring. Every remaining content line
    becomes one human message.
    """
    messages = []
    section: str | None = None

    for raw_line in data.split("\n"):
        line = raw_line.strip()
        if not line or MARKDOWN_SYNTAX_ONLY.match(line):
            continue

        header = SECTION_HEADER.match(line)
        if header:
            section = header.group(1).strip()
            continue
        if ANY_HEADER.match(line) and section is None:
            continue

        text = LIST_MARKER.sub("", line).strip()
        if not text:
            continue
        session_id = f"file:{section}" if section else "file:unknown"
        messages.append(Message(role=Role.HUMAN, content=text, session_id=session_id))

    return messages


def read_stdin(stream: TextIO | None = None, structured: bool = False) -> list[Message]:
    stream = stream if stream is not None else sys.stdin
    data = stream.read()
    if not data.strip():
        return []
    if structured:
        return parse_structured_markdown(data)
    return parse_markdown(data, "stdin")
