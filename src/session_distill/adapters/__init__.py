"""Transcript adapters: each normalizes one source format into Messages."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from ..models import DetectResult, Message
from .aider import detect_aider, parse_aider
from .claude_code import detect_claude_code, parse_claude_code
from .markdown import parse_markdown
from .stdin import is_stdin, parse_structured_markdown, read_stdin

logger = logging.getLogger(__name__)

ADAPTERS = ("claude-code", "aider", "markdown", "stdin")
ALL_SESSIONS_LIMIT = 1000

__all__ = [
    "ADAPTERS",
    "auto_detect",
    "detect_aider",
    "detect_claude_code",
    "is_stdin",
    "load_messages",
    "parse_aider",
    "parse_claude_code",
    "parse_markdown",
    "parse_structured_markdown",
    "read_stdin",
]


def auto_detect(cwd: str | Path) -> DetectResult | None:
    """Pick a source: Claude Code projects, then aider history, then piped stdin."""
    claude_path = detect_claude_code()
    if claude_path:
        return DetectResult(adapter="claude-code", path=claude_path)

    aider_path = detect_aider(cwd)
    if aider_path:
        return DetectResult(adapter="aider", path=aider_path)

    if is_stdin():
        return DetectResult(adapter="stdin", path="stdin")

    return None


def load_messages(
    adapter: str,
    project_path: str,
    all_sessions: bool = False,
    structured: bool = False,
    session_limit: int | None = None,
) -> list[Message]:
    if session_limit is None:
        session_limit = int(os.environ.get("DISTILL_SESSION_LIMIT", "20"))

    if adapter == "claude-code":
        limit = ALL_SESSIONS_LIMIT if all_sessions else session_limit
        messages = parse_claude_code(project_path, limit=limit)
    elif adapter == "aider":
        messages = parse_aider(project_path)
    elif adapter == "markdown":
        messages = parse_markdown(Path(project_path).read_text(encoding="utf-8"), project_path)
    elif adapter == "stdin":
        messages = read_stdin(structured=structured)
    else:
        raise ValueError(f"Unknown adapter: {adapter}")

    logger.debug("Loaded %d messages via %s from %s", len(messages), adapter, project_path)
    return messages
