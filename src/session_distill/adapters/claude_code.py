from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from ..models import Message, Role

logger = logging.getLogger(__name__)

ROLE_MAP = {"user": Role.HUMAN, "human": Role.HUMAN, "assistant": Role.ASSISTANT}


def default_projects_dir() -> Path:
    override = os.environ.get("DISTILL_CLAUDE_PROJECTS_DIR")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".claude" / "projects"


def detect_claude_code() -> str | None:
    """Return the Claude Code projects directory if it exists."""
    path = default_projects_dir()
    if path.is_dir():
        return str(path)
    return None


def find_jsonl_files(directory: str | Path) -> list[Path]:
    """All .jsonl files under ``directory``, newest first by mtime."""
    try:
        files = [p for p in Path(directory).rglob("*.jsonl") if p.is_file()]
    except OSError as e:
        logger.debug("Cannot scan %s: %s", directory, e)
        return []
    return sorted(files, key=lambda p: p.stat().st_mtime, reverse=True)


def _content_text(content) -> str | None:
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return "\n".join(
            block["text"]
            for block in content
            if isinstance(block, dict)
            and block.get("type") == "text"
            and isinstance(block.get("text"), str)
        )
    return None


def parse_line(line: str, session_id: str) -> Message | None:
    """Parse one JSONL record into a Message, or None if it carries no chat text.

    Accepts both ``{"type": "message", "message": {...}}`` envelopes and bare
    ``{"role": ..., "content": ...}`` records.
    """
    obj = json.loads(line)
    if not isinstance(obj, dict):
        return None

    if obj.get("type") == "message" and isinstance(obj.get("message"), dict):
        payload = obj["message"]
    elif obj.get("role") and obj.get("content"):
        payload = obj
    else:
        return None

    role = ROLE_MAP.get(payload.get("role"))
    text = _content_text(payload.get("content"))
    if role is None or not text:
        return None
    return Message(
        role=role,
        content=text,
        session_id=session_id,
        timestamp=obj.get("timestamp") or None,
    )


def parse_claude_code(directory: str | Path, limit: int = 20) -> list[Message]:
    """Load messages from the ``limit`` most recently modified session files."""
    messages = []
    for path in find_jsonl_files(directory)[:limit]:
        session_id = path.stem
        for line in path.read_text(encoding="utf-8", errors="replace").splitlines():
            if not line.strip():
                continue
            try:
                message = parse_line(line, session_id)
            except (json.JSONDecodeError, ValueError, TypeError) as e:
                logger.debug("Skipping malformed line in %s: %s", path.name, e)
                continue
            if message is not None:
                messages.append(message)
    return messages
