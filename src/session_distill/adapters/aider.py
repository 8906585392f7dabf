from __future__ import annotations

import re
from pathlib import Path

from ..models import Message, Role

HISTORY_FILE = ".aider.chat.history.md"
MAX_PARENT_LEVELS = 4

BLOCK_SPLIT = re.compile(r"^####\s+", re.MULTILINE)
ROLE_MAP = {
    "human": Role.HUMAN,
    "user": Role.HUMAN,
    "aider": Role.ASSISTANT,
    "assistant": Role.ASSISTANT,
}


def detect_aider(cwd: str | Path) -> str | None:
    """Find an aider history file in ``cwd`` or up to three parents above it."""
    directory = Path(cwd)
    for _ in range(MAX_PARENT_LEVELS):
        candidate = directory / HISTORY_FILE
        if candidate.exists():
            return str(candidate)
        if directory.parent == directory:
            break
        directory = directory.parent
    return None


def parse_aider(file_path: str | Path) -> list[Message]:
    """Parse ``#### human`` / ``#### aider`` blocks from an aider history file."""
    path = Path(file_path)
    content = path.read_text(encoding="utf-8")
    session_id = path.name.removesuffix(".md")

    messages = []
    for block in BLOCK_SPLIT.split(content):
        if not block.strip() or "\n" not in block:
            continue
        header, body = block.split("\n", 1)
        body = body.strip()
        role = ROLE_MAP.get(header.strip().lower())
        if not body or role is None:
            continue
        messages.append(Message(role=role, content=body, session_id=session_id))
    return messages
