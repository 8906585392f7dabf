from __future__ import annotations

import re

from ..models import Message, Role

BOLD_MARKER = re.compile(r"\*\*(User|Human|Assistant):\*\*", re.IGNORECASE)
HEADER_MARKER = re.compile(r"^###\s+(Human|User|Assistant)\s*$", re.IGNORECASE | re.MULTILINE)


def parse_markdown(content: str, session_id: str = "markdown") -> list[Message]:
    """Split a chat log on ``**User:**`` markers or ``### Human`` headings.

    Without at least two markers of either kind the whole text is one human
    message.
    """
    matches = list(BOLD_MARKER.finditer(content))
    if len(matches) < 2:
        matches = list(HEADER_MARKER.finditer(content))
    if len(matches) < 2:
        return [Message(role=Role.HUMAN, content=content.strip(), session_id=session_id)]

    messages = []
    for i, match in enumerate(matches):
        end = matches[i + 1].start() if i + 1 < len(matches) else len(content)
        body = content[match.end():end].strip()
        if not body:
            continue
        role = Role.ASSISTANT if match.group(1).lower() == "assistant" else Role.HUMAN
        messages.append(Message(role=role, content=body, session_id=session_id))
    return messages
