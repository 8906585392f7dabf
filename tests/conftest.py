import json
import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

# Add src to path for imports to work with src/ layout
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


@pytest.fixture
def now():
    """A fixed wall-clock instant for recency weighting."""
    return datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def claude_projects(tmp_path):
    """A Claude Code projects directory with two sessions that repeat themselves."""
    project = tmp_path / "projects" / "-home-dev-app"
    project.mkdir(parents=True)
    sessions = {
        "session-a": [
            {"type": "message", "timestamp": "2026-02-20T10:00:00Z",
             "message": {"role": "user", "content": "always use typescript\nwe deploy on vercel"}},
            {"type": "message", "timestamp": "2026-02-20T10:01:00Z",
             "message": {"role": "assistant", "content": "Sure, always use typescript."}},
        ],
        "session-b": [
            {"role": "user", "timestamp": "2026-02-27T09:00:00Z",
             "content": [{"type": "text", "text": "always use typescript"},
                         {"type": "tool_result", "content": "ignored"}]},
            {"role": "user", "timestamp": "2026-02-27T09:05:00Z",
             "content": "no, we use pnpm not npm"},
        ],
    }
    for name, records in sessions.items():
        lines = [json.dumps(r) for r in records]
        (project / f"{name}.jsonl").write_text("\n".join(lines) + "\n")
    return tmp_path / "projects"
