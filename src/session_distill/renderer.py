"""Render ranked facts as a CLAUDE.md project-memory document."""

from __future__ import annotations

from collections.abc import Iterable

from .models import Pattern, RankedFact

DEFAULT_MIN_CONFIDENCE = 0.6
MIN_SESSIONS_TO_RENDER = 2

HEADER = """# CLAUDE.md

<!-- generated by session-distill from {total} session(s). edit freely; regenerate to refresh. -->

"""

EMPTY_NOTE = "_No recurring patterns found yet. Run again after a few more sessions._\n"

SECTIONS: tuple[tuple[Pattern, str], ...] = (
    (Pattern.EXPLICIT_INSTRUCTION, "Instructions"),
    (Pattern.CORRECTION, "Corrections"),
    (Pattern.CONVENTION, "Conventions"),
    (Pattern.STACK_MENTION, "Stack"),
    (Pattern.REPEATED_ANSWER, "Recurring Answers"),
)


def select_facts(
    ranked: Iterable[RankedFact], min_confidence: float = DEFAULT_MIN_CONFIDENCE
) -> list[RankedFact]:
    """Facts confident and recurring enough to be written down."""
    return [
        r for r in ranked
        if r.confidence >= min_confidence and r.session_count >= MIN_SESSIONS_TO_RENDER
    ]


def build_section(title: str, items: list[RankedFact]) -> list[str]:
    if not items:
        return []
    lines = [f"## {title}\n\n"]
    for r in items:
        lines.append(f"- {r.text} _(seen in {r.session_count}/{r.total_sessions} sessions)_\n")
    lines.append("\n")
    return lines


def render_claude_md(
    ranked: Iterable[RankedFact],
    total_sessions: int,
    min_confidence: float = DEFAULT_MIN_CONFIDENCE,
) -> str:
    selected = select_facts(ranked, min_confidence)
    lines = [HEADER.format(total=total_sessions)]
    if not selected:
        lines.append(EMPTY_NOTE)
        return "".join(lines)

    for pattern, title in SECTIONS:
        lines.extend(build_section(title, [r for r in selected if r.pattern == pattern]))
    return "".join(lines).rstrip("\n") + "\n"
