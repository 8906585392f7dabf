from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable, Iterator
from typing import NamedTuple

from .models import Fact, Message, Pattern, Role

logger = logging.getLogger(__name__)

MAX_FACTS_PER_SESSION = 50

STACK_ALLOWLIST = frozenset({
    "typescript", "javascript", "node", "python", "rust", "go", "java", "kotlin",
    "react", "vue", "svelte", "next.js", "nextjs", "remix", "astro",
    "postgres", "mysql", "sqlite", "mongodb", "redis", "supabase",
    "vercel", "railway", "fly.io", "aws", "gcp", "azure",
    "docker", "kubernetes", "terraform",
    "npm", "pnpm", "yarn", "pip", "cargo", "bun",
    "tailwind", "shadcn", "prisma", "drizzle",
    "openai", "anthropic", "claude", "gemini",
    "github", "gitlab", "linear", "jira", "notion",
})

CORRECTION = re.compile(
    r"^(no,|no |actually,|actually |wrong,|that's wrong|not quite|incorrect)",
    re.IGNORECASE,
)
EXPLICIT_INSTRUCTION = re.compile(
    r"^(always|never|don't|do not|use |prefer |default to |remember |note:|important:|tip:)",
    re.IGNORECASE,
)
CONVENTION = re.compile(
    r"\b(we use|we prefer|our convention|our stack|our workflow|we always|we never|our team)\b",
    re.IGNORECASE,
)
TOKEN_SPLIT = re.compile(r"[\s,;:.()\[\]{}]+")


class ExtractionRule(NamedTuple):
    """One row of the extraction table.

    ``scope`` is ``"message"`` (match receives the whole content, evaluated once
    per message) or ``"line"`` (match receives each trimmed line). ``match``
    returns the fact texts it found; ``key`` maps a text to its dedup key.
    """

    pattern: Pattern
    confidence: float
    scope: str
    match: Callable[[str], list[str]]
    key: Callable[[str], str]


def split_lines(content: str) -> list[str]:
    """Trimmed, non-empty lines of a message, in order."""
    return [line.strip() for line in content.split("\n") if line.strip()]


def match_correction(content: str) -> list[str]:
    """Strip a leading correction marker from the whole message.

    The marker is only looked for on the first non-empty line.
    """
    body = content.strip()
    first_line = body.split("\n", 1)[0].strip()
    if not CORRECTION.match(first_line):
        return []
    text = CORRECTION.sub("", body, count=1).strip()
    return [text] if text else []


def match_stack(line: str) -> list[str]:
    tokens = [t for t in TOKEN_SPLIT.split(line.lower()) if t]
    return [t for t in tokens if t in STACK_ALLOWLIST]


def match_instruction(line: str) -> list[str]:
    return [line] if EXPLICIT_INSTRUCTION.match(line) else []


def match_convention(line: str) -> list[str]:
    return [line] if CONVENTION.search(line) else []


def _text_key(text: str) -> str:
    return text


def _stack_key(token: str) -> str:
    return f"stack:{token}"


# Evaluation order matters: explicit-instruction and convention share the
# line-text key, so a line matching both is only ever recorded as an instruction.
RULES: tuple[ExtractionRule, ...] = (
    ExtractionRule(Pattern.CORRECTION, 0.8, "message", match_correction, _text_key),
    ExtractionRule(Pattern.STACK_MENTION, 0.7, "line", match_stack, _stack_key),
    ExtractionRule(Pattern.EXPLICIT_INSTRUCTION, 0.9, "line", match_instruction, _text_key),
    ExtractionRule(Pattern.CONVENTION, 0.85, "line", match_convention, _text_key),
)


def _candidates(
    content: str, rules: Iterable[ExtractionRule]
) -> Iterator[tuple[ExtractionRule, str]]:
    """Yield (rule, text) pairs in evaluation order for one message."""
    rules = tuple(rules)
    for rule in rules:
        if rule.scope == "message":
            for text in rule.match(content):
                yield rule, text
    line_rules = [r for r in rules if r.scope == "line"]
    for line in split_lines(content):
        for rule in line_rules:
            for text in rule.match(line):
                yield rule, text


def extract_facts(
    messages: Iterable[Message], rules: Iterable[ExtractionRule] = RULES
) -> list[Fact]:
    """Scan human messages and return the facts they contain.

    Facts are deduplicated per session, capped at MAX_FACTS_PER_SESSION per
    session, and returned grouped by session in order of first appearance.
    """
    rules = tuple(rules)
    by_session: dict[str, list[Fact]] = {}
    seen: set[tuple[str, str]] = set()

    for msg in messages:
        if msg.role != Role.HUMAN or not msg.content or not msg.content.strip():
            continue
        session_facts = by_session.setdefault(msg.session_id, [])
        if len(session_facts) >= MAX_FACTS_PER_SESSION:
            continue

        for rule, text in _candidates(msg.content, rules):
            key = (msg.session_id, rule.key(text))
            if key in seen:
                continue
            seen.add(key)
            session_facts.append(Fact(
                text=text,
                pattern=rule.pattern,
                session_id=msg.session_id,
                confidence=rule.confidence,
                timestamp=msg.timestamp,
            ))
            if len(session_facts) >= MAX_FACTS_PER_SESSION:
                logger.debug("Session %s reached %d facts", msg.session_id, MAX_FACTS_PER_SESSION)
                break

    facts: list[Fact] = []
    for session_facts in by_session.values():
        facts.extend(session_facts[:MAX_FACTS_PER_SESSION])
    return facts
