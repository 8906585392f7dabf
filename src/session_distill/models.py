from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Role(str, Enum):
    """Author of a transcript message."""

    HUMAN = "human"
    ASSISTANT = "assistant"


class Pattern(str, Enum):
    """Category a fact was extracted under."""

    EXPLICIT_INSTRUCTION = "explicit-instruction"
    STACK_MENTION = "stack-mention"
    CONVENTION = "convention"
    CORRECTION = "correction"
    REPEATED_ANSWER = "repeated-answer"


class Message(BaseModel):
    """A single transcript message, normalized by an adapter."""

    role: Role
    content: str
    session_id: str
    timestamp: Optional[str] = None


class Fact(BaseModel):
    """A statement extracted from one human message."""

    model_config = ConfigDict(frozen=True)

    text: str
    pattern: Pattern
    session_id: str
    confidence: float = Field(ge=0.0, le=1.0)
    timestamp: Optional[str] = None


class FactCluster(BaseModel):
    """Near-duplicate facts treated as one recurring statement."""

    facts: list[Fact] = Field(default_factory=list)
    session_count: int = 0
    last_seen: str = ""
    representative: str
    pattern: Pattern

    @property
    def confidence(self) -> float:
        return max((f.confidence for f in self.facts), default=0.0)


class RankedFact(BaseModel):
    """A surviving cluster with its frequency x recency score."""

    model_config = ConfigDict(frozen=True)

    text: str
    session_count: int
    total_sessions: int
    confidence: float
    pattern: Pattern
    score: float

    def summary(self) -> dict:
        """Report form used by the JSON output."""
        return {
            "text": self.text,
            "sessionCount": self.session_count,
            "totalSessions": self.total_sessions,
            "confidence": self.confidence,
            "pattern": self.pattern.value,
        }


class DetectResult(BaseModel):
    """Adapter and path found by auto-detection."""

    adapter: str
    path: str


class DistillReport(BaseModel):
    """Outcome of one pipeline run."""

    sessions_analyzed: int = 0
    no_sessions: bool = True
    patterns: list[RankedFact] = Field(default_factory=list)
    filtered_patterns: list[RankedFact] = Field(default_factory=list)
    claude_md: str = ""

    def to_json_dict(self) -> dict:
        return {
            "sessions_analyzed": self.sessions_analyzed,
            "no_sessions": self.no_sessions,
            "patterns": [r.summary() for r in self.patterns],
            "filtered_patterns": [r.summary() for r in self.filtered_patterns],
            "claude_md": self.claude_md,
        }
