from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime

from .cluster import DEFAULT_MIN_SESSION_COUNT, DEFAULT_THRESHOLD, cluster_facts
from .extractor import extract_facts
from .models import DistillReport, Message
from .ranker import rank_clusters
from .renderer import DEFAULT_MIN_CONFIDENCE, render_claude_md, select_facts

logger = logging.getLogger(__name__)


def count_sessions(messages: Sequence[Message]) -> int:
    return len({m.session_id for m in messages})


def distill(
    messages: Sequence[Message],
    *,
    threshold: float = DEFAULT_THRESHOLD,
    min_session_count: int = DEFAULT_MIN_SESSION_COUNT,
    min_confidence: float = DEFAULT_MIN_CONFIDENCE,
    top: int | None = None,
    now: datetime | None = None,
) -> DistillReport:
    """Run extract -> cluster -> rank -> render over one batch of messages."""
    total_sessions = count_sessions(messages)
    if total_sessions == 0:
        return DistillReport()

    facts = extract_facts(messages)
    clusters = cluster_facts(facts, threshold=threshold, min_session_count=min_session_count)
    ranked = rank_clusters(clusters, total_sessions, now=now)
    logger.info(
        "Distilled %d messages from %d sessions: %d facts, %d recurring clusters",
        len(messages), total_sessions, len(facts), len(clusters),
    )

    return DistillReport(
        sessions_analyzed=total_sessions,
        no_sessions=False,
        patterns=ranked[:top] if top else ranked,
        filtered_patterns=select_facts(ranked, min_confidence),
        claude_md=render_claude_md(ranked, total_sessions, min_confidence),
    )
