from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timezone

from .models import FactCluster, RankedFact

RECENCY_WINDOW_DAYS = 30
RECENCY_FLOOR = 0.1
UNKNOWN_RECENCY = 0.5


def recency_weight(last_seen: str | None, now: datetime) -> float:
    """Linear decay from 1.0 to a 0.1 floor over 30 days since ``last_seen``.

    Missing or unparsable timestamps get a flat 0.5. Naive timestamps are
    read as UTC.
    """
    if not last_seen:
        return UNKNOWN_RECENCY
    try:
        seen = datetime.fromisoformat(last_seen)
    except (ValueError, TypeError):
        return UNKNOWN_RECENCY
    if seen.tzinfo is None:
        seen = seen.replace(tzinfo=timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    days_since = (now - seen).total_seconds() / 86400
    return max(RECENCY_FLOOR, 1 - days_since / RECENCY_WINDOW_DAYS)


def rank_clusters(
    clusters: Iterable[FactCluster],
    total_sessions: int,
    now: datetime | None = None,
) -> list[RankedFact]:
    """Score clusters by session frequency x recency, highest first.

    Equal scores keep the incoming cluster order.
    """
    now = now or datetime.now(timezone.utc)
    ranked = []
    for cluster in clusters:
        weight = recency_weight(cluster.last_seen, now)
        frequency = cluster.session_count / total_sessions if total_sessions > 0 else 0.0
        ranked.append(RankedFact(
            text=cluster.representative,
            session_count=cluster.session_count,
            total_sessions=total_sessions,
            confidence=cluster.confidence,
            pattern=cluster.pattern,
            score=frequency * weight,
        ))
    ranked.sort(key=lambda r: r.score, reverse=True)
    return ranked
