from __future__ import annotations

from collections.abc import Iterable

from .models import Fact, FactCluster

DEFAULT_THRESHOLD = 0.6
DEFAULT_MIN_SESSION_COUNT = 2


def _word_set(text: str) -> set[str]:
    return {w for w in text.lower().split() if len(w) > 2}


def jaccard(a: str, b: str) -> float:
    """Jaccard index over the lowercase words longer than two characters."""
    set_a = _word_set(a)
    set_b = _word_set(b)
    union = set_a | set_b
    if not union:
        return 0.0
    return len(set_a & set_b) / len(union)


def cluster_facts(
    facts: Iterable[Fact],
    threshold: float = DEFAULT_THRESHOLD,
    min_session_count: int = DEFAULT_MIN_SESSION_COUNT,
) -> list[FactCluster]:
    """Greedily group near-duplicate facts.

    Each fact joins the first cluster whose representative is more similar
    than ``threshold``, otherwise it opens a new cluster. Clusters seen in
    fewer than ``min_session_count`` sessions are dropped.
    """
    clusters: list[FactCluster] = []
    # confidence of the fact currently supplying each cluster's representative
    rep_confidence: list[float] = []

    for fact in facts:
        for idx, cluster in enumerate(clusters):
            if jaccard(cluster.representative, fact.text) > threshold:
                cluster.facts.append(fact)
                if fact.confidence > rep_confidence[idx]:
                    cluster.representative = fact.text
                    cluster.pattern = fact.pattern
                    rep_confidence[idx] = fact.confidence
                break
        else:
            clusters.append(FactCluster(
                facts=[fact],
                last_seen=fact.timestamp or "",
                representative=fact.text,
                pattern=fact.pattern,
            ))
            rep_confidence.append(fact.confidence)

    for cluster in clusters:
        cluster.session_count = len({f.session_id for f in cluster.facts})
        timestamps = sorted(f.timestamp for f in cluster.facts if f.timestamp)
        cluster.last_seen = timestamps[-1] if timestamps else ""

        best = 0.0
        for fact in cluster.facts:
            if fact.confidence > best:
                best = fact.confidence
                cluster.representative = fact.text
                cluster.pattern = fact.pattern

    return [c for c in clusters if c.session_count >= min_session_count]
