"""Distill recurring context from AI coding-agent sessions into CLAUDE.md."""

from .cluster import cluster_facts, jaccard
from .extractor import extract_facts
from .models import DistillReport, Fact, FactCluster, Message, Pattern, RankedFact, Role
from .pipeline import distill
from .ranker import rank_clusters, recency_weight

__version__ = "0.2.0"

__all__ = [
    "DistillReport",
    "Fact",
    "FactCluster",
    "Message",
    "Pattern",
    "RankedFact",
    "Role",
    "cluster_facts",
    "distill",
    "extract_facts",
    "jaccard",
    "rank_clusters",
    "recency_weight",
]
