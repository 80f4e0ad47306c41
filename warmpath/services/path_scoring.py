"""
Path Scoring - Turn a raw path into one comparable score.

Score is computed by:
1. Multiplying all edge weights together (a chain is only as strong as its weakest link)
2. Applying a hop penalty: HOP_PENALTY ** (hops - 1), so direct paths are unpenalized

Missing edge weights are scored as DEFAULT_EDGE_SCORE. The result is
always clamped to 0.0-1.0.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from config.scoring_weights import (
    DEFAULT_EDGE_SCORE,
    HOP_PENALTY,
    INTERACTION_EVIDENCE_SCORE,
    INTERACTION_SOURCE,
    OTHER_EVIDENCE_SCORE,
)
from warmpath.services.graph_models import Edge, Path, ScoredPath
from warmpath.services.strength_scorer import calculate_recency_factor

logger = logging.getLogger(__name__)


def edge_score(edge: Edge) -> float:
    """Weight of an edge, or DEFAULT_EDGE_SCORE when it has none."""
    if edge.weight is None:
        logger.debug(f"Edge {edge.from_id}->{edge.to_id} has no weight, using default")
        return DEFAULT_EDGE_SCORE
    return edge.weight


def evidence_score(edge: Edge) -> float:
    """Full credit for edges seen in interactions, half for anything else."""
    if INTERACTION_SOURCE in edge.sources:
        return INTERACTION_EVIDENCE_SCORE
    return OTHER_EVIDENCE_SCORE


def hop_penalty(hops: int) -> float:
    """Multiplier applied for a path of the given hop count."""
    return HOP_PENALTY ** max(0, hops - 1)


def score_path(path: Path) -> float:
    """
    Calculate score for a single path.

    Args:
        path: Path to score

    Returns:
        Score between 0.0 and 1.0 (0.0 for a path with no edges)
    """
    if not path.edges:
        return 0.0

    score = 1.0
    for edge in path.edges:
        score *= edge_score(edge)

    score *= hop_penalty(len(path.edges))

    return max(0.0, min(1.0, score))


def score_paths(paths: list[Path]) -> list[ScoredPath]:
    """Score every path, preserving input order."""
    return [
        ScoredPath(node_ids=list(path.node_ids), edges=list(path.edges), score=score_path(path))
        for path in paths
    ]


@dataclass
class PathRankingFactors:
    """Per-path breakdown used to explain why a path ranks where it does."""

    introducer_strength: float  # Weight of the first hop (you -> introducer)
    downstream_strength: float  # Mean weight of the remaining hops
    path_length_penalty: float
    recency_score: float  # Mean recency of edges with a known last interaction
    evidence_quality: float  # Mean per-edge credit for being backed by interactions


def calculate_path_ranking_factors(
    path: Path,
    now: Optional[datetime] = None,
) -> PathRankingFactors:
    """
    Calculate detailed ranking factors for explainability.

    Args:
        path: Path to analyse
        now: Reference time for recency (default: current UTC time)

    Returns:
        PathRankingFactors; zero strengths and no penalty for a path with no edges
    """
    if not path.edges:
        return PathRankingFactors(
            introducer_strength=0.0,
            downstream_strength=0.0,
            path_length_penalty=1.0,
            recency_score=0.0,
            evidence_quality=0.0,
        )

    downstream = path.edges[1:]
    downstream_strength = (
        sum(edge_score(e) for e in downstream) / len(downstream) if downstream else 1.0
    )

    recencies = [
        calculate_recency_factor(e.last_interaction_at, now=now)
        for e in path.edges
        if e.last_interaction_at is not None
    ]

    return PathRankingFactors(
        introducer_strength=edge_score(path.edges[0]),
        downstream_strength=downstream_strength,
        path_length_penalty=hop_penalty(len(path.edges)),
        recency_score=sum(recencies) / len(recencies) if recencies else 0.0,
        evidence_quality=sum(evidence_score(e) for e in path.edges) / len(path.edges),
    )
