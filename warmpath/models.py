"""
Pydantic models for warmpath results.

Serializable views of pathfinding results and entity matches, shared by
the scripts and any service layer built on top.
"""
from typing import Optional

from pydantic import BaseModel, Field

from warmpath.services.entity_resolver import (
    EntityResolutionMatch,
    generate_merge_explanation,
)
from warmpath.services.graph_builder import GraphStats
from warmpath.services.path_search import SearchStats
from warmpath.services.pathfinder import PathfindingResult, PathResult


# ============================================================================
# Pathfinding Models
# ============================================================================

class PathFactorsResponse(BaseModel):
    """Per-path ranking breakdown."""
    introducer_strength: float
    downstream_strength: float
    path_length_penalty: float
    recency_score: float
    evidence_quality: float


class PathResultResponse(BaseModel):
    """One ranked warm-intro path."""
    rank: int
    path: list[str]
    path_names: list[str] = []
    score: float
    explanation: str
    introducer_id: Optional[str] = None
    factors: Optional[PathFactorsResponse] = None

    @classmethod
    def from_result(
        cls, result: PathResult, node_names: Optional[dict[str, str]] = None
    ) -> "PathResultResponse":
        names = node_names or {}
        factors = None
        if result.factors is not None:
            factors = PathFactorsResponse(
                introducer_strength=result.factors.introducer_strength,
                downstream_strength=result.factors.downstream_strength,
                path_length_penalty=result.factors.path_length_penalty,
                recency_score=result.factors.recency_score,
                evidence_quality=result.factors.evidence_quality,
            )
        return cls(
            rank=result.rank,
            path=list(result.path),
            path_names=[names.get(node_id, node_id) for node_id in result.path],
            score=round(result.score, 4),
            explanation=result.explanation,
            introducer_id=result.introducer_id,
            factors=factors,
        )


class SearchStatsResponse(BaseModel):
    """Counters for one search run."""
    nodes_explored: int = 0
    edges_evaluated: int = 0
    paths_found: int = 0
    levels_fetched: int = 0
    duration_ms: float = 0.0
    truncated: bool = False

    @classmethod
    def from_result(cls, stats: SearchStats) -> "SearchStatsResponse":
        return cls(
            nodes_explored=stats.nodes_explored,
            edges_evaluated=stats.edges_evaluated,
            paths_found=stats.paths_found,
            levels_fetched=stats.levels_fetched,
            duration_ms=round(stats.duration_ms, 2),
            truncated=stats.truncated,
        )


class PathfindingResponse(BaseModel):
    """Response model for a warm-intro search."""
    source_id: Optional[str] = None
    target_id: str
    found: bool = False
    paths: list[PathResultResponse] = []
    stats: SearchStatsResponse = Field(default_factory=SearchStatsResponse)

    @classmethod
    def from_result(
        cls, result: PathfindingResult, node_names: Optional[dict[str, str]] = None
    ) -> "PathfindingResponse":
        if node_names is None:
            node_names = result.node_names
        return cls(
            source_id=result.source_id,
            target_id=result.target_id,
            found=result.found,
            paths=[PathResultResponse.from_result(p, node_names) for p in result.paths],
            stats=SearchStatsResponse.from_result(result.stats),
        )


class GraphStatsResponse(BaseModel):
    """Summary of a tenant's graph."""
    total_people: int
    total_relationships: int
    average_connections: float
    strong_connections: int
    isolated_people: int

    @classmethod
    def from_result(cls, stats: GraphStats) -> "GraphStatsResponse":
        return cls(
            total_people=stats.total_people,
            total_relationships=stats.total_relationships,
            average_connections=round(stats.average_connections, 2),
            strong_connections=stats.strong_connections,
            isolated_people=stats.isolated_people,
        )


# ============================================================================
# Entity Resolution Models
# ============================================================================

class MatchEvidenceResponse(BaseModel):
    """One field comparison behind a match."""
    field: str
    target_value: str
    candidate_value: str
    similarity: float


class EntityMatchResponse(BaseModel):
    """Response model for a potential duplicate."""
    target_id: str
    candidate_id: str
    match_score: float
    match_method: str
    recommendation: str
    evidence: list[MatchEvidenceResponse] = []
    explanation: str = ""

    @classmethod
    def from_result(cls, match: EntityResolutionMatch) -> "EntityMatchResponse":
        return cls(
            target_id=match.target_id,
            candidate_id=match.candidate_id,
            match_score=round(match.match_score, 4),
            match_method=match.match_method.value,
            recommendation=match.recommendation.value,
            evidence=[
                MatchEvidenceResponse(
                    field=e.field,
                    target_value=e.target_value,
                    candidate_value=e.candidate_value,
                    similarity=round(e.similarity, 4),
                )
                for e in match.evidence
            ],
            explanation=generate_merge_explanation(match),
        )


class DuplicatesResponse(BaseModel):
    """Response model for a duplicate check on one person."""
    person_id: str
    count: int = 0
    matches: list[EntityMatchResponse] = []

    @classmethod
    def from_result(
        cls, person_id: str, matches: list[EntityResolutionMatch]
    ) -> "DuplicatesResponse":
        return cls(
            person_id=person_id,
            count=len(matches),
            matches=[EntityMatchResponse.from_result(m) for m in matches],
        )
