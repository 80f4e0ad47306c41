"""
Pathfinder - Warm introduction paths from you to a target person.

Runs the full pipeline in one call:
    graph (or per-level provider fetches) -> search -> score -> rank -> explain

Two ways to read the tenant's data:
- materialized (default): list every person and relationship, build the
  graph, then search it. Simple and best for small or cached snapshots.
- incremental: fetch one BFS level at a time through the provider's
  fetch_frontier(), so only the neighbourhood actually walked is loaded.

"No path" is an empty result, not an error. Provider failures surface as
DataProviderError.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Optional

from config.settings import Settings, settings as default_settings
from warmpath.services.data_provider import DataProvider, TenantScope, validate_provider
from warmpath.services.errors import call_provider
from warmpath.services.graph_builder import build_graph_from_provider
from warmpath.services.graph_models import Graph, Path, PersonRecord
from warmpath.services.path_explainer import explain_paths
from warmpath.services.path_ranker import rank_paths
from warmpath.services.path_scoring import (
    PathRankingFactors,
    calculate_path_ranking_factors,
    score_paths,
)
from warmpath.services.path_search import (
    DEFAULT_MAX_HOPS,
    ProviderFrontier,
    SearchBudget,
    SearchStats,
    search_paths,
)

logger = logging.getLogger(__name__)


@dataclass
class PathfinderOptions:
    """Per-call search options."""

    max_hops: int = DEFAULT_MAX_HOPS
    max_results: int = 5
    min_strength: float = 0.3

    def __post_init__(self):
        if self.max_hops < 1:
            raise ValueError(f"max_hops must be at least 1, got {self.max_hops}")
        if self.max_results < 1:
            raise ValueError(f"max_results must be at least 1, got {self.max_results}")
        if not 0.0 <= self.min_strength <= 1.0:
            raise ValueError(f"min_strength must be between 0 and 1, got {self.min_strength}")

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "PathfinderOptions":
        settings = settings or default_settings
        return cls(
            max_hops=settings.max_hops,
            max_results=settings.max_results,
            min_strength=settings.min_strength,
        )


@dataclass
class PathResult:
    """One ranked warm-intro path as handed to callers."""

    path: list[str]  # Node ids, source first
    score: float
    explanation: str
    rank: int
    introducer_id: Optional[str] = None  # First person after you; None for a direct connection
    factors: Optional[PathRankingFactors] = None


@dataclass
class PathfindingResult:
    """Everything a find_warm_intro_paths call produced."""

    source_id: Optional[str]
    target_id: str
    paths: list[PathResult] = field(default_factory=list)
    stats: SearchStats = field(default_factory=SearchStats)
    node_names: dict[str, str] = field(default_factory=dict)  # Display names of the people searched

    @property
    def found(self) -> bool:
        return bool(self.paths)


def find_me_id(persons: Iterable[PersonRecord]) -> Optional[str]:
    """Id of the first non-deleted person flagged is_me, or None."""
    me_ids = [p.id for p in persons if p.attributes.is_me and not p.attributes.is_deleted]
    if len(me_ids) > 1:
        logger.warning(f"Multiple people flagged is_me ({len(me_ids)}); using {me_ids[0]}")
    return me_ids[0] if me_ids else None


def build_path_results(
    paths: list[Path],
    node_names: dict[str, str],
    max_results: Optional[int] = None,
    now: Optional[datetime] = None,
) -> list[PathResult]:
    """
    Score, rank and explain raw search paths.

    Args:
        paths: Paths in discovery order
        node_names: Map of node id to display name
        max_results: Keep at most this many (default: all)
        now: Reference time for recency factors

    Returns:
        PathResults in rank order
    """
    ranked = rank_paths(score_paths(paths), max_results)
    explained = explain_paths(ranked, node_names)

    return [
        PathResult(
            path=list(p.node_ids),
            score=p.score,
            explanation=p.explanation,
            rank=p.rank,
            introducer_id=p.node_ids[1] if len(p.node_ids) > 2 else None,
            factors=calculate_path_ranking_factors(p, now=now),
        )
        for p in explained
    ]


def find_paths_in_graph(
    graph: Graph,
    source_id: str,
    target_id: str,
    options: Optional[PathfinderOptions] = None,
    budget: Optional[SearchBudget] = None,
    now: Optional[datetime] = None,
) -> PathfindingResult:
    """
    Run search, scoring, ranking and explanation over an already built graph.

    Args:
        graph: Tenant graph
        source_id: Starting person (usually you)
        target_id: Person you want an introduction to
        options: Search options (default: PathfinderOptions())
        budget: Optional search budget
        now: Reference time for recency factors

    Returns:
        PathfindingResult; empty paths when nothing connects the two
    """
    options = options or PathfinderOptions()
    paths, stats = search_paths(
        graph,
        source_id,
        target_id,
        max_hops=options.max_hops,
        min_strength=options.min_strength,
        budget=budget,
    )
    node_names = graph.node_names()
    return PathfindingResult(
        source_id=source_id,
        target_id=target_id,
        paths=build_path_results(paths, node_names, options.max_results, now=now),
        stats=stats,
        node_names=node_names,
    )


class Pathfinder:
    """
    Orchestrates warm-intro searches against a data provider.

    The provider handle is owned by the caller, which opens and closes it.
    """

    def __init__(self, provider: DataProvider, settings: Optional[Settings] = None):
        """
        Args:
            provider: Tenant data source
            settings: Settings for default options and search budget

        Raises:
            InvalidDataProviderError: if provider lacks the required methods
        """
        validate_provider(provider)
        self.provider = provider
        self.settings = settings or default_settings

    def default_options(self) -> PathfinderOptions:
        return PathfinderOptions.from_settings(self.settings)

    def search_budget(self) -> SearchBudget:
        return SearchBudget(
            max_nodes_explored=self.settings.max_nodes_explored,
            timeout_seconds=self.settings.search_timeout_seconds,
        )

    def locate_me(self, scope: TenantScope) -> Optional[str]:
        """Find the person flagged is_me in a tenant."""
        persons = call_provider("list_persons", self.provider.list_persons, scope)
        return find_me_id(persons)

    def find_warm_intro_paths(
        self,
        scope: TenantScope,
        target_id: str,
        source_id: Optional[str] = None,
        options: Optional[PathfinderOptions] = None,
        incremental: bool = False,
        now: Optional[datetime] = None,
    ) -> PathfindingResult:
        """
        Find ranked warm-intro paths from you to target_id.

        Args:
            scope: Tenant to search within
            target_id: Person you want an introduction to
            source_id: Starting person; defaults to the person flagged is_me
            options: Search options (default: from settings)
            incremental: Fetch per BFS level instead of loading the whole tenant
            now: Reference time for recency factors

        Returns:
            PathfindingResult, empty when there is no "me" or no path

        Raises:
            DataProviderError: if the provider fails
        """
        options = options or self.default_options()
        budget = self.search_budget()

        if incremental:
            if source_id is None:
                source_id = self.locate_me(scope)
            if source_id is None:
                logger.warning(f"No person flagged is_me in tenant {scope.tenant_id}")
                return PathfindingResult(source_id=None, target_id=target_id)

            frontier = ProviderFrontier(self.provider, scope)
            paths, stats = search_paths(
                frontier,
                source_id,
                target_id,
                max_hops=options.max_hops,
                min_strength=options.min_strength,
                budget=budget,
            )
            node_names = frontier.node_names()
            result = PathfindingResult(
                source_id=source_id,
                target_id=target_id,
                paths=build_path_results(paths, node_names, options.max_results, now=now),
                stats=stats,
                node_names=node_names,
            )
            logger.debug(f"Incremental search used {frontier.round_trips} provider round trips")
        else:
            graph = build_graph_from_provider(self.provider, scope)
            if source_id is None:
                source_id = find_me_id(
                    PersonRecord(id=node.id, attributes=node.attributes)
                    for node in graph.nodes.values()
                )
            if source_id is None or not graph.has_node(source_id):
                logger.warning(
                    f"Source person {source_id or '(is_me)'} not found in tenant {scope.tenant_id}"
                )
                return PathfindingResult(source_id=source_id, target_id=target_id)

            result = find_paths_in_graph(graph, source_id, target_id, options, budget, now=now)

        logger.info(
            f"Found {len(result.paths)} warm paths {source_id} -> {target_id} "
            f"({result.stats.nodes_explored} nodes explored"
            f"{', truncated' if result.stats.truncated else ''})"
        )
        return result
