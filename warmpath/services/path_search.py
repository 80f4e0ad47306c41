"""
Path Search - Breadth-bounded multi-path search between two people.

Finds every acyclic path from a source to a target within a hop limit,
expanding one BFS level at a time. Each level's node ids are requested
from the FrontierSource in a single fetch_frontier() call, so the same
traversal runs over a fully built Graph (GraphFrontier) or over per-level
batch fetches from a data provider (ProviderFrontier).

Cycle avoidance is per path: a node already on a path cannot be revisited
by that path, but other branches may still pass through it.
"""
import logging
import time
from dataclasses import dataclass
from typing import Optional, Protocol, Union, runtime_checkable

from config.scoring_weights import DEFAULT_EDGE_SCORE
from warmpath.services.data_provider import DataProvider, TenantScope
from warmpath.services.errors import call_provider
from warmpath.services.graph_builder import edge_from_relationship, merge_edges
from warmpath.services.graph_models import Edge, Graph, Node, Path

logger = logging.getLogger(__name__)

DEFAULT_MAX_HOPS = 3


@runtime_checkable
class FrontierSource(Protocol):
    """Where the search gets a BFS level's outgoing edges from."""

    def has_node(self, node_id: str) -> bool:
        ...

    def fetch_frontier(self, node_ids: list[str]) -> dict[str, list[Edge]]:
        ...


class GraphFrontier:
    """FrontierSource over an already built Graph."""

    def __init__(self, graph: Graph):
        self.graph = graph

    def has_node(self, node_id: str) -> bool:
        return self.graph.has_node(node_id)

    def fetch_frontier(self, node_ids: list[str]) -> dict[str, list[Edge]]:
        return {node_id: self.graph.neighbors(node_id) for node_id in node_ids}

    def node_names(self) -> dict[str, str]:
        return self.graph.node_names()


class ProviderFrontier:
    """
    FrontierSource that fetches from a DataProvider one BFS level at a time.

    Each fetch_frontier() call makes at most one provider round trip, for
    the ids not already loaded. Edges are built with the same rules as
    build_graph: both directions, dangling and self-referencing
    relationships dropped, soft-deleted people skipped, parallel edges
    collapsed.
    """

    def __init__(self, provider: DataProvider, scope: TenantScope):
        self._provider = provider
        self._scope = scope
        self._nodes: dict[str, Node] = {}
        self._edges: dict[str, list[Edge]] = {}
        self._absent: set[str] = set()
        self.round_trips = 0

    @property
    def nodes(self) -> dict[str, Node]:
        """People seen so far in this search."""
        return self._nodes

    def has_node(self, node_id: str) -> bool:
        self._load([node_id])
        return node_id in self._nodes

    def fetch_frontier(self, node_ids: list[str]) -> dict[str, list[Edge]]:
        self._load(node_ids)
        return {node_id: self._edges.get(node_id, []) for node_id in node_ids}

    def node_names(self) -> dict[str, str]:
        return {node_id: node.display_name for node_id, node in self._nodes.items()}

    def _load(self, node_ids: list[str]) -> None:
        pending = [
            node_id for node_id in dict.fromkeys(node_ids)
            if node_id not in self._edges and node_id not in self._absent
        ]
        if not pending:
            return

        batch = call_provider(
            "fetch_frontier", self._provider.fetch_frontier, self._scope, pending
        )
        self.round_trips += 1

        for person in batch.persons:
            if person.attributes.is_deleted or person.id in self._nodes:
                continue
            self._nodes[person.id] = Node(
                id=person.id,
                display_name=person.primary_name,
                attributes=person.attributes,
            )

        pending_set = set(pending)
        merged: dict[str, dict[str, Edge]] = {node_id: {} for node_id in pending}

        for relationship in batch.relationships:
            if (
                relationship.from_id == relationship.to_id
                or relationship.from_id not in self._nodes
                or relationship.to_id not in self._nodes
            ):
                continue
            edge = edge_from_relationship(relationship)
            for directed in (edge, edge.reversed()):
                if directed.from_id not in pending_set:
                    continue
                outgoing = merged[directed.from_id]
                existing = outgoing.get(directed.to_id)
                outgoing[directed.to_id] = merge_edges(existing, directed) if existing else directed

        for node_id in pending:
            if node_id in self._nodes:
                self._edges[node_id] = list(merged[node_id].values())
            else:
                self._absent.add(node_id)


@dataclass
class SearchBudget:
    """
    Caller-imposed limits on a single search.

    Running out is not an error: the search stops and returns the paths
    found so far.
    """

    max_nodes_explored: Optional[int] = None
    timeout_seconds: Optional[float] = None

    def is_exhausted(self, nodes_explored: int, elapsed_seconds: float) -> bool:
        if self.max_nodes_explored is not None and nodes_explored >= self.max_nodes_explored:
            return True
        if self.timeout_seconds is not None and elapsed_seconds >= self.timeout_seconds:
            return True
        return False


@dataclass
class SearchStats:
    """Counters describing one search run."""

    nodes_explored: int = 0  # Partial paths expanded
    edges_evaluated: int = 0
    paths_found: int = 0
    levels_fetched: int = 0
    duration_ms: float = 0.0
    truncated: bool = False  # Budget ran out before the search finished


@dataclass
class _PartialPath:
    node_ids: tuple[str, ...]
    edges: tuple[Edge, ...]

    @property
    def tail(self) -> str:
        return self.node_ids[-1]


def _edge_weight(edge: Edge) -> float:
    return edge.weight if edge.weight is not None else DEFAULT_EDGE_SCORE


def search_paths(
    source: Union[Graph, FrontierSource],
    source_id: str,
    target_id: str,
    max_hops: int = DEFAULT_MAX_HOPS,
    min_strength: float = 0.0,
    budget: Optional[SearchBudget] = None,
) -> tuple[list[Path], SearchStats]:
    """
    Find all acyclic paths from source_id to target_id within max_hops.

    Never raises for missing ids or unreachable targets; both give an
    empty list.

    Args:
        source: Graph or FrontierSource to traverse
        source_id: Starting person id
        target_id: Person to reach
        max_hops: Maximum edges per path
        min_strength: Edges below this weight are skipped during expansion
        budget: Optional node/time budget

    Returns:
        (paths in discovery order, search statistics)
    """
    started = time.monotonic()
    stats = SearchStats()
    frontier_source = GraphFrontier(source) if isinstance(source, Graph) else source

    if source_id == target_id or max_hops < 1:
        return [], stats
    if not frontier_source.has_node(source_id) or not frontier_source.has_node(target_id):
        logger.debug(f"Search endpoint missing: {source_id} -> {target_id}")
        return [], stats

    results: list[Path] = []
    level = [_PartialPath(node_ids=(source_id,), edges=())]

    for depth in range(max_hops):
        if not level:
            break

        tail_ids = list(dict.fromkeys(partial.tail for partial in level))
        edges_by_node = frontier_source.fetch_frontier(tail_ids)
        stats.levels_fetched += 1

        next_level: list[_PartialPath] = []
        can_extend = depth + 1 < max_hops

        for partial in level:
            if budget and budget.is_exhausted(stats.nodes_explored, time.monotonic() - started):
                stats.truncated = True
                break
            stats.nodes_explored += 1

            for edge in edges_by_node.get(partial.tail, []):
                stats.edges_evaluated += 1
                if _edge_weight(edge) < min_strength:
                    continue

                neighbor_id = edge.to_id
                if neighbor_id in partial.node_ids:
                    continue

                if neighbor_id == target_id:
                    results.append(Path(
                        node_ids=[*partial.node_ids, neighbor_id],
                        edges=[*partial.edges, edge],
                    ))
                    continue

                if can_extend:
                    next_level.append(_PartialPath(
                        node_ids=partial.node_ids + (neighbor_id,),
                        edges=partial.edges + (edge,),
                    ))

        if stats.truncated:
            logger.warning(
                f"Search budget exhausted after {stats.nodes_explored} nodes; "
                f"returning {len(results)} paths found so far"
            )
            break
        level = next_level

    stats.paths_found = len(results)
    stats.duration_ms = (time.monotonic() - started) * 1000
    logger.debug(
        f"Search {source_id} -> {target_id}: {stats.paths_found} paths, "
        f"{stats.nodes_explored} nodes, {stats.edges_evaluated} edges"
    )
    return results, stats


def find_all_paths(
    source: Union[Graph, FrontierSource],
    source_id: str,
    target_id: str,
    max_hops: int = DEFAULT_MAX_HOPS,
    min_strength: float = 0.0,
    budget: Optional[SearchBudget] = None,
) -> list[Path]:
    """Same as search_paths, returning only the paths."""
    paths, _ = search_paths(source, source_id, target_id, max_hops, min_strength, budget)
    return paths
