"""
Graph Builder - Turns flat person/relationship records into a search graph.

Precondition: every record handed in belongs to the same tenant. Scoping is
the data provider's job; nothing here checks it.
"""
import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from config.scoring_weights import STRONG_CONNECTION_THRESHOLD
from warmpath.services.data_provider import DataProvider, TenantScope
from warmpath.services.errors import call_provider
from warmpath.services.graph_models import (
    Edge,
    Graph,
    Node,
    PersonRecord,
    RelationshipRecord,
)

logger = logging.getLogger(__name__)


@dataclass
class GraphStats:
    """Summary numbers for a built graph."""

    total_people: int
    total_relationships: int  # Undirected: each relationship counted once
    average_connections: float
    strong_connections: int
    isolated_people: int


def clamp_weight(weight) -> Optional[float]:
    """Relationship weight as a float in 0.0-1.0; None stays None."""
    if weight is None:
        return None
    value = float(weight)
    if not 0.0 <= value <= 1.0:
        logger.debug(f"Clamping out-of-range relationship weight {value}")
        return max(0.0, min(1.0, value))
    return value


def edge_from_relationship(relationship: RelationshipRecord) -> Edge:
    """Directed edge from_id -> to_id carrying the relationship's data."""
    return Edge(
        from_id=relationship.from_id,
        to_id=relationship.to_id,
        weight=clamp_weight(relationship.weight),
        channels=frozenset(c.strip() for c in relationship.channels if c and c.strip()),
        last_interaction_at=relationship.last_interaction_at,
        sources=frozenset(s.strip().lower() for s in relationship.sources if s and s.strip()),
    )


def merge_edges(existing: Edge, new: Edge) -> Edge:
    """
    Collapse two parallel edges for the same ordered pair into one.

    Keeps the higher weight (a present weight beats a missing one), the
    latest interaction, and the union of channels and of sources.
    """
    if existing.weight is None:
        weight = new.weight
    elif new.weight is None:
        weight = existing.weight
    else:
        weight = max(existing.weight, new.weight)

    stamps = [t for t in (existing.last_interaction_at, new.last_interaction_at) if t is not None]

    return Edge(
        from_id=existing.from_id,
        to_id=existing.to_id,
        weight=weight,
        channels=existing.channels | new.channels,
        last_interaction_at=max(stamps) if stamps else None,
        sources=existing.sources | new.sources,
    )


def build_graph(
    persons: Iterable[PersonRecord],
    relationships: Iterable[RelationshipRecord],
) -> Graph:
    """
    Build an adjacency graph with both directions inserted per relationship.

    - Soft-deleted persons are left out.
    - Relationships with an endpoint that is not a node are dropped, since
      the wider system may not have synced both sides yet.
    - Self-relationships are dropped.
    - Parallel relationships for the same pair collapse to one edge per direction.

    Args:
        persons: Person records for one tenant
        relationships: Relationship records for the same tenant

    Returns:
        Graph where every person has an adjacency entry, possibly empty
    """
    graph = Graph()

    for person in persons:
        if person.attributes.is_deleted:
            logger.debug(f"Skipping soft-deleted person {person.id}")
            continue
        if person.id in graph.nodes:
            logger.debug(f"Duplicate person record {person.id}, keeping the first")
            continue
        graph.nodes[person.id] = Node(
            id=person.id,
            display_name=person.primary_name,
            attributes=person.attributes,
        )
        graph.adjacency[person.id] = []

    merged: dict[tuple[str, str], Edge] = {}
    dropped = 0

    for relationship in relationships:
        if (
            relationship.from_id == relationship.to_id
            or relationship.from_id not in graph.nodes
            or relationship.to_id not in graph.nodes
        ):
            dropped += 1
            continue

        edge = edge_from_relationship(relationship)
        for directed in (edge, edge.reversed()):
            key = (directed.from_id, directed.to_id)
            if key in merged:
                merged[key] = merge_edges(merged[key], directed)
            else:
                merged[key] = directed

    for (from_id, _), edge in merged.items():
        graph.adjacency[from_id].append(edge)

    if dropped:
        logger.debug(f"Dropped {dropped} relationships with missing or self-referencing endpoints")
    logger.debug(f"Built graph: {len(graph.nodes)} nodes, {len(merged)} directed edges")

    return graph


def build_graph_from_provider(provider: DataProvider, scope: TenantScope) -> Graph:
    """
    Fetch a tenant's full snapshot from a provider and build its graph.

    Raises:
        DataProviderError: if the provider fails
    """
    persons = call_provider("list_persons", provider.list_persons, scope)
    relationships = call_provider("list_relationships", provider.list_relationships, scope)
    return build_graph(persons, relationships)


def compute_graph_stats(graph: Graph) -> GraphStats:
    """
    Compute summary statistics for a graph.

    Args:
        graph: Graph built by build_graph

    Returns:
        GraphStats with undirected relationship counts
    """
    total_people = len(graph.nodes)
    directed_edges = sum(len(edges) for edges in graph.adjacency.values())

    strong_directed = sum(
        1
        for edges in graph.adjacency.values()
        for edge in edges
        if edge.weight is not None and edge.weight >= STRONG_CONNECTION_THRESHOLD
    )
    isolated = sum(1 for node_id in graph.nodes if not graph.adjacency.get(node_id))

    return GraphStats(
        total_people=total_people,
        total_relationships=directed_edges // 2,
        average_connections=(directed_edges / total_people) if total_people else 0.0,
        strong_connections=strong_directed // 2,
        isolated_people=isolated,
    )
