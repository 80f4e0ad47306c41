"""
Graph Models - People, relationships and paths for warm-intro search.

Records (PersonRecord, RelationshipRecord) are what a data provider hands
in; Node/Edge/Graph are the in-memory adjacency structure built from them
for one search call; Path/ScoredPath/RankedPath are what the search and
ranking stages pass along.

Relationships are symmetric: the graph holds one Edge per direction so
traversal is effectively undirected.
"""
import logging
from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Any, Optional

from warmpath.utils.datetime_utils import parse_timestamp

logger = logging.getLogger(__name__)

# Attribute keys with a dedicated field on PersonAttributes
_KNOWN_ATTRIBUTE_KEYS = {
    "is_me",
    "emails",
    "phones",
    "social_handles",
    "organization_name",
    "deleted_at",
}


@dataclass
class PersonAttributes:
    """
    Known optional person metadata plus a generic extension map.

    Core logic reads the explicit fields only; anything an import adapter
    attaches beyond them lands in `extra` untouched.
    """

    is_me: bool = False  # This person is the searching user
    emails: list[str] = field(default_factory=list)
    phones: list[str] = field(default_factory=list)
    social_handles: dict[str, str] = field(default_factory=dict)  # platform -> handle
    organization_name: Optional[str] = None
    deleted_at: Optional[datetime] = None  # Soft delete marker
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def to_dict(self) -> dict:
        """Convert to dict for JSON serialization (extra keys flattened in)."""
        data = dict(self.extra)
        data.update({
            "is_me": self.is_me,
            "emails": list(self.emails),
            "phones": list(self.phones),
            "social_handles": dict(self.social_handles),
            "organization_name": self.organization_name,
            "deleted_at": self.deleted_at.isoformat() if self.deleted_at else None,
        })
        return data

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "PersonAttributes":
        """Create PersonAttributes from a flat dict; unknown keys go to extra."""
        if not data:
            return cls()
        return cls(
            is_me=bool(data.get("is_me", False)),
            emails=list(data.get("emails") or []),
            phones=list(data.get("phones") or []),
            social_handles=dict(data.get("social_handles") or {}),
            organization_name=data.get("organization_name") or None,
            deleted_at=parse_timestamp(data.get("deleted_at")),
            extra={k: v for k, v in data.items() if k not in _KNOWN_ATTRIBUTE_KEYS},
        )


@dataclass
class PersonRecord:
    """A person as supplied by the data provider, already tenant-scoped."""

    id: str
    display_names: list[str] = field(default_factory=list)  # First entry is preferred
    attributes: PersonAttributes = field(default_factory=PersonAttributes)

    @property
    def primary_name(self) -> str:
        """Preferred display name, or the id when the record has no names."""
        for name in self.display_names:
            if name and name.strip():
                return name.strip()
        return self.id

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "display_names": list(self.display_names),
            "attributes": self.attributes.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PersonRecord":
        return cls(
            id=data["id"],
            display_names=list(data.get("display_names") or []),
            attributes=PersonAttributes.from_dict(data.get("attributes")),
        )


@dataclass
class RelationshipRecord:
    """
    A relationship between two people as stored (recorded once per pair).

    `weight` is the Strength Scorer output, not raw interaction counts.
    """

    from_id: str
    to_id: str
    weight: Optional[float] = None
    channels: list[str] = field(default_factory=list)
    last_interaction_at: Optional[datetime] = None
    sources: list[str] = field(default_factory=list)  # Where the relationship was observed, e.g. "interaction"

    def to_dict(self) -> dict:
        data = asdict(self)
        if self.last_interaction_at:
            data["last_interaction_at"] = self.last_interaction_at.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "RelationshipRecord":
        return cls(
            from_id=data["from_id"],
            to_id=data["to_id"],
            weight=data.get("weight"),
            channels=list(data.get("channels") or []),
            last_interaction_at=parse_timestamp(data.get("last_interaction_at")),
            sources=list(data.get("sources") or []),
        )


@dataclass
class Node:
    """A person in the search graph."""

    id: str
    display_name: str
    attributes: PersonAttributes = field(default_factory=PersonAttributes)


@dataclass(frozen=True)
class Edge:
    """One direction of a relationship. Weight may be missing (scored as a default)."""

    from_id: str
    to_id: str
    weight: Optional[float] = None
    channels: frozenset[str] = frozenset()
    last_interaction_at: Optional[datetime] = None
    sources: frozenset[str] = frozenset()

    def reversed(self) -> "Edge":
        """The same relationship traversed the other way."""
        return Edge(
            from_id=self.to_id,
            to_id=self.from_id,
            weight=self.weight,
            channels=self.channels,
            last_interaction_at=self.last_interaction_at,
            sources=self.sources,
        )


@dataclass
class Graph:
    """
    Adjacency structure for one tenant snapshot.

    Every edge endpoint is a key in `nodes`, and every node has an
    adjacency entry, possibly empty.
    """

    nodes: dict[str, Node] = field(default_factory=dict)
    adjacency: dict[str, list[Edge]] = field(default_factory=dict)

    def has_node(self, node_id: str) -> bool:
        return node_id in self.nodes

    def neighbors(self, node_id: str) -> list[Edge]:
        """Outgoing edges of a node (empty for unknown ids)."""
        return self.adjacency.get(node_id, [])

    def node_names(self) -> dict[str, str]:
        """Map of node id to display name, for explanations."""
        return {node_id: node.display_name for node_id, node in self.nodes.items()}


@dataclass
class Path:
    """Ordered node ids from source to target plus the edges traversed."""

    node_ids: list[str]
    edges: list[Edge]

    @property
    def hops(self) -> int:
        return len(self.edges)


@dataclass
class ScoredPath(Path):
    score: float = 0.0


@dataclass
class RankedPath(ScoredPath):
    rank: int = 0  # 1 = best
    explanation: str = ""
