"""
Data Provider - The storage boundary the core reads tenant data through.

The surrounding storage layer implements DataProvider; the core never
opens connections of its own. Every call receives a TenantScope and must
return only that tenant's records. The core trusts this and does not
re-check it.

fetch_frontier() is the single batched method used by incremental search:
one call per BFS level returns every relationship touching the requested
ids plus the people at both ends, so a provider backed by one round trip
serves both batch and sequential callers.
"""
import logging
from dataclasses import dataclass, field
from typing import Iterable, Protocol, runtime_checkable

from warmpath.services.errors import InvalidDataProviderError
from warmpath.services.graph_models import PersonRecord, RelationshipRecord

logger = logging.getLogger(__name__)

REQUIRED_PROVIDER_METHODS = ("list_persons", "list_relationships", "fetch_frontier")


@dataclass(frozen=True)
class TenantScope:
    """Opaque tenant boundary handed to the provider on every call."""

    tenant_id: str


@dataclass
class FrontierBatch:
    """Relationships touching a set of node ids, plus the people they connect."""

    persons: list[PersonRecord] = field(default_factory=list)
    relationships: list[RelationshipRecord] = field(default_factory=list)


@runtime_checkable
class DataProvider(Protocol):
    """Interface implemented by the storage layer."""

    def list_persons(self, scope: TenantScope) -> list[PersonRecord]:
        ...

    def list_relationships(self, scope: TenantScope) -> list[RelationshipRecord]:
        ...

    def fetch_frontier(self, scope: TenantScope, node_ids: list[str]) -> FrontierBatch:
        ...


def validate_provider(provider) -> None:
    """
    Check that an object implements the DataProvider methods.

    Raises:
        InvalidDataProviderError: if any required method is missing or not callable
    """
    missing = [
        name for name in REQUIRED_PROVIDER_METHODS
        if not callable(getattr(provider, name, None))
    ]
    if missing:
        raise InvalidDataProviderError(provider, missing)


class InMemoryDataProvider:
    """
    DataProvider over records held in memory, keyed by tenant.

    Used for tests, scripts working from JSON snapshots, and callers that
    already fetched their data elsewhere.
    """

    def __init__(self):
        self._persons: dict[str, dict[str, PersonRecord]] = {}
        self._relationships: dict[str, list[RelationshipRecord]] = {}

    @classmethod
    def from_records(
        cls,
        scope: TenantScope,
        persons: Iterable[PersonRecord],
        relationships: Iterable[RelationshipRecord] = (),
    ) -> "InMemoryDataProvider":
        """Build a provider holding one tenant's records."""
        provider = cls()
        for person in persons:
            provider.add_person(scope, person)
        for relationship in relationships:
            provider.add_relationship(scope, relationship)
        return provider

    def add_person(self, scope: TenantScope, person: PersonRecord) -> None:
        """Add or replace a person for a tenant."""
        self._persons.setdefault(scope.tenant_id, {})[person.id] = person

    def add_relationship(self, scope: TenantScope, relationship: RelationshipRecord) -> None:
        self._relationships.setdefault(scope.tenant_id, []).append(relationship)

    def list_persons(self, scope: TenantScope) -> list[PersonRecord]:
        return list(self._persons.get(scope.tenant_id, {}).values())

    def list_relationships(self, scope: TenantScope) -> list[RelationshipRecord]:
        return list(self._relationships.get(scope.tenant_id, []))

    def fetch_frontier(self, scope: TenantScope, node_ids: list[str]) -> FrontierBatch:
        wanted = set(node_ids)
        persons = self._persons.get(scope.tenant_id, {})

        relationships = [
            rel for rel in self._relationships.get(scope.tenant_id, [])
            if rel.from_id in wanted or rel.to_id in wanted
        ]

        touched = set(wanted)
        for rel in relationships:
            touched.add(rel.from_id)
            touched.add(rel.to_id)

        return FrontierBatch(
            persons=[persons[pid] for pid in touched if pid in persons],
            relationships=relationships,
        )
