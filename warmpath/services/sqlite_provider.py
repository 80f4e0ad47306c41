"""
SQLite Data Provider for warmpath.

Reference DataProvider backed by a single SQLite file. Each row carries a
tenant_id and every query filters on it. Names, attributes and channels
are stored as JSON columns.

The caller owns the handle:

    with SqliteDataProvider("data/warmpath.db") as provider:
        Pathfinder(provider).find_warm_intro_paths(scope, target_id)
"""
import json
import logging
import sqlite3
from pathlib import Path
from typing import Iterable, Optional, Union

from config.settings import settings
from warmpath.services.data_provider import FrontierBatch, TenantScope
from warmpath.services.graph_models import (
    PersonAttributes,
    PersonRecord,
    RelationshipRecord,
)
from warmpath.utils.datetime_utils import parse_timestamp

logger = logging.getLogger(__name__)

# Keeps each IN (...) query under SQLite's default bound-variable limit
QUERY_CHUNK_SIZE = 400


def _chunks(items: list[str], size: int = QUERY_CHUNK_SIZE):
    for start in range(0, len(items), size):
        yield items[start:start + size]


def person_from_row(row: tuple) -> PersonRecord:
    """Create PersonRecord from a (id, display_names, attributes) row."""
    return PersonRecord(
        id=row[0],
        display_names=json.loads(row[1]) if row[1] else [],
        attributes=PersonAttributes.from_dict(json.loads(row[2]) if row[2] else None),
    )


def relationship_from_row(row: tuple) -> RelationshipRecord:
    """Create RelationshipRecord from a relationships row, minus tenant_id and row_id."""
    return RelationshipRecord(
        from_id=row[0],
        to_id=row[1],
        weight=row[2],
        channels=json.loads(row[3]) if row[3] else [],
        last_interaction_at=parse_timestamp(row[4]),
        sources=json.loads(row[5]) if row[5] else [],
    )


class SqliteDataProvider:
    """
    SQLite-backed person and relationship storage.

    Holds one connection from construction until close().
    """

    def __init__(self, db_path: Optional[Union[str, Path]] = None):
        """
        Open (and create if needed) the database.

        Args:
            db_path: Path to SQLite database, or ":memory:" (default from settings)
        """
        self.db_path = str(db_path or settings.db_path)
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._conn: Optional[sqlite3.Connection] = sqlite3.connect(self.db_path)
        self._init_db()

    def __enter__(self) -> "SqliteDataProvider":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        """Close the connection. Safe to call twice."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def _get_connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise RuntimeError(f"SqliteDataProvider for {self.db_path} is closed")
        return self._conn

    def _init_db(self):
        """Create database tables if they don't exist."""
        conn = self._get_connection()
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS persons (
                tenant_id TEXT NOT NULL,
                id TEXT NOT NULL,
                display_names TEXT NOT NULL,
                attributes TEXT NOT NULL,
                PRIMARY KEY (tenant_id, id)
            )
        """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS relationships (
                row_id INTEGER PRIMARY KEY AUTOINCREMENT,
                tenant_id TEXT NOT NULL,
                from_id TEXT NOT NULL,
                to_id TEXT NOT NULL,
                weight REAL,
                channels TEXT NOT NULL,
                last_interaction_at TIMESTAMP,
                sources TEXT NOT NULL DEFAULT '[]'
            )
        """
        )

        # Frontier lookups come from either end
        conn.execute(
            """
            CREATE INDEX IF NOT EXISTS idx_relationships_from
            ON relationships(tenant_id, from_id)
        """
        )
        conn.execute(
            """
            CREATE INDEX IF NOT EXISTS idx_relationships_to
            ON relationships(tenant_id, to_id)
        """
        )
        conn.commit()
        logger.debug(f"Initialized warmpath database at {self.db_path}")

    # --- writes -----------------------------------------------------------

    def upsert_persons(self, scope: TenantScope, persons: Iterable[PersonRecord]) -> int:
        """
        Insert or replace people for a tenant.

        Returns:
            Number of rows written
        """
        conn = self._get_connection()
        with conn:
            return self._write_persons(conn, scope, persons)

    def upsert_person(self, scope: TenantScope, person: PersonRecord) -> None:
        self.upsert_persons(scope, [person])

    def add_relationships(
        self, scope: TenantScope, relationships: Iterable[RelationshipRecord]
    ) -> int:
        """
        Append relationships for a tenant. Duplicates are kept; the graph
        builder collapses parallel relationships.

        Returns:
            Number of rows written
        """
        conn = self._get_connection()
        with conn:
            return self._write_relationships(conn, scope, relationships)

    def add_relationship(self, scope: TenantScope, relationship: RelationshipRecord) -> None:
        self.add_relationships(scope, [relationship])

    def clear_tenant(self, scope: TenantScope) -> None:
        """Delete every person and relationship for a tenant."""
        conn = self._get_connection()
        with conn:
            self._delete_tenant(conn, scope)
        logger.info(f"Cleared tenant {scope.tenant_id}")

    def replace_tenant(
        self,
        scope: TenantScope,
        persons: Iterable[PersonRecord],
        relationships: Iterable[RelationshipRecord],
    ) -> tuple[int, int]:
        """
        Swap a tenant's data for new records in one transaction.

        If any write fails the tenant keeps its previous data.

        Returns:
            (persons written, relationships written)
        """
        conn = self._get_connection()
        with conn:
            self._delete_tenant(conn, scope)
            person_count = self._write_persons(conn, scope, persons)
            relationship_count = self._write_relationships(conn, scope, relationships)
        logger.info(f"Replaced tenant {scope.tenant_id}")
        return person_count, relationship_count

    # Helpers below run inside the caller's transaction and never commit

    def _delete_tenant(self, conn: sqlite3.Connection, scope: TenantScope) -> None:
        conn.execute("DELETE FROM relationships WHERE tenant_id = ?", (scope.tenant_id,))
        conn.execute("DELETE FROM persons WHERE tenant_id = ?", (scope.tenant_id,))

    def _write_persons(
        self, conn: sqlite3.Connection, scope: TenantScope, persons: Iterable[PersonRecord]
    ) -> int:
        rows = [
            (
                scope.tenant_id,
                person.id,
                json.dumps(person.display_names),
                json.dumps(person.attributes.to_dict()),
            )
            for person in persons
        ]
        conn.executemany(
            """
            INSERT OR REPLACE INTO persons (tenant_id, id, display_names, attributes)
            VALUES (?, ?, ?, ?)
        """,
            rows,
        )
        return len(rows)

    def _write_relationships(
        self,
        conn: sqlite3.Connection,
        scope: TenantScope,
        relationships: Iterable[RelationshipRecord],
    ) -> int:
        rows = [
            (
                scope.tenant_id,
                rel.from_id,
                rel.to_id,
                rel.weight,
                json.dumps(list(rel.channels)),
                rel.last_interaction_at.isoformat() if rel.last_interaction_at else None,
                json.dumps(list(rel.sources)),
            )
            for rel in relationships
        ]
        conn.executemany(
            """
            INSERT INTO relationships
            (tenant_id, from_id, to_id, weight, channels, last_interaction_at, sources)
            VALUES (?, ?, ?, ?, ?, ?, ?)
        """,
            rows,
        )
        return len(rows)

    # --- DataProvider -----------------------------------------------------

    def list_persons(self, scope: TenantScope) -> list[PersonRecord]:
        cursor = self._get_connection().execute(
            "SELECT id, display_names, attributes FROM persons WHERE tenant_id = ? ORDER BY id",
            (scope.tenant_id,),
        )
        return [person_from_row(row) for row in cursor.fetchall()]

    def list_relationships(self, scope: TenantScope) -> list[RelationshipRecord]:
        cursor = self._get_connection().execute(
            """
            SELECT from_id, to_id, weight, channels, last_interaction_at, sources
            FROM relationships
            WHERE tenant_id = ?
            ORDER BY row_id
        """,
            (scope.tenant_id,),
        )
        return [relationship_from_row(row) for row in cursor.fetchall()]

    def fetch_frontier(self, scope: TenantScope, node_ids: list[str]) -> FrontierBatch:
        """
        Relationships touching any of node_ids, plus the people at both ends.

        Args:
            scope: Tenant to read
            node_ids: Ids of the current BFS level

        Returns:
            FrontierBatch for the tenant
        """
        ids = list(dict.fromkeys(node_ids))
        if not ids:
            return FrontierBatch()

        conn = self._get_connection()
        relationships: dict[int, RelationshipRecord] = {}

        for chunk in _chunks(ids):
            placeholders = ",".join("?" * len(chunk))
            cursor = conn.execute(
                f"""
                SELECT row_id, from_id, to_id, weight, channels, last_interaction_at, sources
                FROM relationships
                WHERE tenant_id = ?
                  AND (from_id IN ({placeholders}) OR to_id IN ({placeholders}))
            """,
                (scope.tenant_id, *chunk, *chunk),
            )
            for row in cursor.fetchall():
                relationships[row[0]] = relationship_from_row(row[1:])

        touched = dict.fromkeys(ids)
        for rel in relationships.values():
            touched[rel.from_id] = None
            touched[rel.to_id] = None

        persons = []
        for chunk in _chunks(list(touched)):
            placeholders = ",".join("?" * len(chunk))
            cursor = conn.execute(
                f"""
                SELECT id, display_names, attributes
                FROM persons
                WHERE tenant_id = ? AND id IN ({placeholders})
            """,
                (scope.tenant_id, *chunk),
            )
            persons.extend(person_from_row(row) for row in cursor.fetchall())

        return FrontierBatch(
            persons=persons,
            relationships=[relationships[key] for key in sorted(relationships)],
        )
