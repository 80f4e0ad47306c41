#!/usr/bin/env python3
"""
Load a JSON snapshot of people and relationships into the SQLite store.

Relationships may carry a precomputed `weight`, or raw `signals` from which
the weight is scored on the way in (recency, frequency, mutuality, channels).

Snapshot format:
    {
      "tenant_id": "acme",
      "persons": [{"id": "...", "display_names": [...], "attributes": {...}}],
      "relationships": [
        {"from_id": "...", "to_id": "...", "weight": 0.8, "channels": [...],
         "last_interaction_at": "2024-05-01T10:00:00+00:00"},
        {"from_id": "...", "to_id": "...", "signals": {"first_seen_at": "...",
         "last_seen_at": "...", "interaction_count": 12, "sent_count": 7,
         "received_count": 5, "channels": ["email", "slack"]}}
      ]
    }

Usage:
    python scripts/load_snapshot.py snapshot.json [--db data/warmpath.db] [--replace] [--execute]
"""
import sys
import json
import logging
import argparse
from datetime import datetime
from pathlib import Path
from typing import Optional

sys.path.insert(0, str(Path(__file__).parent.parent))

from config.scoring_weights import INTERACTION_SOURCE
from config.settings import settings
from warmpath.services.data_provider import TenantScope
from warmpath.services.graph_models import PersonRecord, RelationshipRecord
from warmpath.services.sqlite_provider import SqliteDataProvider
from warmpath.services.strength_scorer import InteractionSignals, strength_from_signals

logging.basicConfig(level=settings.log_level, format='%(levelname)s: %(message)s')
logger = logging.getLogger(__name__)

DEFAULT_TENANT = "default"


def read_snapshot(path: Path) -> dict:
    """Read and minimally validate a snapshot file."""
    with open(path) as f:
        data = json.load(f)
    if not isinstance(data, dict) or "persons" not in data:
        raise ValueError(f"{path} is not a snapshot (expected an object with 'persons')")
    return data


def relationship_from_snapshot(data: dict, now: Optional[datetime] = None) -> RelationshipRecord:
    """
    Build a RelationshipRecord, scoring it from raw signals when no weight is given.

    Explicit weight, channels and last_interaction_at always win over
    values derived from signals.
    """
    record = RelationshipRecord.from_dict(data)
    signals_data = data.get("signals")
    if not signals_data:
        return record

    signals = InteractionSignals.from_dict(signals_data)
    if record.weight is None:
        record.weight = strength_from_signals(signals, now=now)
    if not record.channels:
        record.channels = list(signals.channels)
    if record.last_interaction_at is None:
        record.last_interaction_at = signals.last_seen_at
    if signals.interaction_count and INTERACTION_SOURCE not in record.sources:
        record.sources.append(INTERACTION_SOURCE)
    return record


def snapshot_records(
    data: dict, now: Optional[datetime] = None
) -> tuple[list[PersonRecord], list[RelationshipRecord]]:
    """Convert snapshot dicts to records."""
    persons = [PersonRecord.from_dict(p) for p in data.get("persons", [])]
    relationships = [
        relationship_from_snapshot(r, now=now) for r in data.get("relationships", [])
    ]
    return persons, relationships


def load_snapshot(
    snapshot_path: Path,
    db_path: Optional[Path] = None,
    tenant_id: Optional[str] = None,
    replace: bool = False,
    dry_run: bool = True,
    now: Optional[datetime] = None,
) -> dict:
    """
    Load a snapshot into SQLite.

    Args:
        snapshot_path: JSON snapshot to read
        db_path: SQLite database (default from settings)
        tenant_id: Tenant to load into (default: snapshot's tenant_id, then "default")
        replace: Swap out the tenant's existing data in one transaction
        dry_run: Parse and score only, write nothing
        now: Reference time for recency scoring

    Returns:
        Summary dict with tenant_id, persons, relationships and scored counts
    """
    data = read_snapshot(snapshot_path)
    scope = TenantScope(tenant_id or data.get("tenant_id") or DEFAULT_TENANT)
    persons, relationships = snapshot_records(data, now=now)
    scored = sum(1 for r in data.get("relationships", []) if r.get("signals") and r.get("weight") is None)

    result = {
        "tenant_id": scope.tenant_id,
        "persons": len(persons),
        "relationships": len(relationships),
        "scored": scored,
    }

    if dry_run:
        logger.info(
            f"DRY RUN - would load {len(persons)} people and "
            f"{len(relationships)} relationships into tenant {scope.tenant_id}"
        )
        return result

    with SqliteDataProvider(db_path) as provider:
        if replace:
            provider.replace_tenant(scope, persons, relationships)
        else:
            provider.upsert_persons(scope, persons)
            provider.add_relationships(scope, relationships)

    logger.info(
        f"Loaded {len(persons)} people and {len(relationships)} relationships "
        f"into tenant {scope.tenant_id} ({scored} scored from signals)"
    )
    return result


def main():
    parser = argparse.ArgumentParser(description='Load a JSON snapshot into the warmpath store')
    parser.add_argument('snapshot', type=Path, help='Path to snapshot JSON')
    parser.add_argument('--db', type=Path, default=None, help='SQLite database path')
    parser.add_argument('--tenant', default=None, help='Tenant id (overrides the snapshot)')
    parser.add_argument('--replace', action='store_true', help='Clear the tenant before loading')
    parser.add_argument('--execute', action='store_true', help='Actually write to the database')
    args = parser.parse_args()

    result = load_snapshot(
        args.snapshot,
        db_path=args.db,
        tenant_id=args.tenant,
        replace=args.replace,
        dry_run=not args.execute,
    )
    logger.info("\n=== Snapshot Load Summary ===")
    logger.info(f"Tenant: {result['tenant_id']}")
    logger.info(f"People: {result['persons']}")
    logger.info(f"Relationships: {result['relationships']}")
    logger.info(f"Scored from signals: {result['scored']}")


if __name__ == '__main__':
    main()
