#!/usr/bin/env python3
"""
List potential duplicate records for a person.

Usage:
    python scripts/find_duplicates.py <person_id> [--tenant acme] [--include-rejected]
"""
import sys
import logging
import argparse
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from config.settings import settings
from warmpath.models import DuplicatesResponse
from warmpath.services.data_provider import DataProvider, TenantScope
from warmpath.services.entity_resolver import find_duplicates
from warmpath.services.sqlite_provider import SqliteDataProvider

logging.basicConfig(level=settings.log_level, format='%(levelname)s: %(message)s')
logger = logging.getLogger(__name__)


def list_duplicates(
    provider: DataProvider,
    tenant_id: str,
    person_id: str,
    include_rejected: bool = False,
) -> DuplicatesResponse:
    """Resolve one person against their tenant, dropping rejects unless asked."""
    matches = find_duplicates(provider, TenantScope(tenant_id), person_id)
    if not include_rejected:
        matches = [m for m in matches if m.is_actionable]
    return DuplicatesResponse.from_result(person_id, matches)


def main():
    parser = argparse.ArgumentParser(description='Find potential duplicate people')
    parser.add_argument('person', help='ID of the person to check')
    parser.add_argument('--tenant', default='default', help='Tenant id')
    parser.add_argument('--db', type=Path, default=None, help='SQLite database path')
    parser.add_argument('--include-rejected', action='store_true',
                        help='Also list low-confidence matches')
    args = parser.parse_args()

    with SqliteDataProvider(args.db) as provider:
        response = list_duplicates(
            provider, args.tenant, args.person, include_rejected=args.include_rejected
        )

    print(response.model_dump_json(indent=2))


if __name__ == '__main__':
    main()
