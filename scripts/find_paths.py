#!/usr/bin/env python3
"""
Find warm introduction paths to a person.

Usage:
    python scripts/find_paths.py <target_id> [--tenant acme] [--source <id>]
        [--max-hops 3] [--max-results 5] [--min-strength 0.3] [--incremental] [--stats]
"""
import sys
import logging
import argparse
from pathlib import Path
from typing import Optional

sys.path.insert(0, str(Path(__file__).parent.parent))

from config.settings import settings
from warmpath.models import GraphStatsResponse, PathfindingResponse
from warmpath.services.data_provider import DataProvider, TenantScope
from warmpath.services.graph_builder import build_graph_from_provider, compute_graph_stats
from warmpath.services.pathfinder import Pathfinder, PathfinderOptions
from warmpath.services.sqlite_provider import SqliteDataProvider

logging.basicConfig(level=settings.log_level, format='%(levelname)s: %(message)s')
logger = logging.getLogger(__name__)


def find_paths(
    provider: DataProvider,
    tenant_id: str,
    target_id: str,
    source_id: Optional[str] = None,
    options: Optional[PathfinderOptions] = None,
    incremental: bool = False,
) -> PathfindingResponse:
    """
    Run a warm-intro search and return the serializable response.

    Raises:
        InvalidDataProviderError: if provider is not a data provider
        DataProviderError: if the provider fails
    """
    scope = TenantScope(tenant_id)
    pathfinder = Pathfinder(provider)
    result = pathfinder.find_warm_intro_paths(
        scope,
        target_id,
        source_id=source_id,
        options=options,
        incremental=incremental,
    )
    return PathfindingResponse.from_result(result)


def graph_stats(provider: DataProvider, tenant_id: str) -> GraphStatsResponse:
    """Summary numbers for a tenant's graph."""
    graph = build_graph_from_provider(provider, TenantScope(tenant_id))
    return GraphStatsResponse.from_result(compute_graph_stats(graph))


def main():
    parser = argparse.ArgumentParser(description='Find warm introduction paths')
    parser.add_argument('target', help='ID of the person to reach')
    parser.add_argument('--tenant', default='default', help='Tenant id')
    parser.add_argument('--source', default=None, help='Starting person (default: is_me)')
    parser.add_argument('--db', type=Path, default=None, help='SQLite database path')
    parser.add_argument('--max-hops', type=int, default=settings.max_hops)
    parser.add_argument('--max-results', type=int, default=settings.max_results)
    parser.add_argument('--min-strength', type=float, default=settings.min_strength)
    parser.add_argument('--incremental', action='store_true', help='Fetch one BFS level at a time')
    parser.add_argument('--stats', action='store_true', help='Also print graph statistics')
    args = parser.parse_args()

    options = PathfinderOptions(
        max_hops=args.max_hops,
        max_results=args.max_results,
        min_strength=args.min_strength,
    )

    with SqliteDataProvider(args.db) as provider:
        response = find_paths(
            provider,
            args.tenant,
            args.target,
            source_id=args.source,
            options=options,
            incremental=args.incremental,
        )
        print(response.model_dump_json(indent=2))

        if args.stats:
            print(graph_stats(provider, args.tenant).model_dump_json(indent=2))

    if not response.found:
        logger.info(f"No warm path to {args.target}")
        sys.exit(1)


if __name__ == '__main__':
    main()
