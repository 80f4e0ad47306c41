"""
Path Ranker - Order scored paths and assign ranks.

Ordering:
1. Higher score first
2. Fewer edges first
3. Fresher stalest link first: the path whose oldest edge interaction is
   most recent wins. Edges with no known interaction count as oldest.
Remaining ties keep their input order (stable sort).
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from warmpath.services.graph_models import RankedPath, ScoredPath
from warmpath.utils.datetime_utils import make_aware

logger = logging.getLogger(__name__)

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


def stalest_interaction(path: ScoredPath) -> datetime:
    """Oldest last-interaction timestamp across a path's edges."""
    stamps = [make_aware(e.last_interaction_at) or _OLDEST for e in path.edges]
    return min(stamps) if stamps else _OLDEST


def _sort_key(path: ScoredPath) -> tuple:
    # Negated timestamp keeps a single ascending sort
    return (-path.score, len(path.edges), -stalest_interaction(path).timestamp())


def rank_paths(paths: list[ScoredPath], max_results: Optional[int] = None) -> list[RankedPath]:
    """
    Rank paths and keep the top max_results.

    Args:
        paths: Scored paths to rank
        max_results: Maximum number of paths to return (default: all)

    Returns:
        RankedPaths with 1-based ranks and empty explanations
    """
    if not paths:
        return []

    limit = len(paths) if max_results is None else max(0, max_results)
    ordered = sorted(paths, key=_sort_key)[:limit]

    return [
        RankedPath(
            node_ids=list(path.node_ids),
            edges=list(path.edges),
            score=path.score,
            rank=index + 1,
            explanation="",
        )
        for index, path in enumerate(ordered)
    ]
