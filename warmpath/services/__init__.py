"""
warmpath Services Package.

Use this module to import commonly-used services.

Example:
    from warmpath.services import (
        Pathfinder,
        TenantScope,
        SqliteDataProvider,
    )

Key service modules:
- graph_models: records, graph and path types
- data_provider / sqlite_provider: storage boundary and implementations
- graph_builder: records -> adjacency graph
- path_search: bounded multi-path BFS
- path_scoring / path_ranker / path_explainer: score, order and describe paths
- pathfinder: the end-to-end pipeline
- strength_scorer: interaction signals -> edge weight
- entity_resolver: duplicate person detection
"""

# ============================================================================
# Data Model & Storage
# ============================================================================

from warmpath.services.graph_models import (
    Edge,
    Graph,
    Node,
    Path,
    PersonAttributes,
    PersonRecord,
    RankedPath,
    RelationshipRecord,
    ScoredPath,
)

from warmpath.services.errors import (
    DataProviderError,
    InvalidDataProviderError,
    PathfinderError,
)

from warmpath.services.data_provider import (
    DataProvider,
    FrontierBatch,
    InMemoryDataProvider,
    TenantScope,
)

from warmpath.services.sqlite_provider import SqliteDataProvider

# ============================================================================
# Pathfinding
# ============================================================================

from warmpath.services.graph_builder import (
    GraphStats,
    build_graph,
    compute_graph_stats,
)

from warmpath.services.path_search import (
    SearchBudget,
    SearchStats,
    find_all_paths,
    search_paths,
)

from warmpath.services.path_scoring import score_path, score_paths
from warmpath.services.path_ranker import rank_paths
from warmpath.services.path_explainer import explain_path

from warmpath.services.pathfinder import (
    Pathfinder,
    PathfinderOptions,
    PathfindingResult,
    PathResult,
    find_paths_in_graph,
)

# ============================================================================
# Relationship Strength & Entity Resolution
# ============================================================================

from warmpath.services.strength_scorer import (
    InteractionSignals,
    StrengthFactors,
    StrengthWeights,
    calculate_strength,
    strength_from_signals,
)

from warmpath.services.entity_resolver import (
    EntityResolutionMatch,
    MatchEvidence,
    find_duplicates,
    find_matches,
)

__all__ = [
    # Data model
    "Edge",
    "Graph",
    "Node",
    "Path",
    "PersonAttributes",
    "PersonRecord",
    "RankedPath",
    "RelationshipRecord",
    "ScoredPath",
    # Errors
    "DataProviderError",
    "InvalidDataProviderError",
    "PathfinderError",
    # Storage
    "DataProvider",
    "FrontierBatch",
    "InMemoryDataProvider",
    "SqliteDataProvider",
    "TenantScope",
    # Pathfinding
    "GraphStats",
    "build_graph",
    "compute_graph_stats",
    "SearchBudget",
    "SearchStats",
    "find_all_paths",
    "search_paths",
    "score_path",
    "score_paths",
    "rank_paths",
    "explain_path",
    "Pathfinder",
    "PathfinderOptions",
    "PathfindingResult",
    "PathResult",
    "find_paths_in_graph",
    # Strength
    "InteractionSignals",
    "StrengthFactors",
    "StrengthWeights",
    "calculate_strength",
    "strength_from_signals",
    # Entity resolution
    "EntityResolutionMatch",
    "MatchEvidence",
    "find_duplicates",
    "find_matches",
]
