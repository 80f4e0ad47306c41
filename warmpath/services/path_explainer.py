"""
Path Explainer - Human-readable explanations for ranked paths.
"""
from dataclasses import replace

from config.scoring_weights import MODERATE_PATH_THRESHOLD, STRONG_PATH_THRESHOLD
from warmpath.services.graph_models import RankedPath

PATH_SEPARATOR = " → "


def strength_word(score: float) -> str:
    """strong (>= 0.8), moderate (>= 0.5) or weak."""
    if score >= STRONG_PATH_THRESHOLD:
        return "strong"
    if score >= MODERATE_PATH_THRESHOLD:
        return "moderate"
    return "weak"


def explain_path(path: RankedPath, node_names: dict[str, str]) -> str:
    """
    Generate a human-readable explanation for a path.

    Examples:
        "Direct strong connection to Dana"
        "Connect through Bob → Carol to reach Dana (weak path)"

    Args:
        path: Ranked path to explain
        node_names: Map of node id to display name (ids are used when missing)

    Returns:
        Explanation string
    """
    if len(path.node_ids) < 2:
        return "Invalid path"

    names = [node_names.get(node_id) or node_id for node_id in path.node_ids]
    target = names[-1]
    strength = strength_word(path.score)

    if len(names) == 2:
        return f"Direct {strength} connection to {target}"

    intermediaries = PATH_SEPARATOR.join(names[1:-1])
    return f"Connect through {intermediaries} to reach {target} ({strength} path)"


def explain_paths(paths: list[RankedPath], node_names: dict[str, str]) -> list[RankedPath]:
    """Return copies of the paths with explanations filled in."""
    return [replace(path, explanation=explain_path(path, node_names)) for path in paths]
