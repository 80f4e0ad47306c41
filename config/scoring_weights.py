"""
Scoring and Entity Resolution Weights Configuration.

Central configuration for all constants used in:
- Relationship strength calculation
- Path scoring and explanation
- Entity resolution thresholds

Edit this file to tune scoring behavior.
"""
import json
import logging
from pathlib import Path

_logger = logging.getLogger(__name__)


# =============================================================================
# RELATIONSHIP STRENGTH WEIGHTS
# =============================================================================
# Formula: strength = (recency × RECENCY) + (frequency × FREQUENCY)
#                   + (mutuality × MUTUALITY) + (channels × CHANNELS)

RECENCY_WEIGHT = 0.35     # How much recent contact matters
FREQUENCY_WEIGHT = 0.30   # How often you interact
MUTUALITY_WEIGHT = 0.20   # Two-way vs one-way communication
CHANNELS_WEIGHT = 0.15    # Multi-channel communication

# Recency: exponential decay, value halves every RECENCY_HALF_LIFE_DAYS
RECENCY_HALF_LIFE_DAYS = 90

# Frequency: log10(per_month + 1) / log10(FREQUENCY_SCALE_BASE)
# 1/month ≈ 0.29, 4/month ≈ 0.67, 10+/month = 1.0
FREQUENCY_SCALE_BASE = 11
DAYS_PER_MONTH = 30
SAME_DAY_FREQUENCY = 0.5  # Interactions exist but the window has zero length

# Mutuality: returned when only one side ever reached out
ONE_WAY_MUTUALITY = 0.3

# Channels: distinct channel count -> score (3 or more maxes out)
CHANNEL_STEP_SCORES: dict[int, float] = {
    0: 0.0,
    1: 0.4,
    2: 0.7,
}
MAX_CHANNEL_SCORE = 1.0


# =============================================================================
# PATH SCORING
# =============================================================================

# Multiplied once per hop beyond the first
HOP_PENALTY = 0.9

# Substituted for edges that carry no weight
DEFAULT_EDGE_SCORE = 0.5

# Strength words used in path explanations
STRONG_PATH_THRESHOLD = 0.8
MODERATE_PATH_THRESHOLD = 0.5

# Relationship weight at or above which a connection counts as strong in graph stats
STRONG_CONNECTION_THRESHOLD = 0.7

# Evidence quality: per-edge credit by where the relationship came from
INTERACTION_SOURCE = "interaction"
INTERACTION_EVIDENCE_SCORE = 1.0   # Backed by observed interactions
OTHER_EVIDENCE_SCORE = 0.5         # Imported or inferred only


# =============================================================================
# ENTITY RESOLUTION THRESHOLDS
# =============================================================================

EMAIL_MATCH_SCORE = 1.0
PHONE_MATCH_SCORE = 1.0
SOCIAL_HANDLE_MATCH_SCORE = 0.95

MIN_NAME_SIMILARITY = 0.85           # Below this, name+org matching stops
NAME_ONLY_MIN_SIMILARITY = 0.95      # Required when either side lacks an organization
MIN_ORGANIZATION_SIMILARITY = 0.80   # Required when both sides have an organization

AUTO_MERGE_THRESHOLD = 0.95
REVIEW_QUEUE_THRESHOLD = 0.88


# =============================================================================
# STRENGTH WEIGHT OVERRIDES (loaded from config/scoring_overrides.json)
# =============================================================================
# Replace the default strength weights without editing this file, e.g.
#   {"strength_weights": {"recency": 0.5, "frequency": 0.2}}
# Keys that are missing keep their default value.

def _load_strength_weight_overrides() -> dict[str, float]:
    """Load strength weight overrides from JSON config file."""
    config_path = Path(__file__).parent / "scoring_overrides.json"
    overrides: dict[str, float] = {}

    if config_path.exists():
        try:
            with open(config_path) as f:
                config = json.load(f)
            overrides = {
                k: float(v) for k, v in config.get("strength_weights", {}).items()
                if k in ("recency", "frequency", "mutuality", "channels")
            }
        except (OSError, ValueError) as e:
            _logger.warning(f"Failed to load scoring overrides: {e}")

    return overrides


STRENGTH_WEIGHT_OVERRIDES = _load_strength_weight_overrides()


def get_default_strength_weights() -> dict[str, float]:
    """
    Get the default strength weights with any JSON overrides applied.

    Returns:
        Dict with recency, frequency, mutuality and channels weights
    """
    weights = {
        "recency": RECENCY_WEIGHT,
        "frequency": FREQUENCY_WEIGHT,
        "mutuality": MUTUALITY_WEIGHT,
        "channels": CHANNELS_WEIGHT,
    }
    weights.update(STRENGTH_WEIGHT_OVERRIDES)
    return weights
