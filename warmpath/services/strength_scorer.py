"""
Strength Scorer - Compute relationship strength (edge weight) from interaction signals.

Relationship strength is computed using the formula:
    strength = (recency × RECENCY_WEIGHT) + (frequency × FREQUENCY_WEIGHT)
             + (mutuality × MUTUALITY_WEIGHT) + (channels × CHANNELS_WEIGHT)

Where:
- recency: exp(-ln2 × days_since_last / RECENCY_HALF_LIFE_DAYS)
- frequency: min(1, log10(interactions_per_month + 1) / log10(FREQUENCY_SCALE_BASE))
- mutuality: 2 × min(sent, received) / (sent + received), ONE_WAY_MUTUALITY if one side is silent
- channels: step function of distinct channel count

The result is clamped to 0.0-1.0 and is what gets stored as an edge weight.
Factors themselves are never stored. See config/scoring_weights.py for all constants.
"""
import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Optional

from config.scoring_weights import (
    CHANNEL_STEP_SCORES,
    DAYS_PER_MONTH,
    FREQUENCY_SCALE_BASE,
    MAX_CHANNEL_SCORE,
    ONE_WAY_MUTUALITY,
    RECENCY_HALF_LIFE_DAYS,
    SAME_DAY_FREQUENCY,
    get_default_strength_weights,
)
from warmpath.utils.datetime_utils import days_between, make_aware, parse_timestamp, utc_now

logger = logging.getLogger(__name__)


@dataclass
class StrengthFactors:
    """The four independently computed factors, each 0.0-1.0."""

    recency: float = 0.0
    frequency: float = 0.0
    mutuality: float = 0.0
    channels: float = 0.0


@dataclass
class StrengthWeights:
    """Weights for combining factors. Defaults sum to 1.0."""

    recency: float = 0.35
    frequency: float = 0.30
    mutuality: float = 0.20
    channels: float = 0.15

    def __post_init__(self):
        for name in ("recency", "frequency", "mutuality", "channels"):
            if getattr(self, name) < 0:
                raise ValueError(f"Strength weight '{name}' must be non-negative")

    @classmethod
    def default(cls) -> "StrengthWeights":
        """Configured defaults, including any JSON overrides."""
        return cls(**get_default_strength_weights())

    @property
    def total(self) -> float:
        return self.recency + self.frequency + self.mutuality + self.channels


DEFAULT_WEIGHTS = StrengthWeights.default()


@dataclass
class InteractionSignals:
    """Raw per-relationship signals produced by import adapters."""

    first_seen_at: Optional[datetime] = None
    last_seen_at: Optional[datetime] = None
    interaction_count: int = 0
    sent_count: int = 0
    received_count: int = 0
    channels: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "InteractionSignals":
        return cls(
            first_seen_at=parse_timestamp(data.get("first_seen_at")),
            last_seen_at=parse_timestamp(data.get("last_seen_at")),
            interaction_count=int(data.get("interaction_count", 0)),
            sent_count=int(data.get("sent_count", 0)),
            received_count=int(data.get("received_count", 0)),
            channels=list(data.get("channels") or []),
        )


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


def calculate_recency_factor(
    last_interaction_at: Optional[datetime],
    now: Optional[datetime] = None,
) -> float:
    """
    Compute recency factor (0.0-1.0) with a 90-day half-life.

    1.0 for contact today, 0.5 at 90 days, 0.25 at 180 days.

    Args:
        last_interaction_at: Last interaction timestamp (naive = UTC)
        now: Reference time (default: current UTC time)

    Returns:
        Recency factor between 0.0 and 1.0
    """
    if last_interaction_at is None:
        return 0.0

    now = make_aware(now) if now is not None else utc_now()
    last_interaction_at = make_aware(last_interaction_at)

    # Cap future dates at now (e.g., from scheduled calendar events)
    if last_interaction_at > now:
        last_interaction_at = now

    days_since = days_between(last_interaction_at, now)
    return math.exp(-math.log(2) * days_since / RECENCY_HALF_LIFE_DAYS)


def calculate_frequency_factor(
    interaction_count: int,
    first_seen_at: Optional[datetime],
    last_seen_at: Optional[datetime],
) -> float:
    """
    Compute frequency factor (0.0-1.0) from interactions per month.

    Uses log scaling: 1/month ≈ 0.29, 4/month ≈ 0.67, 10+/month = 1.0.
    When the observation window has zero length but interactions exist,
    returns SAME_DAY_FREQUENCY instead of dividing by zero.

    Args:
        interaction_count: Number of interactions observed
        first_seen_at: Start of the observation window
        last_seen_at: End of the observation window

    Returns:
        Frequency factor between 0.0 and 1.0
    """
    if interaction_count < 0:
        raise ValueError("interaction_count must be non-negative")
    if interaction_count == 0:
        return 0.0

    if first_seen_at is None or last_seen_at is None:
        return SAME_DAY_FREQUENCY

    window_days = days_between(first_seen_at, last_seen_at)
    if window_days <= 0:
        return SAME_DAY_FREQUENCY

    per_month = interaction_count / window_days * DAYS_PER_MONTH
    return min(1.0, math.log10(per_month + 1) / math.log10(FREQUENCY_SCALE_BASE))


def calculate_mutuality_factor(sent_count: int, received_count: int) -> float:
    """
    Compute mutuality factor (0.0-1.0) from sent/received balance.

    Perfect 50/50 balance scores 1.0; a 2:1 ratio scores ≈ 0.67.
    One-way communication gets ONE_WAY_MUTUALITY. No communication at all
    scores 0.0.

    Args:
        sent_count: Interactions initiated by the owner of the edge
        received_count: Interactions received from the other side

    Returns:
        Mutuality factor between 0.0 and 1.0
    """
    if sent_count < 0:
        raise ValueError("sent_count must be non-negative")
    if received_count < 0:
        raise ValueError("received_count must be non-negative")

    if sent_count == 0 and received_count == 0:
        return 0.0
    if sent_count == 0 or received_count == 0:
        return ONE_WAY_MUTUALITY

    return 2 * min(sent_count, received_count) / (sent_count + received_count)


def calculate_channels_factor(channels: Iterable[str]) -> float:
    """
    Compute channels factor from distinct communication channels.

    Channels are compared case-insensitively after trimming:
    0 → 0.0, 1 → 0.4, 2 → 0.7, 3+ → 1.0.
    """
    distinct = {c.strip().lower() for c in channels if c and c.strip()}
    return CHANNEL_STEP_SCORES.get(len(distinct), MAX_CHANNEL_SCORE)


def calculate_strength(
    factors: StrengthFactors,
    weights: Optional[StrengthWeights] = None,
) -> float:
    """
    Combine factors into a single relationship strength.

    Args:
        factors: Computed strength factors
        weights: Factor weights (default DEFAULT_WEIGHTS)

    Returns:
        Weighted sum clamped to 0.0-1.0
    """
    weights = weights or DEFAULT_WEIGHTS
    score = (
        factors.recency * weights.recency +
        factors.frequency * weights.frequency +
        factors.mutuality * weights.mutuality +
        factors.channels * weights.channels
    )
    return _clamp(score)


def calculate_strength_factors(
    signals: InteractionSignals,
    now: Optional[datetime] = None,
) -> StrengthFactors:
    """Compute all four factors for one relationship's signals."""
    return StrengthFactors(
        recency=calculate_recency_factor(signals.last_seen_at, now=now),
        frequency=calculate_frequency_factor(
            signals.interaction_count,
            signals.first_seen_at,
            signals.last_seen_at,
        ),
        mutuality=calculate_mutuality_factor(signals.sent_count, signals.received_count),
        channels=calculate_channels_factor(signals.channels),
    )


def strength_from_signals(
    signals: InteractionSignals,
    weights: Optional[StrengthWeights] = None,
    now: Optional[datetime] = None,
) -> float:
    """
    Compute the edge weight for a relationship straight from its signals.

    This is what gets persisted when a relationship is written.
    """
    factors = calculate_strength_factors(signals, now=now)
    strength = calculate_strength(factors, weights)
    logger.debug(
        f"Strength {strength:.3f} (recency={factors.recency:.2f}, "
        f"frequency={factors.frequency:.2f}, mutuality={factors.mutuality:.2f}, "
        f"channels={factors.channels:.2f})"
    )
    return strength
