"""
Entity Resolver for warmpath.

Detects duplicate person records across re-imported sources using a
layered check per candidate. Higher-confidence layers suppress the rest:

1. Email anchoring - any shared email address
2. Phone anchoring - any shared phone number (E.164)
3. Social handle - same handle on the same platform
4. Name + organization similarity - normalized Levenshtein on name variants
   and organization names

Matches are produced on demand and never cached. A `reject`
recommendation is still returned; callers decide whether to drop it.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional

from rapidfuzz.distance import Levenshtein

from config.scoring_weights import (
    AUTO_MERGE_THRESHOLD,
    EMAIL_MATCH_SCORE,
    MIN_NAME_SIMILARITY,
    MIN_ORGANIZATION_SIMILARITY,
    NAME_ONLY_MIN_SIMILARITY,
    PHONE_MATCH_SCORE,
    REVIEW_QUEUE_THRESHOLD,
    SOCIAL_HANDLE_MATCH_SCORE,
)
from warmpath.services.data_provider import DataProvider, TenantScope
from warmpath.services.errors import call_provider
from warmpath.services.graph_models import PersonRecord
from warmpath.services.phone_utils import phone_match_key

logger = logging.getLogger(__name__)


class MatchMethod(str, Enum):
    EMAIL = "email"
    PHONE = "phone"
    SOCIAL_HANDLE = "social_handle"
    NAME_AND_ORGANIZATION = "name_and_organization"


class Recommendation(str, Enum):
    AUTO_MERGE = "auto_merge"
    REVIEW_QUEUE = "review_queue"
    REJECT = "reject"  # Emitted for audit, not actionable


METHOD_DESCRIPTIONS = {
    MatchMethod.EMAIL: "Exact email address match",
    MatchMethod.PHONE: "Exact phone number match",
    MatchMethod.SOCIAL_HANDLE: "Social media profile match",
    MatchMethod.NAME_AND_ORGANIZATION: "Name and organization similarity",
}


@dataclass
class MatchEvidence:
    """One field-level comparison backing a match."""

    field: str
    target_value: str
    candidate_value: str
    similarity: float


@dataclass
class EntityResolutionMatch:
    """A candidate judged to be the same real-world person as the target."""

    target_id: str
    candidate_id: str
    match_score: float
    match_method: MatchMethod
    recommendation: Recommendation
    evidence: list[MatchEvidence] = field(default_factory=list)

    @property
    def is_actionable(self) -> bool:
        return self.recommendation != Recommendation.REJECT


def _normalize_text(value: Optional[str]) -> str:
    return (value or "").strip().lower()


def string_similarity(a: Optional[str], b: Optional[str]) -> float:
    """
    Normalized Levenshtein similarity: 1 - edit_distance / max_length.

    Comparison is case-insensitive and ignores surrounding whitespace.
    Equal strings score 1.0; an empty side scores 0.0.
    """
    a_norm = _normalize_text(a)
    b_norm = _normalize_text(b)

    if not a_norm or not b_norm:
        return 0.0
    if a_norm == b_norm:
        return 1.0

    return Levenshtein.normalized_similarity(a_norm, b_norm)


def _shared_values(
    target_values: Iterable[str],
    candidate_values: Iterable[str],
    key,
) -> list[tuple[str, str]]:
    """Pairs of (target original, candidate original) whose keys are equal, in target order."""
    candidate_by_key: dict[str, str] = {}
    for value in candidate_values:
        k = key(value)
        if k and k not in candidate_by_key:
            candidate_by_key[k] = value

    pairs = []
    seen = set()
    for value in target_values:
        k = key(value)
        if k and k in candidate_by_key and k not in seen:
            seen.add(k)
            pairs.append((value, candidate_by_key[k]))
    return pairs


def match_by_email(target: PersonRecord, candidate: PersonRecord) -> Optional[EntityResolutionMatch]:
    """
    Layer 1: any shared email address (trimmed, case-insensitive).

    Returns:
        auto_merge match with one evidence entry per shared email, or None
    """
    shared = _shared_values(target.attributes.emails, candidate.attributes.emails, _normalize_text)
    if not shared:
        return None

    return EntityResolutionMatch(
        target_id=target.id,
        candidate_id=candidate.id,
        match_score=EMAIL_MATCH_SCORE,
        match_method=MatchMethod.EMAIL,
        recommendation=Recommendation.AUTO_MERGE,
        evidence=[
            MatchEvidence(field="email", target_value=t, candidate_value=c, similarity=1.0)
            for t, c in shared
        ],
    )


def match_by_phone(target: PersonRecord, candidate: PersonRecord) -> Optional[EntityResolutionMatch]:
    """Layer 2: any shared phone number, compared in E.164 form."""
    shared = _shared_values(target.attributes.phones, candidate.attributes.phones, phone_match_key)
    if not shared:
        return None

    return EntityResolutionMatch(
        target_id=target.id,
        candidate_id=candidate.id,
        match_score=PHONE_MATCH_SCORE,
        match_method=MatchMethod.PHONE,
        recommendation=Recommendation.AUTO_MERGE,
        evidence=[
            MatchEvidence(field="phone", target_value=t, candidate_value=c, similarity=1.0)
            for t, c in shared
        ],
    )


def match_by_social_handle(
    target: PersonRecord, candidate: PersonRecord
) -> Optional[EntityResolutionMatch]:
    """Layer 3: same handle on the same platform."""
    target_handles = target.attributes.social_handles
    candidate_handles = candidate.attributes.social_handles
    if not target_handles or not candidate_handles:
        return None

    evidence = [
        MatchEvidence(
            field=f"social_handle.{platform}",
            target_value=handle,
            candidate_value=candidate_handles[platform],
            similarity=1.0,
        )
        for platform, handle in target_handles.items()
        if handle and candidate_handles.get(platform) == handle
    ]
    if not evidence:
        return None

    return EntityResolutionMatch(
        target_id=target.id,
        candidate_id=candidate.id,
        match_score=SOCIAL_HANDLE_MATCH_SCORE,
        match_method=MatchMethod.SOCIAL_HANDLE,
        recommendation=Recommendation.AUTO_MERGE,
        evidence=evidence,
    )


def _best_name_pair(target: PersonRecord, candidate: PersonRecord) -> tuple[float, str, str]:
    best = (0.0, "", "")
    for target_name in target.display_names:
        for candidate_name in candidate.display_names:
            similarity = string_similarity(target_name, candidate_name)
            if similarity > best[0]:
                best = (similarity, target_name, candidate_name)
    return best


def _recommend(score: float) -> Recommendation:
    if score >= AUTO_MERGE_THRESHOLD:
        return Recommendation.AUTO_MERGE
    if score >= REVIEW_QUEUE_THRESHOLD:
        return Recommendation.REVIEW_QUEUE
    return Recommendation.REJECT


def match_by_name_and_organization(
    target: PersonRecord, candidate: PersonRecord
) -> Optional[EntityResolutionMatch]:
    """
    Layer 4: name similarity, confirmed by organization when both have one.

    - Best name similarity across all variants must reach MIN_NAME_SIMILARITY.
    - Without organizations on both sides, only a near-exact name
      (NAME_ONLY_MIN_SIMILARITY) matches, and only for review.
    - With organizations, org similarity must reach MIN_ORGANIZATION_SIMILARITY;
      the score is the mean of the two.
    """
    name_similarity, target_name, candidate_name = _best_name_pair(target, candidate)
    if name_similarity < MIN_NAME_SIMILARITY:
        return None

    name_evidence = MatchEvidence(
        field="name",
        target_value=target_name,
        candidate_value=candidate_name,
        similarity=name_similarity,
    )

    target_org = (target.attributes.organization_name or "").strip()
    candidate_org = (candidate.attributes.organization_name or "").strip()

    if not target_org or not candidate_org:
        if name_similarity < NAME_ONLY_MIN_SIMILARITY:
            return None
        # Never auto-merge on name alone
        return EntityResolutionMatch(
            target_id=target.id,
            candidate_id=candidate.id,
            match_score=name_similarity,
            match_method=MatchMethod.NAME_AND_ORGANIZATION,
            recommendation=Recommendation.REVIEW_QUEUE,
            evidence=[name_evidence],
        )

    org_similarity = string_similarity(target_org, candidate_org)
    if org_similarity < MIN_ORGANIZATION_SIMILARITY:
        return None

    score = (name_similarity + org_similarity) / 2
    return EntityResolutionMatch(
        target_id=target.id,
        candidate_id=candidate.id,
        match_score=score,
        match_method=MatchMethod.NAME_AND_ORGANIZATION,
        recommendation=_recommend(score),
        evidence=[
            name_evidence,
            MatchEvidence(
                field="organization",
                target_value=target_org,
                candidate_value=candidate_org,
                similarity=org_similarity,
            ),
        ],
    )


# Checked in order; the first layer that matches wins
MATCH_LAYERS = (
    match_by_email,
    match_by_phone,
    match_by_social_handle,
    match_by_name_and_organization,
)


def find_matches(
    target: PersonRecord,
    candidates: Iterable[PersonRecord],
) -> list[EntityResolutionMatch]:
    """
    Find every candidate that looks like the same person as target.

    Skips the target itself and soft-deleted candidates. At most one match
    per candidate id.

    Args:
        target: Person to find duplicates of
        candidates: People to compare against

    Returns:
        Matches sorted by descending score (stable for equal scores)
    """
    matches: list[EntityResolutionMatch] = []
    seen_ids = {target.id}

    for candidate in candidates:
        if candidate.id in seen_ids:
            continue
        if candidate.attributes.is_deleted:
            continue
        seen_ids.add(candidate.id)

        for layer in MATCH_LAYERS:
            match = layer(target, candidate)
            if match:
                logger.debug(
                    f"{target.id} ~ {candidate.id}: {match.match_method.value} "
                    f"score={match.match_score:.2f} -> {match.recommendation.value}"
                )
                matches.append(match)
                break

    return sorted(matches, key=lambda m: m.match_score, reverse=True)


def generate_merge_explanation(match: EntityResolutionMatch) -> str:
    """
    Audit-trail text for a match.

    Example:
        "Exact email address match. Confidence: 100%. Evidence: email: 100%"
    """
    evidence = ", ".join(f"{e.field}: {e.similarity * 100:.0f}%" for e in match.evidence)
    return (
        f"{METHOD_DESCRIPTIONS[match.match_method]}. "
        f"Confidence: {match.match_score * 100:.0f}%. Evidence: {evidence}"
    )


def find_duplicates(
    provider: DataProvider,
    scope: TenantScope,
    person_id: str,
) -> list[EntityResolutionMatch]:
    """
    Resolve one stored person against the rest of the tenant's people.

    Returns:
        Matches for person_id, or [] if the person is not in the tenant

    Raises:
        DataProviderError: if the provider fails
    """
    persons = call_provider("list_persons", provider.list_persons, scope)
    target = next((p for p in persons if p.id == person_id), None)
    if target is None:
        logger.warning(f"Person {person_id} not found for duplicate check")
        return []

    matches = find_matches(target, persons)
    logger.info(f"Found {len(matches)} potential duplicates for {person_id}")
    return matches
