"""
Tests for entity resolution (duplicate person detection).
"""
import pytest

from tests.fixtures.graph_data import person
from warmpath.services.data_provider import InMemoryDataProvider
from warmpath.services.entity_resolver import (
    MatchMethod,
    Recommendation,
    find_duplicates,
    find_matches,
    generate_merge_explanation,
    match_by_email,
    match_by_name_and_organization,
    match_by_social_handle,
    string_similarity,
)

pytestmark = pytest.mark.unit


class TestStringSimilarity:
    """Tests for normalized Levenshtein similarity."""

    def test_identical(self):
        assert string_similarity("Alice", "Alice") == 1.0

    def test_case_and_whitespace_ignored(self):
        assert string_similarity("  ALICE smith ", "alice Smith") == 1.0

    def test_edit_distance(self):
        # kitten -> sitting is 3 edits over 7 characters
        assert string_similarity("kitten", "sitting") == pytest.approx(1 - 3 / 7)

    def test_empty(self):
        assert string_similarity("", "Alice") == 0.0
        assert string_similarity(None, "Alice") == 0.0
        assert string_similarity("", "") == 0.0


class TestEmailMatching:
    """Layer 1: shared email."""

    def test_shared_email(self):
        x = person("X", "Xavier", emails=["a@x.com"])
        y = person("Y", "Yolanda", emails=["a@x.com", "b@x.com"])

        matches = find_matches(x, [y])

        assert len(matches) == 1
        match = matches[0]
        assert match.candidate_id == "Y"
        assert match.match_score == 1.0
        assert match.match_method == MatchMethod.EMAIL
        assert match.recommendation == Recommendation.AUTO_MERGE
        assert len(match.evidence) == 1
        assert match.evidence[0].field == "email"
        assert match.evidence[0].target_value == "a@x.com"

    def test_case_insensitive(self):
        x = person("X", emails=["Alice@Example.com "])
        y = person("Y", emails=["alice@example.com"])
        match = match_by_email(x, y)
        assert match is not None
        assert match.evidence[0].candidate_value == "alice@example.com"

    def test_evidence_per_shared_email(self):
        x = person("X", emails=["a@x.com", "b@x.com", "c@x.com"])
        y = person("Y", emails=["b@x.com", "a@x.com"])
        match = match_by_email(x, y)
        assert [e.target_value for e in match.evidence] == ["a@x.com", "b@x.com"]

    def test_no_overlap(self):
        assert match_by_email(person("X", emails=["a@x.com"]), person("Y", emails=["b@x.com"])) is None


class TestPhoneMatching:
    """Layer 2: shared phone."""

    def test_formats_normalized(self):
        x = person("X", phones=["(415) 555-0134"])
        y = person("Y", phones=["+1 415 555 0134"])

        [match] = find_matches(x, [y])
        assert match.match_method == MatchMethod.PHONE
        assert match.match_score == 1.0
        assert match.recommendation == Recommendation.AUTO_MERGE

    def test_different_numbers(self):
        assert find_matches(person("X", phones=["4155550134"]), [person("Y", phones=["4155550199"])]) == []


class TestSocialHandleMatching:
    """Layer 3: same handle on the same platform."""

    def test_same_platform_and_handle(self):
        x = person("X", social_handles={"linkedin": "alice-smith"})
        y = person("Y", social_handles={"linkedin": "alice-smith", "github": "asmith"})

        match = match_by_social_handle(x, y)
        assert match.match_score == 0.95
        assert match.match_method == MatchMethod.SOCIAL_HANDLE
        assert match.recommendation == Recommendation.AUTO_MERGE
        assert match.evidence[0].field == "social_handle.linkedin"

    def test_different_platform(self):
        x = person("X", social_handles={"twitter": "asmith"})
        y = person("Y", social_handles={"github": "asmith"})
        assert match_by_social_handle(x, y) is None


class TestNameAndOrganizationMatching:
    """Layer 4: fuzzy name plus organization."""

    def test_similar_names_without_org_rejected(self):
        """Name-only matching needs a near-exact name."""
        x = person("X", "Alice Smith")
        y = person("Y", "Alice Smyth")
        assert find_matches(x, [y]) == []

    def test_exact_name_without_org_goes_to_review(self):
        [match] = find_matches(person("X", "Alice Smith"), [person("Y", "alice smith")])
        assert match.match_score == 1.0
        assert match.recommendation == Recommendation.REVIEW_QUEUE
        assert [e.field for e in match.evidence] == ["name"]

    def test_org_missing_on_one_side(self):
        x = person("X", "Alice Smith", organization="Acme")
        y = person("Y", "Alice Smith")
        [match] = find_matches(x, [y])
        assert match.recommendation == Recommendation.REVIEW_QUEUE

    def test_similar_names_same_org_auto_merge(self):
        x = person("X", "Alice Smith", organization="Acme")
        y = person("Y", "Alice Smyth", organization="acme")

        match = match_by_name_and_organization(x, y)
        assert match.match_score == pytest.approx((1 - 1 / 11 + 1.0) / 2)
        assert match.recommendation == Recommendation.AUTO_MERGE
        assert [e.field for e in match.evidence] == ["name", "organization"]

    def test_review_band(self):
        x = person("X", "Alice Smith", organization="Acme Corp")
        y = person("Y", "Alice Smyth", organization="Acme Corp.")
        match = match_by_name_and_organization(x, y)
        assert 0.88 <= match.match_score < 0.95
        assert match.recommendation == Recommendation.REVIEW_QUEUE

    def test_low_score_still_returned_as_reject(self):
        x = person("X", "Katherine", organization="Globex")
        y = person("Y", "Catherine", organization="Globe")
        [match] = find_matches(x, [y])
        assert match.recommendation == Recommendation.REJECT
        assert match.is_actionable is False

    def test_different_org(self):
        x = person("X", "Alice Smith", organization="Acme")
        y = person("Y", "Alice Smith", organization="Initech")
        assert match_by_name_and_organization(x, y) is None

    def test_best_name_variant_used(self):
        x = person("X", "Robert Jones", "Bob Jones")
        y = person("Y", "Bob Jones")
        match = match_by_name_and_organization(x, y)
        assert match.evidence[0].target_value == "Bob Jones"
        assert match.match_score == 1.0


class TestFindMatches:
    """Tests for find_matches ordering and filtering."""

    def test_self_excluded(self):
        p = person("P", "Alice Smith", emails=["a@x.com"])
        assert find_matches(p, [p]) == []

    def test_deleted_candidates_skipped(self):
        x = person("X", emails=["a@x.com"])
        y = person("Y", emails=["a@x.com"], deleted=True)
        assert find_matches(x, [y]) == []

    def test_one_match_per_candidate(self):
        x = person("X", "Alice Smith", emails=["a@x.com"])
        y = person("Y", "Alice Smith", emails=["a@x.com"])
        matches = find_matches(x, [y, y])
        assert len(matches) == 1

    def test_higher_layer_wins(self):
        """Email anchoring suppresses the weaker name match."""
        x = person("X", "Alice Smith", emails=["a@x.com"])
        y = person("Y", "Alice Smith", emails=["a@x.com"])
        [match] = find_matches(x, [y])
        assert match.match_method == MatchMethod.EMAIL

    def test_sorted_by_score(self):
        x = person("X", "Alice Smith", emails=["a@x.com"], social_handles={"github": "alice"})
        by_handle = person("H", "Someone Else", social_handles={"github": "alice"})
        by_name = person("N", "Alice Smith")
        by_email = person("E", "Other Person", emails=["A@x.com"])

        matches = find_matches(x, [by_handle, by_name, by_email])
        assert [m.candidate_id for m in matches] == ["N", "E", "H"]
        assert [m.match_score for m in matches] == [1.0, 1.0, 0.95]

    def test_no_candidates(self):
        assert find_matches(person("X"), []) == []


class TestMergeExplanation:
    """Tests for generate_merge_explanation."""

    def test_email(self):
        [match] = find_matches(person("X", emails=["a@x.com"]), [person("Y", emails=["a@x.com"])])
        assert generate_merge_explanation(match) == (
            "Exact email address match. Confidence: 100%. Evidence: email: 100%"
        )

    def test_name_and_org(self):
        x = person("X", "Alice Smith", organization="Acme")
        y = person("Y", "Alice Smyth", organization="Acme")
        text = generate_merge_explanation(match_by_name_and_organization(x, y))
        assert text.startswith("Name and organization similarity. Confidence: 95%")
        assert "name: 91%" in text
        assert "organization: 100%" in text


class TestFindDuplicates:
    """Tests for resolving a stored person against its tenant."""

    def test_finds_duplicates_in_tenant(self, scope):
        provider = InMemoryDataProvider.from_records(scope, [
            person("X", "Alice Smith", emails=["a@x.com"]),
            person("Y", "A. Smith", emails=["a@x.com"]),
            person("Z", "Zed"),
        ])
        matches = find_duplicates(provider, scope, "X")
        assert [m.candidate_id for m in matches] == ["Y"]

    def test_unknown_person(self, scope):
        provider = InMemoryDataProvider.from_records(scope, [person("X")])
        assert find_duplicates(provider, scope, "missing") == []
