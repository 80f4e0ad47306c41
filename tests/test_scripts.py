"""
Tests for the command-line scripts' importable functions.
"""
import json
import pytest
from datetime import timedelta

from tests.fixtures.graph_data import NOW, abc_records
from warmpath.services.data_provider import InMemoryDataProvider, TenantScope
from warmpath.services.errors import DataProviderError
from warmpath.services.sqlite_provider import SqliteDataProvider

pytestmark = pytest.mark.slow


@pytest.fixture
def snapshot_file(tmp_path):
    """Snapshot with one weighted and one signal-scored relationship."""
    persons, relationships = abc_records()
    data = {
        "tenant_id": "acme",
        "persons": [p.to_dict() for p in persons],
        "relationships": [relationships[0].to_dict(), relationships[1].to_dict()] + [
            {
                "from_id": "A",
                "to_id": "C",
                "signals": {
                    "first_seen_at": (NOW - timedelta(days=30)).isoformat(),
                    "last_seen_at": NOW.isoformat(),
                    "interaction_count": 10,
                    "sent_count": 5,
                    "received_count": 5,
                    "channels": ["email", "sms", "phone"],
                },
            }
        ],
    }
    path = tmp_path / "snapshot.json"
    path.write_text(json.dumps(data))
    return path


class TestLoadSnapshot:
    """Tests for scripts/load_snapshot.py."""

    def test_dry_run_writes_nothing(self, snapshot_file, tmp_path):
        from scripts.load_snapshot import load_snapshot

        db_path = tmp_path / "dry.db"
        result = load_snapshot(snapshot_file, db_path=db_path, dry_run=True, now=NOW)

        assert result == {"tenant_id": "acme", "persons": 3, "relationships": 3, "scored": 1}
        assert not db_path.exists()

    def test_execute_loads_and_scores(self, snapshot_file, tmp_path):
        from scripts.load_snapshot import load_snapshot

        db_path = tmp_path / "warmpath.db"
        load_snapshot(snapshot_file, db_path=db_path, dry_run=False, now=NOW)

        with SqliteDataProvider(db_path) as provider:
            scope = TenantScope("acme")
            assert len(provider.list_persons(scope)) == 3
            scored = [r for r in provider.list_relationships(scope) if r.to_id == "C" and r.from_id == "A"]

        assert scored[0].weight == pytest.approx(1.0)
        assert sorted(scored[0].channels) == ["email", "phone", "sms"]
        assert scored[0].last_interaction_at == NOW

    def test_replace_clears_tenant(self, snapshot_file, tmp_path):
        from scripts.load_snapshot import load_snapshot

        db_path = tmp_path / "warmpath.db"
        load_snapshot(snapshot_file, db_path=db_path, dry_run=False, now=NOW)
        load_snapshot(snapshot_file, db_path=db_path, dry_run=False, replace=True, now=NOW)

        with SqliteDataProvider(db_path) as provider:
            assert len(provider.list_relationships(TenantScope("acme"))) == 3

    def test_tenant_override(self, snapshot_file, tmp_path):
        from scripts.load_snapshot import load_snapshot

        result = load_snapshot(snapshot_file, db_path=tmp_path / "x.db", tenant_id="beta")
        assert result["tenant_id"] == "beta"

    def test_rejects_non_snapshot(self, tmp_path):
        from scripts.load_snapshot import read_snapshot

        path = tmp_path / "bad.json"
        path.write_text("[]")
        with pytest.raises(ValueError):
            read_snapshot(path)

    def test_explicit_weight_wins_over_signals(self):
        from scripts.load_snapshot import relationship_from_snapshot

        record = relationship_from_snapshot(
            {"from_id": "A", "to_id": "B", "weight": 0.2, "signals": {"interaction_count": 50}},
            now=NOW,
        )
        assert record.weight == 0.2

    def test_signals_mark_interaction_source(self):
        from scripts.load_snapshot import relationship_from_snapshot

        scored = relationship_from_snapshot(
            {"from_id": "A", "to_id": "B", "signals": {"interaction_count": 3}}, now=NOW
        )
        plain = relationship_from_snapshot({"from_id": "A", "to_id": "B", "weight": 0.4}, now=NOW)

        assert scored.sources == ["interaction"]
        assert plain.sources == []


class TestFindPathsScript:
    """Tests for scripts/find_paths.py."""

    def test_find_paths(self, abc_provider):
        from scripts.find_paths import find_paths

        response = find_paths(abc_provider, "acme", "C")
        assert response.found
        assert response.paths[0].path_names == ["Alice", "Bob", "Carol"]

    def test_incremental_does_not_list_tenant(self, scope):
        """Names come from the people the search fetched, not a full tenant read."""
        from scripts.find_paths import find_paths

        persons, relationships = abc_records()

        class FrontierOnlyProvider(InMemoryDataProvider):
            def list_persons(self, scope):
                raise TimeoutError("full tenant read")

        provider = FrontierOnlyProvider.from_records(scope, persons, relationships)
        response = find_paths(provider, "acme", "C", source_id="A", incremental=True)

        assert response.paths[0].path_names == ["Alice", "Bob", "Carol"]

    def test_provider_failure_is_typed(self, scope):
        from scripts.find_paths import find_paths

        persons, relationships = abc_records()

        class FailingProvider(InMemoryDataProvider):
            def list_persons(self, scope):
                raise TimeoutError("read timed out")

        provider = FailingProvider.from_records(scope, persons, relationships)
        with pytest.raises(DataProviderError):
            find_paths(provider, "acme", "C")

    def test_graph_stats(self, abc_provider):
        from scripts.find_paths import graph_stats

        assert graph_stats(abc_provider, "acme").total_relationships == 3


class TestFindDuplicatesScript:
    """Tests for scripts/find_duplicates.py."""

    @pytest.fixture
    def provider(self, scope):
        from tests.fixtures.graph_data import person

        return InMemoryDataProvider.from_records(scope, [
            person("X", "Katherine", organization="Globex", emails=["k@globex.com"]),
            person("Y", "Kat", emails=["K@globex.com"]),
            person("Z", "Catherine", organization="Globe"),
        ])

    def test_rejects_filtered_by_default(self, provider):
        from scripts.find_duplicates import list_duplicates

        response = list_duplicates(provider, "acme", "X")
        assert [m.candidate_id for m in response.matches] == ["Y"]

    def test_include_rejected(self, provider):
        from scripts.find_duplicates import list_duplicates

        response = list_duplicates(provider, "acme", "X", include_rejected=True)
        assert [m.candidate_id for m in response.matches] == ["Y", "Z"]
        assert response.matches[1].recommendation == "reject"
