"""
Tests for the end-to-end Pathfinder pipeline.
"""
import pytest

from config.settings import Settings
from tests.fixtures.graph_data import NOW, abc_records, dense_records, person, rel
from warmpath.services.data_provider import InMemoryDataProvider, TenantScope
from warmpath.services.errors import (
    DataProviderError,
    InvalidDataProviderError,
    PathfinderError,
)
from warmpath.services.graph_builder import build_graph
from warmpath.services.pathfinder import (
    Pathfinder,
    PathfinderOptions,
    find_me_id,
    find_paths_in_graph,
)

pytestmark = pytest.mark.unit


@pytest.fixture
def pathfinder(abc_provider):
    return Pathfinder(abc_provider, settings=Settings())


class TestFindWarmIntroPaths:
    """Tests for Pathfinder.find_warm_intro_paths."""

    def test_abc_two_hop_beats_direct(self, pathfinder, scope):
        result = pathfinder.find_warm_intro_paths(scope, "C", now=NOW)

        assert result.source_id == "A"
        assert result.found
        assert [p.path for p in result.paths] == [["A", "B", "C"], ["A", "C"]]
        assert [p.rank for p in result.paths] == [1, 2]
        assert result.paths[0].score == pytest.approx(0.648)
        assert result.paths[1].score == pytest.approx(0.6)

    def test_explanations_and_introducers(self, pathfinder, scope):
        result = pathfinder.find_warm_intro_paths(scope, "C", now=NOW)
        first, second = result.paths

        assert first.explanation == "Connect through Bob to reach Carol (moderate path)"
        assert first.introducer_id == "B"
        assert second.explanation == "Direct moderate connection to Carol"
        assert second.introducer_id is None

    def test_factors_attached(self, pathfinder, scope):
        result = pathfinder.find_warm_intro_paths(scope, "C", now=NOW)
        factors = result.paths[0].factors
        assert factors.introducer_strength == pytest.approx(0.9)
        assert factors.downstream_strength == pytest.approx(0.8)
        assert 0.0 < factors.recency_score <= 1.0

    def test_incremental_matches_materialized(self, pathfinder, scope):
        materialized = pathfinder.find_warm_intro_paths(scope, "C", now=NOW)
        incremental = pathfinder.find_warm_intro_paths(scope, "C", incremental=True, now=NOW)

        assert [p.path for p in incremental.paths] == [p.path for p in materialized.paths]
        assert [p.explanation for p in incremental.paths] == [
            p.explanation for p in materialized.paths
        ]

    def test_explicit_source(self, pathfinder, scope):
        result = pathfinder.find_warm_intro_paths(scope, "A", source_id="C", now=NOW)
        assert result.source_id == "C"
        assert result.paths[0].path == ["C", "B", "A"]

    def test_options_limit_results(self, pathfinder, scope):
        options = PathfinderOptions(max_hops=3, max_results=1, min_strength=0.0)
        result = pathfinder.find_warm_intro_paths(scope, "C", options=options, now=NOW)
        assert len(result.paths) == 1

    def test_min_strength_from_options(self, pathfinder, scope):
        options = PathfinderOptions(min_strength=0.85)
        assert pathfinder.find_warm_intro_paths(scope, "C", options=options).paths == []

    def test_unknown_target_is_empty(self, pathfinder, scope):
        for incremental in (False, True):
            result = pathfinder.find_warm_intro_paths(scope, "nobody", incremental=incremental)
            assert result.paths == []
            assert result.found is False

    def test_no_me_is_empty(self, scope):
        provider = InMemoryDataProvider.from_records(
            scope, [person("B"), person("C")], [rel("B", "C", 0.9)]
        )
        pathfinder = Pathfinder(provider, settings=Settings())

        for incremental in (False, True):
            result = pathfinder.find_warm_intro_paths(scope, "C", incremental=incremental)
            assert result.source_id is None
            assert result.paths == []

    def test_other_tenant_sees_nothing(self, pathfinder):
        result = pathfinder.find_warm_intro_paths(TenantScope("other"), "C")
        assert result.paths == []

    @pytest.mark.parametrize("incremental", [False, True])
    def test_inflated_weight_does_not_outrank_direct(self, scope, incremental):
        """A weight above 1 counts as 1, so 1.0 x 0.5 x 0.9 loses to a real 0.75."""
        provider = InMemoryDataProvider.from_records(
            scope,
            [person("A", is_me=True), person("B"), person("C")],
            [rel("A", "B", 1.7), rel("B", "C", 0.5), rel("A", "C", 0.75)],
        )
        result = Pathfinder(provider, settings=Settings()).find_warm_intro_paths(
            scope, "C", incremental=incremental, now=NOW
        )

        assert [p.path for p in result.paths] == [["A", "C"], ["A", "B", "C"]]
        assert result.paths[1].score == pytest.approx(0.45)

    @pytest.mark.parametrize("incremental", [False, True])
    def test_result_carries_node_names(self, pathfinder, scope, incremental):
        result = pathfinder.find_warm_intro_paths(scope, "C", incremental=incremental, now=NOW)
        assert result.node_names["A"] == "Alice"
        assert result.node_names["C"] == "Carol"

    def test_settings_budget_truncates(self, abc_provider, scope):
        """With a one-node budget only the direct path is found."""
        pathfinder = Pathfinder(abc_provider, settings=Settings(max_nodes_explored=1))
        result = pathfinder.find_warm_intro_paths(scope, "C", now=NOW)

        assert [p.path for p in result.paths] == [["A", "C"]]
        assert result.stats.truncated is True

    def test_default_options_from_settings(self, abc_provider):
        pathfinder = Pathfinder(abc_provider, settings=Settings(max_hops=2, max_results=3))
        options = pathfinder.default_options()
        assert options.max_hops == 2
        assert options.max_results == 3


class TestPathfinderErrors:
    """Typed failures are distinct from empty results."""

    def test_invalid_provider(self):
        class NotAProvider:
            def list_persons(self, scope):
                return []

        with pytest.raises(InvalidDataProviderError) as exc_info:
            Pathfinder(NotAProvider())

        assert exc_info.value.missing == ["list_relationships", "fetch_frontier"]
        assert isinstance(exc_info.value, PathfinderError)

    def test_provider_failure(self, scope):
        class FailingProvider(InMemoryDataProvider):
            def list_persons(self, scope):
                raise RuntimeError("connection reset")

        pathfinder = Pathfinder(FailingProvider(), settings=Settings())

        with pytest.raises(DataProviderError) as exc_info:
            pathfinder.find_warm_intro_paths(scope, "C")

        assert "connection reset" in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    def test_incremental_provider_failure(self, scope):
        class FailingProvider(InMemoryDataProvider):
            def fetch_frontier(self, scope, node_ids):
                raise RuntimeError("connection reset")

        pathfinder = Pathfinder(FailingProvider(), settings=Settings())

        with pytest.raises(DataProviderError):
            pathfinder.find_warm_intro_paths(scope, "C", source_id="A", incremental=True)


class TestPathfinderOptions:
    """Tests for option validation."""

    def test_defaults(self):
        options = PathfinderOptions()
        assert (options.max_hops, options.max_results, options.min_strength) == (3, 5, 0.3)

    @pytest.mark.parametrize("kwargs", [
        {"max_hops": 0},
        {"max_results": 0},
        {"min_strength": -0.1},
        {"min_strength": 1.1},
    ])
    def test_invalid(self, kwargs):
        with pytest.raises(ValueError):
            PathfinderOptions(**kwargs)


class TestFindPathsInGraph:
    """Tests for the graph-level pipeline."""

    def test_abc(self, abc_graph):
        result = find_paths_in_graph(abc_graph, "A", "C", now=NOW)
        assert [p.rank for p in result.paths] == [1, 2]
        assert result.stats.paths_found == 2

    def test_max_results_applied_after_ranking(self):
        graph = build_graph(*dense_records(6))
        result = find_paths_in_graph(
            graph, "p0", "p5", PathfinderOptions(max_hops=3, max_results=2, min_strength=0.0)
        )
        assert len(result.paths) == 2
        # The direct edge has no hop penalty so it ranks first
        assert result.paths[0].path == ["p0", "p5"]
        assert result.stats.paths_found > 2


class TestFindMeId:
    """Tests for locating the searching user."""

    def test_first_flagged(self):
        persons, _ = abc_records()
        assert find_me_id(persons) == "A"

    def test_deleted_me_ignored(self):
        assert find_me_id([person("A", is_me=True, deleted=True)]) is None

    def test_multiple_flagged_uses_first(self):
        assert find_me_id([person("A", is_me=True), person("B", is_me=True)]) == "A"
