"""
Recommendation Orchestrator Tests

Validation, strategy resolution by context, fan-out with per-strategy
timeouts, cold-start fallback, persistence, interactions, and the read
operations (similar, trending, batch set, history, performance).

Run:
----
    pytest tests/test_orchestrator.py -v
"""

import asyncio
import random
import time

import pytest

from recommender import (
    GameCandidate,
    InMemoryRecommendationStore,
    InvalidArgument,
    NotFound,
    RecommendationConfig,
    RecommendationOrchestrator,
    RecommendationSource,
    ResultStatus,
    StrategyKind,
    UpstreamUnavailable,
)
from recommender.strategies import CollaborativeFilteringStrategy
from recommender.utils.scores import confidence_key
from tests.conftest import run


class SlowStrategy:
    def __init__(self, kind, delay=2.0):
        self.kind = kind
        self.delay = delay

    async def execute(self, request):
        await asyncio.sleep(self.delay)
        return [GameCandidate(game_id="slot-star", score=1.0, strategy=self.kind)]


class BlockingCollaborative(CollaborativeFilteringStrategy):
    """Real collaborative strategy whose scoring step blocks without awaiting."""

    def rank(self, request, plays, games):
        time.sleep(1.0)
        return super().rank(request, plays, games)


class FailingStrategy:
    def __init__(self, kind):
        self.kind = kind

    async def execute(self, request):
        raise RuntimeError("scoring backend exploded")


class BrokenStore(InMemoryRecommendationStore):
    def save_many(self, recommendations):
        raise IOError("database unavailable")


def assert_well_formed(result, count, config):
    recs = result.recommendations
    assert len(recs) <= count
    assert [r.position for r in recs] == list(range(1, len(recs) + 1))
    scores = [r.score for r in recs]
    assert scores == sorted(scores, reverse=True)
    ceiling = config.confidence_ceilings[confidence_key(result.algorithm)]
    assert all(0.0 <= r.confidence <= ceiling for r in recs)
    assert len({r.game_id for r in recs}) == len(recs)
    assert len({r.generation_id for r in recs}) <= 1


class TestGetRecommendations:
    @pytest.mark.parametrize("algorithm", ["collaborative", "content-based", "bandit", "hybrid", "default", None])
    @pytest.mark.parametrize("count", [1, 3, 10, 50])
    def test_result_shape(self, orchestrator, config, algorithm, count):
        result = run(orchestrator.get_recommendations("p-rpg", algorithm=algorithm, count=count))
        assert_well_formed(result, count, config)
        assert result.audited

    def test_end_to_end_hybrid(self, orchestrator):
        result = run(orchestrator.get_recommendations("p-rpg", algorithm="hybrid", count=5))
        recs = result.recommendations
        assert len(recs) == 5
        assert [r.position for r in recs] == [1, 2, 3, 4, 5]
        assert any(r.category == "for-you" for r in recs)
        assert not {"rpg-dragon", "rpg-knight", "rpg-elf"} & {r.game_id for r in recs}
        assert result.status is ResultStatus.OK
        assert all(r.algorithm == "hybrid" for r in recs)

    @pytest.mark.parametrize("count", [0, 51, -1])
    def test_count_out_of_range(self, orchestrator, count):
        with pytest.raises(InvalidArgument):
            run(orchestrator.get_recommendations("p-rpg", count=count))

    def test_unknown_algorithm(self, orchestrator):
        with pytest.raises(InvalidArgument):
            run(orchestrator.get_recommendations("p-rpg", algorithm="deep-magic"))

    def test_unknown_player(self, orchestrator):
        with pytest.raises(NotFound):
            run(orchestrator.get_recommendations("nobody"))

    def test_default_count(self, orchestrator):
        result = run(orchestrator.get_recommendations("p-rpg", algorithm="bandit"))
        assert len(result.recommendations) == 10

    def test_cold_start_default_falls_back_to_trending(self, orchestrator):
        result = run(orchestrator.get_recommendations("p-cold"))
        assert result.status is ResultStatus.FALLBACK
        assert result.algorithm == "trending"
        assert result.recommendations
        assert all(r.category in ("trending", "popular") for r in result.recommendations)

    def test_cold_start_explicit_algorithm_is_no_data(self, orchestrator):
        result = run(orchestrator.get_recommendations("p-cold", algorithm="collaborative"))
        assert result.status is ResultStatus.NO_DATA
        assert result.recommendations == []

    def test_cold_start_hybrid_still_recommends(self, orchestrator):
        result = run(orchestrator.get_recommendations("p-cold", algorithm="hybrid", count=5))
        assert len(result.recommendations) == 5

    @pytest.mark.parametrize("context,expected", [
        ("lobby", "hybrid"),
        ("game_end", "content-based"),
        ("promotion", "trending"),
        ("search", "collaborative"),
        (None, "collaborative"),
    ])
    def test_context_aware_default(self, orchestrator, context, expected):
        assert orchestrator.resolve_algorithm(None, context) == (expected, True)
        assert orchestrator.resolve_algorithm("default", context) == (expected, True)

    def test_context_is_recorded(self, orchestrator):
        result = run(orchestrator.get_recommendations("p-rpg", context="lobby", count=3))
        assert result.algorithm == "hybrid"
        assert all(r.context == "lobby" for r in result.recommendations)

    def test_include_metadata(self, orchestrator):
        result = run(orchestrator.get_recommendations(
            "p-rpg", algorithm="content-based", count=3, include_metadata=True
        ))
        assert set(result.game_metadata) == {r.game_id for r in result.recommendations}
        meta = result.game_metadata[result.recommendations[0].game_id]
        assert {"name", "provider", "gameType", "rtp", "isMobile"} <= set(meta)

    def test_impressions_persisted(self, orchestrator):
        result = run(orchestrator.get_recommendations("p-rpg", algorithm="hybrid", count=4))
        for r in result.recommendations:
            stored = orchestrator.recommendations.get(r.id)
            assert stored is not None
            assert stored.source is RecommendationSource.REALTIME

    def test_persistence_failure_returns_unaudited(self, catalog):
        orchestrator = RecommendationOrchestrator(catalog, recommendations=BrokenStore(), rng=random.Random(1))
        result = run(orchestrator.get_recommendations("p-rpg", algorithm="hybrid", count=3))
        assert not result.audited
        assert len(result.recommendations) == 3


class TestStrategyTimeouts:
    def _orchestrator(self, catalog, overrides):
        config = RecommendationConfig(strategy_timeout_seconds=0.25)
        return RecommendationOrchestrator(
            catalog, config=config, rng=random.Random(1), strategy_overrides=overrides
        )

    def test_slow_strategy_excluded_from_fusion(self, catalog):
        orchestrator = self._orchestrator(
            catalog, {StrategyKind.COLLABORATIVE: SlowStrategy(StrategyKind.COLLABORATIVE)}
        )
        result = run(orchestrator.get_recommendations("p-rpg", algorithm="hybrid", count=5))
        assert result.excluded_strategies == ["collaborative"]
        assert len(result.recommendations) == 5

    def test_blocking_scoring_is_excluded(self, catalog):
        config = RecommendationConfig(strategy_timeout_seconds=0.25)
        orchestrator = self._orchestrator(
            catalog,
            {StrategyKind.COLLABORATIVE: BlockingCollaborative(catalog, config)},
        )
        result = run(orchestrator.get_recommendations("p-rpg", algorithm="hybrid", count=5))
        assert result.excluded_strategies == ["collaborative"]
        assert result.processing_time_ms < 900
        assert len(result.recommendations) == 5

    def test_failing_strategy_excluded(self, catalog):
        orchestrator = self._orchestrator(
            catalog, {StrategyKind.BANDIT: FailingStrategy(StrategyKind.BANDIT)}
        )
        result = run(orchestrator.get_recommendations("p-rpg", algorithm="hybrid", count=5))
        assert result.excluded_strategies == ["bandit"]
        assert result.recommendations

    def test_all_strategies_timing_out(self, catalog):
        orchestrator = self._orchestrator(catalog, {kind: SlowStrategy(kind) for kind in StrategyKind})
        with pytest.raises(UpstreamUnavailable):
            run(orchestrator.get_recommendations("p-rpg", algorithm="hybrid"))

    def test_single_strategy_timeout(self, catalog):
        orchestrator = self._orchestrator(
            catalog, {StrategyKind.CONTENT_BASED: SlowStrategy(StrategyKind.CONTENT_BASED)}
        )
        with pytest.raises(UpstreamUnavailable):
            run(orchestrator.get_recommendations("p-rpg", algorithm="content-based"))

    def test_default_path_falls_back_when_primary_times_out(self, catalog):
        orchestrator = self._orchestrator(
            catalog, {StrategyKind.COLLABORATIVE: SlowStrategy(StrategyKind.COLLABORATIVE)}
        )
        result = run(orchestrator.get_recommendations("p-rpg"))
        assert result.status is ResultStatus.FALLBACK
        assert result.excluded_strategies == ["collaborative"]


class TestInteractions:
    def test_record_twice_equals_once(self, orchestrator):
        result = run(orchestrator.get_recommendations("p-rpg", algorithm="bandit", count=2, context="lobby"))
        rec = result.recommendations[0]
        orchestrator.record_interaction(rec.id, "play")
        orchestrator.record_interaction(rec.id, "play")
        stored = orchestrator.recommendations.get(rec.id)
        assert stored.is_played and stored.is_clicked
        arm = orchestrator.arms.get("lobby", rec.game_id)
        assert arm.pulls == 1
        assert arm.cumulative_reward == pytest.approx(1.0)

    def test_rewards_by_type(self, orchestrator):
        result = run(orchestrator.get_recommendations("p-rpg", algorithm="bandit", count=2))
        first, second = result.recommendations
        orchestrator.record_interaction(first.id, "click")
        orchestrator.record_interaction(second.id, "dismiss")
        assert orchestrator.arms.get("default", first.game_id).cumulative_reward == pytest.approx(0.3)
        assert orchestrator.arms.get("default", second.game_id).cumulative_reward == pytest.approx(-0.2)

    def test_invalid_interaction(self, orchestrator):
        result = run(orchestrator.get_recommendations("p-rpg", count=1))
        with pytest.raises(InvalidArgument):
            orchestrator.record_interaction(result.recommendations[0].id, "share")
        with pytest.raises(NotFound):
            orchestrator.record_interaction("does-not-exist", "click")


class TestReadOperations:
    def test_similar_games(self, orchestrator):
        similar = run(orchestrator.get_similar_games("rpg-dragon", count=3))
        assert len(similar) == 3
        assert all(s.game_id != "rpg-dragon" for s in similar)
        assert similar[0].game_id.startswith("rpg-")
        scores = [s.similarity_score for s in similar]
        assert scores == sorted(scores, reverse=True)

    def test_similar_games_unknown(self, orchestrator):
        with pytest.raises(NotFound):
            run(orchestrator.get_similar_games("nope"))
        with pytest.raises(NotFound):
            run(orchestrator.get_similar_games("rpg-dragon", player_id="nobody"))

    def test_trending(self, orchestrator):
        trending = run(orchestrator.get_trending_games("7d", count=5))
        assert 0 < len(trending) <= 5
        scores = [t.trend_score for t in trending]
        assert scores == sorted(scores, reverse=True)

    def test_trending_invalid_timeframe(self, orchestrator):
        with pytest.raises(InvalidArgument):
            run(orchestrator.get_trending_games("2w"))

    def test_batch_set_is_latest_batch_generation(self, orchestrator):
        run(orchestrator.get_recommendations("p-rpg", algorithm="hybrid", count=3, source=RecommendationSource.BATCH))
        second = run(orchestrator.get_recommendations(
            "p-rpg", algorithm="hybrid", count=4, source=RecommendationSource.BATCH
        ))
        run(orchestrator.get_recommendations("p-rpg", algorithm="bandit", count=2))
        batch = run(orchestrator.get_batch_recommendations("p-rpg"))
        assert [r.id for r in batch] == [r.id for r in second.recommendations]
        assert all(r.source is RecommendationSource.BATCH for r in batch)

    def test_list_recommendations_paginates(self, orchestrator):
        run(orchestrator.get_recommendations("p-rpg", algorithm="bandit", count=5))
        run(orchestrator.get_recommendations("p-slots", algorithm="bandit", count=5))
        page = orchestrator.list_recommendations(player_id="p-rpg", page=2, page_size=2)
        assert page.total == 5
        assert page.total_pages == 3
        assert len(page.items) == 2
        assert all(r.player_id == "p-rpg" for r in page.items)
        with pytest.raises(InvalidArgument):
            orchestrator.list_recommendations(page=0)

    def test_performance_metrics(self, orchestrator):
        result = run(orchestrator.get_recommendations("p-rpg", algorithm="bandit", count=4))
        orchestrator.record_interaction(result.recommendations[0].id, "play")
        metrics = orchestrator.get_performance_metrics(algorithm="bandit")
        assert metrics["summary"]["totalRecommendations"] == 4
        assert metrics["summary"]["conversionRate"] == pytest.approx(25.0)
