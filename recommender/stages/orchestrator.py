"""
Recommendation orchestrator: the public entry point of the engine.

get_recommendations runs:
  1. Validate count / algorithm; resolve "default" by request context
  2. Load the player profile from the catalog (unknown player -> NotFound)
  3. Fan out to the selected strategies concurrently, each bounded by
     strategy_timeout_seconds; timed-out or failing strategies are excluded
  4. Fuse (hybrid) or take the single list; default path falls back to trending
  5. Truncate, assign positions, attach confidence, persist impressions

Interactions go through the ledger; the first occurrence of each
interaction type feeds the bandit arm of the recommendation's context.
"""

import asyncio
import logging
import math
import random
import time
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, Field

from .. import strategies
from ..catalog import GameCatalog, load_profile
from ..errors import InvalidArgument, NotFound, PersistenceFailure, StrategyTimeout, UpstreamUnavailable
from ..ledger import InteractionLedger, parse_interaction_type
from ..models.config import RecommendationConfig, resolve_config
from ..models.game import PlayerProfile
from ..models.recommendation import (
    Algorithm,
    GameCandidate,
    GameRecommendation,
    RecommendationResult,
    RecommendationSource,
    ResultStatus,
    SimilarGame,
    StrategyKind,
    TrendingGame,
    utc_now,
)
from ..stores import (
    BanditArmStore,
    InMemoryBanditArmStore,
    InMemoryRecommendationStore,
    RecommendationStore,
    latest_generation,
)
from ..strategies import StrategyRegistry, StrategyRequest, build_strategies, trending_games
from ..utils.scores import calculate_confidence, parse_timeframe
from .fusion import fuse

logger = logging.getLogger(__name__)

HYBRID_PLAN = (
    StrategyKind.COLLABORATIVE,
    StrategyKind.CONTENT_BASED,
    StrategyKind.TRENDING,
    StrategyKind.BANDIT,
)

# Resolved algorithm tag -> strategies it runs
STRATEGY_PLANS: Dict[str, Tuple[StrategyKind, ...]] = {
    "collaborative": (StrategyKind.COLLABORATIVE,),
    "content-based": (StrategyKind.CONTENT_BASED,),
    "trending": (StrategyKind.TRENDING,),
    "bandit": (StrategyKind.BANDIT,),
    "hybrid": HYBRID_PLAN,
}

# (game_id, score, category, reason, features)
RankedItem = Tuple[str, float, str, str, Dict]


class RecommendationPage(BaseModel):
    """One page of stored recommendations, newest first."""

    items: List[GameRecommendation] = Field(default_factory=list)
    total: int = 0
    page: int = 1
    page_size: int = 20

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.page_size) if self.page_size else 0


class RecommendationOrchestrator:
    """Selects strategies, fuses their output, and records impressions."""

    def __init__(
        self,
        catalog: GameCatalog,
        recommendations: Optional[RecommendationStore] = None,
        arms: Optional[BanditArmStore] = None,
        config: Optional[RecommendationConfig] = None,
        rng: Optional[random.Random] = None,
        strategy_overrides: Optional[StrategyRegistry] = None,
    ):
        self.catalog = catalog
        self.config = resolve_config(config)
        self.recommendations = recommendations if recommendations is not None else InMemoryRecommendationStore()
        self.arms = arms if arms is not None else InMemoryBanditArmStore()
        self.ledger = InteractionLedger(self.recommendations)

        registry = build_strategies(catalog, self.arms, self.config, rng=rng)
        # Similar/trending/reward operations always use the built-in implementations
        self.bandit = registry[StrategyKind.BANDIT]
        self.content = registry[StrategyKind.CONTENT_BASED]
        registry.update(strategy_overrides or {})
        self.strategies = registry

    # -------------------------------------------------------------------------
    # Validation / resolution
    # -------------------------------------------------------------------------

    def _validate_count(self, count: Optional[int]) -> int:
        if count is None:
            return self.config.default_count
        if isinstance(count, bool) or not isinstance(count, int):
            raise InvalidArgument(f"count must be an integer, got {count!r}")
        if not self.config.min_count <= count <= self.config.max_count:
            raise InvalidArgument(
                f"count must be between {self.config.min_count} and "
                f"{self.config.max_count}, got {count}"
            )
        return count

    def resolve_algorithm(
        self,
        algorithm: Optional[str],
        context: Optional[str] = None,
    ) -> Tuple[str, bool]:
        """
        Map a requested algorithm to the tag that will run.

        Returns (tag, is_default). None and "default" resolve by context.
        """
        if isinstance(algorithm, Algorithm):
            algorithm = algorithm.value
        allowed = {a.value for a in Algorithm}
        if algorithm is not None and algorithm not in allowed:
            raise InvalidArgument(
                f"algorithm must be one of {', '.join(sorted(allowed))}, got {algorithm!r}"
            )
        if algorithm is None or algorithm == Algorithm.DEFAULT.value:
            tag = self.config.default_strategy_by_context.get(
                context or "", self.config.default_strategy
            )
            if tag not in STRATEGY_PLANS:
                logger.warning(
                    "[orchestrator] UNKNOWN_CONTEXT_STRATEGY context=%s strategy=%s",
                    context, tag,
                )
                tag = self.config.default_strategy
            return tag, True
        return algorithm, False

    async def _require_profile(self, player_id: str) -> PlayerProfile:
        player = await self.catalog.get_player(player_id)
        if player is None:
            raise NotFound("player", player_id)
        return await load_profile(self.catalog, player)

    # -------------------------------------------------------------------------
    # Strategy fan-out
    # -------------------------------------------------------------------------

    async def _run_strategy(
        self, kind: StrategyKind, request: StrategyRequest
    ) -> List[GameCandidate]:
        timeout = self.config.strategy_timeout_seconds
        try:
            return await asyncio.wait_for(
                strategies.execute(self.strategies, kind, request), timeout=timeout
            )
        except asyncio.TimeoutError:
            raise StrategyTimeout(kind.value, timeout)

    async def _run_plan(
        self,
        kinds: Tuple[StrategyKind, ...],
        request: StrategyRequest,
        algorithm: str,
    ) -> Tuple[Dict[StrategyKind, List[GameCandidate]], List[str]]:
        """Run strategies concurrently. Returns (results, excluded strategy tags)."""
        outcomes = await asyncio.gather(
            *(self._run_strategy(kind, request) for kind in kinds),
            return_exceptions=True,
        )
        results: Dict[StrategyKind, List[GameCandidate]] = {}
        excluded: List[str] = []
        player_id = request.profile.player_id
        for kind, outcome in zip(kinds, outcomes):
            if isinstance(outcome, StrategyTimeout):
                logger.warning(
                    "[orchestrator] STRATEGY_TIMEOUT player_id=%s algorithm=%s strategy=%s timeout=%ss",
                    player_id, algorithm, kind.value, outcome.timeout_seconds,
                )
                excluded.append(kind.value)
            elif isinstance(outcome, Exception):
                logger.error(
                    "[orchestrator] STRATEGY_FAILED player_id=%s algorithm=%s strategy=%s error=%s",
                    player_id, algorithm, kind.value, outcome,
                    exc_info=outcome,
                )
                excluded.append(kind.value)
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                results[kind] = outcome
        return results, excluded

    def _rank(
        self,
        kinds: Tuple[StrategyKind, ...],
        results: Dict[StrategyKind, List[GameCandidate]],
    ) -> List[RankedItem]:
        if len(kinds) > 1:
            return [
                (f.game_id, f.score, f.category, f.reason, {"contributions": f.contributions})
                for f in fuse(results, self.config)
            ]
        candidates = results.get(kinds[0], [])
        ranked = sorted(candidates, key=lambda c: -c.score)
        return [(c.game_id, c.score, c.category, c.reason, dict(c.features)) for c in ranked]

    # -------------------------------------------------------------------------
    # Public operations
    # -------------------------------------------------------------------------

    async def get_recommendations(
        self,
        player_id: str,
        algorithm: Optional[str] = None,
        count: Optional[int] = None,
        context: Optional[str] = None,
        source: RecommendationSource = RecommendationSource.REALTIME,
        include_metadata: bool = False,
    ) -> RecommendationResult:
        """
        Produce, persist and return a ranked recommendation list for one player.

        Raises InvalidArgument, NotFound, or UpstreamUnavailable (every strategy
        timed out or failed). A persistence failure is reported via audited=False.
        """
        started = time.perf_counter()
        count = self._validate_count(count)
        tag, is_default = self.resolve_algorithm(algorithm, context)
        profile = await self._require_profile(player_id)

        request = StrategyRequest.for_profile(
            profile,
            count * self.config.candidate_multiplier,
            self.config,
            context=context,
            now=utc_now(),
        )
        kinds = STRATEGY_PLANS[tag]
        results, excluded = await self._run_plan(kinds, request, tag)
        all_failed = not results
        ranked = [] if all_failed else self._rank(kinds, results)

        status = ResultStatus.OK
        fallback_tag = self.config.fallback_strategy
        if not ranked and is_default and tag != fallback_tag:
            logger.info(
                "[orchestrator] FALLBACK player_id=%s algorithm=%s context=%s fallback=%s",
                player_id, tag, context, fallback_tag,
            )
            fallback_kinds = STRATEGY_PLANS[fallback_tag]
            fb_results, fb_excluded = await self._run_plan(fallback_kinds, request, fallback_tag)
            excluded.extend(fb_excluded)
            all_failed = all_failed and not fb_results
            if fb_results:
                ranked = self._rank(fallback_kinds, fb_results)
                tag = fallback_tag
                status = ResultStatus.FALLBACK

        if all_failed:
            raise UpstreamUnavailable(
                f"All strategies failed for player {player_id} "
                f"(algorithm={tag}, excluded={', '.join(excluded)})"
            )
        if not ranked:
            status = ResultStatus.NO_DATA
            logger.info(
                "[orchestrator] NO_DATA player_id=%s algorithm=%s", player_id, tag
            )

        generation_id = uuid.uuid4().hex
        created_at = utc_now()
        recs = []
        for position, (game_id, score, category, reason, features) in enumerate(
            ranked[:count], start=1
        ):
            score = round(score, 6)
            recs.append(
                GameRecommendation(
                    player_id=player_id,
                    game_id=game_id,
                    algorithm=tag,
                    score=score,
                    confidence=calculate_confidence(score, tag, self.config),
                    position=position,
                    reason=reason,
                    category=category,
                    context=context,
                    source=RecommendationSource(source),
                    generation_id=generation_id,
                    features=features or None,
                    created_at=created_at,
                )
            )

        audited = True
        try:
            self.ledger.append_impressions(recs)
        except PersistenceFailure as e:
            audited = False
            logger.error(
                "[orchestrator] PERSISTENCE_FAILED player_id=%s algorithm=%s count=%s error=%s",
                player_id, tag, len(recs), e,
            )

        metadata = {}
        if include_metadata:
            for rec in recs:
                game = await self.catalog.get_game(rec.game_id)
                if game is not None:
                    metadata[rec.game_id] = game.metadata()

        return RecommendationResult(
            player_id=player_id,
            algorithm=tag,
            context=context,
            status=status,
            audited=audited,
            processing_time_ms=round((time.perf_counter() - started) * 1000, 2),
            excluded_strategies=excluded,
            recommendations=recs,
            game_metadata=metadata,
        )

    def record_interaction(self, recommendation_id: str, interaction_type) -> GameRecommendation:
        """
        Record click / play / dismiss on a recommendation.

        Idempotent: repeating an interaction changes nothing and does not
        reward the bandit again. Raises InvalidArgument or NotFound.
        """
        kind = parse_interaction_type(interaction_type)
        rec, changed = self.ledger.record(recommendation_id, kind)
        if changed:
            reward = self.config.bandit_rewards.get(kind.value, 0.0)
            self.bandit.update_reward(rec.game_id, rec.context, reward)
            logger.info(
                "[orchestrator] INTERACTION recommendation_id=%s player_id=%s game_id=%s type=%s",
                recommendation_id, rec.player_id, rec.game_id, kind.value,
            )
        return rec

    async def get_similar_games(
        self,
        game_id: str,
        count: Optional[int] = None,
        player_id: Optional[str] = None,
    ) -> List[SimilarGame]:
        """Games most similar to game_id by content features."""
        count = self._validate_count(count)
        game = await self.catalog.get_game(game_id)
        if game is None:
            raise NotFound("game", game_id)
        profile = await self._require_profile(player_id) if player_id else None
        return await self.content.similar_games(game, count, profile)

    async def get_trending_games(
        self,
        timeframe: Optional[str] = None,
        count: Optional[int] = None,
        player_id: Optional[str] = None,
    ) -> List[TrendingGame]:
        """Games with the highest play growth over the timeframe."""
        timeframe = timeframe or self.config.default_timeframe
        parse_timeframe(timeframe)
        count = self._validate_count(count)
        profile = await self._require_profile(player_id) if player_id else None
        ranked = await trending_games(self.catalog, timeframe, now=utc_now(), profile=profile)
        return ranked[:count]

    async def get_batch_recommendations(self, player_id: str) -> List[GameRecommendation]:
        """Latest batch-generated set for a player, by position."""
        await self._require_profile(player_id)
        return latest_generation(self.recommendations, player_id, RecommendationSource.BATCH)

    def list_recommendations(
        self,
        player_id: Optional[str] = None,
        algorithm: Optional[str] = None,
        page: int = 1,
        page_size: int = 20,
    ) -> RecommendationPage:
        """Paginated recommendation history, newest first."""
        if page < 1:
            raise InvalidArgument(f"page must be >= 1, got {page}")
        if not 1 <= page_size <= 100:
            raise InvalidArgument(f"page_size must be between 1 and 100, got {page_size}")
        records = self.recommendations.list(player_id=player_id, algorithm=algorithm)
        start = (page - 1) * page_size
        return RecommendationPage(
            items=records[start:start + page_size],
            total=len(records),
            page=page,
            page_size=page_size,
        )

    def get_performance_metrics(
        self,
        algorithm: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        player_id: Optional[str] = None,
    ) -> Dict:
        """CTR, conversion and average score per algorithm from stored records."""
        start, end = _aware(start), _aware(end)
        if start is not None and end is not None and start > end:
            raise InvalidArgument("start must not be after end")
        return self.ledger.performance_metrics(
            algorithm=algorithm, start=start, end=end, player_id=player_id
        )


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)
