"""
Content-Based Filtering: game feature vectors and cosine similarity.

Each game is encoded as a weighted one-hot vector over provider, game type,
volatility, theme and RTP band, plus mobile/desktop bits. The vocabulary is
built from the active catalog so every vector has the same layout.

All components are non-negative, so cosine similarity is symmetric and in [0, 1].
"""

import asyncio
import logging
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from ..catalog import GameCatalog
from ..models.config import DEFAULT_CONFIG, RecommendationConfig
from ..models.game import Game, PlayerProfile
from ..models.recommendation import GameCandidate, SimilarGame, StrategyKind
from ..utils.similarity import clamp_unit, cosine_similarity, cosine_similarity_matrix
from .base import StrategyRequest

logger = logging.getLogger(__name__)

FEATURE_GROUPS = ("provider", "game_type", "volatility", "theme", "rtp_band")


def _feature_value(game: Game, group: str) -> Optional[str]:
    value = getattr(game, group, None)
    return str(value) if value is not None else None


class GameFeatureSpace:
    """Column layout for game vectors, built from a set of games."""

    def __init__(self, games: Sequence[Game], weights: Dict[str, float]):
        self.weights = weights
        self.columns: Dict[Tuple[str, str], int] = {}
        for group in FEATURE_GROUPS:
            values = sorted({v for v in (_feature_value(g, group) for g in games) if v})
            for value in values:
                self.columns[(group, value)] = len(self.columns)
        self.columns[("platform", "mobile")] = len(self.columns)
        self.columns[("platform", "desktop")] = len(self.columns)

    @property
    def size(self) -> int:
        return len(self.columns)

    def vector(self, game: Game) -> np.ndarray:
        vec = np.zeros(self.size)
        for group in FEATURE_GROUPS:
            value = _feature_value(game, group)
            col = self.columns.get((group, value)) if value else None
            if col is not None:
                vec[col] = self.weights.get(group, 1.0)
        platform_weight = self.weights.get("platform", 0.5)
        if game.is_mobile:
            vec[self.columns[("platform", "mobile")]] = platform_weight
        if game.is_desktop:
            vec[self.columns[("platform", "desktop")]] = platform_weight
        return vec


def game_similarity(
    a: Game,
    b: Game,
    config: RecommendationConfig = DEFAULT_CONFIG,
) -> float:
    """Content similarity of two games in [0, 1]."""
    space = GameFeatureSpace([a, b], config.content_feature_weights)
    return clamp_unit(cosine_similarity(space.vector(a), space.vector(b)))


def player_vector(
    profile: PlayerProfile,
    games: Dict[str, Game],
    space: GameFeatureSpace,
    config: RecommendationConfig = DEFAULT_CONFIG,
) -> Optional[np.ndarray]:
    """
    Recency-weighted centroid of the player's most recent distinct games.

    The i-th most recent game gets weight content_recency_decay ** i.
    Returns None when none of the played games are in the catalog.
    """
    recent = [gid for gid in profile.played_game_ids if gid in games]
    recent = recent[: config.content_recent_games]
    if not recent:
        return None
    weights = np.array([config.content_recency_decay ** i for i in range(len(recent))])
    vectors = np.stack([space.vector(games[gid]) for gid in recent])
    return (weights[:, None] * vectors).sum(axis=0) / weights.sum()


class ContentBasedStrategy:
    """Scores unplayed games by similarity to what the player played recently."""

    kind = StrategyKind.CONTENT_BASED

    def __init__(self, catalog: GameCatalog, config: RecommendationConfig = DEFAULT_CONFIG):
        self.catalog = catalog
        self.config = config

    async def execute(self, request: StrategyRequest) -> List[GameCandidate]:
        profile = request.profile
        if profile.is_cold_start:
            logger.info(
                "[content-based] COLD_START player_id=%s no recorded plays", profile.player_id
            )
            return []

        active = await self.catalog.list_active_games()
        games = {g.id: g for g in active}
        # Played games that are no longer active still describe taste
        for gid in profile.played_game_ids[: self.config.content_recent_games]:
            if gid not in games:
                game = await self.catalog.get_game(gid)
                if game is not None:
                    games[gid] = game
        return await asyncio.to_thread(self.rank, request, active, games)

    def rank(
        self,
        request: StrategyRequest,
        active: List[Game],
        games: Dict[str, Game],
    ) -> List[GameCandidate]:
        profile = request.profile
        space = GameFeatureSpace(list(games.values()), self.config.content_feature_weights)
        target = player_vector(profile, games, space, self.config)
        if target is None:
            return []

        pool = [g for g in active if g.id not in request.exclude]
        if not pool:
            return []
        sims = cosine_similarity_matrix(target, np.stack([space.vector(g) for g in pool]))
        scored = [
            (g, clamp_unit(sim)) for g, sim in zip(pool, sims) if sim > 0
        ]
        scored.sort(key=lambda item: (-item[1], -profile.prefers(item[0]), item[0].id))

        candidates = []
        for game, score in scored[: request.count]:
            candidates.append(
                GameCandidate(
                    game_id=game.id,
                    score=score,
                    strategy=self.kind,
                    reason=_reason(game, profile, games),
                    features={"similarity": round(score, 6)},
                )
            )
        return candidates

    async def similar_games(
        self,
        game: Game,
        count: int,
        profile: Optional[PlayerProfile] = None,
    ) -> List[SimilarGame]:
        """
        Games most similar to `game`, best first.

        A profile only breaks ties among equal similarity (preference match).
        """
        pool = [g for g in await self.catalog.list_active_games() if g.id != game.id]
        if not pool:
            return []
        return await asyncio.to_thread(self._rank_similar, game, pool, count, profile)

    def _rank_similar(
        self,
        game: Game,
        pool: List[Game],
        count: int,
        profile: Optional[PlayerProfile],
    ) -> List[SimilarGame]:
        space = GameFeatureSpace(pool + [game], self.config.content_feature_weights)
        sims = cosine_similarity_matrix(
            space.vector(game), np.stack([space.vector(g) for g in pool])
        )
        scored = [(g, round(clamp_unit(sim), 6)) for g, sim in zip(pool, sims)]
        scored.sort(
            key=lambda item: (
                -item[1],
                -(profile.prefers(item[0]) if profile is not None else 0),
                item[0].id,
            )
        )
        return [
            SimilarGame(
                game_id=g.id,
                similarity_score=score,
                reason=_shared_features(game, g),
            )
            for g, score in scored[:count]
        ]


def _reason(game: Game, profile: PlayerProfile, games: Dict[str, Game]) -> str:
    for gid in profile.played_game_ids:
        played = games.get(gid)
        if played is None:
            continue
        if played.game_type and played.game_type == game.game_type:
            return f"Because you played {played.name or played.id}"
        if played.provider and played.provider == game.provider:
            return f"More from {game.provider}"
    return "Matches games you have played"


def _shared_features(a: Game, b: Game) -> str:
    shared = [
        group.replace("_", " ")
        for group in FEATURE_GROUPS
        if _feature_value(a, group) and _feature_value(a, group) == _feature_value(b, group)
    ]
    if not shared:
        return "Similar platform support"
    return "Same " + ", ".join(shared)
