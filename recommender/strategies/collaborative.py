"""
Collaborative Filtering: user-based neighbourhood scoring.

Builds a player x game matrix of log-scaled session counts from the catalog's
play events, finds the target player's most similar players by cosine
similarity, and scores each unplayed game by the similarity-weighted average
of those neighbours' plays. Scores are scaled into [0, 1] by the best game.

Players with no recorded plays get an empty list; the orchestrator's default
path relies on that to fall back to trending.
"""

import asyncio
import logging
from collections import defaultdict
from typing import Dict, List

import numpy as np

from ..catalog import GameCatalog
from ..models.config import DEFAULT_CONFIG, RecommendationConfig
from ..models.game import Game, PlayRecord
from ..models.recommendation import GameCandidate, StrategyKind
from ..utils.scores import normalize_by_max
from ..utils.similarity import cosine_similarity_matrix
from .base import StrategyRequest, popularity_key

logger = logging.getLogger(__name__)


def build_interaction_matrix(
    plays: List[PlayRecord],
) -> "tuple[List[str], List[str], np.ndarray]":
    """
    Player x game matrix of log1p(sessions).

    Returns (player_ids, game_ids, matrix) with rows/columns in sorted id order.
    """
    counts: Dict[str, Dict[str, int]] = defaultdict(lambda: defaultdict(int))
    for record in plays:
        counts[record.player_id][record.game_id] += max(1, record.session_count)
    player_ids = sorted(counts)
    game_ids = sorted({g for per_player in counts.values() for g in per_player})
    column = {g: i for i, g in enumerate(game_ids)}
    matrix = np.zeros((len(player_ids), len(game_ids)))
    for row, pid in enumerate(player_ids):
        for gid, sessions in counts[pid].items():
            matrix[row, column[gid]] = np.log1p(sessions)
    return player_ids, game_ids, matrix


class CollaborativeFilteringStrategy:
    """User-based collaborative filtering over the catalog's play events."""

    kind = StrategyKind.COLLABORATIVE

    def __init__(self, catalog: GameCatalog, config: RecommendationConfig = DEFAULT_CONFIG):
        self.catalog = catalog
        self.config = config

    async def execute(self, request: StrategyRequest) -> List[GameCandidate]:
        profile = request.profile
        if profile.is_cold_start:
            logger.info(
                "[collaborative] COLD_START player_id=%s no recorded plays", profile.player_id
            )
            return []

        plays = [
            r for r in await self.catalog.list_play_events()
            if r.player_id != profile.player_id
        ]
        games = {g.id: g for g in await self.catalog.list_active_games()}
        # Matrix work runs off the event loop so the orchestrator timeout can fire
        return await asyncio.to_thread(self.rank, request, plays, games)

    def rank(
        self,
        request: StrategyRequest,
        plays: List[PlayRecord],
        games: Dict[str, Game],
    ) -> List[GameCandidate]:
        """Score games from other players' plays (CPU-bound, no catalog access)."""
        profile = request.profile
        player_ids, game_ids, matrix = build_interaction_matrix(plays + profile.history)
        if profile.player_id not in player_ids:
            return []

        target_row = player_ids.index(profile.player_id)
        sims = cosine_similarity_matrix(matrix[target_row], matrix)
        sims[target_row] = 0.0

        # Top-K neighbours with similarity above the floor
        order = np.argsort(-sims, kind="stable")
        neighbours = [
            int(i) for i in order[: self.config.cf_neighbors]
            if sims[i] > max(0.0, self.config.cf_min_similarity)
        ]
        if not neighbours:
            logger.info(
                "[collaborative] NO_NEIGHBOURS player_id=%s players=%s",
                profile.player_id, len(player_ids),
            )
            return []

        # Denominator is the whole neighbourhood's similarity, not per game
        total_similarity = float(sum(abs(sims[row]) for row in neighbours))
        raw: Dict[str, float] = {}
        supporters: Dict[str, int] = defaultdict(int)
        for col, gid in enumerate(game_ids):
            if gid in request.exclude or gid not in games:
                continue
            total = 0.0
            for row in neighbours:
                value = matrix[row, col]
                if value > 0:
                    total += sims[row] * value
                    supporters[gid] += 1
            if total > 0:
                raw[gid] = total / total_similarity

        scores = normalize_by_max(raw)
        ranked = sorted(
            scores.items(),
            key=lambda item: (-item[1], -popularity_key(games.get(item[0])), item[0]),
        )
        candidates = []
        for gid, score in ranked[: request.count]:
            n = supporters[gid]
            candidates.append(
                GameCandidate(
                    game_id=gid,
                    score=score,
                    strategy=self.kind,
                    reason=(
                        f"Played by {n} player{'s' if n != 1 else ''} with similar taste"
                    ),
                    features={
                        "raw_score": round(raw[gid], 6),
                        "supporting_neighbours": n,
                        "neighbours_considered": len(neighbours),
                    },
                )
            )
        return candidates
