"""
Trending / Popularity.

Trend score is the play-count growth between the current window
(now - w, now] and the preceding window (now - 2w, now - w], min-max
normalized across games with any activity in either window.

Ordering: trend score desc, total play count desc, then (when a player is
given) preference match desc, then game id asc.
"""

import asyncio
import logging
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

from ..catalog import GameCatalog
from ..models.config import DEFAULT_CONFIG, RecommendationConfig
from ..models.game import Game, PlayRecord, PlayerProfile
from ..models.recommendation import GameCandidate, StrategyKind, TrendingGame
from ..utils.scores import normalize_by_max, normalize_min_max, parse_timeframe
from .base import StrategyRequest, popularity_key

logger = logging.getLogger(__name__)


async def trending_games(
    catalog: GameCatalog,
    timeframe: str,
    now: Optional[datetime] = None,
    profile: Optional[PlayerProfile] = None,
) -> List[TrendingGame]:
    """Every game with activity in the current or previous window, best first."""
    window = parse_timeframe(timeframe)
    now = now or datetime.now(timezone.utc)
    events = await catalog.list_play_events()
    games = {g.id: g for g in await catalog.list_active_games()}
    return await asyncio.to_thread(rank_trending, events, games, window, now, profile)


def rank_trending(
    events: List[PlayRecord],
    games: Dict[str, Game],
    window: timedelta,
    now: datetime,
    profile: Optional[PlayerProfile] = None,
) -> List[TrendingGame]:
    current_start = now - window
    previous_start = now - 2 * window

    current: Counter = Counter()
    previous: Counter = Counter()
    totals: Counter = Counter()
    for record in events:
        if record.game_id not in games:
            continue
        totals[record.game_id] += 1
        if current_start < record.played_at <= now:
            current[record.game_id] += 1
        elif previous_start < record.played_at <= current_start:
            previous[record.game_id] += 1

    active_ids = set(current) | set(previous)
    growth = {
        gid: (current[gid] - previous[gid]) / max(previous[gid], 1)
        for gid in active_ids
    }
    trend = normalize_min_max(growth)

    def sort_key(gid: str):
        pref = profile.prefers(games[gid]) if profile is not None else 0
        return (-trend[gid], -totals[gid], -pref, gid)

    return [
        TrendingGame(
            game_id=gid,
            trend_score=round(trend[gid], 6),
            play_count=current[gid],
            growth_rate=round(growth[gid], 6),
            total_play_count=totals[gid],
        )
        for gid in sorted(active_ids, key=sort_key)
    ]


class TrendingStrategy:
    """
    Trending as a strategy input (hybrid fusion, promotion context, fallback).

    With no play activity in either window it degrades to global popularity
    (Game.total_players) and tags items "popular".
    """

    kind = StrategyKind.TRENDING

    def __init__(self, catalog: GameCatalog, config: RecommendationConfig = DEFAULT_CONFIG):
        self.catalog = catalog
        self.config = config

    async def execute(self, request: StrategyRequest) -> List[GameCandidate]:
        ranked = await trending_games(
            self.catalog,
            self.config.trending_strategy_timeframe,
            now=request.now,
            profile=request.profile,
        )
        candidates = [
            GameCandidate(
                game_id=t.game_id,
                score=t.trend_score,
                strategy=self.kind,
                reason=f"Trending: {t.play_count} plays in the last "
                f"{self.config.trending_strategy_timeframe}",
                features={"growth_rate": t.growth_rate, "play_count": t.play_count},
            )
            for t in ranked
            if t.game_id not in request.exclude
        ]
        if candidates:
            return candidates[: request.count]
        return await self._popular(request)

    async def _popular(self, request: StrategyRequest) -> List[GameCandidate]:
        games = [
            g for g in await self.catalog.list_active_games()
            if g.id not in request.exclude
        ]
        if not games:
            return []
        logger.info(
            "[trending] NO_ACTIVITY player_id=%s falling back to popularity",
            request.profile.player_id,
        )
        scores = normalize_by_max({g.id: float(g.total_players) for g in games})
        games.sort(
            key=lambda g: (-popularity_key(g), -request.profile.prefers(g), g.id)
        )
        return [
            GameCandidate(
                game_id=g.id,
                score=scores[g.id],
                strategy=self.kind,
                reason="Popular with players",
                features={"total_players": g.total_players},
                category_override="popular",
            )
            for g in games[: request.count]
        ]
