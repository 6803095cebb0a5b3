"""
Strategy contract shared by every scoring strategy.

A strategy turns a StrategyRequest into a ranked list of GameCandidate with
scores in [0, 1]. An empty list means "no data" (e.g. cold start), never an error.

execute() awaits the catalog, then hands CPU-bound scoring to
asyncio.to_thread: the orchestrator's per-strategy timeout can only cancel
at an await point.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional, Protocol, Set

from ..models.config import DEFAULT_CONFIG, RecommendationConfig
from ..models.game import Game, PlayerProfile
from ..models.recommendation import GameCandidate, StrategyKind


@dataclass
class StrategyRequest:
    """Input block passed to strategies for one player."""

    profile: PlayerProfile
    count: int
    context: Optional[str] = None
    exclude: Set[str] = field(default_factory=set)
    now: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def for_profile(
        cls,
        profile: PlayerProfile,
        count: int,
        config: RecommendationConfig = DEFAULT_CONFIG,
        context: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> "StrategyRequest":
        """Build a request that excludes played games when the config says so."""
        exclude = set(profile.played_game_ids) if config.exclude_played_games else set()
        return cls(
            profile=profile,
            count=count,
            context=context,
            exclude=exclude,
            now=now or datetime.now(timezone.utc),
        )


class Strategy(Protocol):
    """Interface for plug-and-play scoring strategies."""

    kind: StrategyKind

    async def execute(self, request: StrategyRequest) -> List[GameCandidate]:
        """Return up to request.count candidates, best first."""
        ...


def popularity_key(game: Optional[Game]) -> int:
    """Global popularity used for tie-breaks (unknown games sort last)."""
    return game.total_players if game is not None else -1
