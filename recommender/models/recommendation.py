"""
Recommendation models: candidates, persisted recommendations, and results.

Contains:
- StrategyKind / Algorithm: the strategy and request-level algorithm tags
- GameCandidate: transient (game_id, score) produced by one strategy
- GameRecommendation: persisted impression with write-once interaction flags
- RecommendationResult: what the orchestrator returns for one request
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class StrategyKind(str, Enum):
    """Scoring strategies; each is dispatched through strategies.execute()."""

    COLLABORATIVE = "collaborative"
    CONTENT_BASED = "content-based"
    TRENDING = "trending"
    BANDIT = "bandit"


class Algorithm(str, Enum):
    """Algorithms a caller may request."""

    COLLABORATIVE = "collaborative"
    CONTENT_BASED = "content-based"
    BANDIT = "bandit"
    HYBRID = "hybrid"
    DEFAULT = "default"


class InteractionType(str, Enum):
    CLICK = "click"
    PLAY = "play"
    DISMISS = "dismiss"


class RecommendationSource(str, Enum):
    REALTIME = "realtime"
    BATCH = "batch"


class ResultStatus(str, Enum):
    OK = "ok"
    # Chosen strategy legitimately produced nothing (e.g. cold start)
    NO_DATA = "no_data"
    # Default path fell back to trending
    FALLBACK = "fallback"


# Category attached to items produced by each strategy.
CATEGORY_BY_STRATEGY = {
    StrategyKind.COLLABORATIVE: "for-you",
    StrategyKind.CONTENT_BASED: "for-you",
    StrategyKind.TRENDING: "trending",
    StrategyKind.BANDIT: "discover",
}


class GameCandidate(BaseModel):
    """One strategy's unpersisted suggestion. Score is in [0, 1]."""

    game_id: str
    score: float
    strategy: StrategyKind
    reason: str = ""
    features: Dict[str, Any] = Field(default_factory=dict)
    category_override: Optional[str] = None

    @property
    def category(self) -> str:
        return self.category_override or CATEGORY_BY_STRATEGY[self.strategy]


class GameRecommendation(BaseModel):
    """
    A persisted impression: one scored game shown to one player.

    Interaction flags are write-once and played implies clicked; mutate only
    through InteractionLedger.record().
    """

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    player_id: str
    game_id: str
    algorithm: str
    score: float
    confidence: float
    position: int
    reason: str = ""
    category: str = ""
    context: Optional[str] = None
    source: RecommendationSource = RecommendationSource.REALTIME
    generation_id: Optional[str] = None
    features: Optional[Dict[str, Any]] = None
    created_at: datetime = Field(default_factory=utc_now)

    is_clicked: bool = False
    is_played: bool = False
    is_dismissed: bool = False
    clicked_at: Optional[datetime] = None
    played_at: Optional[datetime] = None
    dismissed_at: Optional[datetime] = None


class RecommendationResult(BaseModel):
    """Orchestrator output for one request."""

    player_id: str
    algorithm: str
    context: Optional[str] = None
    status: ResultStatus = ResultStatus.OK
    # False when recommendations could not be persisted
    audited: bool = True
    processing_time_ms: float = 0.0
    excluded_strategies: List[str] = Field(default_factory=list)
    recommendations: List[GameRecommendation] = Field(default_factory=list)
    game_metadata: Dict[str, Dict[str, Any]] = Field(default_factory=dict)


class SimilarGame(BaseModel):
    game_id: str
    similarity_score: float
    reason: str = ""


class TrendingGame(BaseModel):
    game_id: str
    trend_score: float
    play_count: int
    growth_rate: float
    total_play_count: int = 0


class BanditArm(BaseModel):
    """Exploration state for one (context, game) pair."""

    context: str
    game_id: str
    pulls: int = 0
    cumulative_reward: float = 0.0
    updated_at: Optional[datetime] = None

    @property
    def mean_reward(self) -> float:
        return self.cumulative_reward / self.pulls if self.pulls else 0.0
