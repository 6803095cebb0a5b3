"""Recommendation request/response models."""

from datetime import datetime
from typing import List, Optional, Tuple

from .common import ApiModel, RecommendationItem


class RecommendationsResponse(ApiModel):
    player_id: str
    algorithm: str
    context: Optional[str] = None
    status: str
    audited: bool
    processing_time_ms: float
    excluded_strategies: List[str] = []
    recommendations: List[RecommendationItem]


class SimilarGameItem(ApiModel):
    game_id: str
    similarity_score: float
    reason: str = ""


class SimilarGamesResponse(ApiModel):
    base_game_id: str
    similar_games: List[SimilarGameItem]


class TrendingGameItem(ApiModel):
    game_id: str
    trend_score: float
    play_count: int
    growth_rate: float


class TrendingGamesResponse(ApiModel):
    timeframe: str
    generated_at: datetime
    trending_games: List[TrendingGameItem]


class InteractionRequest(ApiModel):
    recommendation_id: str
    interaction_type: str


class InteractionResponse(ApiModel):
    success: bool


class BatchPlayerResponse(ApiModel):
    player_id: str
    status: str
    recommendations_generated: int
    processing_time_ms: float
    message: str = ""


class BatchRunRequest(ApiModel):
    player_ids: Optional[List[str]] = None
    force: bool = True


class BatchRunResponse(ApiModel):
    total: int
    succeeded: int
    skipped: int
    failed: int
    failures: List[Tuple[str, str]] = []
    cancelled: bool = False
    processing_time_ms: float


class BatchSetResponse(ApiModel):
    player_id: str
    generated_at: Optional[datetime] = None
    recommendations: List[RecommendationItem]


class RecommendationHistoryItem(RecommendationItem):
    player_id: str
    algorithm: str
    context: Optional[str] = None
    source: str
    created_at: datetime
    is_clicked: bool
    is_played: bool
    is_dismissed: bool


class RecommendationListResponse(ApiModel):
    items: List[RecommendationHistoryItem]
    total: int
    page: int
    page_size: int
    total_pages: int
