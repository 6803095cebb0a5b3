"""Pydantic request/response models for the API."""

from .common import ApiModel, RecommendationItem
from .config import ConfigUpdateRequest
from .recommendations import (
    BatchPlayerResponse,
    BatchRunRequest,
    BatchRunResponse,
    BatchSetResponse,
    InteractionRequest,
    InteractionResponse,
    RecommendationHistoryItem,
    RecommendationListResponse,
    RecommendationsResponse,
    SimilarGameItem,
    SimilarGamesResponse,
    TrendingGameItem,
    TrendingGamesResponse,
)

__all__ = [
    "ApiModel",
    "BatchPlayerResponse",
    "BatchRunRequest",
    "BatchRunResponse",
    "BatchSetResponse",
    "ConfigUpdateRequest",
    "InteractionRequest",
    "InteractionResponse",
    "RecommendationHistoryItem",
    "RecommendationItem",
    "RecommendationListResponse",
    "RecommendationsResponse",
    "SimilarGameItem",
    "SimilarGamesResponse",
    "TrendingGameItem",
    "TrendingGamesResponse",
]
