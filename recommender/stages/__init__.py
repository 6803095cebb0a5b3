"""Pipeline stages: hybrid fusion and the recommendation orchestrator."""

from .fusion import FusedCandidate, fuse
from .orchestrator import STRATEGY_PLANS, RecommendationOrchestrator, RecommendationPage

__all__ = [
    "FusedCandidate",
    "RecommendationOrchestrator",
    "RecommendationPage",
    "STRATEGY_PLANS",
    "fuse",
]
