"""
Engine configuration: strategy, fusion, confidence, bandit, and batch parameters.

RecommendationConfig defaults are defined here. The server may pass a dict
(e.g. from ALGORITHM_CONFIG_PATH); from_dict() merges it with these defaults.
"""

from typing import Dict, Optional

from pydantic import BaseModel, Field, model_validator

# Priority order used for fusion tie-breaks (earlier wins).
STRATEGY_PRIORITY = ("collaborative", "content-based", "trending", "bandit")

# Confidence ceilings must keep this order (highest first).
CONFIDENCE_ORDER = ("hybrid", "collaborative", "content-based", "bandit", "default")


class RecommendationConfig(BaseModel):
    """Configuration for the recommendation engine."""

    # -------------------------------------------------------------------------
    # Request limits
    # -------------------------------------------------------------------------

    # Allowed range for `count` on real-time requests.
    min_count: int = 1
    max_count: int = 50
    default_count: int = 10

    # Upper bound per strategy. A strategy that takes longer is excluded from fusion.
    strategy_timeout_seconds: float = 2.0

    # Candidates requested from each strategy = count * candidate_multiplier.
    # Over-fetching leaves room for fusion to reorder.
    candidate_multiplier: int = 3

    # Remove games the player has already played from personalized lists.
    exclude_played_games: bool = True

    # -------------------------------------------------------------------------
    # Hybrid Fusion
    # fused = sum(weight[strategy] * score[strategy]) over strategies that proposed the game
    # -------------------------------------------------------------------------

    fusion_weights: Dict[str, float] = Field(
        default_factory=lambda: {
            "collaborative": 0.4,
            "content-based": 0.3,
            "trending": 0.2,
            "bandit": 0.1,
        }
    )

    # -------------------------------------------------------------------------
    # Confidence = min(ceiling[algorithm], score * multiplier[algorithm])
    # "default" covers trending and the fallback path.
    # -------------------------------------------------------------------------

    confidence_ceilings: Dict[str, float] = Field(
        default_factory=lambda: {
            "hybrid": 0.95,
            "collaborative": 0.90,
            "content-based": 0.85,
            "bandit": 0.80,
            "default": 0.75,
        }
    )
    confidence_multipliers: Dict[str, float] = Field(
        default_factory=lambda: {
            "hybrid": 1.1,
            "collaborative": 1.0,
            "content-based": 0.95,
            "bandit": 0.9,
            "default": 0.85,
        }
    )

    # -------------------------------------------------------------------------
    # Context-aware default strategy (algorithm=None or "default")
    # -------------------------------------------------------------------------

    default_strategy_by_context: Dict[str, str] = Field(
        default_factory=lambda: {
            "lobby": "hybrid",
            "game_end": "content-based",
            "post-game": "content-based",
            "promotion": "trending",
        }
    )
    default_strategy: str = "collaborative"
    fallback_strategy: str = "trending"
    # Window used when trending runs as a strategy (fusion input or fallback).
    trending_strategy_timeframe: str = "7d"

    # -------------------------------------------------------------------------
    # Collaborative Filtering (user-based)
    # -------------------------------------------------------------------------

    # Max number of most similar players used to score games.
    cf_neighbors: int = 20
    # Neighbours below this cosine similarity are ignored.
    cf_min_similarity: float = 0.0

    # -------------------------------------------------------------------------
    # Content-Based Filtering
    # -------------------------------------------------------------------------

    # Player vector = weighted centroid of this many most recent distinct played games.
    content_recent_games: int = 10
    # Weight of the i-th most recent game = decay ** i.
    content_recency_decay: float = 0.85
    # Per feature-group weights applied to the one-hot game vector.
    content_feature_weights: Dict[str, float] = Field(
        default_factory=lambda: {
            "provider": 1.0,
            "game_type": 1.5,
            "volatility": 1.0,
            "theme": 1.0,
            "rtp_band": 0.5,
            "platform": 0.5,
        }
    )

    # -------------------------------------------------------------------------
    # Trending
    # -------------------------------------------------------------------------

    default_timeframe: str = "24h"

    # -------------------------------------------------------------------------
    # Bandit Exploration
    # -------------------------------------------------------------------------

    # Rewards applied on interaction (first occurrence only).
    bandit_rewards: Dict[str, float] = Field(
        default_factory=lambda: {"click": 0.3, "play": 1.0, "dismiss": -0.2}
    )
    # Probability that a slot is given to an under-explored arm.
    bandit_epsilon: float = 0.1
    # Arms with fewer pulls than this keep a non-zero exploration probability.
    bandit_min_pulls: int = 5
    # UCB exploration constant.
    bandit_ucb_c: float = 0.5
    # Context key used when a request has no context.
    bandit_default_context: str = "default"

    # -------------------------------------------------------------------------
    # Batch Generation
    # -------------------------------------------------------------------------

    batch_default_count: int = 10
    batch_concurrency: int = 4
    # Without force, players with a batch set younger than this are skipped.
    batch_freshness_hours: float = 12.0

    @model_validator(mode="after")
    def check_weights_and_ceilings(self):
        if any(w < 0 for w in self.fusion_weights.values()):
            raise ValueError("Fusion weights must be non-negative")
        if sum(self.fusion_weights.values()) <= 0:
            raise ValueError("At least one fusion weight must be positive")
        ceilings = [self.confidence_ceilings.get(name, 0.0) for name in CONFIDENCE_ORDER]
        if ceilings != sorted(ceilings, reverse=True):
            raise ValueError(
                f"Confidence ceilings must be ordered {' > '.join(CONFIDENCE_ORDER)}, got {ceilings}"
            )
        if any(not 0.0 <= c <= 1.0 for c in ceilings):
            raise ValueError("Confidence ceilings must be within [0, 1]")
        if not 0.0 <= self.bandit_epsilon <= 1.0:
            raise ValueError("bandit_epsilon must be within [0, 1]")
        if self.min_count < 1 or self.max_count < self.min_count:
            raise ValueError("Invalid count limits")
        return self

    @classmethod
    def from_dict(cls, config_dict: Dict) -> "RecommendationConfig":
        """Create config from dictionary (e.g., loaded from JSON)."""
        flat = {}
        if "limits" in config_dict:
            flat.update(config_dict["limits"])
        if "fusion_weights" in config_dict:
            flat["fusion_weights"] = {
                **cls.model_fields["fusion_weights"].default_factory(),
                **config_dict["fusion_weights"],
            }
        if "confidence" in config_dict:
            conf = config_dict["confidence"]
            if "ceilings" in conf:
                flat["confidence_ceilings"] = {
                    **cls.model_fields["confidence_ceilings"].default_factory(),
                    **conf["ceilings"],
                }
            if "multipliers" in conf:
                flat["confidence_multipliers"] = {
                    **cls.model_fields["confidence_multipliers"].default_factory(),
                    **conf["multipliers"],
                }
        if "collaborative" in config_dict:
            cf = config_dict["collaborative"]
            if "neighbors" in cf:
                flat["cf_neighbors"] = cf["neighbors"]
            if "min_similarity" in cf:
                flat["cf_min_similarity"] = cf["min_similarity"]
        if "content_based" in config_dict:
            cb = config_dict["content_based"]
            if "recent_games" in cb:
                flat["content_recent_games"] = cb["recent_games"]
            if "recency_decay" in cb:
                flat["content_recency_decay"] = cb["recency_decay"]
            if "feature_weights" in cb:
                flat["content_feature_weights"] = {
                    **cls.model_fields["content_feature_weights"].default_factory(),
                    **cb["feature_weights"],
                }
        if "bandit" in config_dict:
            bd = config_dict["bandit"]
            if "rewards" in bd:
                flat["bandit_rewards"] = {
                    **cls.model_fields["bandit_rewards"].default_factory(),
                    **bd["rewards"],
                }
            for key in ("epsilon", "min_pulls", "ucb_c", "default_context"):
                if key in bd:
                    flat[f"bandit_{key}"] = bd[key]
        if "batch" in config_dict:
            bt = config_dict["batch"]
            for key in ("default_count", "concurrency", "freshness_hours"):
                if key in bt:
                    flat[f"batch_{key}"] = bt[key]
        # Top-level keys that already match field names pass through unchanged
        for key, value in config_dict.items():
            if key in cls.model_fields and key not in flat:
                flat[key] = value
        allowed = set(cls.model_fields)
        filtered = {k: v for k, v in flat.items() if k in allowed}
        return cls.model_validate(filtered)


DEFAULT_CONFIG = RecommendationConfig()


def resolve_config(config: Optional["RecommendationConfig"]) -> "RecommendationConfig":
    """Return config or DEFAULT_CONFIG when none is provided."""
    return config if config is not None else DEFAULT_CONFIG
