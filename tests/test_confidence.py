"""
Confidence and Configuration Tests

Confidence = min(ceiling[algorithm], score * multiplier[algorithm]); ceilings
must stay ordered hybrid > collaborative > content-based > bandit > default.

Run:
----
    pytest tests/test_confidence.py -v
"""

import random

import pytest
from pydantic import ValidationError

from recommender import RecommendationConfig, calculate_confidence
from recommender.utils.scores import confidence_key

ALGORITHMS = ["hybrid", "collaborative", "content-based", "bandit", "trending", "default"]


class TestConfidence:
    @pytest.mark.parametrize("algorithm", ALGORITHMS)
    def test_never_above_ceiling(self, algorithm):
        config = RecommendationConfig()
        ceiling = config.confidence_ceilings[confidence_key(algorithm)]
        rng = random.Random(algorithm)
        for score in [0.0, 1.0] + [rng.random() for _ in range(200)]:
            conf = calculate_confidence(score, algorithm, config)
            assert 0.0 <= conf <= ceiling

    @pytest.mark.parametrize("algorithm", ALGORITHMS)
    def test_monotonic_in_score(self, algorithm):
        scores = [i / 100 for i in range(101)]
        confs = [calculate_confidence(s, algorithm) for s in scores]
        assert confs == sorted(confs)

    def test_multipliers(self):
        assert calculate_confidence(0.5, "hybrid") == pytest.approx(0.55)
        assert calculate_confidence(0.5, "collaborative") == pytest.approx(0.5)
        assert calculate_confidence(0.5, "content-based") == pytest.approx(0.475)
        assert calculate_confidence(0.5, "bandit") == pytest.approx(0.45)
        assert calculate_confidence(0.5, "trending") == pytest.approx(0.425)

    def test_ceilings_cap_top_scores(self):
        assert calculate_confidence(1.0, "hybrid") == pytest.approx(0.95)
        assert calculate_confidence(1.0, "collaborative") == pytest.approx(0.90)
        assert calculate_confidence(1.0, "content-based") == pytest.approx(0.85)
        assert calculate_confidence(1.0, "bandit") == pytest.approx(0.80)
        assert calculate_confidence(1.0, "trending") == pytest.approx(0.75)

    def test_trending_and_unknown_share_default_bucket(self):
        assert confidence_key("trending") == "default"
        assert confidence_key("anything-else") == "default"


class TestRecommendationConfig:
    def test_defaults(self):
        config = RecommendationConfig()
        assert config.fusion_weights == {
            "collaborative": 0.4,
            "content-based": 0.3,
            "trending": 0.2,
            "bandit": 0.1,
        }
        assert config.bandit_rewards == {"click": 0.3, "play": 1.0, "dismiss": -0.2}

    def test_ceiling_order_validated(self):
        with pytest.raises(ValidationError):
            RecommendationConfig(
                confidence_ceilings={
                    "hybrid": 0.8,
                    "collaborative": 0.9,
                    "content-based": 0.85,
                    "bandit": 0.8,
                    "default": 0.75,
                }
            )

    def test_negative_weight_rejected(self):
        with pytest.raises(ValidationError):
            RecommendationConfig(fusion_weights={"collaborative": -0.1, "trending": 1.0})

    def test_epsilon_range(self):
        with pytest.raises(ValidationError):
            RecommendationConfig(bandit_epsilon=1.5)

    def test_from_dict_merges_nested_sections(self):
        config = RecommendationConfig.from_dict({
            "limits": {"max_count": 30},
            "fusion_weights": {"bandit": 0.2},
            "confidence": {"multipliers": {"hybrid": 1.2}},
            "collaborative": {"neighbors": 5},
            "content_based": {"feature_weights": {"theme": 2.0}},
            "bandit": {"epsilon": 0.25, "rewards": {"dismiss": -0.5}},
            "batch": {"concurrency": 8},
            "default_timeframe": "7d",
            "unknown_key": 1,
        })
        assert config.max_count == 30
        assert config.fusion_weights["bandit"] == 0.2
        assert config.fusion_weights["collaborative"] == 0.4
        assert config.confidence_multipliers["hybrid"] == 1.2
        assert config.confidence_multipliers["bandit"] == 0.9
        assert config.cf_neighbors == 5
        assert config.content_feature_weights["theme"] == 2.0
        assert config.content_feature_weights["game_type"] == 1.5
        assert config.bandit_epsilon == 0.25
        assert config.bandit_rewards == {"click": 0.3, "play": 1.0, "dismiss": -0.5}
        assert config.batch_concurrency == 8
        assert config.default_timeframe == "7d"
