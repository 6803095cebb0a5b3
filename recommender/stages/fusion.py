"""
Hybrid fusion: weighted merge of per-strategy candidate lists.

fused(game) = sum(weight[strategy] * score[strategy]) over the strategies that
proposed the game. A strategy that did not propose a game contributes nothing.

Ties on the fused score go to the game whose best contributor has the highest
strategy priority (collaborative > content-based > trending > bandit), then
to the lower game id. Category comes from the largest weighted contributor.
"""

from typing import Dict, List, Tuple

from pydantic import BaseModel, Field

from ..models.config import DEFAULT_CONFIG, STRATEGY_PRIORITY, RecommendationConfig
from ..models.recommendation import GameCandidate, StrategyKind


class FusedCandidate(BaseModel):
    """A game after fusion, with each strategy's weighted contribution."""

    game_id: str
    score: float
    category: str
    reason: str = ""
    contributions: Dict[str, float] = Field(default_factory=dict)

    @property
    def priority(self) -> int:
        return min(_priority_index(s) for s in self.contributions)


def _priority_index(strategy: str) -> int:
    try:
        return STRATEGY_PRIORITY.index(strategy)
    except ValueError:
        return len(STRATEGY_PRIORITY)


def fuse(
    candidate_lists: Dict[StrategyKind, List[GameCandidate]],
    config: RecommendationConfig = DEFAULT_CONFIG,
) -> List[FusedCandidate]:
    """Merge candidate lists into one ranked list (best first)."""
    weights = config.fusion_weights
    # game_id -> strategy -> (weighted score, candidate)
    by_game: Dict[str, Dict[str, Tuple[float, GameCandidate]]] = {}
    for kind, candidates in candidate_lists.items():
        weight = weights.get(kind.value, 0.0)
        for cand in candidates:
            per_game = by_game.setdefault(cand.game_id, {})
            weighted = weight * cand.score
            # Keep the best entry if a strategy repeats a game
            if kind.value not in per_game or weighted > per_game[kind.value][0]:
                per_game[kind.value] = (weighted, cand)

    fused = []
    for game_id, per_strategy in by_game.items():
        total = sum(weighted for weighted, _ in per_strategy.values())
        lead_strategy, (_, lead) = min(
            per_strategy.items(),
            key=lambda item: (-item[1][0], _priority_index(item[0])),
        )
        fused.append(
            FusedCandidate(
                game_id=game_id,
                score=min(1.0, max(0.0, total)),
                category=lead.category,
                reason=lead.reason,
                contributions={s: round(w, 6) for s, (w, _) in per_strategy.items()},
            )
        )
    fused.sort(key=lambda f: (-f.score, f.priority, f.game_id))
    return fused
