"""
Bandit Exploration: epsilon-greedy over UCB values per (context, game) arm.

Exploitation value of an arm:
    normalized mean reward + c * sqrt(ln(N + 1) / (n + 1))
where N is total pulls in the context and n the arm's pulls. Mean rewards are
mapped into [0, 1] using the configured reward range.

Each output slot is, with probability epsilon, given to a uniformly random
arm with fewer than bandit_min_pulls pulls (never-pulled arms included), so
under-explored games keep a non-zero chance of being shown.
"""

import asyncio
import logging
import math
import random
from typing import Dict, List, Optional, Set

from ..catalog import GameCatalog
from ..models.config import DEFAULT_CONFIG, RecommendationConfig
from ..models.recommendation import BanditArm, GameCandidate, StrategyKind
from ..stores import BanditArmStore
from ..utils.scores import normalize_by_max
from .base import StrategyRequest

logger = logging.getLogger(__name__)


class BanditStrategy:
    """Exploration strategy backed by the shared arm arena."""

    kind = StrategyKind.BANDIT

    def __init__(
        self,
        catalog: GameCatalog,
        arms: BanditArmStore,
        config: RecommendationConfig = DEFAULT_CONFIG,
        rng: Optional[random.Random] = None,
    ):
        self.catalog = catalog
        self.arms = arms
        self.config = config
        self.rng = rng or random.Random()

    def context_key(self, context: Optional[str]) -> str:
        return context or self.config.bandit_default_context

    def _normalized_mean(self, arm: Optional[BanditArm]) -> float:
        rewards = self.config.bandit_rewards.values()
        low, high = min(min(rewards), 0.0), max(max(rewards), 0.0)
        if arm is None or arm.pulls == 0 or high - low <= 0:
            return 0.0
        return (arm.mean_reward - low) / (high - low)

    def ucb_values(self, context: str, game_ids: List[str]) -> Dict[str, float]:
        """UCB value for each game id under one context."""
        arms = self.arms.arms_for_context(context)
        total_pulls = sum(a.pulls for a in arms.values())
        bonus_c = self.config.bandit_ucb_c
        values = {}
        for gid in game_ids:
            arm = arms.get(gid)
            pulls = arm.pulls if arm else 0
            bonus = bonus_c * math.sqrt(math.log(total_pulls + 1) / (pulls + 1))
            values[gid] = self._normalized_mean(arm) + bonus
        return values

    def select_candidates(
        self,
        context: Optional[str],
        game_ids: List[str],
        count: int,
        exclude: Optional[Set[str]] = None,
    ) -> List[GameCandidate]:
        """Pick up to `count` arms for a context from `game_ids`."""
        key = self.context_key(context)
        exclude = exclude or set()
        pool = sorted(gid for gid in set(game_ids) if gid not in exclude)
        if not pool:
            return []
        values = self.ucb_values(key, pool)
        arms = self.arms.arms_for_context(key)

        greedy = sorted(pool, key=lambda gid: (-values[gid], gid))
        under_explored = [
            gid for gid in pool
            if (arms[gid].pulls if gid in arms else 0) < self.config.bandit_min_pulls
        ]
        chosen: List[str] = []
        explored: Set[str] = set()
        taken: Set[str] = set()
        for _ in range(min(count, len(pool))):
            open_arms = [gid for gid in under_explored if gid not in taken]
            if open_arms and self.rng.random() < self.config.bandit_epsilon:
                pick = self.rng.choice(open_arms)
                explored.add(pick)
            else:
                pick = next(gid for gid in greedy if gid not in taken)
            chosen.append(pick)
            taken.add(pick)

        scores = normalize_by_max({gid: values[gid] for gid in chosen})
        # Slot order may differ from value order after exploration picks
        chosen.sort(key=lambda gid: (-scores[gid], gid))
        return [
            GameCandidate(
                game_id=gid,
                score=scores[gid],
                strategy=self.kind,
                reason="Something new to try" if gid in explored else "Popular pick for you",
                features={
                    "ucb_value": round(values[gid], 6),
                    "pulls": arms[gid].pulls if gid in arms else 0,
                    "explored": gid in explored,
                },
            )
            for gid in chosen
        ]

    async def execute(self, request: StrategyRequest) -> List[GameCandidate]:
        games = await self.catalog.list_active_games()
        return await asyncio.to_thread(
            self.select_candidates,
            request.context,
            [g.id for g in games],
            request.count,
            exclude=request.exclude,
        )

    def update_reward(self, game_id: str, context: Optional[str], reward: float) -> BanditArm:
        """Add one pull with `reward` to the (context, game) arm."""
        arm = self.arms.update(self.context_key(context), game_id, reward)
        logger.debug(
            "[bandit] ARM_UPDATED context=%s game_id=%s pulls=%s mean=%.4f",
            arm.context, game_id, arm.pulls, arm.mean_reward,
        )
        return arm
