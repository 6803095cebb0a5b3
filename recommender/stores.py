"""
Persistence abstractions for recommendation records and bandit arms.

RecommendationStore keeps the append-only impression history; BanditArmStore
is the arena of per-(context, game) exploration state. In-memory
implementations live here; the server adds JSON-file variants.
"""

import threading
from datetime import datetime, timezone
from typing import Dict, List, Optional, Protocol, Tuple

from .models.recommendation import BanditArm, GameRecommendation, RecommendationSource

ArmKey = Tuple[str, str]


class RecommendationStore(Protocol):
    """Protocol for recommendation persistence. Records are never deleted."""

    def save_many(self, recommendations: List[GameRecommendation]) -> None:
        """Persist a generation. Raise on failure."""
        ...

    def get(self, recommendation_id: str) -> Optional[GameRecommendation]:
        ...

    def update(self, recommendation: GameRecommendation) -> None:
        """Replace the stored copy (interaction flags only change through the ledger)."""
        ...

    def list(
        self,
        player_id: Optional[str] = None,
        algorithm: Optional[str] = None,
        source: Optional[RecommendationSource] = None,
    ) -> List[GameRecommendation]:
        """Matching records, newest first."""
        ...


class InMemoryRecommendationStore:
    """Recommendation store kept in process memory."""

    def __init__(self):
        self._lock = threading.RLock()
        self._records: Dict[str, GameRecommendation] = {}
        self._order: List[str] = []

    def __len__(self) -> int:
        return len(self._records)

    def save_many(self, recommendations: List[GameRecommendation]) -> None:
        with self._lock:
            self._commit(*self._staged(recommendations))

    def get(self, recommendation_id: str) -> Optional[GameRecommendation]:
        with self._lock:
            rec = self._records.get(recommendation_id)
            return rec.model_copy() if rec else None

    def update(self, recommendation: GameRecommendation) -> None:
        with self._lock:
            self._commit(*self._staged([recommendation]))

    def _staged(
        self, recommendations: List[GameRecommendation]
    ) -> Tuple[Dict[str, GameRecommendation], List[str]]:
        """Copies of the record map and insertion order with `recommendations` applied."""
        records = dict(self._records)
        order = list(self._order)
        for rec in recommendations:
            if rec.id not in records:
                order.append(rec.id)
            records[rec.id] = rec.model_copy()
        return records, order

    def _commit(self, records: Dict[str, GameRecommendation], order: List[str]) -> None:
        """Swap in staged state. Persistent subclasses write first and raise on failure."""
        self._records = records
        self._order = order

    def list(
        self,
        player_id: Optional[str] = None,
        algorithm: Optional[str] = None,
        source: Optional[RecommendationSource] = None,
    ) -> List[GameRecommendation]:
        with self._lock:
            out = []
            for rec_id in reversed(self._order):
                rec = self._records[rec_id]
                if player_id is not None and rec.player_id != player_id:
                    continue
                if algorithm is not None and rec.algorithm != algorithm:
                    continue
                if source is not None and rec.source != source:
                    continue
                out.append(rec.model_copy())
            return out


def latest_generation(
    store: RecommendationStore,
    player_id: str,
    source: Optional[RecommendationSource] = None,
) -> List[GameRecommendation]:
    """Most recent generation for a player, ordered by position."""
    records = store.list(player_id=player_id, source=source)
    if not records:
        return []
    newest = records[0]
    generation_id = newest.generation_id
    if generation_id is None:
        same = [r for r in records if r.created_at == newest.created_at]
    else:
        same = [r for r in records if r.generation_id == generation_id]
    return sorted(same, key=lambda r: r.position)


class BanditArmStore(Protocol):
    """Protocol for the arm arena. update() must be atomic per (context, game_id)."""

    def get(self, context: str, game_id: str) -> Optional[BanditArm]:
        ...

    def arms_for_context(self, context: str) -> Dict[str, BanditArm]:
        """game_id -> arm for one context."""
        ...

    def update(self, context: str, game_id: str, reward: float) -> BanditArm:
        """Add one pull with the given reward; return the new arm state."""
        ...


class InMemoryBanditArmStore:
    """
    Arm arena with one lock per (context, game_id).

    Updates to the same arm serialize; updates to different arms never share a lock.
    """

    def __init__(self, arms: Optional[List[BanditArm]] = None):
        self._arms: Dict[ArmKey, BanditArm] = {}
        self._locks: Dict[ArmKey, threading.Lock] = {}
        self._locks_guard = threading.Lock()
        for arm in arms or []:
            self._arms[(arm.context, arm.game_id)] = arm

    def _lock_for(self, key: ArmKey) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    def get(self, context: str, game_id: str) -> Optional[BanditArm]:
        arm = self._arms.get((context, game_id))
        return arm.model_copy() if arm else None

    def arms_for_context(self, context: str) -> Dict[str, BanditArm]:
        return {
            game_id: arm.model_copy()
            for (ctx, game_id), arm in list(self._arms.items())
            if ctx == context
        }

    def all(self) -> List[BanditArm]:
        return [arm.model_copy() for arm in list(self._arms.values())]

    def update(self, context: str, game_id: str, reward: float) -> BanditArm:
        key = (context, game_id)
        with self._lock_for(key):
            current = self._arms.get(key) or BanditArm(context=key[0], game_id=key[1])
            arm = _add_pull(current, reward)
            self._commit(key, arm)
            return arm.model_copy()

    def _commit(self, key: ArmKey, arm: BanditArm) -> None:
        """Install the new arm state. Called with the arm lock held; persistent
        subclasses write first and raise to leave the old state in place."""
        self._arms[key] = arm


def _add_pull(arm: BanditArm, reward: float) -> BanditArm:
    return arm.model_copy(
        update={
            "pulls": arm.pulls + 1,
            "cumulative_reward": arm.cumulative_reward + reward,
            "updated_at": datetime.now(timezone.utc),
        }
    )
