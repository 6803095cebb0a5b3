"""
Interaction Ledger: impressions and their outcomes (click, play, dismiss).

Flags on a GameRecommendation are write-once and ordered: a play on an
unclicked recommendation also marks it clicked. Recording the same
interaction twice changes nothing and reports changed=False so the caller
skips the bandit reward.

Aggregate counters per algorithm feed the performance endpoint.
"""

import logging
import threading
from collections import Counter, defaultdict
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from .errors import InvalidArgument, NotFound, PersistenceFailure
from .models.recommendation import GameRecommendation, InteractionType
from .stores import RecommendationStore

logger = logging.getLogger(__name__)


def parse_interaction_type(value) -> InteractionType:
    """Accept enum or case-insensitive string."""
    if isinstance(value, InteractionType):
        return value
    try:
        return InteractionType(str(value).strip().lower())
    except ValueError:
        allowed = ", ".join(t.value for t in InteractionType)
        raise InvalidArgument(f"interaction_type must be one of {allowed}, got {value!r}")


class InteractionLedger:
    """Append-only record of impressions and interaction outcomes."""

    def __init__(self, store: RecommendationStore):
        self.store = store
        self._lock = threading.Lock()
        self._counters: Dict[str, Counter] = defaultdict(Counter)

    def append_impressions(self, recommendations: List[GameRecommendation]) -> None:
        """Persist a generation and count impressions. Raises PersistenceFailure."""
        if not recommendations:
            return
        try:
            self.store.save_many(recommendations)
        except Exception as e:
            raise PersistenceFailure(
                f"Could not persist {len(recommendations)} recommendations "
                f"for player {recommendations[0].player_id}: {e}",
                cause=e,
            ) from e
        with self._lock:
            for rec in recommendations:
                self._counters[rec.algorithm]["impressions"] += 1

    def record(
        self,
        recommendation_id: str,
        interaction_type,
        at: Optional[datetime] = None,
    ) -> Tuple[GameRecommendation, bool]:
        """
        Set the interaction flag on a recommendation.

        Returns (recommendation, changed). changed is False when the flag was already set.
        Raises NotFound for unknown ids, InvalidArgument for unknown types.
        """
        kind = parse_interaction_type(interaction_type)
        at = at or datetime.now(timezone.utc)
        with self._lock:
            rec = self.store.get(recommendation_id)
            if rec is None:
                raise NotFound("recommendation", recommendation_id)
            updates = {}
            if kind is InteractionType.CLICK and not rec.is_clicked:
                updates = {"is_clicked": True, "clicked_at": at}
            elif kind is InteractionType.PLAY and not rec.is_played:
                updates = {"is_played": True, "played_at": at}
                if not rec.is_clicked:
                    updates.update({"is_clicked": True, "clicked_at": at})
            elif kind is InteractionType.DISMISS and not rec.is_dismissed:
                updates = {"is_dismissed": True, "dismissed_at": at}
            if not updates:
                logger.debug(
                    "[ledger] INTERACTION_DUPLICATE recommendation_id=%s type=%s",
                    recommendation_id, kind.value,
                )
                return rec, False
            updated = rec.model_copy(update=updates)
            try:
                self.store.update(updated)
            except Exception as e:
                raise PersistenceFailure(
                    f"Could not record {kind.value} for recommendation {recommendation_id}: {e}",
                    cause=e,
                ) from e
            counters = self._counters[updated.algorithm]
            if "is_clicked" in updates:
                counters["clicks"] += 1
            if "is_played" in updates:
                counters["plays"] += 1
            if "is_dismissed" in updates:
                counters["dismisses"] += 1
            return updated, True

    def counters(self) -> Dict[str, Dict[str, int]]:
        """Snapshot of in-process aggregate counters per algorithm."""
        with self._lock:
            return {alg: dict(c) for alg, c in self._counters.items()}

    def performance_metrics(
        self,
        algorithm: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        player_id: Optional[str] = None,
    ) -> Dict:
        """
        Impressions, clicks, plays, dismisses, CTR, conversion rate, and average
        score, overall and per algorithm, computed from stored records.
        """
        records = self.store.list(player_id=player_id, algorithm=algorithm)
        if start is not None:
            records = [r for r in records if r.created_at >= start]
        if end is not None:
            records = [r for r in records if r.created_at <= end]

        by_algorithm: Dict[str, List[GameRecommendation]] = defaultdict(list)
        for rec in records:
            by_algorithm[rec.algorithm].append(rec)

        return {
            "summary": _summarize(records),
            "algorithmPerformance": [
                {"algorithm": alg, **_summarize(recs)}
                for alg, recs in sorted(by_algorithm.items())
            ],
            "timeRange": {
                "start": start.isoformat() if start else None,
                "end": end.isoformat() if end else None,
            },
        }


def _summarize(records: List[GameRecommendation]) -> Dict:
    total = len(records)
    clicks = sum(1 for r in records if r.is_clicked)
    plays = sum(1 for r in records if r.is_played)
    dismisses = sum(1 for r in records if r.is_dismissed)
    return {
        "totalRecommendations": total,
        "totalClicks": clicks,
        "totalPlays": plays,
        "totalDismisses": dismisses,
        "clickThroughRate": round(100.0 * clicks / total, 2) if total else 0.0,
        "conversionRate": round(100.0 * plays / total, 2) if total else 0.0,
        "averageScore": round(sum(r.score for r in records) / total, 4) if total else 0.0,
    }
