"""
Batch generation: materialize hybrid recommendation sets with source="batch".

Failures are per player and collected into a BatchReport; one failing player
never stops the run. Concurrency is bounded by batch_concurrency and a
cancel() request is honoured between players.
"""

import asyncio
import logging
import time
from datetime import timedelta
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field

from .errors import BatchInProgress, RecommendationError
from .models.config import RecommendationConfig
from .models.recommendation import Algorithm, RecommendationSource, utc_now
from .stages.orchestrator import RecommendationOrchestrator
from .stores import latest_generation

logger = logging.getLogger(__name__)

SUCCESS = "success"
SKIPPED = "skipped"
FAILED = "failed"


class PlayerBatchResult(BaseModel):
    player_id: str
    status: str
    recommendations_generated: int = 0
    processing_time_ms: float = 0.0
    message: str = ""


class BatchReport(BaseModel):
    total: int = 0
    succeeded: int = 0
    skipped: int = 0
    failed: int = 0
    failures: List[Tuple[str, str]] = Field(default_factory=list)
    cancelled: bool = False
    processing_time_ms: float = 0.0


class BatchGenerator:
    """Runs get_recommendations(algorithm="hybrid", source="batch") per player."""

    def __init__(
        self,
        orchestrator: RecommendationOrchestrator,
        config: Optional[RecommendationConfig] = None,
    ):
        self.orchestrator = orchestrator
        self.config = config or orchestrator.config
        self._cancel = asyncio.Event()
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def cancel(self) -> None:
        """Stop the current run after in-flight players finish."""
        self._cancel.set()

    def _is_fresh(self, player_id: str) -> bool:
        latest = latest_generation(
            self.orchestrator.recommendations, player_id, RecommendationSource.BATCH
        )
        if not latest:
            return False
        age = utc_now() - latest[0].created_at
        return age < timedelta(hours=self.config.batch_freshness_hours)

    async def generate_for_player(self, player_id: str, force: bool = False) -> PlayerBatchResult:
        """Generate one player's batch set. Errors are returned, not raised."""
        started = time.perf_counter()

        def elapsed() -> float:
            return round((time.perf_counter() - started) * 1000, 2)

        if not force and self._is_fresh(player_id):
            return PlayerBatchResult(
                player_id=player_id,
                status=SKIPPED,
                processing_time_ms=elapsed(),
                message=(
                    f"Batch recommendations younger than "
                    f"{self.config.batch_freshness_hours}h already exist"
                ),
            )
        try:
            result = await self.orchestrator.get_recommendations(
                player_id,
                algorithm=Algorithm.HYBRID.value,
                count=self.config.batch_default_count,
                source=RecommendationSource.BATCH,
            )
        except RecommendationError as e:
            logger.warning(
                "[batch] PLAYER_FAILED player_id=%s algorithm=hybrid error=%s", player_id, e
            )
            return PlayerBatchResult(
                player_id=player_id, status=FAILED, processing_time_ms=elapsed(), message=str(e)
            )
        except Exception as e:
            logger.exception("[batch] PLAYER_ERROR player_id=%s algorithm=hybrid", player_id)
            return PlayerBatchResult(
                player_id=player_id, status=FAILED, processing_time_ms=elapsed(), message=str(e)
            )

        n = len(result.recommendations)
        return PlayerBatchResult(
            player_id=player_id,
            status=SUCCESS,
            recommendations_generated=n,
            processing_time_ms=elapsed(),
            message=f"Generated {n} recommendations",
        )

    async def generate_for_all_players(
        self,
        player_ids: Optional[List[str]] = None,
        force: bool = True,
    ) -> BatchReport:
        """
        Generate for the given players (every catalog player when None).

        Only one run may be active at a time; a second call raises BatchInProgress
        without touching the active run's cancel flag.
        """
        if self._running:
            raise BatchInProgress("A batch run is already in progress")
        # No await between check and set
        self._running = True
        self._cancel.clear()
        started = time.perf_counter()
        try:
            if player_ids is None:
                player_ids = [p.id for p in await self.orchestrator.catalog.list_players()]
            semaphore = asyncio.Semaphore(max(1, self.config.batch_concurrency))
            logger.info("[batch] RUN_STARTED players=%s force=%s", len(player_ids), force)

            async def run_one(player_id: str) -> Optional[PlayerBatchResult]:
                async with semaphore:
                    if self._cancel.is_set():
                        return None
                    return await self.generate_for_player(player_id, force=force)

            outcomes = await asyncio.gather(*(run_one(pid) for pid in player_ids))
        finally:
            self._running = False

        report = BatchReport(total=len(player_ids))
        for outcome in outcomes:
            if outcome is None:
                report.cancelled = True
            elif outcome.status == SUCCESS:
                report.succeeded += 1
            elif outcome.status == SKIPPED:
                report.skipped += 1
            else:
                report.failed += 1
                report.failures.append((outcome.player_id, outcome.message))
        report.processing_time_ms = round((time.perf_counter() - started) * 1000, 2)
        logger.info(
            "[batch] RUN_FINISHED total=%s succeeded=%s skipped=%s failed=%s cancelled=%s",
            report.total, report.succeeded, report.skipped, report.failed, report.cancelled,
        )
        return report

    async def run_periodically(self, interval_seconds: float) -> None:
        """Run the whole-population batch every interval until cancelled."""
        while True:
            try:
                await self.generate_for_all_players(force=False)
            except BatchInProgress:
                logger.info("[batch] SCHEDULED_RUN_SKIPPED reason=run_in_progress")
            except Exception:
                logger.exception("[batch] SCHEDULED_RUN_FAILED")
            await asyncio.sleep(interval_seconds)
