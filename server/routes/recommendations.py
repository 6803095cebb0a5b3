"""Recommendation endpoints: real-time, similar, trending, interactions, batch, history."""

from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from recommender.errors import (
    BatchInProgress,
    InvalidArgument,
    NotFound,
    RecommendationError,
    UpstreamUnavailable,
)

from ..models import (
    BatchPlayerResponse,
    BatchRunRequest,
    BatchRunResponse,
    BatchSetResponse,
    InteractionRequest,
    InteractionResponse,
    RecommendationListResponse,
    RecommendationsResponse,
    SimilarGameItem,
    SimilarGamesResponse,
    TrendingGameItem,
    TrendingGamesResponse,
)
from ..state import get_state
from ..utils import to_history_item, to_recommendation_item

router = APIRouter()


def _http_error(e: RecommendationError) -> HTTPException:
    """Map engine errors to HTTP status codes."""
    if isinstance(e, InvalidArgument):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, NotFound):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, UpstreamUnavailable):
        return HTTPException(status_code=503, detail=str(e))
    return HTTPException(status_code=500, detail=str(e))


def _parse_count(raw: Optional[str]) -> Optional[int]:
    """Query count as int; non-integers are a 400 like any other bad count."""
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        raise InvalidArgument(f"count must be an integer, got {raw!r}")


@router.get("/player/{player_id}", response_model=RecommendationsResponse)
async def get_player_recommendations(
    player_id: str,
    algorithm: Optional[str] = Query(None, description="collaborative | content-based | bandit | hybrid | default"),
    count: Optional[str] = Query(None, description="Number of recommendations (1-50)"),
    context: Optional[str] = Query(None, description="e.g. lobby, game_end, promotion"),
    include_metadata: bool = Query(False),
):
    """Real-time recommendations for one player."""
    state = get_state()
    try:
        result = await state.orchestrator.get_recommendations(
            player_id,
            algorithm=algorithm,
            count=_parse_count(count),
            context=context,
            include_metadata=include_metadata,
        )
    except RecommendationError as e:
        raise _http_error(e)
    return RecommendationsResponse(
        player_id=result.player_id,
        algorithm=result.algorithm,
        context=result.context,
        status=result.status.value,
        audited=result.audited,
        processing_time_ms=result.processing_time_ms,
        excluded_strategies=result.excluded_strategies,
        recommendations=[
            to_recommendation_item(rec, result.game_metadata.get(rec.game_id))
            for rec in result.recommendations
        ],
    )


@router.get("/similar-games/{game_id}", response_model=SimilarGamesResponse)
async def get_similar_games(
    game_id: str,
    count: Optional[str] = Query(None),
    player_id: Optional[str] = Query(None),
):
    state = get_state()
    try:
        similar = await state.orchestrator.get_similar_games(
            game_id, count=_parse_count(count), player_id=player_id
        )
    except RecommendationError as e:
        raise _http_error(e)
    return SimilarGamesResponse(
        base_game_id=game_id,
        similar_games=[
            SimilarGameItem(game_id=s.game_id, similarity_score=s.similarity_score, reason=s.reason)
            for s in similar
        ],
    )


@router.get("/trending", response_model=TrendingGamesResponse)
async def get_trending_games(
    timeframe: Optional[str] = Query(None, description="1h | 24h | 7d | 30d"),
    count: Optional[str] = Query(None),
    player_id: Optional[str] = Query(None),
):
    state = get_state()
    timeframe = timeframe or state.engine_config.default_timeframe
    try:
        trending = await state.orchestrator.get_trending_games(
            timeframe=timeframe, count=_parse_count(count), player_id=player_id
        )
    except RecommendationError as e:
        raise _http_error(e)
    return TrendingGamesResponse(
        timeframe=timeframe,
        generated_at=datetime.now(timezone.utc),
        trending_games=[
            TrendingGameItem(
                game_id=t.game_id,
                trend_score=t.trend_score,
                play_count=t.play_count,
                growth_rate=t.growth_rate,
            )
            for t in trending
        ],
    )


@router.post("/interaction", response_model=InteractionResponse)
def record_interaction(request: InteractionRequest):
    """Record click / play / dismiss. Repeating an interaction is a no-op."""
    state = get_state()
    try:
        state.orchestrator.record_interaction(request.recommendation_id, request.interaction_type)
    except RecommendationError as e:
        raise _http_error(e)
    return InteractionResponse(success=True)


@router.post("/batch/player/{player_id}", response_model=BatchPlayerResponse)
async def generate_batch_for_player(player_id: str, force: bool = Query(False)):
    state = get_state()
    if await state.catalog.get_player(player_id) is None:
        raise HTTPException(status_code=404, detail=f"player not found: {player_id}")
    result = await state.batch_generator.generate_for_player(player_id, force=force)
    return BatchPlayerResponse(**result.model_dump())


@router.get("/batch/player/{player_id}", response_model=BatchSetResponse)
async def get_batch_for_player(player_id: str):
    state = get_state()
    try:
        recs = await state.orchestrator.get_batch_recommendations(player_id)
    except RecommendationError as e:
        raise _http_error(e)
    return BatchSetResponse(
        player_id=player_id,
        generated_at=recs[0].created_at if recs else None,
        recommendations=[to_recommendation_item(r) for r in recs],
    )


@router.post("/batch/run", response_model=BatchRunResponse)
async def run_batch(request: Optional[BatchRunRequest] = None):
    """Generate batch sets for the given players (all catalog players by default)."""
    state = get_state()
    request = request or BatchRunRequest()
    try:
        report = await state.batch_generator.generate_for_all_players(
            player_ids=request.player_ids, force=request.force
        )
    except BatchInProgress as e:
        raise HTTPException(status_code=409, detail=str(e))
    return BatchRunResponse(**report.model_dump())


@router.post("/batch/cancel")
def cancel_batch():
    state = get_state()
    running = state.batch_generator.running
    state.batch_generator.cancel()
    return {"cancelled": running}


@router.get("/performance")
def get_performance(
    algorithm: Optional[str] = Query(None),
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    player_id: Optional[str] = Query(None),
):
    """CTR, conversion rate and average score per algorithm."""
    state = get_state()
    try:
        return state.orchestrator.get_performance_metrics(
            algorithm=algorithm, start=start, end=end, player_id=player_id
        )
    except RecommendationError as e:
        raise _http_error(e)


@router.get("/", response_model=RecommendationListResponse)
def list_recommendations(
    player_id: Optional[str] = Query(None),
    algorithm: Optional[str] = Query(None),
    page: int = Query(1),
    page_size: int = Query(20),
):
    """Paginated recommendation history, newest first."""
    state = get_state()
    try:
        result = state.orchestrator.list_recommendations(
            player_id=player_id, algorithm=algorithm, page=page, page_size=page_size
        )
    except RecommendationError as e:
        raise _http_error(e)
    return RecommendationListResponse(
        items=[to_history_item(r) for r in result.items],
        total=result.total,
        page=result.page,
        page_size=result.page_size,
        total_pages=result.total_pages,
    )
