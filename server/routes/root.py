"""Root and health endpoints."""

from fastapi import APIRouter

from ..state import get_state

router = APIRouter()


@router.get("/")
def root():
    state = get_state()
    return {
        "name": "Game Recommendation Engine API",
        "version": "1.0.0",
        "status": "ready",
        "current": {
            "data_source": state.config.data_source,
            "dataset": state.current_dataset.folder_name if state.current_dataset else None,
            "catalog": type(state.catalog).__name__,
        },
        "endpoints": {
            "recommendations": [
                "/api/recommendations/player/{player_id}",
                "/api/recommendations/similar-games/{game_id}",
                "/api/recommendations/trending",
                "/api/recommendations/interaction",
            ],
            "batch": [
                "/api/recommendations/batch/player/{player_id}",
                "/api/recommendations/batch/run",
            ],
            "analytics": ["/api/recommendations/", "/api/recommendations/performance"],
            "config": ["/api/config", "/api/config/datasets"],
        },
    }


@router.get("/api/health")
def health():
    state = get_state()
    return {
        "status": "healthy",
        "catalog": type(state.catalog).__name__,
        "recommendation_store": type(state.recommendation_store).__name__,
        "batch_running": state.batch_generator.running,
    }
