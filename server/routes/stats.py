"""Stats endpoint."""

from fastapi import APIRouter

from ..state import get_state

router = APIRouter()


@router.get("/stats")
def get_stats():
    """Get current statistics."""
    state = get_state()
    stats = {
        "data_source": state.config.data_source,
        "total_recommendations": len(state.recommendation_store.list()),
        "bandit_arms": len(state.arm_store.all()),
        "counters": state.orchestrator.ledger.counters(),
    }
    if state.current_dataset is not None:
        stats.update({
            "dataset": state.current_dataset.folder_name,
            "total_games": len(state.current_dataset.games),
            "total_players": len(state.current_dataset.players),
            "total_plays": len(state.current_dataset.plays),
        })
    return stats
