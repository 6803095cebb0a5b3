"""Configuration endpoints: current engine config, update, datasets."""

import logging

from fastapi import APIRouter, HTTPException
from pydantic import ValidationError

from ..models import ConfigUpdateRequest
from ..state import get_state
from ..utils import deep_merge

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("")
def get_current_config():
    """Server settings and the effective engine configuration."""
    state = get_state()
    config = state.config
    return {
        "server": {
            "data_source": config.data_source,
            "dataset": state.current_dataset.folder_name if state.current_dataset else None,
            "catalog_api_url": config.catalog_api_url,
            "storage_dir": str(config.storage_dir) if config.storage_dir else None,
            "batch_interval_minutes": config.batch_interval_minutes,
        },
        "algorithm": state.engine_config.model_dump(),
    }


@router.put("")
def update_config(request: ConfigUpdateRequest):
    """Merge overrides into the algorithm config and rebuild the engine."""
    state = get_state()
    merged = deep_merge(state.algorithm_config, request.config)
    try:
        engine_config = state.apply_algorithm_config(merged)
    except (ValidationError, ValueError) as e:
        raise HTTPException(status_code=400, detail=f"Invalid config: {e}")
    logger.info("[config] UPDATED keys=%s", sorted(request.config))
    return {"status": "updated", "algorithm": engine_config.model_dump()}


@router.get("/datasets")
def list_datasets():
    """List all available datasets."""
    state = get_state()
    return {
        "datasets": state.dataset_loader.list_datasets(),
        "current": state.current_dataset.folder_name if state.current_dataset else None,
    }
