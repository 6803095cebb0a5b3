"""Config Pydantic models."""

from typing import Any, Dict

from pydantic import BaseModel


class ConfigUpdateRequest(BaseModel):
    """Request body for an algorithm config update (merged into the current config)."""
    config: Dict[str, Any]
