"""Common Pydantic models shared across routes."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Base for API bodies: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RecommendationItem(ApiModel):
    recommendation_id: str
    game_id: str
    score: float
    position: int
    reason: str = ""
    category: str = ""
    confidence: float
    features: Optional[Dict[str, Any]] = None
    game_metadata: Optional[Dict[str, Any]] = None
