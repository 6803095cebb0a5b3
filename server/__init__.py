"""
Game Recommendation Engine Server

Usage: uvicorn server:app --reload --port 8000
       python -m server.server
"""

from .app import app, create_app
from .config import ServerConfig, get_config, reload_config
from .services import DatasetLoader, HttpGameCatalog, JsonBanditArmStore, JsonRecommendationStore
from .state import AppState, get_state, set_state

__all__ = [
    "app",
    "create_app",
    "AppState",
    "DatasetLoader",
    "HttpGameCatalog",
    "JsonBanditArmStore",
    "JsonRecommendationStore",
    "ServerConfig",
    "get_config",
    "get_state",
    "reload_config",
    "set_state",
]
