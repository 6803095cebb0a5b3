"""Register all route modules on the FastAPI app."""

from fastapi import FastAPI

from .config import router as config_router
from .recommendations import router as recommendations_router
from .root import router as root_router
from .stats import router as stats_router


def register_routes(app: FastAPI) -> None:
    """Attach all API routers to the app."""
    app.include_router(root_router)
    app.include_router(config_router, prefix="/api/config", tags=["config"])
    app.include_router(
        recommendations_router, prefix="/api/recommendations", tags=["recommendations"]
    )
    app.include_router(stats_router, prefix="/api", tags=["stats"])
