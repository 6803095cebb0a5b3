"""
Game Recommendation Engine: FastAPI app factory.

Use: uvicorn server.app:app
Or:  from server import app
"""

import asyncio
import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .routes import register_routes
from .state import get_state

logger = logging.getLogger(__name__)

# Package loggers that follow LOG_LEVEL
APP_LOGGERS = ("recommender", "server")


def configure_logging(level: str) -> None:
    """Apply LOG_LEVEL to the root handler and the engine/server loggers."""
    numeric = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=numeric,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    for name in APP_LOGGERS:
        logging.getLogger(name).setLevel(numeric)


def create_app() -> FastAPI:
    """Build FastAPI app with CORS, routes, and startup."""
    app = FastAPI(
        title="Game Recommendation Engine API",
        description="Real-time and batch game recommendations with hybrid fusion and bandit exploration",
        version="1.0.0",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_routes(app)
    batch_task: Optional[asyncio.Task] = None

    @app.on_event("startup")
    async def start_engine():
        nonlocal batch_task
        state = get_state()
        config = state.config
        configure_logging(config.log_level)
        ok, errors = config.validate()
        for error in errors:
            logger.warning("[startup] CONFIG_WARNING %s", error)
        logger.info(
            "[startup] Engine ready: data_source=%s dataset=%s storage=%s valid=%s",
            config.data_source,
            state.current_dataset.folder_name if state.current_dataset else None,
            config.storage_dir,
            ok,
        )
        if config.batch_interval_minutes > 0:
            batch_task = asyncio.create_task(
                state.batch_generator.run_periodically(config.batch_interval_minutes * 60)
            )
            logger.info(
                "[startup] Batch scheduler every %s minutes", config.batch_interval_minutes
            )

    @app.on_event("shutdown")
    async def stop_engine():
        if batch_task is not None:
            get_state().batch_generator.cancel()
            batch_task.cancel()

    return app


app = create_app()
