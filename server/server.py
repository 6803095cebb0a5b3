#!/usr/bin/env python3
"""
Game Recommendation Engine Server: entrypoint for `python -m server.server`.

`uvicorn server:app` works too; either way logging follows LOG_LEVEL once the
app starts up (see server.app.configure_logging).
"""

from .app import app, configure_logging
from .config import get_config


if __name__ == "__main__":
    import uvicorn

    config = get_config()
    configure_logging(config.log_level)
    uvicorn.run(app, host=config.host, port=config.port, log_level=config.log_level.lower())
