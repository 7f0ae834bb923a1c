"""FastAPI application wiring for warcodex."""

from __future__ import annotations

import logging
from collections.abc import Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from warcodex import __version__
from warcodex.api import routes
from warcodex.api.runtime import ApiState, build_state
from warcodex.config import get_settings

logger = logging.getLogger(__name__)


def create_app(*, state_factory: Callable[[], ApiState] = build_state) -> FastAPI:
    """Build the API; ``state_factory`` runs once per lifespan, not at import time.

    A factory that raises (an invalid reference hierarchy, an unreachable
    database) aborts startup.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.api_state = state_factory()
        logger.info("warcodex %s started", __version__)
        try:
            yield
        finally:
            await app.state.api_state.shutdown()

    app = FastAPI(title="warcodex API", version=__version__, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=get_settings().cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["*"],
    )
    app.include_router(routes.router)
    return app


app = create_app()
