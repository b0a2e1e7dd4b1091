"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from protograph.logs import DATE_FORMAT, LOG_FORMAT, configure_logging

# Logging is configured before the routers import and create their loggers.
configure_logging()

# Unify uvicorn loggers with app format
for uvicorn_logger_name in ("uvicorn", "uvicorn.access", "uvicorn.error"):
    uvicorn_logger = logging.getLogger(uvicorn_logger_name)
    uvicorn_logger.handlers.clear()
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    uvicorn_logger.addHandler(handler)

from protograph import __version__  # noqa: E402
from protograph.api.routers import render  # noqa: E402
from protograph.render import find_graphviz  # noqa: E402

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Lifespan handler for startup and shutdown events.

    On startup, reports whether Graphviz is available. The API only returns
    DOT text, so a missing binary is not an error here.
    """
    dot_path = find_graphviz()
    if dot_path is None:
        logger.info("Graphviz not found, image output is unavailable")
    else:
        logger.info(f"Graphviz found at: {dot_path}")

    logger.info("protograph started")

    yield


app = FastAPI(
    title="protograph",
    description="Type inclusion graphs for protobuf schemas",
    version=__version__,
    lifespan=lifespan,
)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


# Include routers
app.include_router(render.router)
