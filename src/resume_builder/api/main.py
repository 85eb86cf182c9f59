"""FastAPI application entry point for the Resume Builder API."""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from resume_builder.api.routes import health, resumes, users
from resume_builder.config import get_settings

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create the schema on startup."""
    from resume_builder.data.db import init_db

    init_db()
    logger.info("Resume Builder API started")
    yield


app = FastAPI(
    title="Resume Builder API",
    description="API for creating and editing resumes",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[get_settings().frontend_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(users.router, prefix="/api")
app.include_router(resumes.router, prefix="/api")


def main(host: str | None = None, port: int | None = None, reload: bool = False) -> None:
    """Start the API server."""
    import uvicorn

    logging.basicConfig(
        level=os.getenv("RESUME_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        "resume_builder.api.main:app",
        host=host or os.getenv("RESUME_HOST", "0.0.0.0"),
        port=port or int(os.getenv("RESUME_PORT", "8000")),
        reload=reload,
    )


if __name__ == "__main__":
    main(reload=True)
