# src/queryloop/main.py
"""Main entry point for the QueryLoop application."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from queryloop.api import admin
from queryloop.api.v1 import (
    answers_router,
    questions_router,
    tags_router,
    users_router,
    votes_router,
)
from queryloop.core.logging import configure_logging
from queryloop.core.settings import settings
from queryloop.exceptions import QueryLoopError

configure_logging()
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="QueryLoop API",
    description="Questions, answers, voting and moderation",
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

# Include API routers
app.include_router(questions_router, prefix="/api/v1")
app.include_router(answers_router, prefix="/api/v1")
app.include_router(votes_router, prefix="/api/v1")
app.include_router(users_router, prefix="/api/v1")
app.include_router(tags_router, prefix="/api/v1")
app.include_router(admin.moderation_router, prefix="/api/admin")
app.include_router(admin.questions_router, prefix="/api/admin")
app.include_router(admin.users_router, prefix="/api/admin")


@app.exception_handler(QueryLoopError)
async def queryloop_error_handler(request: Request, exc: QueryLoopError) -> JSONResponse:
    """Render service errors as ``{"error": message}``."""
    if exc.status_code >= 500:
        logger.error(
            "%s %s failed: %s %s",
            request.method,
            request.url.path,
            exc.message,
            exc.context,
            exc_info=exc,
        )
    else:
        logger.info("%s %s rejected: %s", request.method, request.url.path, exc.message)
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message}, headers=headers)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
        "redoc": "/redoc",
    }


def run() -> None:
    """Run the API with uvicorn."""
    import uvicorn
    uvicorn.run("queryloop.main:app", host="0.0.0.0", port=8000, reload=settings.debug)


if __name__ == "__main__":
    run()
