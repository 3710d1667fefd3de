# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Warrant Contributors

"""Starlette application exposing the article feed."""

from __future__ import annotations

import asyncio
import logging
import math
from contextlib import asynccontextmanager
from typing import Any

from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from ..core.config import get_config
from ..core.context import TrustContext, default_context
from ..core.logging import correlation_context
from ..core.response import ok
from ..distribution.feed import DEFAULT_FEED_LIMIT, FeedService
from .errors import exception_response, validation_error

logger = logging.getLogger(__name__)

MAX_FEED_LIMIT = 50
SORT_RANKED = "ranked"
SORT_CHRONOLOGICAL = "chronological"


def _int_param(request: Request, name: str, default: int) -> int:
    raw = request.query_params.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer") from None


def _context(request: Request) -> TrustContext:
    return request.app.state.ctx


async def feed_endpoint(request: Request) -> JSONResponse:
    """GET /feed?page&limit&sort&authorId"""
    ctx = _context(request)
    with correlation_context():
        try:
            page = max(1, _int_param(request, "page", 1))
            limit = min(MAX_FEED_LIMIT, max(1, _int_param(request, "limit", DEFAULT_FEED_LIMIT)))
        except ValueError as e:
            return validation_error(str(e))

        sort = SORT_CHRONOLOGICAL if request.query_params.get("sort") == SORT_CHRONOLOGICAL else SORT_RANKED
        author_id = request.query_params.get("authorId") or None
        offset = (page - 1) * limit

        feed = FeedService(ctx)
        try:
            if sort == SORT_CHRONOLOGICAL:
                result = await feed.get_chronological_feed(limit=limit, offset=offset, author_id=author_id)
            else:
                result = await feed.get_feed(limit=limit, offset=offset, author_id=author_id)
        except Exception as e:
            return exception_response(e, hide_details=ctx.settings.is_production)

        data: dict[str, Any] = {
            "articles": [a.to_dict() for a in result.articles],
            "pagination": {
                "page": page,
                "limit": limit,
                "total": result.total,
                "pages": math.ceil(result.total / limit),
            },
            "sort": sort,
        }
        return JSONResponse(ok(data).to_dict())


def _ping_database(ctx: TrustContext) -> None:
    with ctx.cursor() as cur:
        cur.execute("SELECT 1")


async def health_endpoint(request: Request) -> JSONResponse:
    """Health check endpoint."""
    ctx = _context(request)
    health: dict[str, Any] = {"status": "healthy"}
    try:
        await asyncio.to_thread(_ping_database, ctx)
        health["database"] = "connected"
    except Exception as e:  # Intentionally broad: health check should report all errors
        health["database"] = f"error: {e}"
        health["status"] = "degraded"

    return JSONResponse(health, status_code=200 if health["status"] == "healthy" else 503)


def create_app(ctx: TrustContext | None = None) -> Starlette:
    """Create the Starlette ASGI application.

    Without ``ctx`` the production context (database pool, configured cache)
    is built at startup and the pool is closed at shutdown.
    """
    settings = ctx.settings if ctx is not None else get_config()

    @asynccontextmanager
    async def lifespan(app: Starlette):
        owns_context = getattr(app.state, "ctx", None) is None
        if owns_context:
            app.state.ctx = default_context()
        logger.info("Warrant feed server starting (environment=%s)", settings.environment)
        yield
        if owns_context:
            from ..core.db import close_pool

            close_pool()
        logger.info("Warrant feed server shutting down")

    routes = [
        Route("/health", health_endpoint, methods=["GET"]),
        Route("/feed", feed_endpoint, methods=["GET"]),
    ]
    middleware = [
        Middleware(
            CORSMiddleware,
            allow_origins=settings.allowed_origins,
            allow_methods=["GET", "OPTIONS"],
            allow_headers=["Content-Type"],
        ),
    ]

    app = Starlette(routes=routes, middleware=middleware, lifespan=lifespan)
    if ctx is not None:
        app.state.ctx = ctx
    return app


def run() -> None:
    """Run the server using uvicorn."""
    import uvicorn

    settings = get_config()
    logger.info("Starting Warrant feed server on %s:%s", settings.host, settings.port)
    uvicorn.run(create_app(), host=settings.host, port=settings.port)
