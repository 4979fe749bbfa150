# -*- coding: utf-8 -*-
"""
Diet planner API

User listing and population metrics, plus the user/dietitian auth endpoints
used by the frontend.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .auth.api import router as auth_router
from .config import settings
from .users.api import router as users_router
from .users.errors import AggregationFailure, MetricsError
from .users.service import UserMetricsService
from .users.storage import UserStore
from .users.windows import utc_now

logger = logging.getLogger(__name__)


def create_app(
    *,
    db_path: Optional[Path] = None,
    store_timeout: Optional[float] = None,
    growth_months: Optional[int] = None,
    clock: Callable[[], datetime] = utc_now,
) -> FastAPI:
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        store = UserStore(
            db_path or settings.db_path,
            timeout=settings.store_timeout if store_timeout is None else store_timeout,
        )
        store.open()
        app.state.user_store = store
        app.state.metrics_service = UserMetricsService(
            store,
            growth_months=settings.growth_months if growth_months is None else growth_months,
            clock=clock,
        )
        try:
            yield
        finally:
            store.close()

    app = FastAPI(
        title="Diet Planner API",
        description="User metrics and authentication for the diet planner frontend",
        version="1.0.0",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(MetricsError)
    async def _metrics_error(request: Request, exc: MetricsError) -> JSONResponse:
        if isinstance(exc, AggregationFailure):
            logger.error("%s %s: aggregation failed in %s", request.method, request.url.path, exc.operation)
        else:
            logger.error("%s %s: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"message": exc.message})

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = exc.errors()
        first = errors[0] if errors else {}
        location = ".".join(str(p) for p in first.get("loc", ()))
        message = f"{location}: {first.get('msg', 'invalid request')}" if location else "Invalid request"
        return JSONResponse(status_code=422, content={"message": message})

    app.include_router(auth_router)
    app.include_router(users_router)

    @app.get("/api/health")
    def health() -> dict:
        return {"ok": True}

    return app


app = create_app()


def run() -> None:
    """Console entry point (used by pyproject [project.scripts])."""
    import uvicorn

    try:
        port = int(settings.port_raw)
    except ValueError:
        port = 5000

    uvicorn.run("dietplanner.api:app", host=settings.host, port=port, reload=False)
