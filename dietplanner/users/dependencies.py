# -*- coding: utf-8 -*-
"""Users — FastAPI dependencies resolving the process-owned store/service."""

from __future__ import annotations

from fastapi import Request

from .errors import StoreUnavailable
from .service import UserMetricsService
from .storage import UserStore


def get_user_store(request: Request) -> UserStore:
    store = getattr(request.app.state, "user_store", None)
    if store is None:
        raise StoreUnavailable("User store is not configured")
    return store


def get_metrics_service(request: Request) -> UserMetricsService:
    service = getattr(request.app.state, "metrics_service", None)
    if service is None:
        raise StoreUnavailable("Metrics service is not configured")
    return service
