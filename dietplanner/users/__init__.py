# -*- coding: utf-8 -*-
"""Users domain (listing + population metrics).

- storage: SQLite-backed user store handle
- service: counts, growth series and the composite activity summary
- api: /users endpoints
"""

from .errors import AggregationFailure, InvalidTimeWindow, MetricsError, StoreUnavailable
from .service import UserMetricsService
from .storage import UserStore

__all__ = [
    "AggregationFailure",
    "InvalidTimeWindow",
    "MetricsError",
    "StoreUnavailable",
    "UserMetricsService",
    "UserStore",
]
