# -*- coding: utf-8 -*-
"""Users — metrics error taxonomy."""

from __future__ import annotations


class MetricsError(Exception):
    """Base class; rendered as ``{"message": ...}`` with ``status_code``."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class StoreUnavailable(MetricsError):
    """The user store could not be reached, failed a query, or timed out."""

    status_code = 503


class InvalidTimeWindow(MetricsError):
    """A computed time boundary is malformed (e.g. start after end)."""

    status_code = 500


class AggregationFailure(MetricsError):
    """A sub-query of a composite aggregate failed; no partial result."""

    status_code = 500

    def __init__(self, operation: str, cause: MetricsError) -> None:
        super().__init__(f"Aggregation failed in {operation}: {cause.message}")
        self.operation = operation
        self.cause = cause
