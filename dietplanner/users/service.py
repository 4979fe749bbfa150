# -*- coding: utf-8 -*-
"""Users — population metrics.

Every operation is a stateless read evaluated against the store at call time.
``now`` defaults to the service clock (UTC); ``timeout`` defaults to the
store's configured per-call budget.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Callable, Iterator, List, Optional

from .errors import AggregationFailure, InvalidTimeWindow, MetricsError, StoreUnavailable
from .models import ActivityStats, GrowthPoint, GrowthResponse, UserPublic
from .storage import UserStore
from .windows import TimeWindow, format_ts, month_periods, month_window, trailing_window, utc_now

logger = logging.getLogger(__name__)

ACTIVE_WINDOW_DAYS = 7


class UserMetricsService:
    """Answers aggregate questions about the user population."""

    def __init__(
        self,
        store: UserStore,
        *,
        growth_months: int = 6,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = store
        self._growth_months = growth_months
        self._clock = clock
        logger.info("Initialized UserMetricsService (growth horizon %d months)", growth_months)

    def _now(self, now: Optional[datetime]) -> datetime:
        return self._clock() if now is None else now

    @contextmanager
    def _logged(self, operation: str, window: Optional[TimeWindow] = None) -> Iterator[None]:
        try:
            yield
        except MetricsError as exc:
            logger.error("%s failed (window=%s): %s", operation, window or "-", exc.message)
            raise

    def list_users(self, *, timeout: Optional[float] = None) -> List[UserPublic]:
        with self._logged("list_users"):
            rows = self._store.list_users(timeout=timeout)
        return [UserPublic(**row) for row in rows]

    def user_count(self, *, timeout: Optional[float] = None) -> int:
        with self._logged("user_count"):
            return self._store.count_users(timeout=timeout)

    def new_users_this_month(self, *, now: Optional[datetime] = None, timeout: Optional[float] = None) -> int:
        with self._logged("new_users_this_month"):
            window = month_window(self._now(now))
        with self._logged("new_users_this_month", window):
            return self._store.count_created_between(window, timeout=timeout)

    def active_users_this_week(self, *, now: Optional[datetime] = None, timeout: Optional[float] = None) -> int:
        with self._logged("active_users_this_week"):
            window = trailing_window(self._now(now), days=ACTIVE_WINDOW_DAYS)
        with self._logged("active_users_this_week", window):
            return self._store.count_active_between(window, timeout=timeout)

    def user_growth(self, *, now: Optional[datetime] = None, timeout: Optional[float] = None) -> List[GrowthPoint]:
        with self._logged("user_growth"):
            periods = month_periods(self._now(now), self._growth_months)
            span = TimeWindow(periods[0].window.start, periods[-1].window.end)
        with self._logged("user_growth", span):
            counts = self._store.created_counts_by_month(span, timeout=timeout)
        return [GrowthPoint(period=p.label, count=counts.get(p.label, 0)) for p in periods]

    def activity_stats(self, *, now: Optional[datetime] = None, timeout: Optional[float] = None) -> ActivityStats:
        """Total, new-this-month, active-this-week and growth at one instant.

        Any failing sub-query aborts the whole summary with
        ``AggregationFailure`` naming that sub-query.
        """
        at = self._now(now)
        steps = (
            ("user_count", lambda: self.user_count(timeout=timeout)),
            ("new_users_this_month", lambda: self.new_users_this_month(now=at, timeout=timeout)),
            ("active_users_this_week", lambda: self.active_users_this_week(now=at, timeout=timeout)),
            ("user_growth", lambda: self.user_growth(now=at, timeout=timeout)),
        )
        results = {}
        for name, step in steps:
            try:
                results[name] = step()
            except (StoreUnavailable, InvalidTimeWindow) as exc:
                raise AggregationFailure(name, exc) from exc

        return ActivityStats(
            total_users=results["user_count"],
            new_this_month=results["new_users_this_month"],
            active_this_week=results["active_users_this_week"],
            growth=GrowthResponse(series=results["user_growth"]),
            generated_at=format_ts(at),
        )
