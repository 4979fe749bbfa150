# -*- coding: utf-8 -*-
"""Users — API endpoints."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends

from .dependencies import get_metrics_service
from .models import ActivityStats, CountResponse, ErrorResponse, GrowthResponse, UserPublic
from .service import UserMetricsService

router = APIRouter(
    prefix="/users",
    tags=["Users"],
    responses={500: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)


@router.get("", response_model=List[UserPublic], summary="List all users")
def list_users(service: UserMetricsService = Depends(get_metrics_service)):
    return service.list_users()


@router.get("/count", response_model=CountResponse, summary="Total number of users")
def user_count(service: UserMetricsService = Depends(get_metrics_service)):
    return CountResponse(count=service.user_count())


@router.get("/new-this-month", response_model=CountResponse, summary="Users created this calendar month (UTC)")
def new_this_month(service: UserMetricsService = Depends(get_metrics_service)):
    return CountResponse(count=service.new_users_this_month())


@router.get("/active-this-week", response_model=CountResponse, summary="Users active in the trailing 7 days")
def active_this_week(service: UserMetricsService = Depends(get_metrics_service)):
    return CountResponse(count=service.active_users_this_week())


@router.get("/growth", response_model=GrowthResponse, summary="Monthly sign-ups over the growth horizon")
def growth(service: UserMetricsService = Depends(get_metrics_service)):
    return GrowthResponse(series=service.user_growth())


@router.get("/activity-stats", response_model=ActivityStats, summary="Composite user activity summary")
def activity_stats(service: UserMetricsService = Depends(get_metrics_service)):
    return service.activity_stats()
