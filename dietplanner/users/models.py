# -*- coding: utf-8 -*-
"""Users — Pydantic models."""

from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class UserRole(str, Enum):
    USER = "user"
    DIETITIAN = "dietitian"


class UserPublic(BaseModel):
    id: str
    email: str
    role: UserRole
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    created_at: str
    last_active_at: Optional[str] = None


class CountResponse(BaseModel):
    count: int = Field(..., ge=0)


class GrowthPoint(BaseModel):
    period: str = Field(..., description="Calendar month, YYYY-MM")
    count: int = Field(..., ge=0)


class GrowthResponse(BaseModel):
    series: List[GrowthPoint]


class ActivityStats(BaseModel):
    total_users: int = Field(..., ge=0)
    new_this_month: int = Field(..., ge=0)
    active_this_week: int = Field(..., ge=0)
    growth: GrowthResponse
    generated_at: str


class ErrorResponse(BaseModel):
    message: str
