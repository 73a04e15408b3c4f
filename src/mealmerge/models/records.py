"""Owned record models returned by the persistence layer."""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class MealLog(BaseModel):
    """Meal entry logged through the chat flow."""

    id: int
    user_id: str
    date: date
    meal_type: str
    content: Optional[str] = Field(default=None)
    created_at: datetime

    model_config = ConfigDict(frozen=True)


class UserName(BaseModel):
    """Display name owned by a user."""

    id: int
    user_id: str
    name: Optional[str] = Field(default=None, max_length=255)
    created_at: datetime

    model_config = ConfigDict(frozen=True)


class PushSubscription(BaseModel):
    """Registered web-push endpoint; the raw subscription keys are never exposed."""

    id: int
    user_id: str
    endpoint: str
    created_at: datetime

    model_config = ConfigDict(frozen=True)


class DailySummary(BaseModel):
    """Generated summary of one day of meals."""

    id: int
    user_id: str
    date: date
    summary: str
    created_at: datetime

    model_config = ConfigDict(frozen=True)


class OwnershipReport(BaseModel):
    """Row counts and latest activity for one owner across every store."""

    user_id: str
    counts: dict[str, int] = Field(default_factory=dict)
    latest_activity: Optional[datetime] = Field(default=None)
    meal_logs: list[MealLog] = Field(default_factory=list)
    daily_summaries: list[DailySummary] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)


__all__ = ["MealLog", "UserName", "PushSubscription", "DailySummary", "OwnershipReport"]
