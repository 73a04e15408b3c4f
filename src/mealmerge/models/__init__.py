"""Pydantic models defining shared data contracts."""

from mealmerge.models.audit import AuditRecord, Outcome
from mealmerge.models.records import (
    DailySummary,
    MealLog,
    OwnershipReport,
    PushSubscription,
    UserName,
)
from mealmerge.models.requests import MergeRequest, RecoveryRequest

__all__ = [
    "AuditRecord",
    "Outcome",
    "DailySummary",
    "MealLog",
    "OwnershipReport",
    "PushSubscription",
    "UserName",
    "MergeRequest",
    "RecoveryRequest",
]
