"""Data access helpers for logged meals."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import List, Optional

from sqlalchemy import select

from mealmerge.models.records import MealLog

from .models import MealLogORM
from .repository import session_scope


def _to_model(row: MealLogORM) -> MealLog:
    return MealLog.model_validate(
        {
            "id": row.id,
            "user_id": row.user_id,
            "date": row.date,
            "meal_type": row.meal_type,
            "content": row.content,
            "created_at": row.created_at,
        }
    )


def record_meal_log(
    *,
    user_id: str,
    meal_type: str,
    content: Optional[str] = None,
    log_date: Optional[date] = None,
    created_at: Optional[datetime] = None,
) -> MealLog:
    """Insert a meal entry; ``created_at`` defaults to the database clock."""

    if created_at is not None and created_at.tzinfo is not None:
        # Stored timestamps are naive UTC, matching CURRENT_TIMESTAMP.
        created_at = created_at.astimezone(timezone.utc).replace(tzinfo=None)
    with session_scope() as session:
        row = MealLogORM(
            user_id=user_id,
            meal_type=meal_type.strip().lower(),
            content=content,
            date=log_date or (created_at.date() if created_at else date.today()),
        )
        if created_at is not None:
            row.created_at = created_at
        session.add(row)
        session.flush()
        session.refresh(row)
        return _to_model(row)


def list_meal_logs(user_id: str) -> List[MealLog]:
    """Return a user's meals, newest first."""

    with session_scope() as session:
        rows = (
            session.execute(
                select(MealLogORM)
                .where(MealLogORM.user_id == user_id)
                .order_by(MealLogORM.date.desc(), MealLogORM.id.desc())
            )
            .scalars()
            .all()
        )
        return [_to_model(row) for row in rows]


__all__ = ["record_meal_log", "list_meal_logs"]
