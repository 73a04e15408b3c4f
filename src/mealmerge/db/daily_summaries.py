"""Data access helpers for generated daily summaries."""

from __future__ import annotations

from datetime import date
from typing import List

from sqlalchemy import select

from mealmerge.models.records import DailySummary

from .models import DailySummaryORM
from .repository import session_scope


def _to_model(row: DailySummaryORM) -> DailySummary:
    return DailySummary.model_validate(
        {
            "id": row.id,
            "user_id": row.user_id,
            "date": row.date,
            "summary": row.summary,
            "created_at": row.created_at,
        }
    )


def save_daily_summary(*, user_id: str, summary_date: date, summary: str) -> DailySummary:
    with session_scope() as session:
        row = DailySummaryORM(user_id=user_id, date=summary_date, summary=summary)
        session.add(row)
        session.flush()
        session.refresh(row)
        return _to_model(row)


def list_daily_summaries(user_id: str) -> List[DailySummary]:
    with session_scope() as session:
        rows = (
            session.execute(
                select(DailySummaryORM)
                .where(DailySummaryORM.user_id == user_id)
                .order_by(DailySummaryORM.date.desc())
            )
            .scalars()
            .all()
        )
        return [_to_model(row) for row in rows]


__all__ = ["save_daily_summary", "list_daily_summaries"]
