"""Data access helpers for display names."""

from __future__ import annotations

from typing import Optional

from sqlalchemy import select

from mealmerge.models.records import UserName

from .models import UserNameORM
from .repository import session_scope


def _to_model(row: UserNameORM) -> UserName:
    return UserName.model_validate(
        {"id": row.id, "user_id": row.user_id, "name": row.name, "created_at": row.created_at}
    )


def save_user_name(user_id: str, name: Optional[str]) -> UserName:
    """Insert or update the display name owned by ``user_id``."""

    cleaned = name.strip() if name else None
    with session_scope() as session:
        row = (
            session.execute(select(UserNameORM).where(UserNameORM.user_id == user_id))
            .scalars()
            .first()
        )
        if row is None:
            row = UserNameORM(user_id=user_id, name=cleaned)
            session.add(row)
        else:
            row.name = cleaned
        session.flush()
        session.refresh(row)
        return _to_model(row)


def get_user_name(user_id: str) -> Optional[UserName]:
    with session_scope() as session:
        row = (
            session.execute(
                select(UserNameORM)
                .where(UserNameORM.user_id == user_id)
                .order_by(UserNameORM.id.asc())
            )
            .scalars()
            .first()
        )
        if row is None:
            return None
        return _to_model(row)


__all__ = ["save_user_name", "get_user_name"]
