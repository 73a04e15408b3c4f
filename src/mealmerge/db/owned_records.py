"""Owner-filtered operations shared by every record store.

Each store is addressed independently: every call opens its own session, so a
transfer in one store commits or rolls back without regard to the others.
"""
# mypy: ignore-errors

from __future__ import annotations

from datetime import datetime
from typing import Dict, Optional, Type

from sqlalchemy import func, select, update

from .models import Base, DailySummaryORM, MealLogORM, PushSubscriptionORM, UserNameORM
from .repository import session_scope


class OwnedRecordStore:
    """Read latest activity, bulk-transfer and count rows by ``user_id``."""

    def __init__(self, name: str, model: Type[Base]) -> None:
        self.name = name
        self._model = model

    def __repr__(self) -> str:
        return f"OwnedRecordStore({self.name!r})"

    def latest_activity(self, owner_id: str) -> Optional[datetime]:
        """Return the newest ``created_at`` owned by ``owner_id``, if any."""

        model = self._model
        with session_scope() as session:
            return session.execute(
                select(func.max(model.created_at)).where(model.user_id == owner_id)
            ).scalar_one_or_none()

    def transfer(self, from_owner: str, to_owner: str) -> int:
        """Re-own every row of ``from_owner``; returns the driver-reported row count."""

        model = self._model
        with session_scope() as session:
            result = session.execute(
                update(model)
                .where(model.user_id == from_owner)
                .values(user_id=to_owner)
                .execution_options(synchronize_session=False)
            )
            # Not every backend reports affected rows on UPDATE; callers re-read counts.
            return max(result.rowcount or 0, 0)

    def count(self, owner_id: str) -> int:
        model = self._model
        with session_scope() as session:
            return int(
                session.execute(
                    select(func.count()).select_from(model).where(model.user_id == owner_id)
                ).scalar_one()
            )


MEAL_LOGS = OwnedRecordStore("meal_logs", MealLogORM)
USER_NAMES = OwnedRecordStore("user_names", UserNameORM)
PUSH_SUBSCRIPTIONS = OwnedRecordStore("push_subscriptions", PushSubscriptionORM)
DAILY_SUMMARIES = OwnedRecordStore("daily_summaries", DailySummaryORM)

STORES: Dict[str, OwnedRecordStore] = {
    store.name: store for store in (MEAL_LOGS, USER_NAMES, PUSH_SUBSCRIPTIONS, DAILY_SUMMARIES)
}


def get_store(name: str) -> OwnedRecordStore:
    try:
        return STORES[name]
    except KeyError as exc:
        raise ValueError(f"Unknown record store {name!r}") from exc


__all__ = [
    "OwnedRecordStore",
    "MEAL_LOGS",
    "USER_NAMES",
    "PUSH_SUBSCRIPTIONS",
    "DAILY_SUMMARIES",
    "STORES",
    "get_store",
]
