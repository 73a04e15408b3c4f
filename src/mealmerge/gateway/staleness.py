"""Reject end-user merges of guest data that has been dormant too long."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable

from mealmerge.db.owned_records import OwnedRecordStore
from mealmerge.errors import StalenessError

logger = logging.getLogger(__name__)

DEFAULT_MAX_AGE = timedelta(days=30)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive timestamps written by CURRENT_TIMESTAMP, which is UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class StalenessGuard:
    """Check the newest activity of a guest in the primary store."""

    def __init__(
        self,
        store: OwnedRecordStore,
        *,
        max_age: timedelta = DEFAULT_MAX_AGE,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._store = store
        self._max_age = max_age
        self._clock = clock

    @property
    def max_age(self) -> timedelta:
        return self._max_age

    def check(self, owner_id: str) -> None:
        """Raise :class:`StalenessError` when the newest record is older than ``max_age``.

        An owner without any records passes; there is nothing to protect.
        """

        latest = self._store.latest_activity(owner_id)
        if latest is None:
            return
        age = _as_utc(self._clock()) - _as_utc(latest)
        if age > self._max_age:
            logger.info(
                "Guest data in %s is %s days old (limit %s)",
                self._store.name,
                age.days,
                self._max_age.days,
            )
            raise StalenessError("Guest data is too old to merge")


__all__ = ["StalenessGuard", "DEFAULT_MAX_AGE", "utcnow"]
