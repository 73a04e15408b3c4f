"""Tests for the guest-data staleness guard."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from mealmerge.db.meal_logs import record_meal_log
from mealmerge.db.owned_records import MEAL_LOGS
from mealmerge.errors import StalenessError
from mealmerge.gateway.staleness import StalenessGuard
from tests.fakes import days_ago


def test_owner_without_records_passes():
    StalenessGuard(MEAL_LOGS).check("nobody")


def test_recent_activity_passes():
    record_meal_log(user_id="g-1", meal_type="lunch", created_at=days_ago(10))

    StalenessGuard(MEAL_LOGS).check("g-1")


def test_newest_record_decides():
    record_meal_log(user_id="g-1", meal_type="lunch", created_at=days_ago(90))
    record_meal_log(user_id="g-1", meal_type="dinner", created_at=days_ago(29))

    StalenessGuard(MEAL_LOGS).check("g-1")


def test_dormant_guest_is_rejected():
    record_meal_log(user_id="g-1", meal_type="lunch", created_at=days_ago(45))

    with pytest.raises(StalenessError) as excinfo:
        StalenessGuard(MEAL_LOGS).check("g-1")

    assert excinfo.value.status_code == 400


def test_max_age_is_configurable():
    record_meal_log(user_id="g-1", meal_type="lunch", created_at=days_ago(5))

    with pytest.raises(StalenessError):
        StalenessGuard(MEAL_LOGS, max_age=timedelta(days=3)).check("g-1")


def test_offset_timestamps_are_compared_in_utc():
    # 29 days ago in UTC, written from a clock 12 hours behind.
    behind = timezone(timedelta(hours=-12))
    local = (datetime.now(timezone.utc) - timedelta(days=29)).astimezone(behind)
    record_meal_log(user_id="g-1", meal_type="lunch", created_at=local)

    StalenessGuard(MEAL_LOGS, max_age=timedelta(days=29, hours=6)).check("g-1")
