"""Tests for the mealmerge command-line interface."""

from __future__ import annotations

import json

import pytest
from typer.testing import CliRunner

from mealmerge.cli import app
from mealmerge.db.meal_logs import record_meal_log
from mealmerge.db.owned_records import MEAL_LOGS
from mealmerge.db.user_names import save_user_name

runner = CliRunner()


@pytest.fixture(autouse=True)
def keep_test_logging(monkeypatch):
    """Leave pytest's log handlers in place while commands run."""

    monkeypatch.setattr("mealmerge.cli.configure_logging", lambda *args, **kwargs: None)


def test_merge_command_moves_records():
    record_meal_log(user_id="g-1", meal_type="lunch")
    save_user_name("g-1", "Sam")

    result = runner.invoke(app, ["merge", "g-1", "a-1", "--no-pretty"])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout.strip().splitlines()[-1])
    assert payload["success"] is True
    assert payload["plan"] == "merge_user_data"
    assert payload["transferred"]["meal_logs"] == 1
    assert MEAL_LOGS.count("a-1") == 1


def test_merge_command_skips_identical_ids():
    result = runner.invoke(app, ["merge", "same", "same", "--no-pretty"])

    assert result.exit_code == 0
    assert json.loads(result.stdout.strip().splitlines()[-1]) == {"success": True, "skipped": True}


def test_merge_command_recover_plan():
    record_meal_log(user_id="legacy", meal_type="lunch")

    result = runner.invoke(app, ["merge", "legacy", "current", "--recover", "--no-pretty"])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout.strip().splitlines()[-1])
    assert payload["plan"] == "recover_legacy_data"
    assert "daily_summaries" in payload["transferred"]


def test_records_command_reports_counts():
    record_meal_log(user_id="a-1", meal_type="lunch")

    result = runner.invoke(app, ["records", "a-1", "--no-pretty"])

    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["user_id"] == "a-1"
    assert payload["counts"]["meal_logs"] == 1
    assert payload["counts"]["daily_summaries"] == 0
    assert payload["latest_activity"] is not None


def test_records_command_single_store_with_rows():
    record_meal_log(user_id="a-1", meal_type="dinner", content="curry")

    result = runner.invoke(app, ["records", "a-1", "--store", "meal_logs", "--rows", "--no-pretty"])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["counts"] == {"meal_logs": 1}
    assert [row["content"] for row in payload["meal_logs"]] == ["curry"]
    assert payload["daily_summaries"] == []


def test_records_command_rejects_unknown_store():
    result = runner.invoke(app, ["records", "a-1", "--store", "friends"])

    assert result.exit_code == 2
