"""Tests for the merge request pipeline."""

from __future__ import annotations

import logging

import pytest

from mealmerge.db.meal_logs import record_meal_log
from mealmerge.db.owned_records import MEAL_LOGS
from mealmerge.errors import (
    AuthorizationError,
    FatalMergeError,
    MergeValidationError,
    NoLegacyDataError,
    StalenessError,
)
from mealmerge.gateway.audit import AUDIT_LOGGER_NAME, AuditLogger
from mealmerge.gateway.auth import AuthenticationValidator
from mealmerge.gateway.merge import RECOVERY_PLAN, MergeExecutor
from mealmerge.gateway.service import (
    MergeGateway,
    parse_merge_command,
    parse_recovery_command,
)
from mealmerge.gateway.staleness import StalenessGuard
from tests.fakes import ADMIN_SECRET, StaticIdentityProvider, days_ago

ADMIN = {"authorization": f"Bearer {ADMIN_SECRET}"}


@pytest.fixture()
def provider() -> StaticIdentityProvider:
    return StaticIdentityProvider({"token-a1": "a-1"})


def _gateway(provider, **overrides) -> MergeGateway:
    options = dict(
        action="merge_user_data",
        parser=parse_merge_command,
        validator=AuthenticationValidator(admin_secret=ADMIN_SECRET, identity_provider=provider),
        staleness_guard=StalenessGuard(MEAL_LOGS),
        executor=MergeExecutor(),
        audit=AuditLogger(),
    )
    options.update(overrides)
    return MergeGateway(**options)


def _audit_outcomes(caplog) -> list[str]:
    return [r.audit["outcome"] for r in caplog.records if r.name == AUDIT_LOGGER_NAME]


@pytest.mark.parametrize(
    "payload",
    [
        None,
        [],
        "g-1",
        {},
        {"guestUserId": "g-1"},
        {"guestUserId": "", "authUserId": "a-1"},
        {"guestUserId": "   ", "authUserId": "a-1"},
        {"guestUserId": 7, "authUserId": "a-1"},
        {"guestUserId": "g-1", "authUserId": "x" * 129},
    ],
)
def test_parse_merge_command_rejects_invalid_payloads(payload):
    with pytest.raises(MergeValidationError) as excinfo:
        parse_merge_command(payload)

    assert excinfo.value.message == "Missing guestUserId or authUserId"


def test_parse_commands_map_field_names():
    merge = parse_merge_command({"guestUserId": " g-1 ", "authUserId": "a-1", "adminPassword": "pw"})
    recovery = parse_recovery_command({"legacyUserId": "old", "currentUserId": "new"})

    assert (merge.source_id, merge.target_id, merge.admin_password) == ("g-1", "a-1", "pw")
    assert (recovery.source_id, recovery.target_id, recovery.admin_password) == ("old", "new", None)


def test_identical_ids_skip_without_authentication(provider, caplog):
    caplog.set_level(logging.INFO, logger=AUDIT_LOGGER_NAME)
    record_meal_log(user_id="same", meal_type="lunch")

    outcome = _gateway(provider).run(
        {"guestUserId": "same", "authUserId": "same"}, headers={}, client_key="k"
    )

    assert outcome.skipped is True
    assert outcome.result is None
    assert provider.calls == []
    assert MEAL_LOGS.count("same") == 1
    assert _audit_outcomes(caplog) == ["skipped"]


def test_denied_request_mutates_nothing(provider, caplog):
    caplog.set_level(logging.INFO, logger=AUDIT_LOGGER_NAME)
    record_meal_log(user_id="g-1", meal_type="lunch")

    with pytest.raises(AuthorizationError):
        _gateway(provider).run({"guestUserId": "g-1", "authUserId": "a-1"}, headers={}, client_key="k")

    assert MEAL_LOGS.count("g-1") == 1
    assert _audit_outcomes(caplog) == ["denied"]


def test_end_user_path_checks_staleness(provider, caplog):
    caplog.set_level(logging.INFO, logger=AUDIT_LOGGER_NAME)
    record_meal_log(user_id="g-1", meal_type="lunch", created_at=days_ago(31))

    with pytest.raises(StalenessError):
        _gateway(provider).run(
            {"guestUserId": "g-1", "authUserId": "a-1"},
            headers={"authorization": "Bearer token-a1"},
            client_key="k",
        )

    assert MEAL_LOGS.count("g-1") == 1
    assert _audit_outcomes(caplog) == ["stale"]


def test_service_path_skips_staleness(provider):
    record_meal_log(user_id="g-1", meal_type="lunch", created_at=days_ago(120))

    outcome = _gateway(provider).run(
        {"guestUserId": "g-1", "authUserId": "a-1"}, headers=ADMIN, client_key="k"
    )

    assert outcome.auth_method == "admin"
    assert outcome.result.count("meal_logs") == 1


def test_successful_end_user_merge(provider, caplog):
    caplog.set_level(logging.INFO, logger=AUDIT_LOGGER_NAME)
    record_meal_log(user_id="g-1", meal_type="lunch", created_at=days_ago(1))

    outcome = _gateway(provider).run(
        {"guestUserId": "g-1", "authUserId": "a-1"},
        headers={"authorization": "Bearer token-a1"},
        client_key="k",
    )

    assert outcome.auth_method == "user"
    assert outcome.command.target_id == "a-1"
    assert MEAL_LOGS.count("a-1") == 1
    assert _audit_outcomes(caplog) == ["success"]


def test_recovery_rejects_identical_ids(provider):
    gateway = _gateway(
        provider,
        action=RECOVERY_PLAN.name,
        parser=parse_recovery_command,
        executor=MergeExecutor(RECOVERY_PLAN),
        skip_identical=False,
        require_existing=True,
    )

    with pytest.raises(MergeValidationError) as excinfo:
        gateway.run({"legacyUserId": "x", "currentUserId": "x"}, headers=ADMIN, client_key="k")

    assert excinfo.value.message == "Invalid user IDs"


def test_recovery_without_legacy_data_is_not_found(provider, caplog):
    caplog.set_level(logging.INFO, logger=AUDIT_LOGGER_NAME)
    gateway = _gateway(
        provider,
        action=RECOVERY_PLAN.name,
        parser=parse_recovery_command,
        executor=MergeExecutor(RECOVERY_PLAN),
        skip_identical=False,
        require_existing=True,
    )

    with pytest.raises(NoLegacyDataError):
        gateway.run({"legacyUserId": "old", "currentUserId": "new"}, headers=ADMIN, client_key="k")

    assert _audit_outcomes(caplog) == ["not_found"]


def test_unexpected_errors_become_fatal(provider, monkeypatch, caplog):
    caplog.set_level(logging.INFO, logger=AUDIT_LOGGER_NAME)

    def explode(owner_id):
        raise RuntimeError("driver exploded for g-1")

    monkeypatch.setattr(MEAL_LOGS, "latest_activity", explode)

    with pytest.raises(FatalMergeError) as excinfo:
        _gateway(provider).run(
            {"guestUserId": "g-1", "authUserId": "a-1"},
            headers={"authorization": "Bearer token-a1"},
            client_key="k",
        )

    assert isinstance(excinfo.value.__cause__, RuntimeError)
    assert _audit_outcomes(caplog) == ["failed"]
    assert not any("g-1" in record.getMessage() for record in caplog.records)
