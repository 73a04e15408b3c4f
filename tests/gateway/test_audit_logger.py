"""Tests for the environment-aware audit trail."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from mealmerge.gateway.audit import AUDIT_LOGGER_NAME, AuditLogger
from mealmerge.logging_utils import REDACTED

FIXED_NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


def _audit_records(caplog):
    return [record for record in caplog.records if record.name == AUDIT_LOGGER_NAME]


def test_production_records_omit_identifiers(caplog):
    caplog.set_level(logging.INFO, logger=AUDIT_LOGGER_NAME)
    audit = AuditLogger(development=False, clock=lambda: FIXED_NOW)

    record = audit.record(
        action="merge_user_data",
        client_key="203.0.113.9",
        outcome="success",
        auth_method="admin",
        counts={"meal_logs": 3},
        source_id="guest-0123456789",
        target_id="auth-0123456789",
    )

    assert record.source_ref is None
    assert record.target_ref is None
    (logged,) = _audit_records(caplog)
    assert logged.levelno == logging.INFO
    assert logged.audit["outcome"] == "success"
    assert logged.audit["counts"] == {"meal_logs": 3}
    assert "source_ref" not in logged.audit
    assert "guest-0123456789" not in logged.getMessage()


def test_development_records_carry_truncated_identifiers():
    audit = AuditLogger(development=True, clock=lambda: FIXED_NOW)

    record = audit.build(
        action="merge_user_data",
        client_key="unknown",
        outcome="skipped",
        source_id="guest-0123456789",
        target_id="a-1",
    )

    assert record.source_ref == "guest-01..."
    assert record.target_ref == "a-1"
    assert record.timestamp == FIXED_NOW
    assert REDACTED not in (record.source_ref, record.target_ref)


def test_failures_are_logged_as_warnings(caplog):
    caplog.set_level(logging.INFO, logger=AUDIT_LOGGER_NAME)

    AuditLogger().record(action="merge_user_data", client_key="unknown", outcome="denied")

    (logged,) = _audit_records(caplog)
    assert logged.levelno == logging.WARNING
    assert logged.audit["outcome"] == "denied"
