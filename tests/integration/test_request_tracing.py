"""Tests for request id propagation and access logging."""

from __future__ import annotations

import logging

from tests.integration.utils import MERGE_URL, admin_headers


def test_request_id_is_echoed(client):
    response = client.post(
        MERGE_URL,
        json={"guestUserId": "x", "authUserId": "x"},
        headers={"X-Request-ID": "trace-123"},
    )

    assert response.headers["X-Request-ID"] == "trace-123"


def test_request_id_is_generated(client):
    response = client.get("/metrics")

    assert len(response.headers["X-Request-ID"]) == 32


def test_access_log_omits_credentials(client, caplog):
    caplog.set_level(logging.INFO)

    client.post(
        MERGE_URL,
        json={"guestUserId": "g-1", "authUserId": "a-1"},
        headers=admin_headers(),
    )

    access = [record for record in caplog.records if record.name == "mealmerge.access"]
    assert access
    assert access[-1].getMessage().startswith("HTTP POST /api/merge-user-data status=200")
    assert all("test-admin-secret" not in record.getMessage() for record in caplog.records)
