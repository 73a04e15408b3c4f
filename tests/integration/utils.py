"""Shared helpers for integration tests."""

from __future__ import annotations

from tests.fakes import ADMIN_SECRET

MERGE_URL = "/api/merge-user-data"
RECOVERY_URL = "/api/recover-legacy-data"
SUBSCRIPTIONS_URL = "/api/push/subscriptions"


def admin_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {ADMIN_SECRET}"}


def user_headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def from_ip(ip: str, headers: dict[str, str] | None = None) -> dict[str, str]:
    return {**(headers or {}), "X-Forwarded-For": ip}
