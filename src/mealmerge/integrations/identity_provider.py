"""Bearer-token verification against the hosted auth service."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Protocol

import httpx

from mealmerge.config import get_settings
from mealmerge.errors import IdentityResolutionError

logger = logging.getLogger(__name__)

USER_ENDPOINT = "/auth/v1/user"


class IdentityProvider(Protocol):
    """Resolve an end-user bearer token to the principal identifier it was issued for."""

    def resolve_principal(self, token: str) -> str:
        """Return the principal id or raise :class:`IdentityResolutionError`."""


class HostedIdentityProvider:
    """Minimal client for the hosted auth service's ``/auth/v1/user`` endpoint."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        settings = get_settings()
        self._base_url = (base_url or settings.identity_provider_url or "").rstrip("/")
        self._api_key = api_key or settings.identity_provider_api_key
        self._timeout = timeout if timeout is not None else settings.identity_provider_timeout
        self._transport = transport

    def _headers(self, token: str) -> Dict[str, str]:
        headers = {"Authorization": f"Bearer {token}", "Accept": "application/json"}
        if self._api_key:
            headers["apikey"] = self._api_key
        return headers

    def resolve_principal(self, token: str) -> str:
        if not self._base_url:
            raise IdentityResolutionError("Identity provider URL is not configured.")
        if not token:
            raise IdentityResolutionError("Empty bearer token.")

        endpoint = f"{self._base_url}{USER_ENDPOINT}"
        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
                response = client.get(endpoint, headers=self._headers(token))
        except httpx.HTTPError as exc:
            raise IdentityResolutionError(f"Identity provider unreachable: {exc.__class__.__name__}") from exc

        if response.status_code != httpx.codes.OK:
            raise IdentityResolutionError(
                f"Identity provider rejected token (status={response.status_code})"
            )

        try:
            payload: Any = response.json()
        except ValueError as exc:
            raise IdentityResolutionError("Identity provider returned invalid JSON") from exc

        principal = payload.get("id") if isinstance(payload, dict) else None
        if not isinstance(principal, str) or not principal:
            raise IdentityResolutionError("Identity provider response missing user id")
        return principal


def build_identity_provider() -> IdentityProvider:
    """Return the identity provider configured for this deployment."""

    settings = get_settings()
    if not settings.identity_provider_url:
        logger.debug("Identity provider not configured; end-user tokens will be rejected")
    return HostedIdentityProvider()


__all__ = ["IdentityProvider", "HostedIdentityProvider", "build_identity_provider"]
