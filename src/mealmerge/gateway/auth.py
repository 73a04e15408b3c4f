"""Request authorization via a service credential or an end-user token.

The service-credential path compares the admin secret found in the
``Authorization`` header, the ``X-Admin-Password`` header, or the body (in that
order). Only if none match is the bearer token resolved through the identity
provider and required to name the same principal the body claims.
"""

from __future__ import annotations

import hmac
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional, Union

from mealmerge.errors import AuthorizationError, IdentityResolutionError
from mealmerge.integrations.identity_provider import IdentityProvider
from mealmerge.logging_utils import describe_identifier

logger = logging.getLogger(__name__)

ADMIN_HEADER = "x-admin-password"


class AuthScheme(str, Enum):
    ADMIN = "admin"
    USER = "user"


@dataclass(frozen=True)
class Authorized:
    scheme: AuthScheme
    principal: Optional[str] = None


@dataclass(frozen=True)
class Denied:
    reason: str


AuthDecision = Union[Authorized, Denied]


def bearer_token(headers: Mapping[str, str]) -> Optional[str]:
    """Return the token from an ``Authorization: Bearer`` header, if present."""

    raw = headers.get("authorization")
    if not raw:
        return None
    scheme, _, token = raw.strip().partition(" ")
    if scheme.lower() != "bearer":
        return None
    token = token.strip()
    return token or None


def secrets_match(candidate: Optional[str], secret: Optional[str]) -> bool:
    """Constant-time comparison that never matches an unset secret."""

    if not candidate or not secret:
        return False
    return hmac.compare_digest(candidate.encode("utf-8"), secret.encode("utf-8"))


class AuthenticationValidator:
    """Decide whether a request may act on behalf of ``claimed_principal``."""

    def __init__(
        self,
        *,
        admin_secret: Optional[str],
        identity_provider: IdentityProvider,
        development: bool = False,
    ) -> None:
        self._admin_secret = admin_secret
        self._identity_provider = identity_provider
        self._development = development

    def service_credential(
        self,
        headers: Mapping[str, str],
        body_secret: Optional[str] = None,
    ) -> AuthDecision:
        candidates = (bearer_token(headers), headers.get(ADMIN_HEADER), body_secret)
        for candidate in candidates:
            if secrets_match(candidate, self._admin_secret):
                return Authorized(scheme=AuthScheme.ADMIN)
        return Denied(reason="no matching service credential")

    def end_user_token(self, headers: Mapping[str, str], claimed_principal: str) -> AuthDecision:
        token = bearer_token(headers)
        if token is None:
            return Denied(reason="missing bearer token")
        try:
            principal = self._identity_provider.resolve_principal(token)
        except IdentityResolutionError as exc:
            logger.info("Bearer token resolution failed: %s", exc)
            return Denied(reason="token resolution failed")
        if principal != claimed_principal:
            logger.warning(
                "Resolved principal %s does not match claimed %s",
                describe_identifier(principal, self._development),
                describe_identifier(claimed_principal, self._development),
            )
            return Denied(reason="principal mismatch")
        return Authorized(scheme=AuthScheme.USER, principal=principal)

    def authorize(
        self,
        headers: Mapping[str, str],
        *,
        claimed_principal: str,
        body_secret: Optional[str] = None,
    ) -> AuthDecision:
        """Try the service credential first, then the end-user token."""

        decision = self.service_credential(headers, body_secret)
        if isinstance(decision, Authorized):
            return decision
        return self.end_user_token(headers, claimed_principal)

    def require(
        self,
        headers: Mapping[str, str],
        *,
        claimed_principal: str,
        body_secret: Optional[str] = None,
    ) -> Authorized:
        decision = self.authorize(
            headers, claimed_principal=claimed_principal, body_secret=body_secret
        )
        if isinstance(decision, Denied):
            logger.info("Authorization denied: %s", decision.reason)
            raise AuthorizationError()
        return decision

    def require_admin(
        self,
        headers: Mapping[str, str],
        body_secret: Optional[str] = None,
    ) -> Authorized:
        decision = self.service_credential(headers, body_secret)
        if isinstance(decision, Denied):
            logger.info("Admin authorization denied: %s", decision.reason)
            raise AuthorizationError()
        return decision


__all__ = [
    "AuthScheme",
    "Authorized",
    "Denied",
    "AuthDecision",
    "AuthenticationValidator",
    "bearer_token",
    "secrets_match",
]
