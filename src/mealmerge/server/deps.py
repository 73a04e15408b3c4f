"""Dependency definitions for the Mealmerge API server."""

from __future__ import annotations

import json
from datetime import timedelta
from typing import Any, Callable, Dict, List, Optional

from fastapi import Depends, Request

from mealmerge.config import Settings, get_settings
from mealmerge.db.owned_records import MEAL_LOGS
from mealmerge.db.push_subscriptions import list_push_subscriptions
from mealmerge.errors import MergeValidationError, RateLimitError
from mealmerge.gateway.audit import AuditLogger
from mealmerge.gateway.auth import AuthenticationValidator
from mealmerge.gateway.merge import MERGE_PLAN, RECOVERY_PLAN, MergeExecutor
from mealmerge.gateway.rate_limit import RateLimiter, client_key
from mealmerge.gateway.service import MergeGateway, parse_merge_command, parse_recovery_command
from mealmerge.gateway.staleness import StalenessGuard
from mealmerge.integrations.identity_provider import IdentityProvider, build_identity_provider
from mealmerge.models.audit import Outcome
from mealmerge.models.records import PushSubscription

MERGE_LIMITER = "merge"
RECOVERY_LIMITER = "recovery"
LISTING_LIMITER = "listing"

MALFORMED_BODY = "Malformed request body"

SubscriptionLister = Callable[[], List[PushSubscription]]


def build_rate_limiters(settings: Settings) -> Dict[str, RateLimiter]:
    """Create the per-endpoint limiters held on ``app.state`` for the process lifetime."""

    window = settings.rate_limit_window_seconds
    return {
        MERGE_LIMITER: RateLimiter(
            capacity=settings.merge_rate_limit, window_seconds=window, name=MERGE_LIMITER
        ),
        RECOVERY_LIMITER: RateLimiter(
            capacity=settings.merge_rate_limit, window_seconds=window, name=RECOVERY_LIMITER
        ),
        LISTING_LIMITER: RateLimiter(
            capacity=settings.listing_rate_limit, window_seconds=window, name=LISTING_LIMITER
        ),
    }


def _audit_rejection(action: str, key: str, outcome: Outcome) -> None:
    AuditLogger(development=get_settings().is_development).record(
        action=action, client_key=key, outcome=outcome
    )


def _enforce(request: Request, limiter_name: str, action: Optional[str] = None) -> str:
    key = client_key(request.headers)
    request.state.client_key = key
    try:
        request.app.state.rate_limiters[limiter_name].hit(key)
    except RateLimitError:
        if action is not None:
            _audit_rejection(action, key, "rate_limited")
        raise
    return key


def enforce_merge_rate_limit(request: Request) -> str:
    return _enforce(request, MERGE_LIMITER, MERGE_PLAN.name)


def enforce_recovery_rate_limit(request: Request) -> str:
    return _enforce(request, RECOVERY_LIMITER, RECOVERY_PLAN.name)


def enforce_listing_rate_limit(request: Request) -> str:
    return _enforce(request, LISTING_LIMITER)


async def _json_body(request: Request, action: str, key: str) -> Any:
    """Decode the request body only once the client has passed its rate limit."""

    raw = await request.body()
    if not raw.strip():
        return None
    try:
        return json.loads(raw)
    except ValueError as exc:
        _audit_rejection(action, key, "invalid")
        raise MergeValidationError(MALFORMED_BODY) from exc


async def merge_payload(
    request: Request, client: str = Depends(enforce_merge_rate_limit)
) -> Any:
    return await _json_body(request, MERGE_PLAN.name, client)


async def recovery_payload(
    request: Request, client: str = Depends(enforce_recovery_rate_limit)
) -> Any:
    return await _json_body(request, RECOVERY_PLAN.name, client)


def get_identity_provider() -> IdentityProvider:
    """Return the identity provider used to resolve end-user bearer tokens."""

    return build_identity_provider()


def get_authentication_validator(
    settings: Settings = Depends(get_settings),
    identity_provider: IdentityProvider = Depends(get_identity_provider),
) -> AuthenticationValidator:
    return AuthenticationValidator(
        admin_secret=settings.admin_password,
        identity_provider=identity_provider,
        development=settings.is_development,
    )


def _staleness_guard(settings: Settings) -> StalenessGuard:
    return StalenessGuard(MEAL_LOGS, max_age=timedelta(days=settings.staleness_days))


def get_merge_gateway(
    settings: Settings = Depends(get_settings),
    validator: AuthenticationValidator = Depends(get_authentication_validator),
) -> MergeGateway:
    development = settings.is_development
    return MergeGateway(
        action=MERGE_PLAN.name,
        parser=parse_merge_command,
        validator=validator,
        staleness_guard=_staleness_guard(settings),
        executor=MergeExecutor(MERGE_PLAN, development=development),
        audit=AuditLogger(development=development),
        development=development,
    )


def get_recovery_gateway(
    settings: Settings = Depends(get_settings),
    validator: AuthenticationValidator = Depends(get_authentication_validator),
) -> MergeGateway:
    development = settings.is_development
    return MergeGateway(
        action=RECOVERY_PLAN.name,
        parser=parse_recovery_command,
        validator=validator,
        staleness_guard=_staleness_guard(settings),
        executor=MergeExecutor(RECOVERY_PLAN, development=development),
        audit=AuditLogger(development=development),
        skip_identical=False,
        require_existing=True,
        development=development,
    )


def get_subscription_lister() -> SubscriptionLister:
    return list_push_subscriptions
