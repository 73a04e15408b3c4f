"""Guest-to-account merge gateway components."""

from mealmerge.gateway.audit import AuditLogger
from mealmerge.gateway.auth import AuthenticationValidator, Authorized, AuthScheme, Denied
from mealmerge.gateway.merge import MERGE_PLAN, RECOVERY_PLAN, MergeExecutor, MergeResult
from mealmerge.gateway.rate_limit import RateLimiter, client_key
from mealmerge.gateway.service import MergeGateway, MergeOutcome
from mealmerge.gateway.staleness import StalenessGuard

__all__ = [
    "AuditLogger",
    "AuthenticationValidator",
    "Authorized",
    "AuthScheme",
    "Denied",
    "MERGE_PLAN",
    "RECOVERY_PLAN",
    "MergeExecutor",
    "MergeResult",
    "RateLimiter",
    "client_key",
    "MergeGateway",
    "MergeOutcome",
    "StalenessGuard",
]
