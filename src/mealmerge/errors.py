"""Error taxonomy for the merge gateway."""

from __future__ import annotations


class MergeGatewayError(Exception):
    """Base class for failures surfaced to API callers."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class MergeValidationError(MergeGatewayError):
    """Missing, malformed or identical identifiers."""

    status_code = 400


class RateLimitError(MergeGatewayError):
    """The client exhausted its request window."""

    status_code = 429

    def __init__(self, message: str = "Too many requests", *, retry_after: float | None = None) -> None:
        super().__init__(message)
        self.retry_after = retry_after


class AuthorizationError(MergeGatewayError):
    """Neither the service credential nor the end-user token authorized the call."""

    status_code = 401

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message)


class StalenessError(MergeGatewayError):
    """Guest data is too old to be merged through the end-user path."""

    status_code = 400


class NoLegacyDataError(MergeGatewayError):
    """No store holds records for the legacy identifier."""

    status_code = 404


class FatalMergeError(MergeGatewayError):
    """The mandatory migration step failed; nothing was committed."""

    status_code = 500


class IdentityResolutionError(Exception):
    """The identity provider could not resolve a bearer token to a principal."""


class PartialMergeWarning(UserWarning):
    """A tolerated migration step failed; the merge still reports success."""

    def __init__(self, store: str, error: BaseException) -> None:
        super().__init__(f"Transfer of {store} failed: {error.__class__.__name__}")
        self.store = store
        self.error = error


__all__ = [
    "MergeGatewayError",
    "MergeValidationError",
    "RateLimitError",
    "AuthorizationError",
    "StalenessError",
    "NoLegacyDataError",
    "FatalMergeError",
    "IdentityResolutionError",
    "PartialMergeWarning",
]
