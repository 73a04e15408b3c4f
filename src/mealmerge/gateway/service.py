"""Request pipeline tying validation, authorization, staleness and migration together."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional

from pydantic import ValidationError

from mealmerge.errors import (
    AuthorizationError,
    FatalMergeError,
    MergeGatewayError,
    MergeValidationError,
    NoLegacyDataError,
    StalenessError,
)
from mealmerge.models.audit import Outcome
from mealmerge.models.requests import MergeRequest, RecoveryRequest

from .audit import AuditLogger
from .auth import AuthenticationValidator, Authorized, AuthScheme
from .merge import MergeExecutor, MergeResult
from .staleness import StalenessGuard

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MergeCommand:
    """Normalized merge input: move ``source_id``'s records to ``target_id``."""

    source_id: str
    target_id: str
    admin_password: Optional[str] = None


@dataclass(frozen=True)
class MergeOutcome:
    command: MergeCommand
    skipped: bool = False
    auth: Optional[Authorized] = None
    result: Optional[MergeResult] = None

    @property
    def auth_method(self) -> Optional[str]:
        return self.auth.scheme.value if self.auth else None


def _validated(model: Any, payload: Any, message: str) -> Any:
    if not isinstance(payload, dict):
        raise MergeValidationError(message)
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise MergeValidationError(message) from exc


def parse_merge_command(payload: Any) -> MergeCommand:
    request = _validated(MergeRequest, payload, "Missing guestUserId or authUserId")
    return MergeCommand(
        source_id=request.guest_user_id,
        target_id=request.auth_user_id,
        admin_password=request.admin_password,
    )


def parse_recovery_command(payload: Any) -> MergeCommand:
    request = _validated(RecoveryRequest, payload, "Invalid user IDs")
    return MergeCommand(
        source_id=request.legacy_user_id,
        target_id=request.current_user_id,
        admin_password=request.admin_password,
    )


_OUTCOMES: tuple[tuple[type[MergeGatewayError], Outcome], ...] = (
    (MergeValidationError, "invalid"),
    (AuthorizationError, "denied"),
    (StalenessError, "stale"),
    (NoLegacyDataError, "not_found"),
)


def _outcome_for(exc: MergeGatewayError) -> Outcome:
    for error_type, outcome in _OUTCOMES:
        if isinstance(exc, error_type):
            return outcome
    return "failed"


class MergeGateway:
    """Run one merge attempt behind an already-passed rate limiter.

    Everything up to the first mutation is fail-closed. Identical identifiers
    short-circuit before authentication: merges report a skip, recoveries treat
    it as invalid input.
    """

    def __init__(
        self,
        *,
        action: str,
        parser: Callable[[Any], MergeCommand],
        validator: AuthenticationValidator,
        staleness_guard: StalenessGuard,
        executor: MergeExecutor,
        audit: AuditLogger,
        skip_identical: bool = True,
        require_existing: bool = False,
        development: bool = False,
    ) -> None:
        self.action = action
        self._parser = parser
        self._validator = validator
        self._staleness_guard = staleness_guard
        self._executor = executor
        self._audit = audit
        self._skip_identical = skip_identical
        self._require_existing = require_existing
        self._development = development

    def run(self, payload: Any, *, headers: Mapping[str, str], client_key: str) -> MergeOutcome:
        command: Optional[MergeCommand] = None
        auth: Optional[Authorized] = None

        def _audit(outcome: Outcome, **extra: Any) -> None:
            self._audit.record(
                action=self.action,
                client_key=client_key,
                outcome=outcome,
                auth_method=auth.scheme.value if auth else None,
                source_id=command.source_id if command else None,
                target_id=command.target_id if command else None,
                **extra,
            )

        try:
            command = self._parser(payload)
            if command.source_id == command.target_id:
                if not self._skip_identical:
                    raise MergeValidationError("Invalid user IDs")
                _audit("skipped")
                return MergeOutcome(command=command, skipped=True)

            auth = self._validator.require(
                headers,
                claimed_principal=command.target_id,
                body_secret=command.admin_password,
            )
            if auth.scheme is AuthScheme.USER:
                self._staleness_guard.check(command.source_id)
            if self._require_existing and not self._executor.has_records(command.source_id):
                raise NoLegacyDataError("No data found")

            result = self._executor.execute(command.source_id, command.target_id)
        except MergeGatewayError as exc:
            _audit(_outcome_for(exc))
            raise
        except Exception as exc:
            if self._development:
                logger.exception("Unexpected failure during %s", self.action)
            else:
                # Driver errors can embed bound parameters, i.e. raw identifiers.
                logger.error("Unexpected failure during %s (%s)", self.action, exc.__class__.__name__)
            _audit("failed")
            raise FatalMergeError("Failed to merge user data") from exc

        _audit(
            "success",
            counts=result.transferred,
            warnings=[str(warning) for warning in result.warnings],
        )
        return MergeOutcome(command=command, auth=auth, result=result)


__all__ = [
    "MergeCommand",
    "MergeOutcome",
    "MergeGateway",
    "parse_merge_command",
    "parse_recovery_command",
]
