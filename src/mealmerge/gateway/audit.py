"""Structured, environment-aware audit trail for merge attempts."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Mapping, Optional, Sequence

from mealmerge import metrics
from mealmerge.logging_utils import describe_identifier
from mealmerge.models.audit import AuditRecord, Outcome

AUDIT_LOGGER_NAME = "mealmerge.audit"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditLogger:
    """Emit one :class:`AuditRecord` per attempt on the ``mealmerge.audit`` logger."""

    def __init__(
        self,
        *,
        development: bool = False,
        logger: Optional[logging.Logger] = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._development = development
        self._logger = logger or logging.getLogger(AUDIT_LOGGER_NAME)
        self._clock = clock

    def build(
        self,
        *,
        action: str,
        client_key: str,
        outcome: Outcome,
        auth_method: Optional[str] = None,
        counts: Optional[Mapping[str, int]] = None,
        source_id: Optional[str] = None,
        target_id: Optional[str] = None,
        warnings: Sequence[str] = (),
    ) -> AuditRecord:
        source_ref = target_ref = None
        if self._development:
            source_ref = describe_identifier(source_id, True) if source_id else None
            target_ref = describe_identifier(target_id, True) if target_id else None
        return AuditRecord(
            action=action,
            timestamp=self._clock(),
            client_key=client_key,
            outcome=outcome,
            auth_method=auth_method,
            counts=dict(counts or {}),
            source_ref=source_ref,
            target_ref=target_ref,
            warnings=list(warnings),
        )

    def emit(self, record: AuditRecord) -> AuditRecord:
        level = logging.INFO if record.outcome in ("success", "skipped") else logging.WARNING
        metrics.MERGE_ATTEMPTS.labels(action=record.action, outcome=record.outcome).inc()
        self._logger.log(
            level,
            "audit action=%s outcome=%s method=%s client=%s counts=%s",
            record.action,
            record.outcome,
            record.auth_method or "-",
            record.client_key,
            record.counts,
            extra={"audit": record.model_dump(mode="json", exclude_none=True)},
        )
        return record

    def record(self, **kwargs) -> AuditRecord:
        """Build and emit a record in one call."""

        return self.emit(self.build(**kwargs))


__all__ = ["AuditLogger", "AUDIT_LOGGER_NAME"]
