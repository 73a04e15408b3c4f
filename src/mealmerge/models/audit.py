"""Audit record emitted for every merge attempt."""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

Outcome = Literal[
    "success", "skipped", "invalid", "denied", "stale", "not_found", "failed", "rate_limited"
]


class AuditRecord(BaseModel):
    """Privacy-aware description of a security-sensitive operation."""

    action: str
    timestamp: datetime
    client_key: str
    outcome: Outcome
    auth_method: Optional[str] = Field(default=None)
    counts: dict[str, int] = Field(default_factory=dict)
    source_ref: Optional[str] = Field(default=None)
    target_ref: Optional[str] = Field(default=None)
    warnings: list[str] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)


__all__ = ["AuditRecord", "Outcome"]
