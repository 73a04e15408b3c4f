"""Request payloads accepted by the merge gateway."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

_IDENTIFIER = {"min_length": 1, "max_length": 128}


class MergeRequest(BaseModel):
    """Move guest-owned records onto an authenticated account."""

    guest_user_id: str = Field(alias="guestUserId", **_IDENTIFIER)
    auth_user_id: str = Field(alias="authUserId", **_IDENTIFIER)
    admin_password: Optional[str] = Field(default=None, alias="adminPassword")

    model_config = ConfigDict(frozen=True, populate_by_name=True, str_strip_whitespace=True)


class RecoveryRequest(BaseModel):
    """Recover records left under a legacy identifier."""

    legacy_user_id: str = Field(alias="legacyUserId", **_IDENTIFIER)
    current_user_id: str = Field(alias="currentUserId", **_IDENTIFIER)
    admin_password: Optional[str] = Field(default=None, alias="adminPassword")

    model_config = ConfigDict(frozen=True, populate_by_name=True, str_strip_whitespace=True)


__all__ = ["MergeRequest", "RecoveryRequest"]
