"""Validation result models — one variant per kind of check.

A result is only produced when the check could actually be performed;
``valid=False`` means "checked and failed". Failures to perform a check are
raised as ``VerificationSystemError`` subclasses instead.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class SigningKeyInfo(BaseModel):
    """Identity of the public key that produced a signature."""

    model_config = ConfigDict(frozen=True)

    key_id: str  # 16 upper-case hex chars
    fingerprint: str  # upper-case hex, no spaces
    user_ids: list[str] = []

    @property
    def primary_user_id(self) -> str:
        return self.user_ids[0] if self.user_ids else "unknown"


class SignatureValidationResult(BaseModel):
    """Outcome of a detached OpenPGP signature check."""

    model_config = ConfigDict(frozen=True)

    valid: bool
    key: SigningKeyInfo


class HashValidationResult(BaseModel):
    """Outcome of a checksum comparison."""

    model_config = ConfigDict(frozen=True)

    valid: bool
    algorithm: str
    expected_hash: str
    actual_hash: str


class CIStatusValidationResult(BaseModel):
    """Outcome of a continuous-integration status lookup."""

    model_config = ConfigDict(frozen=True)

    valid: bool
    message: str
    endpoint: str | None = None
