"""Stagecheck data models — all Pydantic v2, all frozen (immutable)."""

from stagecheck.models.artifacts import (
    Artifact,
    LocalRepository,
    RepositoryStatus,
    StagingRepository,
)
from stagecheck.models.releases import Release
from stagecheck.models.reports import (
    ArtifactReport,
    CheckOutcome,
    CheckStatus,
    VerificationReport,
)
from stagecheck.models.results import (
    CIStatusValidationResult,
    HashValidationResult,
    SignatureValidationResult,
    SigningKeyInfo,
)

__all__ = [
    # artifacts
    "Artifact",
    "LocalRepository",
    "RepositoryStatus",
    "StagingRepository",
    # releases
    "Release",
    # results
    "CIStatusValidationResult",
    "HashValidationResult",
    "SignatureValidationResult",
    "SigningKeyInfo",
    # reports
    "ArtifactReport",
    "CheckOutcome",
    "CheckStatus",
    "VerificationReport",
]
