"""Verification pipeline — signature, checksums and CI status for one
staging repository.

Per artifact (in relative-path order) three checks always run: ``GPG``,
``SHA-1`` and ``MD-5``. A failed check never skips the ones after it. Once per
repository the first descriptor that yields a CI endpoint gets a
``CI Status`` check.

A check that cannot be performed (``VerificationSystemError``) becomes an
``error`` outcome and counts as failed. Failures to find or download the
repository propagate and abort the run.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

from stagecheck.core.ci_status import CIStatusValidator
from stagecheck.core.errors import StagecheckError, VerificationSystemError
from stagecheck.core.hasher import HashValidator
from stagecheck.core.repository_service import RepositoryService
from stagecheck.core.signature_validator import PGPSignatureValidator
from stagecheck.models.artifacts import Artifact, LocalRepository
from stagecheck.models.reports import (
    ArtifactReport,
    CheckOutcome,
    CheckStatus,
    VerificationReport,
)
from stagecheck.models.results import HashValidationResult

logger = logging.getLogger(__name__)

CHECK_GPG = "GPG"
CHECK_SHA1 = "SHA-1"
CHECK_MD5 = "MD-5"
CHECK_CI = "CI Status"


def _status(valid: bool) -> CheckStatus:
    return CheckStatus.PASSED if valid else CheckStatus.FAILED


def _hash_detail(result: HashValidationResult) -> str:
    if result.valid:
        return f"VALID ({result.actual_hash})"
    return f"INVALID (expected {result.expected_hash}, got {result.actual_hash})"


def _guarded(name: str, check: Callable[[], CheckOutcome]) -> CheckOutcome:
    try:
        return check()
    except VerificationSystemError as exc:
        logger.error("%s check could not be performed: %s", name, exc)
        return CheckOutcome(name=name, status=CheckStatus.ERROR, detail=f"ERROR ({exc})")


class VerificationPipeline:
    """Runs every release check against one staging repository."""

    def __init__(
        self,
        repository_service: RepositoryService,
        hash_validator: HashValidator,
        signature_validator: PGPSignatureValidator,
        ci_validator: CIStatusValidator,
    ) -> None:
        self._repositories = repository_service
        self._hashes = hash_validator
        self._signatures = signature_validator
        self._ci = ci_validator

    def run(self, repository_id: int) -> VerificationReport:
        """Find, download and verify staging repository *repository_id*.

        Raises
        ------
        TransportError
            If the repository listing, search or a download fails.
        RepositoryNotFoundError
            If no closed staging repository has the given id.
        """
        try:
            staging = self._repositories.find(repository_id)
            local = self._repositories.download(staging)
        except StagecheckError:
            logger.error("Verification of repository %s aborted.", repository_id)
            raise

        artifact_reports: list[ArtifactReport] = []
        descriptor: tuple[Artifact, Path] | None = None
        for artifact in local.sorted_artifacts():
            artifact_reports.append(self._verify_artifact(local, artifact))
            if descriptor is None and artifact.type == "pom":
                path = local.resolve(artifact.relative_path)
                if self._ci.should_check(artifact, path):
                    descriptor = (artifact, path)

        ci_check: CheckOutcome | None = None
        if descriptor is not None:
            ci_check = self._check_ci(descriptor[1])

        report = VerificationReport(
            repository_id=local.repository_id,
            releases=[release.full_name for release in staging.releases],
            artifacts=artifact_reports,
            ci_check=ci_check,
        )
        logger.info("Release Summary: %s", report.summary)
        return report

    def _verify_artifact(self, local: LocalRepository, artifact: Artifact) -> ArtifactReport:
        artifact_path = local.resolve(artifact.relative_path)

        def gpg() -> CheckOutcome:
            result = self._signatures.verify(artifact_path, local.resolve(artifact.signature_path))
            if result.valid:
                detail = (
                    f"signed by {result.key.primary_user_id} with key "
                    f"(id=0x{result.key.key_id}; fingerprint={result.key.fingerprint})"
                )
            else:
                detail = "INVALID"
            return CheckOutcome(name=CHECK_GPG, status=_status(result.valid), detail=detail)

        def digest(name: str, companion: str) -> Callable[[], CheckOutcome]:
            def check() -> CheckOutcome:
                result = self._hashes.validate(artifact_path, local.resolve(companion), name)
                return CheckOutcome(name=name, status=_status(result.valid), detail=_hash_detail(result))

            return check

        checks = [
            _guarded(CHECK_GPG, gpg),
            _guarded(CHECK_SHA1, digest(CHECK_SHA1, artifact.sha1_path)),
            _guarded(CHECK_MD5, digest(CHECK_MD5, artifact.md5_path)),
        ]

        logger.info("%s", artifact.file_name)
        for check in checks:
            logger.info("%s: %s", check.name, check.detail)

        return ArtifactReport(
            relative_path=artifact.relative_path,
            file_name=artifact.file_name,
            checks=checks,
        )

    def _check_ci(self, descriptor_path: Path) -> CheckOutcome:
        result = self._ci.is_valid(descriptor_path)
        verdict = "VALID" if result.valid else "INVALID"
        logger.info("CI Status: %s:\n%s", verdict, result.message)
        return CheckOutcome(
            name=CHECK_CI,
            status=_status(result.valid),
            detail=f"{verdict}:\n{result.message}" if result.message else verdict,
        )
