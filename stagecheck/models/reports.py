"""Verification report models — output of a pipeline run."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class CheckStatus(str, Enum):
    PASSED = "passed"
    FAILED = "failed"
    ERROR = "error"  # the check could not be performed


class CheckOutcome(BaseModel):
    """A single check result as shown in the report."""

    model_config = ConfigDict(frozen=True)

    name: str  # "GPG", "SHA-1", "MD-5", "CI Status"
    status: CheckStatus
    detail: str = ""

    @property
    def failed(self) -> bool:
        return self.status is not CheckStatus.PASSED


class ArtifactReport(BaseModel):
    """All checks executed against one artifact file."""

    model_config = ConfigDict(frozen=True)

    relative_path: str
    file_name: str
    checks: list[CheckOutcome] = []


class VerificationReport(BaseModel):
    """Pass/fail tally for one staging repository.

    Every executed check counts toward ``checks_run``; checks that failed or
    could not be performed count toward ``failed_checks``.
    """

    model_config = ConfigDict(frozen=True)

    repository_id: str
    releases: list[str] = []
    artifacts: list[ArtifactReport] = []
    ci_check: CheckOutcome | None = None
    timestamp_utc: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    def all_checks(self) -> list[CheckOutcome]:
        checks = [check for report in self.artifacts for check in report.checks]
        if self.ci_check is not None:
            checks.append(self.ci_check)
        return checks

    @property
    def checks_run(self) -> int:
        return len(self.all_checks())

    @property
    def failed_checks(self) -> int:
        return sum(1 for check in self.all_checks() if check.failed)

    @property
    def valid(self) -> bool:
        return self.failed_checks == 0

    @property
    def summary(self) -> str:
        if self.valid:
            return f"VALID ({self.checks_run} checks executed)"
        return f"INVALID ({self.failed_checks} of {self.checks_run} checks failed)"
