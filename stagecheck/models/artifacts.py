"""Maven artifact and staging repository models (all frozen).

An ``Artifact``'s identity is its repository-relative path: two artifacts
whose fields differ but whose derived paths coincide compare equal and
collapse to one entry in a set.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

from stagecheck.models.releases import Release


class Artifact(BaseModel):
    """A single file in a Maven-layout repository.

    Examples
    --------
    >>> a = Artifact(group_id="org.apache.sling", artifact_id="api",
    ...              version="2.0", type="jar")
    >>> a.relative_path
    'org/apache/sling/api/2.0/api-2.0.jar'
    >>> a.sha1_path
    'org/apache/sling/api/2.0/api-2.0.jar.sha1'
    """

    model_config = ConfigDict(frozen=True)

    group_id: str = Field(min_length=1)
    artifact_id: str = Field(min_length=1)
    version: str = Field(min_length=1)
    classifier: str | None = None
    type: str = Field(min_length=1)

    @field_validator("classifier")
    @classmethod
    def _blank_classifier_is_none(cls, value: str | None) -> str | None:
        if value is not None and not value.strip():
            return None
        return value

    @property
    def relative_path(self) -> str:
        """``group/as/dirs/artifactId/version/artifactId-version[-classifier].type``"""
        base = (
            f"{self.group_id.replace('.', '/')}/{self.artifact_id}/{self.version}/"
            f"{self.artifact_id}-{self.version}"
        )
        if self.classifier is not None:
            base = f"{base}-{self.classifier}"
        return f"{base}.{self.type}"

    @property
    def signature_path(self) -> str:
        return f"{self.relative_path}.asc"

    @property
    def sha1_path(self) -> str:
        return f"{self.relative_path}.sha1"

    @property
    def md5_path(self) -> str:
        return f"{self.relative_path}.md5"

    @property
    def companion_paths(self) -> tuple[str, str, str]:
        """Signature, SHA-1 and MD5 paths, in download order."""
        return (self.signature_path, self.sha1_path, self.md5_path)

    @property
    def file_name(self) -> str:
        return self.relative_path.rsplit("/", 1)[-1]

    @property
    def folder(self) -> str:
        """Repository-relative directory holding the artifact and its companions."""
        return self.relative_path.rsplit("/", 1)[0]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Artifact):
            return NotImplemented
        return self.relative_path == other.relative_path

    def __hash__(self) -> int:
        return hash(self.relative_path)


class RepositoryStatus(str, Enum):
    """Lifecycle state of a Nexus staging repository."""

    OPEN = "open"
    CLOSED = "closed"
    RELEASED = "released"


class StagingRepository(BaseModel):
    """A staging repository as reported by the Nexus staging API.

    Field aliases follow the Nexus JSON (``repositoryId``, ``type``,
    ``repositoryURI``). Never cached; fetched fresh on every lookup.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    repository_id: str = Field(alias="repositoryId")
    description: str = ""
    status: RepositoryStatus = Field(alias="type")
    repository_uri: str = Field(alias="repositoryURI")

    @property
    def numeric_id(self) -> int | None:
        """Trailing numeric suffix of the id (``orgapachesling-1234`` -> 1234)."""
        _, _, suffix = self.repository_id.rpartition("-")
        return int(suffix) if suffix.isdigit() else None

    @property
    def releases(self) -> list[Release]:
        """Release names parsed from the description; empty if none parse."""
        try:
            return Release.from_description(self.description)
        except ValueError:
            return []


class LocalRepository(BaseModel):
    """A staging repository mirrored to a local directory."""

    model_config = ConfigDict(frozen=True)

    staging_repository: StagingRepository
    artifacts: frozenset[Artifact]
    root_folder: Path

    @property
    def repository_id(self) -> str:
        return self.staging_repository.repository_id

    def resolve(self, relative_path: str) -> Path:
        """Absolute local path of a repository-relative path."""
        return self.root_folder / relative_path

    def sorted_artifacts(self) -> list[Artifact]:
        """Artifacts ordered by relative path."""
        return sorted(self.artifacts, key=lambda a: a.relative_path)
