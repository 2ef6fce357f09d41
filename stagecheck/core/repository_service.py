"""Nexus staging repository discovery and download.

``RepositoryService`` talks to the Nexus staging REST API:

- ``list`` / ``find`` read the staging profile repositories (never cached).
- ``get_artifacts`` reads the lucene search index for one repository.
- ``download`` mirrors every artifact with its ``.asc``, ``.sha1`` and
  ``.md5`` companions into a fresh temp directory, at most once per
  repository id for the lifetime of the service.
"""

from __future__ import annotations

import logging
import shutil
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import httpx
from pydantic import ValidationError

from stagecheck.bridge.http import HttpClientFactory
from stagecheck.core.download_cache import DownloadCache
from stagecheck.core.errors import NexusError, RepositoryNotFoundError
from stagecheck.models.artifacts import (
    Artifact,
    LocalRepository,
    RepositoryStatus,
    StagingRepository,
)

logger = logging.getLogger(__name__)

PROFILE_REPOSITORIES_PATH = "/service/local/staging/profile_repositories"
LUCENE_SEARCH_PATH = "/service/local/lucene/search"


class RepositoryService:
    """Lists, resolves and downloads Nexus staging repositories.

    Parameters
    ----------
    http:
        Client factory; carries the ASF credentials for the Nexus host.
    nexus_url_prefix:
        Base URL of the Nexus instance.
    repository_prefix:
        Only staging repositories whose id starts with this are considered.
    group_id:
        Maven group searched for artifacts.
    download_root:
        Parent of the per-repository temp directories (system temp if None).
    cache:
        Shared download cache; a private one is created if omitted.
    """

    def __init__(
        self,
        http: HttpClientFactory,
        nexus_url_prefix: str,
        repository_prefix: str = "orgapachesling-",
        group_id: str = "org.apache.sling",
        download_root: Path | None = None,
        cache: DownloadCache[str, LocalRepository] | None = None,
    ) -> None:
        self._http = http
        self._nexus_url_prefix = nexus_url_prefix.rstrip("/")
        self._repository_prefix = repository_prefix
        self._group_id = group_id
        self._download_root = download_root
        self._cache: DownloadCache[str, LocalRepository] = cache if cache is not None else DownloadCache()

    # ------------------------------------------------------------------
    # Discovery
    # ------------------------------------------------------------------

    def list(self) -> list[StagingRepository]:
        """Closed staging repositories matching the configured prefix."""
        return [
            repo
            for repo in self._staging_repositories()
            if repo.status is RepositoryStatus.CLOSED
            and repo.repository_id.startswith(self._repository_prefix)
        ]

    def find(self, repository_id: int) -> StagingRepository:
        """Resolve a numeric id such as ``1234`` to its staging repository.

        Raises
        ------
        RepositoryNotFoundError
            If no closed repository ends with ``-<repository_id>``.
        """
        suffix = f"-{repository_id}"
        for repo in self.list():
            if repo.repository_id.endswith(suffix):
                return repo
        raise RepositoryNotFoundError(f"No repository found with id {repository_id}")

    def get_artifacts(self, repository: StagingRepository) -> frozenset[Artifact]:
        """All artifacts the search index lists for *repository*."""
        payload = self._get_json(
            LUCENE_SEARCH_PATH,
            params={"g": self._group_id, "repositoryId": repository.repository_id},
        )
        artifacts: set[Artifact] = set()
        try:
            for entry in payload["data"]:
                links = entry["artifactHits"][0]["artifactLinks"]
                for link in links:
                    artifacts.add(
                        Artifact(
                            group_id=entry["groupId"],
                            artifact_id=entry["artifactId"],
                            version=entry["version"],
                            classifier=link.get("classifier"),
                            type=link["extension"],
                        )
                    )
        except (KeyError, IndexError, TypeError, ValidationError) as exc:
            raise NexusError(
                f"Malformed search response for {repository.repository_id}."
            ) from exc
        logger.debug("Found %d artifacts in %s", len(artifacts), repository.repository_id)
        return frozenset(artifacts)

    @contextmanager
    def open_artifact_stream(
        self, repository: StagingRepository, artifact: Artifact
    ) -> Iterator[Iterator[bytes]]:
        """Stream one artifact straight from the staging repository.

        Usage::

            with service.open_artifact_stream(repo, artifact) as chunks:
                for chunk in chunks:
                    ...
        """
        url = f"{repository.repository_uri.rstrip('/')}/{artifact.relative_path}"
        with self._http.new_client() as client, self._stream(client, url) as chunks:
            yield chunks

    @contextmanager
    def _stream(self, client: httpx.Client, url: str) -> Iterator[Iterator[bytes]]:
        try:
            with client.stream("GET", url) as response:
                if response.status_code != httpx.codes.OK:
                    raise NexusError(
                        f"Got {response.status_code} instead of 200 when retrieving {url}."
                    )
                yield response.iter_bytes()
        except httpx.HTTPError as exc:
            raise NexusError(f"Failed to retrieve {url}: {exc}") from exc

    # ------------------------------------------------------------------
    # Download cache
    # ------------------------------------------------------------------

    def download(self, repository: StagingRepository) -> LocalRepository:
        """Mirror *repository* locally, or return the existing mirror."""
        return self._cache.get_or_compute(
            repository.repository_id, lambda: self._populate(repository)
        )

    def cached(self, repository_id: str) -> LocalRepository | None:
        return self._cache.get(repository_id)

    def _populate(self, repository: StagingRepository) -> LocalRepository:
        if self._download_root is not None:
            Path(self._download_root).mkdir(parents=True, exist_ok=True)
        root_folder = Path(
            tempfile.mkdtemp(prefix=f"{repository.repository_id}_", dir=self._download_root)
        )
        logger.info("Downloading %s to %s", repository.repository_id, root_folder)
        try:
            artifacts = self.get_artifacts(repository)
            with self._http.new_client() as client:
                for artifact in sorted(artifacts, key=lambda a: a.relative_path):
                    self._download_artifact(client, repository, root_folder, artifact)
        except BaseException:
            logger.warning("Download of %s failed; removing %s", repository.repository_id, root_folder)
            shutil.rmtree(root_folder, ignore_errors=True)
            raise

        return LocalRepository(
            staging_repository=repository,
            artifacts=artifacts,
            root_folder=root_folder,
        )

    def _download_artifact(
        self,
        client: httpx.Client,
        repository: StagingRepository,
        root_folder: Path,
        artifact: Artifact,
    ) -> None:
        """Write *artifact* and its companions into their folder under *root_folder*."""
        folder = (root_folder / artifact.folder).resolve()
        if root_folder.resolve() not in folder.parents:
            raise NexusError(f"Refusing to write {artifact.relative_path} outside {root_folder}.")
        folder.mkdir(parents=True, exist_ok=True)

        base_url = repository.repository_uri.rstrip("/")
        for relative_path in (artifact.relative_path, *artifact.companion_paths):
            url = f"{base_url}/{relative_path}"
            logger.debug("Downloading %s.", url)
            file_name = relative_path.rsplit("/", 1)[-1]
            with self._stream(client, url) as chunks, open(folder / file_name, "xb") as out:
                for chunk in chunks:
                    out.write(chunk)

    # ------------------------------------------------------------------
    # Nexus API
    # ------------------------------------------------------------------

    def _staging_repositories(self) -> list[StagingRepository]:
        payload = self._get_json(PROFILE_REPOSITORIES_PATH)
        try:
            entries = payload["data"]
        except KeyError as exc:
            raise NexusError("Malformed staging repository listing.") from exc

        repositories: list[StagingRepository] = []
        for entry in entries:
            try:
                repositories.append(StagingRepository.model_validate(entry))
            except ValidationError as exc:
                logger.debug("Skipping unrecognised staging repository entry: %s", exc)
        return repositories

    def _get_json(self, path: str, params: dict[str, str] | None = None) -> dict[str, Any]:
        url = f"{self._nexus_url_prefix}{path}"
        try:
            with self._http.new_client() as client:
                response = client.get(url, params=params, headers={"Accept": "application/json"})
        except httpx.HTTPError as exc:
            raise NexusError(f"Failed to reach Nexus at {url}: {exc}") from exc
        if response.status_code != httpx.codes.OK:
            raise NexusError(f"Status line : {response.status_code} {response.reason_phrase} ({url})")
        try:
            payload = response.json()
        except ValueError as exc:
            raise NexusError(f"Nexus returned invalid JSON for {url}.") from exc
        if not isinstance(payload, dict):
            raise NexusError(f"Nexus returned an unexpected payload for {url}.")
        return payload
