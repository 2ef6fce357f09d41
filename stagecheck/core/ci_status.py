"""Continuous-integration status lookup for project descriptors.

The descriptor's ``<scm>`` section names the source repository and the
release tag; the GitHub commit-status API then reports whether the tagged
commit built successfully.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Any
from xml.parsers import expat

import httpx

from stagecheck.bridge.http import HttpClientFactory
from stagecheck.config import DEFAULT_GITHUB_API_URL
from stagecheck.core.errors import TransportError
from stagecheck.models.artifacts import Artifact
from stagecheck.models.results import CIStatusValidationResult

logger = logging.getLogger(__name__)

GITBOX_PREFIX = "https://gitbox.apache.org/repos/asf?p="
GITHUB_PREFIX = "https://github.com/apache/"
GITHUB_SLING_PREFIX = GITHUB_PREFIX + "sling-"


def repository_slug(scm_url: str) -> str:
    """Reduce an SCM URL to the GitHub repository name.

    >>> repository_slug("https://gitbox.apache.org/repos/asf?p=sling-repo-pom.git")
    'sling-repo-pom'
    >>> repository_slug("https://github.com/apache/sling-old-svn-mirror/tree/trunk")
    'sling-old-svn-mirror'
    """
    url = scm_url.strip()
    if url.startswith(GITBOX_PREFIX):
        repo = url[url.index("?p=") + 3:]
        end = repo.find(".git")
        return repo[:end] if end >= 0 else repo
    if url.startswith(GITHUB_SLING_PREFIX):
        repo = url[len(GITHUB_PREFIX):]
        return repo.split("/", 1)[0]
    return url


def _child_text(element: ET.Element | None, tag: str) -> str:
    if element is None:
        return ""
    child = element.find(tag)
    if child is None or child.text is None:
        return ""
    return child.text.strip()


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _reject_doctype(*args: Any) -> None:
    raise ValueError("DOCTYPE declarations are not allowed")


def parse_descriptor(data: bytes) -> ET.Element:
    """Parse a project descriptor, refusing any document type declaration.

    expat detects the document encoding itself, so the declaration is refused
    however the descriptor is encoded. Tag names lose their namespace.
    """
    builder = ET.TreeBuilder()
    parser = expat.ParserCreate(namespace_separator="}")
    parser.StartDoctypeDeclHandler = _reject_doctype
    parser.EntityDeclHandler = _reject_doctype
    parser.StartElementHandler = lambda tag, attrs: builder.start(_local_name(tag), attrs)
    parser.EndElementHandler = lambda tag: builder.end(_local_name(tag))
    parser.CharacterDataHandler = builder.data
    parser.Parse(data, True)
    return builder.close()


class CIStatusValidator:
    """Checks the CI status of the commit a release was tagged from.

    Parameters
    ----------
    http:
        Client factory; carries the optional GitHub token.
    github_api_url:
        Base URL of the GitHub REST API.
    """

    def __init__(self, http: HttpClientFactory, github_api_url: str = DEFAULT_GITHUB_API_URL) -> None:
        self._http = http
        self._github_api_url = github_api_url.rstrip("/")

    def should_check(self, artifact: Artifact, descriptor_path: Path) -> bool:
        return artifact.type == "pom" and self.get_ci_status_endpoint(descriptor_path) is not None

    def get_ci_status_endpoint(self, descriptor_path: Path) -> str | None:
        """Derive the commit-status URL from a project descriptor, or ``None``."""
        try:
            root = parse_descriptor(Path(descriptor_path).read_bytes())
        except (OSError, ValueError, expat.ExpatError) as exc:
            logger.debug("Failed to extract SCM URL from %s: %s", descriptor_path, exc)
            return None

        if root.tag != "project":
            logger.debug("%s is not a project descriptor", descriptor_path)
            return None

        scm = root.find("scm")
        tag = _child_text(scm, "tag")
        scm_url = _child_text(scm, "url")
        repo = repository_slug(scm_url) if scm_url else ""
        logger.debug("Extracted REPO: %s, TAG: %s", repo, tag)

        if not repo or not tag or tag.upper() == "HEAD":
            return None
        endpoint = f"{self._github_api_url}/repos/apache/{repo}/commits/{tag}/status"
        logger.debug("Loaded CI Endpoint: %s", endpoint)
        return endpoint

    def is_valid(self, descriptor_path: Path) -> CIStatusValidationResult:
        endpoint = self.get_ci_status_endpoint(descriptor_path)
        if endpoint is None:
            return CIStatusValidationResult(
                valid=False,
                message=f"Cannot extract a CI endpoint from {Path(descriptor_path).name}",
            )

        status: dict[str, Any] | None = None
        try:
            status = self._fetch_json(endpoint)
            if status["state"] == "pending" and not status["statuses"]:
                logger.debug("No build found for tag")
                commit_url = status.get("commit_url")
                if commit_url:
                    logger.debug("Getting parent from commit url: %s", commit_url)
                    endpoint = commit_url
                    commit = self._fetch_json(commit_url)
                    parents = commit.get("parents") or []
                    if parents:
                        endpoint = f"{parents[0]['url']}/status"
                        logger.debug("Loading commit status: %s", endpoint)
                        status = self._fetch_json(endpoint)

            lines: list[str] = []
            for item in status["statuses"]:
                lines.append(f"\t{item['context']}")
                lines.append(f"\t\tState: {item['state']}")
                lines.append(f"\t\tDescription: {item.get('description')}")
                lines.append(f"\t\tSee: {item.get('target_url')}")
            return CIStatusValidationResult(
                valid=status["state"] == "success",
                message="\n".join(lines),
                endpoint=endpoint,
            )
        except (httpx.HTTPError, TransportError, ValueError, KeyError, TypeError, IndexError) as exc:
            logger.warning("CI status lookup against %s failed: %s", endpoint, exc)
            return CIStatusValidationResult(
                valid=False,
                message=f"Failed to get CI Status: {exc!r}\nUrl: {endpoint}\nStatus Body: {status}",
                endpoint=endpoint,
            )

    def _fetch_json(self, endpoint: str) -> dict[str, Any]:
        with self._http.new_client() as client:
            response = client.get(endpoint, headers={"Accept": "application/json"})
            response.raise_for_status()
            payload = response.json()
        if not isinstance(payload, dict):
            raise ValueError(f"Expected a JSON object from {endpoint}")
        return payload
