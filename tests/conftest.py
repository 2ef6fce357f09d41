"""Shared test fixtures for Stagecheck."""

from __future__ import annotations

import hashlib
import threading
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any

import httpx
import pytest
from pgpy import PGPKey, PGPUID
from pgpy.constants import (
    CompressionAlgorithm,
    HashAlgorithm,
    KeyFlags,
    PubKeyAlgorithm,
    SymmetricKeyAlgorithm,
)

from stagecheck.bootstrap import Services, build_services
from stagecheck.config import StagecheckSettings
from stagecheck.core.signature_validator import PGPSignatureValidator, TrustedKeyRing
from stagecheck.models.artifacts import Artifact

NEXUS = "https://repository.apache.org"
GITHUB_API = "https://api.github.com"
REPOSITORY_ID = "orgapachesling-1234"
REPOSITORY_URI = f"{NEXUS}/content/repositories/{REPOSITORY_ID}"
PROFILE_REPOSITORIES_URL = f"{NEXUS}/service/local/staging/profile_repositories"
LUCENE_SEARCH_URL = f"{NEXUS}/service/local/lucene/search"
CI_STATUS_URL = (
    f"{GITHUB_API}/repos/apache/sling-adapter-annotations/commits/adapter-annotations-1.0.0/status"
)

POM_TEMPLATE = """<?xml version="1.0" encoding="UTF-8"?>
<project xmlns="http://maven.apache.org/POM/4.0.0">
  <modelVersion>4.0.0</modelVersion>
  <groupId>org.apache.sling</groupId>
  <artifactId>adapter-annotations</artifactId>
  <version>1.0.0</version>
  <scm>
    <connection>scm:git:https://gitbox.apache.org/repos/asf/sling-adapter-annotations.git</connection>
    <url>{scm_url}</url>
    <tag>{tag}</tag>
  </scm>
</project>
"""


# ---------------------------------------------------------------------------
# OpenPGP keys — generated once per session
# ---------------------------------------------------------------------------


def generate_signing_key(name: str, email: str, comment: str = "CODE SIGNING KEY") -> PGPKey:
    key = PGPKey.new(PubKeyAlgorithm.RSAEncryptOrSign, 2048)
    uid = PGPUID.new(name, comment=comment, email=email)
    key.add_uid(
        uid,
        usage={KeyFlags.Sign, KeyFlags.Certify},
        hashes=[HashAlgorithm.SHA256],
        ciphers=[SymmetricKeyAlgorithm.AES256],
        compression=[CompressionAlgorithm.ZLIB],
    )
    return key


def sign_bytes(key: PGPKey, data: bytes) -> bytes:
    """Armored detached signature of *data*."""
    return str(key.sign(data)).encode("ascii")


@pytest.fixture(scope="session")
def signing_key() -> PGPKey:
    """Trusted release manager key."""
    return generate_signing_key("Jane Release", "jane@apache.org")


@pytest.fixture(scope="session")
def stranger_key() -> PGPKey:
    """A key that is never part of the trusted key ring."""
    return generate_signing_key("Mallory Stranger", "mallory@example.com", comment="")


@pytest.fixture(scope="session")
def subkey_signing_key() -> tuple[PGPKey, PGPKey]:
    """A certify-only primary key whose signatures come from a signing subkey."""
    primary = PGPKey.new(PubKeyAlgorithm.RSAEncryptOrSign, 2048)
    primary.add_uid(
        PGPUID.new("Sam Subkey", email="sam@apache.org"),
        usage={KeyFlags.Certify},
        hashes=[HashAlgorithm.SHA256],
        ciphers=[SymmetricKeyAlgorithm.AES256],
        compression=[CompressionAlgorithm.ZLIB],
    )
    subkey = PGPKey.new(PubKeyAlgorithm.RSAEncryptOrSign, 2048)
    primary.add_subkey(subkey, usage={KeyFlags.Sign})
    return primary, subkey


@pytest.fixture(scope="session")
def keys_text(signing_key: PGPKey) -> str:
    """A KEYS-style bundle: free text around the armored public key."""
    return (
        "This file contains the PGP keys of various developers.\n\n"
        "pub   rsa2048 Jane Release\n"
        f"{signing_key.pubkey}\n"
    )


@pytest.fixture
def key_ring(signing_key: PGPKey) -> TrustedKeyRing:
    return TrustedKeyRing([signing_key.pubkey])


@pytest.fixture
def signature_validator(key_ring: TrustedKeyRing) -> PGPSignatureValidator:
    return PGPSignatureValidator(key_ring)


# ---------------------------------------------------------------------------
# Fake remote — Nexus + GitHub behind httpx.MockTransport
# ---------------------------------------------------------------------------


class FakeRemote:
    """Routes requests by URL (query string ignored) to canned responses."""

    def __init__(self) -> None:
        self._routes: dict[str, Callable[[httpx.Request], httpx.Response]] = {}
        self._lock = threading.Lock()
        self.requests: list[httpx.Request] = []
        self.delay_seconds = 0.0

    def add_bytes(self, url: str, content: bytes, status_code: int = 200) -> None:
        self._routes[url] = lambda request: httpx.Response(status_code, content=content)

    def add_json(self, url: str, payload: Any, status_code: int = 200) -> None:
        self._routes[url] = lambda request: httpx.Response(status_code, json=payload)

    def add_status(self, url: str, status_code: int) -> None:
        self._routes[url] = lambda request: httpx.Response(status_code)

    def add_error(self, url: str, error: type[httpx.TransportError]) -> None:
        """Make requests to *url* fail below HTTP, e.g. with ``httpx.ConnectError``."""

        def _raise(request: httpx.Request) -> httpx.Response:
            raise error("connection refused", request=request)

        self._routes[url] = _raise

    def handler(self, request: httpx.Request) -> httpx.Response:
        with self._lock:
            self.requests.append(request)
        if self.delay_seconds:
            time.sleep(self.delay_seconds)
        route = self._routes.get(str(request.url).split("?", 1)[0])
        if route is None:
            return httpx.Response(404, text="Not Found")
        return route(request)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def count(self, fragment: str) -> int:
        with self._lock:
            return sum(1 for request in self.requests if fragment in str(request.url))


class StagedRelease:
    """A staging repository holding one pom and one jar, all companions valid."""

    repository_id = REPOSITORY_ID
    repository_uri = REPOSITORY_URI
    profile_repositories_url = PROFILE_REPOSITORIES_URL
    lucene_search_url = LUCENE_SEARCH_URL
    ci_status_url = CI_STATUS_URL

    def __init__(self, remote: FakeRemote, key: PGPKey) -> None:
        self.remote = remote
        self.key = key
        self.pom = Artifact(
            group_id="org.apache.sling",
            artifact_id="adapter-annotations",
            version="1.0.0",
            type="pom",
        )
        self.jar = self.pom.model_copy(update={"type": "jar"})
        self.contents: dict[str, bytes] = {
            self.pom.relative_path: POM_TEMPLATE.format(
                scm_url="https://gitbox.apache.org/repos/asf?p=sling-adapter-annotations.git",
                tag="adapter-annotations-1.0.0",
            ).encode("utf-8"),
            self.jar.relative_path: b"PK\x03\x04" + bytes(range(256)) * 16,
        }

    @property
    def artifacts(self) -> list[Artifact]:
        return [self.pom, self.jar]

    def url(self, relative_path: str) -> str:
        return f"{REPOSITORY_URI}/{relative_path}"

    def publish(self, ci_state: str = "success") -> StagedRelease:
        self.remote.add_json(
            PROFILE_REPOSITORIES_URL,
            {
                "data": [
                    {
                        "repositoryId": REPOSITORY_ID,
                        "description": "Apache Sling Adapter Annotations 1.0.0",
                        "type": "closed",
                        "repositoryURI": REPOSITORY_URI,
                    },
                    {
                        "repositoryId": "orgapachesling-1235",
                        "description": "Apache Sling API 2.0.0",
                        "type": "open",
                        "repositoryURI": f"{NEXUS}/content/repositories/orgapachesling-1235",
                    },
                    {
                        "repositoryId": "orgapachefelix-1234",
                        "description": "Apache Felix Framework 7.0.0",
                        "type": "closed",
                        "repositoryURI": f"{NEXUS}/content/repositories/orgapachefelix-1234",
                    },
                ]
            },
        )
        self.remote.add_json(
            LUCENE_SEARCH_URL,
            {
                "data": [
                    {
                        "groupId": "org.apache.sling",
                        "artifactId": "adapter-annotations",
                        "version": "1.0.0",
                        "artifactHits": [
                            {"artifactLinks": [{"extension": "pom"}, {"extension": "jar"}]}
                        ],
                    }
                ]
            },
        )
        for artifact in self.artifacts:
            data = self.contents[artifact.relative_path]
            self.remote.add_bytes(self.url(artifact.relative_path), data)
            self.remote.add_bytes(self.url(artifact.signature_path), sign_bytes(self.key, data))
            self.remote.add_bytes(
                self.url(artifact.sha1_path), hashlib.sha1(data).hexdigest().encode("ascii")
            )
            self.remote.add_bytes(
                self.url(artifact.md5_path), hashlib.md5(data).hexdigest().encode("ascii")
            )
        self.remote.add_json(
            CI_STATUS_URL,
            {
                "state": ci_state,
                "statuses": [
                    {
                        "context": "continuous-integration/jenkins/branch",
                        "state": ci_state,
                        "description": "This commit looks good",
                        "target_url": "https://ci-builds.apache.org/job/Sling/job/adapter-annotations/1/",
                    }
                ],
            },
        )
        return self


@pytest.fixture
def remote() -> FakeRemote:
    return FakeRemote()


@pytest.fixture
def staged_release(remote: FakeRemote, signing_key: PGPKey) -> StagedRelease:
    return StagedRelease(remote, signing_key).publish()


# ---------------------------------------------------------------------------
# Settings / services
# ---------------------------------------------------------------------------


@pytest.fixture
def test_settings(tmp_path: Path, keys_text: str) -> StagecheckSettings:
    """Settings isolated from the environment, trusted keys already on disk."""
    keys_file = tmp_path / "keys" / "KEYS"
    keys_file.parent.mkdir(parents=True)
    keys_file.write_text(keys_text, encoding="utf-8")
    return StagecheckSettings(
        _env_file=None,
        nexus_url_prefix=NEXUS,
        github_api_url=GITHUB_API,
        keys_file=keys_file,
        keys_url=f"{NEXUS}/KEYS",
        download_root=tmp_path / "downloads",
    )


@pytest.fixture
def make_services(test_settings: StagecheckSettings, remote: FakeRemote) -> Callable[..., Services]:
    """Factory fixture: wire ``Services`` against the fake remote."""

    def _factory(**overrides: Any) -> Services:
        settings = test_settings.model_copy(update=overrides) if overrides else test_settings
        return build_services(settings, transport=remote.transport())

    return _factory


@pytest.fixture
def services(make_services: Callable[..., Services]) -> Services:
    return make_services()


@pytest.fixture
def sign() -> Callable[[PGPKey, bytes], bytes]:
    """Factory fixture: armored detached signature of some bytes."""
    return sign_bytes
