"""Startup wiring — builds every component once, by explicit constructor
injection, from a ``StagecheckSettings`` instance.

The trusted key ring is loaded lazily (``Services.signature_validator``) so
that commands which never verify signatures, such as ``stagecheck list``, do
not download the keys file.
"""

from __future__ import annotations

import logging
from functools import cached_property

import httpx

from stagecheck.bridge.http import HttpClientFactory
from stagecheck.config import StagecheckSettings
from stagecheck.core.ci_status import CIStatusValidator
from stagecheck.core.download_cache import DownloadCache
from stagecheck.core.hasher import HashValidator
from stagecheck.core.pipeline import VerificationPipeline
from stagecheck.core.repository_service import RepositoryService
from stagecheck.core.signature_validator import (
    PGPSignatureValidator,
    TrustedKeyRing,
    load_trusted_key_ring,
)

logger = logging.getLogger(__name__)


class Services:
    """Process-wide component graph."""

    def __init__(self, settings: StagecheckSettings, http: HttpClientFactory) -> None:
        self.settings = settings
        self.http = http
        self.hash_validator = HashValidator()
        self.ci_validator = CIStatusValidator(http, settings.github_api_url)
        self.repository_service = RepositoryService(
            http,
            settings.nexus_url_prefix,
            repository_prefix=settings.repository_prefix,
            group_id=settings.group_id,
            download_root=settings.download_root,
            cache=DownloadCache(),
        )

    @cached_property
    def key_ring(self) -> TrustedKeyRing:
        return load_trusted_key_ring(self.settings.keys_file, self.settings.keys_url, self.http)

    @cached_property
    def signature_validator(self) -> PGPSignatureValidator:
        return PGPSignatureValidator(self.key_ring)

    @cached_property
    def pipeline(self) -> VerificationPipeline:
        return VerificationPipeline(
            self.repository_service,
            self.hash_validator,
            self.signature_validator,
            self.ci_validator,
        )


def build_services(
    settings: StagecheckSettings,
    transport: httpx.BaseTransport | None = None,
) -> Services:
    """Wire the component graph for *settings*.

    Parameters
    ----------
    settings:
        Resolved configuration.
    transport:
        Optional httpx transport for every client (tests pass a
        ``httpx.MockTransport``).
    """
    http = HttpClientFactory(
        settings.nexus_url_prefix,
        asf_username=settings.asf_username,
        asf_password=settings.asf_password.get_secret_value() if settings.asf_password else None,
        github_api_url=settings.github_api_url,
        github_token=settings.github_token.get_secret_value() if settings.github_token else None,
        timeout_seconds=settings.http_timeout_seconds,
        transport=transport,
    )
    if not settings.has_asf_credentials:
        logger.debug("No ASF credentials configured; Nexus requests are anonymous")
    return Services(settings, http)
