"""Runtime configuration — env-driven.

Centralized settings using pydantic-settings. Reads from a .env file and
STAGECHECK_* environment variables. Components never read this module
directly; ``stagecheck.bootstrap`` hands the values to their constructors.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_NEXUS_URL_PREFIX = "https://repository.apache.org"
DEFAULT_KEYS_URL = "https://downloads.apache.org/sling/KEYS"
DEFAULT_GITHUB_API_URL = "https://api.github.com"


class StagecheckSettings(BaseSettings):
    """Settings with environment variable overrides.

    Examples
    --------
    Override via environment::

        export STAGECHECK_LOG_LEVEL=DEBUG
        export STAGECHECK_KEYS_FILE=/tmp/sling-keys.asc
        export STAGECHECK_ASF_USERNAME=jdoe

    Or via .env file::

        STAGECHECK_ASF_PASSWORD=secret
        STAGECHECK_DOWNLOAD_ROOT=/var/tmp/staging
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="STAGECHECK_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = "INFO"

    # Nexus staging host
    nexus_url_prefix: str = DEFAULT_NEXUS_URL_PREFIX
    repository_prefix: str = "orgapachesling-"
    group_id: str = "org.apache.sling"
    asf_username: str | None = None
    asf_password: SecretStr | None = None

    # CI status lookups
    github_api_url: str = DEFAULT_GITHUB_API_URL
    github_token: SecretStr | None = None

    # Trust store
    keys_file: Path = Path(".stagecheck/sling-keys.asc")
    keys_url: str = DEFAULT_KEYS_URL

    # Downloads land in a fresh temp directory under this root (system temp if unset)
    download_root: Path | None = None

    http_timeout_seconds: float = 60.0

    @property
    def has_asf_credentials(self) -> bool:
        """Whether both ASF username and password are configured."""
        return bool(self.asf_username) and self.asf_password is not None


# Module-level singleton — import as `from stagecheck.config import settings`
settings = StagecheckSettings()
