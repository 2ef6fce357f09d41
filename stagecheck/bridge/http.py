"""HTTP bridge — httpx client factory shared by every remote collaborator.

Bridge boundary
---------------
Components never build ``httpx.Client`` objects themselves: they receive an
``HttpClientFactory`` and open a short-lived client per operation::

    with factory.new_client() as client:
        response = client.get(url)

The factory owns the cross-cutting concerns:

- ASF basic-auth credentials, sent only to the Nexus host.
- An optional GitHub token, sent only to the GitHub API host.
- A 401 response from any host raises ``AuthenticationError``.
- One timeout for every client.

Tests inject an ``httpx.MockTransport`` through ``transport``.
"""

from __future__ import annotations

import base64
import logging
from collections.abc import Generator

import httpx

from stagecheck.core.errors import AuthenticationError

logger = logging.getLogger(__name__)

USER_AGENT = "stagecheck/0.1.0"


class _HostScopedAuth(httpx.Auth):
    """Attach an ``Authorization`` header to requests for specific hosts only."""

    def __init__(self, headers_by_host: dict[str, str]) -> None:
        self._headers_by_host = headers_by_host

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        header = self._headers_by_host.get(request.url.host)
        if header is not None and "Authorization" not in request.headers:
            request.headers["Authorization"] = header
        yield request


def _basic_auth_header(username: str, password: str) -> str:
    token = base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")
    return f"Basic {token}"


def _raise_on_unauthorized(response: httpx.Response) -> None:
    if response.status_code == httpx.codes.UNAUTHORIZED:
        raise AuthenticationError(
            "Server returned a 401 status; please check your authentication "
            f"details for {response.request.url}"
        )


class HttpClientFactory:
    """Creates configured ``httpx.Client`` instances.

    Parameters
    ----------
    nexus_url_prefix:
        Base URL of the Nexus host; its hostname scopes the ASF credentials.
    asf_username / asf_password:
        Optional ASF credentials for Nexus.
    github_api_url / github_token:
        Optional token for the GitHub API host.
    timeout_seconds:
        Applied to connect, read, write and pool phases.
    transport:
        Replacement transport (``httpx.MockTransport`` in tests).
    """

    def __init__(
        self,
        nexus_url_prefix: str,
        *,
        asf_username: str | None = None,
        asf_password: str | None = None,
        github_api_url: str | None = None,
        github_token: str | None = None,
        timeout_seconds: float | None = 60.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._transport = transport
        self._timeout = httpx.Timeout(timeout_seconds)

        headers_by_host: dict[str, str] = {}
        if asf_username and asf_password is not None:
            nexus_host = httpx.URL(nexus_url_prefix).host
            headers_by_host[nexus_host] = _basic_auth_header(asf_username, asf_password)
        if github_api_url and github_token:
            headers_by_host[httpx.URL(github_api_url).host] = f"Bearer {github_token}"
        self._auth = _HostScopedAuth(headers_by_host)

        logger.debug(
            "HttpClientFactory configured (authenticated hosts: %s)",
            sorted(headers_by_host) or "none",
        )

    def new_client(self) -> httpx.Client:
        """Return a new client; callers close it (use it as a context manager)."""
        return httpx.Client(
            auth=self._auth,
            timeout=self._timeout,
            follow_redirects=True,
            headers={"User-Agent": USER_AGENT},
            event_hooks={"response": [_raise_on_unauthorized]},
            transport=self._transport,
        )
