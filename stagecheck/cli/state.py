"""Process-wide service graph used by every CLI command."""

from __future__ import annotations

from stagecheck.bootstrap import Services, build_services
from stagecheck.config import settings

_services: Services | None = None


def get_services() -> Services:
    """Return the shared ``Services``, building it on first use."""
    global _services
    if _services is None:
        _services = build_services(settings)
    return _services


def override_services(services: Services | None) -> None:
    """Replace the shared ``Services`` (``None`` resets to lazy build)."""
    global _services
    _services = services
