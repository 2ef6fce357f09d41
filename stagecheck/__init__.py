"""Stagecheck: pre-vote verification of staged Apache Sling releases.

Downloads a Nexus staging repository once into a local cache and checks
every artifact:
  - detached OpenPGP signature against the project's trusted KEYS file
  - SHA-1 and MD5 checksums
  - CI status of the tagged commit, read from the project descriptor
"""

__version__ = "0.1.0"
__description__ = "Verify staged Apache Sling releases: signatures, checksums and CI status"

from stagecheck.bootstrap import Services, build_services
from stagecheck.core.pipeline import VerificationPipeline

__all__ = ["Services", "VerificationPipeline", "build_services", "__version__"]
