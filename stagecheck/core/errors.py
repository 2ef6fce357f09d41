"""Error hierarchy.

Two families matter to callers:

- ``TransportError`` — the remote side could not be reached or returned
  something unusable. A verification run that hits one is aborted.
- ``VerificationSystemError`` — a check could not be performed at all
  (unknown signing key, empty key ring, unsupported digest). These are never
  reported as a plain "invalid" result.

Expected mismatches (bad signature, wrong hash, failing CI) are not errors;
they come back as ``valid=False`` result values.
"""

from __future__ import annotations


class StagecheckError(RuntimeError):
    """Root of all stagecheck errors."""


# ---------------------------------------------------------------------------
# Transport / parse failures
# ---------------------------------------------------------------------------


class TransportError(StagecheckError):
    """Raised when a remote call fails or returns an unusable payload."""


class NexusError(TransportError):
    """Raised when the Nexus staging API answers with an unexpected status."""


class AuthenticationError(TransportError):
    """Raised when a server rejects the configured credentials (HTTP 401)."""


class RepositoryNotFoundError(StagecheckError, LookupError):
    """Raised when no closed staging repository matches the requested id."""


# ---------------------------------------------------------------------------
# System failures — the check could not be performed
# ---------------------------------------------------------------------------


class VerificationSystemError(StagecheckError):
    """Raised when a verification could not be carried out."""


class UnsupportedAlgorithmError(VerificationSystemError):
    """Raised for a digest algorithm hashlib does not provide."""


class HashComputationError(VerificationSystemError):
    """Raised when an artifact or its checksum file cannot be read."""


class SignatureParseError(VerificationSystemError):
    """Raised when a detached signature file cannot be decoded."""


class UnknownSigningKeyError(VerificationSystemError):
    """Raised when a signature was made by a key absent from the trust store."""


class TrustStoreError(VerificationSystemError):
    """Raised when the trusted key file cannot be obtained or read."""


class EmptyKeyRingError(TrustStoreError):
    """Raised when the trusted key file yields no public keys."""
