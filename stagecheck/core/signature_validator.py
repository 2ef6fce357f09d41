"""Trusted key ring and detached-signature verification.

The key ring is built exactly once at startup by ``load_trusted_key_ring``
and handed to ``PGPSignatureValidator``; it is never mutated afterwards.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from pathlib import Path
from types import MappingProxyType

import httpx
from pgpy import PGPKey

from stagecheck.bridge import crypto_bridge
from stagecheck.bridge.http import HttpClientFactory
from stagecheck.core.errors import (
    EmptyKeyRingError,
    SignatureParseError,
    TrustStoreError,
    UnknownSigningKeyError,
    VerificationSystemError,
)
from stagecheck.models.results import SignatureValidationResult

logger = logging.getLogger(__name__)


class TrustedKeyRing:
    """Immutable key id -> primary public key lookup.

    Every primary key is reachable through its own key id and through the
    key ids of all of its subkeys.
    """

    def __init__(self, keys: Iterable[PGPKey]) -> None:
        by_id: dict[str, PGPKey] = {}
        primaries: list[PGPKey] = []
        for key in keys:
            primaries.append(key)
            for key_id in crypto_bridge.key_ids_of(key):
                by_id.setdefault(key_id, key)
        if not primaries:
            raise EmptyKeyRingError("The trusted key ring contains no public keys.")
        self._keys: Mapping[str, PGPKey] = MappingProxyType(by_id)
        self._primaries = tuple(primaries)

    @classmethod
    def from_armored(cls, text: str) -> TrustedKeyRing:
        return cls(crypto_bridge.parse_public_keys(text))

    def get(self, key_id: str) -> PGPKey | None:
        return self._keys.get(key_id.upper())

    def __contains__(self, key_id: object) -> bool:
        return isinstance(key_id, str) and key_id.upper() in self._keys

    def __len__(self) -> int:
        return len(self._primaries)

    @property
    def key_ids(self) -> list[str]:
        """Sorted key ids of the primary keys."""
        return sorted(key.fingerprint.keyid.upper() for key in self._primaries)

    @property
    def primary_keys(self) -> tuple[PGPKey, ...]:
        return self._primaries


def _download_keys_file(keys_file: Path, keys_url: str, http: HttpClientFactory) -> None:
    logger.info("Trusted keys file %s not found, downloading from %s", keys_file, keys_url)
    keys_file.parent.mkdir(parents=True, exist_ok=True)
    partial = keys_file.with_name(keys_file.name + ".part")
    try:
        with http.new_client() as client, client.stream("GET", keys_url) as response:
            response.raise_for_status()
            with open(partial, "wb") as out:
                for chunk in response.iter_bytes():
                    out.write(chunk)
        partial.replace(keys_file)
    except (httpx.HTTPError, OSError) as exc:
        partial.unlink(missing_ok=True)
        raise TrustStoreError(f"Unable to download trusted keys from {keys_url}.") from exc


def load_trusted_key_ring(
    keys_file: Path,
    keys_url: str,
    http: HttpClientFactory,
) -> TrustedKeyRing:
    """Build the trust store from *keys_file*, downloading it first if absent.

    Raises
    ------
    TrustStoreError
        If the file cannot be downloaded or read.
    EmptyKeyRingError
        If the file contains no usable public keys.
    """
    keys_file = Path(keys_file)
    if not keys_file.exists():
        _download_keys_file(keys_file, keys_url, http)

    try:
        text = keys_file.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        raise TrustStoreError(f"Unable to read trusted keys file {keys_file}.") from exc

    ring = TrustedKeyRing.from_armored(text)
    logger.info("Loaded %d trusted public keys from %s", len(ring), keys_file)
    return ring


class PGPSignatureValidator:
    """Verifies detached OpenPGP signatures against a ``TrustedKeyRing``."""

    def __init__(self, key_ring: TrustedKeyRing) -> None:
        self._key_ring = key_ring

    @property
    def key_ring(self) -> TrustedKeyRing:
        return self._key_ring

    def verify(self, artifact_path: Path, signature_path: Path) -> SignatureValidationResult:
        """Check *signature_path* against the bytes of *artifact_path*.

        Raises
        ------
        SignatureParseError
            If the signature file cannot be decoded.
        UnknownSigningKeyError
            If the signer is not in the trusted key ring.
        """
        try:
            raw_signature = Path(signature_path).read_bytes()
        except OSError as exc:
            raise SignatureParseError(f"Unable to read signature {signature_path}.") from exc
        signature = crypto_bridge.parse_signature(raw_signature, source=str(signature_path))
        signer = crypto_bridge.signer_key_id(signature)
        key = self._key_ring.get(signer)
        if key is None:
            raise UnknownSigningKeyError(
                f"Signature of {artifact_path} was made by key 0x{signer}, "
                "which is not in the trusted key ring."
            )

        # PGPy has no incremental verification API
        try:
            data = Path(artifact_path).read_bytes()
        except OSError as exc:
            raise VerificationSystemError(f"Unable to read artifact {artifact_path}.") from exc
        valid = crypto_bridge.verify_bytes(key, data, signature)
        return SignatureValidationResult(valid=valid, key=crypto_bridge.key_info(key))
