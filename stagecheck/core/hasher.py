"""Streaming digest helpers and the checksum validator.

Files are never read into memory whole: they are fed through a ``hashlib``
accumulator in fixed-size chunks.
"""

from __future__ import annotations

import hashlib
import logging
from pathlib import Path

from stagecheck.core.errors import HashComputationError, UnsupportedAlgorithmError
from stagecheck.models.results import HashValidationResult

logger = logging.getLogger(__name__)

CHUNK_SIZE = 4096

# Maven/Java style names -> hashlib names
_ALGORITHM_ALIASES: dict[str, str] = {
    "sha-1": "sha1",
    "sha1": "sha1",
    "md5": "md5",
    "md-5": "md5",
    "sha-256": "sha256",
    "sha256": "sha256",
    "sha-512": "sha512",
    "sha512": "sha512",
}


def normalize_algorithm(algorithm: str) -> str:
    """Map a digest name such as ``SHA-1`` to its hashlib name.

    Raises
    ------
    UnsupportedAlgorithmError
        If the name is unknown or hashlib cannot provide it.
    """
    name = _ALGORITHM_ALIASES.get(algorithm.strip().lower())
    if name is None or name not in hashlib.algorithms_available:
        raise UnsupportedAlgorithmError(f"Cannot validate {algorithm} hash: unsupported algorithm.")
    return name


def file_hex_digest(path: Path, algorithm: str) -> str:
    """Return the lower-case hex digest of the file at *path*."""
    digest = hashlib.new(normalize_algorithm(algorithm))
    with open(path, "rb") as stream:
        for chunk in iter(lambda: stream.read(CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


def read_expected_hash(path: Path) -> str:
    """Read a checksum companion file.

    Maven checksum files hold the hex digest, sometimes followed by the file
    name (``<hash>  <file>``); only the first token is kept.
    """
    text = Path(path).read_text(encoding="ascii", errors="replace").strip()
    return text.split()[0] if text else ""


class HashValidator:
    """Compares a file's digest with the value stored in its checksum file."""

    def validate(self, file_path: Path, expected_hash_path: Path, algorithm: str) -> HashValidationResult:
        """Validate *file_path* against the digest stored in *expected_hash_path*.

        A mismatch is a normal ``valid=False`` result. Unsupported
        algorithms and unreadable files raise, since nothing was checked.
        """
        normalize_algorithm(algorithm)
        try:
            actual = file_hex_digest(file_path, algorithm)
            expected = read_expected_hash(expected_hash_path)
        except OSError as exc:
            raise HashComputationError(f"Cannot validate {algorithm} hash of {file_path}.") from exc

        valid = actual.lower() == expected.lower()
        if not valid:
            logger.debug(
                "%s mismatch for %s: expected %s, got %s", algorithm, file_path, expected, actual
            )
        return HashValidationResult(
            valid=valid,
            algorithm=algorithm,
            expected_hash=expected,
            actual_hash=actual,
        )
