"""Crypto bridge — OpenPGP primitives via PGPy.

Bridge boundary
---------------
Everything that touches PGPy lives here so the rest of the package deals in
plain values (``SigningKeyInfo``, key ids as upper-case hex strings):

- ``parse_public_keys`` decodes an ASCII-armored key bundle. Bundles such as
  an Apache ``KEYS`` file hold many concatenated armored blocks, often with
  free text in between; every block is decoded until the input is exhausted.
- ``parse_signature`` decodes a detached signature (armored or binary) and
  returns its first signature packet.
- ``verify_bytes`` checks a signature over raw artifact bytes.

No cryptography is implemented here.
"""

from __future__ import annotations

import logging
import re

from pgpy import PGPKey, PGPSignature
from pgpy.errors import PGPError

from stagecheck.core.errors import SignatureParseError, VerificationSystemError
from stagecheck.models.results import SigningKeyInfo

logger = logging.getLogger(__name__)

_ARMORED_KEY_BLOCK = re.compile(
    r"-----BEGIN PGP PUBLIC KEY BLOCK-----.*?-----END PGP PUBLIC KEY BLOCK-----",
    re.DOTALL,
)


# ---------------------------------------------------------------------------
# Keys
# ---------------------------------------------------------------------------


def split_armored_key_blocks(text: str) -> list[str]:
    """Return every armored public key block found in *text*, in order."""
    return _ARMORED_KEY_BLOCK.findall(text)


def parse_public_keys(text: str) -> list[PGPKey]:
    """Decode every primary public key contained in an armored bundle.

    Blocks that PGPy cannot decode are skipped with a warning; the caller
    decides whether the remaining set is usable.
    """
    keys: dict[str, PGPKey] = {}
    for index, block in enumerate(split_armored_key_blocks(text)):
        try:
            key, others = PGPKey.from_blob(block)
        except (PGPError, ValueError, TypeError, IndexError, KeyError, NotImplementedError) as exc:
            logger.warning("Skipping undecodable key block #%d: %s", index, exc)
            continue

        for candidate in [key, *others.values()]:
            if not isinstance(candidate, PGPKey) or not candidate.is_primary:
                continue
            if not candidate.is_public:
                candidate = candidate.pubkey
            keys.setdefault(fingerprint_of(candidate), candidate)

    return list(keys.values())


def fingerprint_of(key: PGPKey) -> str:
    """Upper-case hex fingerprint without spaces."""
    return str(key.fingerprint).replace(" ", "").upper()


def key_ids_of(key: PGPKey) -> list[str]:
    """Key ids of a primary key and all of its subkeys."""
    ids = [key.fingerprint.keyid.upper()]
    ids.extend(str(subkey_id).upper() for subkey_id in key.subkeys)
    return ids


def user_ids_of(key: PGPKey) -> list[str]:
    """User ids formatted as ``Name (comment) <email>``."""
    result: list[str] = []
    for uid in key.userids:
        text = uid.name or ""
        if uid.comment:
            text = f"{text} ({uid.comment})"
        if uid.email:
            text = f"{text} <{uid.email}>"
        result.append(text.strip())
    return result


def key_info(key: PGPKey) -> SigningKeyInfo:
    return SigningKeyInfo(
        key_id=key.fingerprint.keyid.upper(),
        fingerprint=fingerprint_of(key),
        user_ids=user_ids_of(key),
    )


# ---------------------------------------------------------------------------
# Signatures
# ---------------------------------------------------------------------------


def parse_signature(data: bytes, *, source: str = "signature") -> PGPSignature:
    """Decode the first signature packet of a detached signature.

    Raises
    ------
    SignatureParseError
        If *data* is not an OpenPGP signature.
    """
    try:
        signature = PGPSignature.from_blob(data)
    except (PGPError, ValueError, TypeError, IndexError, KeyError, NotImplementedError) as exc:
        raise SignatureParseError(f"Unable to decode signature {source}.") from exc
    if not isinstance(signature, PGPSignature):
        raise SignatureParseError(f"{source} does not contain a signature packet.")
    return signature


def signer_key_id(signature: PGPSignature) -> str:
    return str(signature.signer).upper()


def verify_bytes(key: PGPKey, data: bytes, signature: PGPSignature) -> bool:
    """Return whether *signature* is a valid signature of *data* by *key*.

    PGPy routes subkey signatures to the matching subkey of *key*.
    """
    try:
        return bool(key.verify(data, signature))
    except PGPError as exc:
        raise VerificationSystemError(
            f"Key {key.fingerprint.keyid} cannot verify this signature: {exc}"
        ) from exc
