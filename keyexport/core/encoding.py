"""Key identifiers and armored (PEM) encoding of raw key material."""

from __future__ import annotations

import enum
import hashlib
from dataclasses import dataclass
from typing import Callable, Dict, Tuple, Union

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ed25519, x25519

from ..errors import EncodingError

FINGERPRINT_LEN = 32
KEY_ID_LEN = 8
SHORT_KEY_ID_LEN = 4

RawBytes = Union[bytes, bytearray]


class KeyFamily(str, enum.Enum):
    """Key families understood by the store."""

    ED25519 = "ed25519"
    X25519 = "x25519"

    @classmethod
    def parse(cls, value: str) -> "KeyFamily":
        try:
            return cls(value.strip().lower())
        except ValueError as exc:
            raise EncodingError(f"unknown key family '{value}'") from exc


# Only signing keys are exported; X25519 keys live in the same store.
EXPORTABLE_FAMILY = KeyFamily.ED25519


def _match_hex(candidate: str, query: str, exact: bool) -> bool:
    candidate = candidate.lower()
    query = query.lower()
    if exact:
        return candidate == query
    return query in candidate


@dataclass(frozen=True)
class Fingerprint:
    """SHA-256 digest of a raw public key."""

    raw: bytes

    def __str__(self) -> str:
        return self.raw.hex()

    def key_id(self) -> "KeyID":
        return KeyID(self.raw[-KEY_ID_LEN:].hex())

    def short_key_id(self) -> str:
        return self.raw[-SHORT_KEY_ID_LEN:].hex()

    def match(self, query: str, exact: bool) -> bool:
        return _match_hex(str(self), query, exact)

    @classmethod
    def from_hex(cls, value: str) -> "Fingerprint":
        try:
            return cls(bytes.fromhex(value))
        except ValueError as exc:
            raise EncodingError(f"'{value}' is not a hex fingerprint") from exc


@dataclass(frozen=True)
class KeyID:
    """Short identifier; the trailing bytes of the fingerprint as hex."""

    value: str

    def __str__(self) -> str:
        return self.value

    def match(self, query: str, exact: bool) -> bool:
        return _match_hex(self.value, query, exact)


def fingerprint_for(public_raw: RawBytes) -> Fingerprint:
    return Fingerprint(hashlib.sha256(bytes(public_raw)).digest())


_PUBLIC_LOADERS: Dict[KeyFamily, Callable[[bytes], object]] = {
    KeyFamily.ED25519: ed25519.Ed25519PublicKey.from_public_bytes,
    KeyFamily.X25519: x25519.X25519PublicKey.from_public_bytes,
}
_PRIVATE_LOADERS: Dict[KeyFamily, Callable[[bytes], object]] = {
    KeyFamily.ED25519: ed25519.Ed25519PrivateKey.from_private_bytes,
    KeyFamily.X25519: x25519.X25519PrivateKey.from_private_bytes,
}


def _load_raw(raw: RawBytes, secret: bool, family: KeyFamily):
    loaders = _PRIVATE_LOADERS if secret else _PUBLIC_LOADERS
    kind = "secret" if secret else "public"
    try:
        return loaders[family](bytes(raw))
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        raise EncodingError(f"invalid raw {family.value} {kind} key") from exc


def public_raw_from_private(private_raw: RawBytes, family: KeyFamily) -> bytes:
    key = _load_raw(private_raw, True, family)
    return key.public_key().public_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PublicFormat.Raw,
    )


def raw_to_armored(raw: RawBytes, secret: bool, family: KeyFamily = EXPORTABLE_FAMILY) -> str:
    """Render raw key bytes as PEM text.

    Public keys become SubjectPublicKeyInfo blocks, secret keys unencrypted
    PKCS#8 blocks.
    """

    key = _load_raw(raw, secret, family)
    if secret:
        pem = key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )
    else:
        pem = key.public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )
    return pem.decode("ascii")


def armored_to_raw(text: str, secret: bool) -> Tuple[KeyFamily, bytes]:
    """Parse PEM text back to ``(family, raw bytes)``."""

    data = text.encode("ascii", errors="replace")
    try:
        if secret:
            key = serialization.load_pem_private_key(data, password=None)
        else:
            key = serialization.load_pem_public_key(data)
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        raise EncodingError("could not parse armored key") from exc

    if isinstance(key, (ed25519.Ed25519PrivateKey, ed25519.Ed25519PublicKey)):
        family = KeyFamily.ED25519
    elif isinstance(key, (x25519.X25519PrivateKey, x25519.X25519PublicKey)):
        family = KeyFamily.X25519
    else:
        raise EncodingError(f"unsupported key type {type(key).__name__}")

    if secret:
        raw = key.private_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PrivateFormat.Raw,
            encryption_algorithm=serialization.NoEncryption(),
        )
    else:
        raw = key.public_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PublicFormat.Raw,
        )
    return family, raw


__all__ = [
    "EXPORTABLE_FAMILY",
    "FINGERPRINT_LEN",
    "Fingerprint",
    "KeyFamily",
    "KeyID",
    "armored_to_raw",
    "fingerprint_for",
    "public_raw_from_private",
    "raw_to_armored",
]
