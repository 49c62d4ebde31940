"""Passphrase sealing used for secret keys at rest."""

from __future__ import annotations

import base64
import json
import secrets
from typing import Any

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import ChaCha20Poly1305
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt

from ..errors import PassphraseError, SecretStoreError

CIPHER_NAME = "chacha20poly1305"


def _derive_key(passphrase: str, salt: bytes) -> bytes:
    kdf = Scrypt(salt=salt, length=32, n=2 ** 14, r=8, p=1)
    return kdf.derive(passphrase.encode("utf-8"))


def encrypt_with_passphrase(payload: Any, passphrase: str) -> dict[str, str]:
    if not passphrase:
        raise PassphraseError("passphrase must not be empty")
    salt = secrets.token_bytes(16)
    nonce = secrets.token_bytes(12)
    cipher = ChaCha20Poly1305(_derive_key(passphrase, salt))
    plaintext = json.dumps(payload, ensure_ascii=False).encode("utf-8")
    ciphertext = cipher.encrypt(nonce, plaintext, None)
    return {
        "version": "1",
        "cipher": CIPHER_NAME,
        "salt": base64.b64encode(salt).decode("ascii"),
        "nonce": base64.b64encode(nonce).decode("ascii"),
        "ciphertext": base64.b64encode(ciphertext).decode("ascii"),
    }


def decrypt_with_passphrase(payload: dict[str, str], passphrase: str) -> Any:
    """Open a container produced by :func:`encrypt_with_passphrase`.

    A wrong passphrase raises :class:`PassphraseError`; a malformed container
    raises :class:`SecretStoreError`.
    """

    cipher_name = payload.get("cipher")
    if cipher_name not in {None, CIPHER_NAME}:
        raise SecretStoreError(f"unsupported cipher '{cipher_name}' in sealed key")
    try:
        salt = base64.b64decode(payload["salt"])
        nonce = base64.b64decode(payload["nonce"])
        ciphertext = base64.b64decode(payload["ciphertext"])
    except (KeyError, ValueError) as exc:
        raise SecretStoreError("sealed key container is malformed") from exc
    cipher = ChaCha20Poly1305(_derive_key(passphrase, salt))
    try:
        plaintext = cipher.decrypt(nonce, ciphertext, None)
    except InvalidTag as exc:
        raise PassphraseError("incorrect passphrase") from exc
    try:
        return json.loads(plaintext.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise SecretStoreError("sealed key payload is not valid JSON") from exc


__all__ = ["decrypt_with_passphrase", "encrypt_with_passphrase"]
