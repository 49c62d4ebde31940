"""Keyring integration helpers for sealed secret key storage."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

import keyring
from keyring.errors import KeyringError

from ..errors import SecretStoreError


@dataclass(order=True)
class KeyringEntry:
    service: str
    username: str
    secret: Optional[str] = field(default=None, compare=False)


def get_entry(service: str, username: str) -> Optional[KeyringEntry]:
    try:
        secret = keyring.get_password(service, username)
    except KeyringError as exc:
        raise SecretStoreError(f"keyring lookup failed for {service}/{username}") from exc
    if secret is None:
        return None
    return KeyringEntry(service=service, username=username, secret=secret)


def set_entry(service: str, username: str, secret: str) -> None:
    try:
        keyring.set_password(service, username, secret)
    except KeyringError as exc:
        raise SecretStoreError(f"keyring write failed for {service}/{username}") from exc


__all__ = ["KeyringEntry", "get_entry", "set_entry"]
