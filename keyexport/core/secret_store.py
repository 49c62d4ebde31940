"""Passphrase-sealed secret keys kept in the system keyring."""

from __future__ import annotations

import base64
import binascii
import json
import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from ..errors import EncodingError, NoSecretKeyError, PassphraseError, SecretStoreError
from ..ui.secret_ui import SecretUI
from ..utils import keyring_backend
from ..utils.crypto_tools import decrypt_with_passphrase, encrypt_with_passphrase
from ..utils.env_tools import DEFAULT_SERVICE_NAME, DEFAULT_UNLOCK_ATTEMPTS, Settings
from .encoding import (
    Fingerprint,
    KeyFamily,
    armored_to_raw,
    fingerprint_for,
    public_raw_from_private,
)
from .identity import Identity, IdentityStore, KeyRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SecretKey:
    """Handle describing an unlocked secret key."""

    family: KeyFamily
    fp: Optional[Fingerprint]

    def fingerprint(self) -> Optional[Fingerprint]:
        return self.fp

    def key_family(self) -> KeyFamily:
        return self.family


class SecretKeyBundle:
    """Holds the raw unlocked key bytes until the caller wipes them."""

    def __init__(self, raw: Optional[bytearray]) -> None:
        self._raw = raw

    def raw_unlocked_key(self) -> Optional[bytearray]:
        return self._raw

    def wipe(self) -> None:
        if self._raw is not None:
            for i in range(len(self._raw)):
                self._raw[i] = 0
            self._raw = None


class SecretKeyStore:
    """Look up, unlock and import secret keys for an identity."""

    def __init__(
        self,
        service_name: str = DEFAULT_SERVICE_NAME,
        *,
        max_attempts: int = DEFAULT_UNLOCK_ATTEMPTS,
    ) -> None:
        self.service = f"{service_name}.skb"
        self.max_attempts = max(1, max_attempts)

    @classmethod
    def from_settings(cls, settings: Settings) -> "SecretKeyStore":
        return cls(settings.service_name, max_attempts=settings.unlock_attempts)

    # -- lookup -----------------------------------------------------------
    def _sealed_entry(self, fp: Fingerprint) -> Optional[dict]:
        entry = keyring_backend.get_entry(self.service, str(fp))
        if entry is None or not entry.secret:
            return None
        try:
            sealed = json.loads(entry.secret)
        except json.JSONDecodeError as exc:
            raise SecretStoreError(f"sealed key for {fp} is corrupt") from exc
        if not isinstance(sealed, dict):
            raise SecretStoreError(f"sealed key for {fp} is corrupt")
        return sealed

    def has_secret_key(self, fp: Fingerprint) -> bool:
        return keyring_backend.get_entry(self.service, str(fp)) is not None

    def find_candidates(
        self,
        identity: Identity,
        key_type: Optional[KeyFamily],
        query: str,
        exact: bool,
    ) -> List[KeyRecord]:
        """Keys of *identity* that match the query and have a sealed secret."""

        candidates = []
        for record in identity.all_keys():
            if key_type is not None and record.family is not key_type:
                continue
            fp = record.fingerprint()
            if fp is None or not record.matches_query(query, exact):
                continue
            if self.has_secret_key(fp):
                candidates.append(record)
        return candidates

    # -- unlock -----------------------------------------------------------
    def _unlock(self, sealed: dict, passphrase: str) -> Tuple[SecretKey, SecretKeyBundle]:
        payload = decrypt_with_passphrase(sealed, passphrase)
        if not isinstance(payload, dict):
            raise SecretStoreError("sealed key payload has an unexpected shape")
        try:
            family = KeyFamily.parse(str(payload.get("family", "")))
        except EncodingError as exc:
            raise SecretStoreError(str(exc)) from exc

        raw: Optional[bytearray] = None
        encoded = payload.get("secret")
        if encoded:
            try:
                raw = bytearray(base64.b64decode(str(encoded), validate=True))
            except (binascii.Error, ValueError):
                raw = None

        fp: Optional[Fingerprint] = None
        if raw is not None:
            try:
                fp = fingerprint_for(public_raw_from_private(raw, family))
            except EncodingError:
                fp = None
        return SecretKey(family=family, fp=fp), SecretKeyBundle(raw)

    def get_secret_key_with_prompt(
        self,
        identity: Identity,
        key_type: Optional[KeyFamily],
        query: str,
        exact: bool,
        secret_ui: SecretUI,
        reason: str,
    ) -> Tuple[SecretKey, SecretKeyBundle]:
        """Unlock the first matching secret key, prompting for its passphrase.

        Raises :class:`NoSecretKeyError` when nothing matches. Prompt
        cancellation and exhausted passphrase attempts propagate.
        """

        candidates = self.find_candidates(identity, key_type, query, exact)
        if not candidates:
            raise NoSecretKeyError(f"no secret key found for '{query}'" if query else "no secret key found")
        if len(candidates) > 1:
            logger.debug("%d secret keys match; using the first", len(candidates))
        record = candidates[0]
        fp = fingerprint_for(record.public)
        sealed = self._sealed_entry(fp)
        if sealed is None:
            raise NoSecretKeyError(f"secret key {fp} vanished from the keyring")

        prompt = f"Passphrase for key {record.key_id()}"
        for attempt in range(1, self.max_attempts + 1):
            passphrase = secret_ui.get_passphrase(prompt, reason)
            try:
                handle, bundle = self._unlock(sealed, passphrase)
            except PassphraseError:
                logger.warning("Bad passphrase for %s (attempt %d/%d)", record.key_id(), attempt, self.max_attempts)
                continue
            if handle.fingerprint() is not None and handle.fingerprint() != fp:
                logger.warning("Sealed key under %s unlocks to %s", fp, handle.fingerprint())
            return handle, bundle
        raise PassphraseError(f"could not unlock key {record.key_id()} after {self.max_attempts} attempt(s)")

    # -- import -----------------------------------------------------------
    def import_secret_key(
        self,
        identity_store: IdentityStore,
        armored: str,
        passphrase: str,
        *,
        user_ids: Iterable[str] = (),
    ) -> KeyRecord:
        """Seal an existing PEM private key and register its public half."""

        family, raw = armored_to_raw(armored, secret=True)
        record = KeyRecord.from_public(public_raw_from_private(raw, family), family, user_ids=user_ids)
        fp = fingerprint_for(record.public)
        payload = {"family": family.value, "secret": base64.b64encode(raw).decode("ascii")}
        sealed = encrypt_with_passphrase(payload, passphrase)
        # public half is registered only after the secret is stored
        identity_store.load_me(public_key_optional=True)
        keyring_backend.set_entry(self.service, str(fp), json.dumps(sealed))
        identity_store.add_key(record)
        logger.info("Imported %s key %s", family.value, record.key_id())
        return record


__all__ = ["SecretKey", "SecretKeyBundle", "SecretKeyStore"]
