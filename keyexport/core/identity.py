"""Identity record: the authenticated user and their public keys."""

from __future__ import annotations

import base64
import binascii
import json
import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from ..errors import KeyExportError, LoadError
from ..utils.paths import identity_path
from .encoding import (
    EXPORTABLE_FAMILY,
    Fingerprint,
    KeyFamily,
    KeyID,
    fingerprint_for,
    raw_to_armored,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KeyRecord:
    """One public key belonging to an identity."""

    family: KeyFamily
    public: bytes
    kid: KeyID
    user_ids: Tuple[str, ...] = ()
    created: Optional[datetime] = None
    revoked: bool = False

    @classmethod
    def from_public(
        cls,
        public: bytes,
        family: KeyFamily = EXPORTABLE_FAMILY,
        *,
        user_ids: Iterable[str] = (),
        created: Optional[datetime] = None,
    ) -> "KeyRecord":
        return cls(
            family=family,
            public=bytes(public),
            kid=fingerprint_for(public).key_id(),
            user_ids=tuple(user_ids),
            created=created or datetime.now(timezone.utc),
        )

    def fingerprint(self) -> Optional[Fingerprint]:
        if not self.public:
            return None
        return fingerprint_for(self.public)

    def key_id(self) -> KeyID:
        return self.kid

    def encode(self) -> str:
        return raw_to_armored(self.public, secret=False, family=self.family)

    def matches_query(self, query: str, exact: bool) -> bool:
        """Case-insensitive match against every identifying string of the key."""

        needle = query.lower()
        if not needle:
            return True
        for candidate in self._search_strings():
            candidate = candidate.lower()
            if exact and candidate == needle:
                return True
            if not exact and needle in candidate:
                return True
        return False

    def _search_strings(self) -> List[str]:
        strings = [str(self.kid)]
        fp = self.fingerprint()
        if fp is not None:
            strings.extend([str(fp), fp.short_key_id()])
        strings.extend(self.user_ids)
        return strings

    def verbose_description(self) -> str:
        fp = self.fingerprint()
        lines = [
            f"{self.family.value} key fingerprint: {fp if fp is not None else '<none>'}",
            f"key id: {self.kid}",
        ]
        lines.extend(f"user: {uid}" for uid in self.user_ids)
        if self.created is not None:
            lines.append(f"created: {self.created.date().isoformat()}")
        if self.revoked:
            lines.append("status: revoked")
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, object]:
        return {
            "family": self.family.value,
            "public": base64.b64encode(self.public).decode("ascii"),
            "kid": str(self.kid),
            "user_ids": list(self.user_ids),
            "created": self.created.isoformat() if self.created else None,
            "revoked": self.revoked,
        }

    @classmethod
    def from_dict(cls, entry: Dict[str, object]) -> "KeyRecord":
        try:
            public = base64.b64decode(str(entry.get("public") or ""), validate=True)
        except (binascii.Error, ValueError):
            public = b""
        created_raw = entry.get("created")
        try:
            created = datetime.fromisoformat(str(created_raw)) if created_raw else None
        except ValueError:
            created = None
        family = KeyFamily.parse(str(entry.get("family", EXPORTABLE_FAMILY.value)))
        kid = entry.get("kid")
        if not kid:
            if not public:
                raise LoadError("key entry has neither public material nor a key id")
            kid = str(fingerprint_for(public).key_id())
        user_ids = entry.get("user_ids") or []
        if not isinstance(user_ids, list):
            raise LoadError(f"key {kid}: 'user_ids' must be a list")
        revoked = entry.get("revoked", False)
        if not isinstance(revoked, bool):
            raise LoadError(f"key {kid}: 'revoked' must be a boolean")
        return cls(
            family=family,
            public=public,
            kid=KeyID(str(kid).lower()),
            user_ids=tuple(str(uid) for uid in user_ids),
            created=created,
            revoked=revoked,
        )


@dataclass(frozen=True)
class Identity:
    """The user whose keys are being exported."""

    username: str
    keys: Tuple[KeyRecord, ...] = field(default_factory=tuple)

    def active_keys(self, include_revoked: bool = False) -> List[KeyRecord]:
        """Exportable-family keys in stored order."""

        return [
            key
            for key in self.keys
            if key.family is EXPORTABLE_FAMILY and (include_revoked or not key.revoked)
        ]

    def all_keys(self, include_revoked: bool = False) -> List[KeyRecord]:
        return [key for key in self.keys if include_revoked or not key.revoked]


def _merge(existing: KeyRecord, incoming: KeyRecord) -> KeyRecord:
    user_ids = existing.user_ids + tuple(uid for uid in incoming.user_ids if uid not in existing.user_ids)
    return replace(
        existing,
        public=incoming.public or existing.public,
        user_ids=user_ids,
        created=existing.created or incoming.created,
    )


class IdentityStore:
    """JSON-backed identity record living in the state directory."""

    def __init__(self, path: Optional[Path] = None) -> None:
        self._path = path or identity_path()

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        return self._path.exists()

    def _read(self) -> Dict[str, object]:
        if not self._path.exists():
            raise LoadError(f"no identity configured at {self._path}; run 'keyexport init'")
        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise LoadError(f"identity record {self._path} is unreadable") from exc
        if not isinstance(payload, dict) or not payload.get("username"):
            raise LoadError(f"identity record {self._path} has no username")
        return payload

    def _write(self, identity: Identity) -> None:
        payload = {
            "username": identity.username,
            "keys": [key.to_dict() for key in identity.keys],
        }
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")

    def load_me(self, public_key_optional: bool = False) -> Identity:
        payload = self._read()
        records: List[KeyRecord] = []
        raw_keys = payload.get("keys") or []
        if not isinstance(raw_keys, list):
            raise LoadError("identity 'keys' must be a list")
        for entry in raw_keys:
            if not isinstance(entry, dict):
                continue
            try:
                records.append(KeyRecord.from_dict(entry))
            except KeyExportError as exc:
                logger.warning("Skipping unreadable key entry: %s", exc)
        identity = Identity(username=str(payload["username"]), keys=tuple(records))
        if not public_key_optional and not identity.active_keys():
            raise LoadError(f"user '{identity.username}' has no active public keys")
        logger.debug("Loaded identity %s with %d key(s)", identity.username, len(records))
        return identity

    def create(self, username: str) -> Identity:
        if self._path.exists():
            raise LoadError(f"identity already exists at {self._path}")
        identity = Identity(username=username)
        self._write(identity)
        return identity

    def add_key(self, record: KeyRecord) -> Identity:
        """Append *record*, or merge it into the stored key with the same id.

        A merge keeps the stored creation time and revocation flag and adds
        any new user ids after the existing ones.
        """

        identity = self.load_me(public_key_optional=True)
        if any(existing.kid == record.kid for existing in identity.keys):
            keys = tuple(
                _merge(existing, record) if existing.kid == record.kid else existing
                for existing in identity.keys
            )
        else:
            keys = identity.keys + (record,)
        updated = Identity(username=identity.username, keys=keys)
        self._write(updated)
        return updated


__all__ = ["Identity", "IdentityStore", "KeyRecord"]
