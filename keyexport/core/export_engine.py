"""Export public or secret keys selected by a fingerprint / key id query."""

from __future__ import annotations

import enum
import logging
from dataclasses import asdict, dataclass
from typing import Dict, List, Optional, Protocol, Tuple

from ..errors import BadKeyError, ConfigurationError, EncodingError, NoSecretKeyError
from ..ui.secret_ui import SecretUI, TerminalSecretUI
from ..utils.env_tools import Settings
from .encoding import EXPORTABLE_FAMILY, Fingerprint, KeyFamily, raw_to_armored
from .identity import Identity, IdentityStore
from .query import ExportQuery, QueryType, key_matches
from .secret_store import SecretKey, SecretKeyBundle, SecretKeyStore

logger = logging.getLogger(__name__)

EXPORT_REASON = "key export"


@dataclass(frozen=True)
class KeyInfo:
    """One exported key."""

    fingerprint: str
    key: str
    desc: str = ""

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


class IdentityLoader(Protocol):
    def load_me(self, public_key_optional: bool = False) -> Identity:
        ...


class SecretKeyProvider(Protocol):
    def get_secret_key_with_prompt(
        self,
        identity: Identity,
        key_type: Optional[KeyFamily],
        query: str,
        exact: bool,
        secret_ui: SecretUI,
        reason: str,
    ) -> Tuple[SecretKey, SecretKeyBundle]:
        ...


@dataclass
class ExportContext:
    """Collaborators an export run needs."""

    identities: IdentityLoader
    secret_keys: SecretKeyProvider
    secret_ui: SecretUI

    @classmethod
    def from_settings(cls, settings: Settings, secret_ui: Optional[SecretUI] = None) -> "ExportContext":
        return cls(
            identities=IdentityStore(settings.state_dir / "identity.json"),
            secret_keys=SecretKeyStore.from_settings(settings),
            secret_ui=secret_ui or TerminalSecretUI(),
        )


class EngineState(enum.Enum):
    IDLE = "idle"
    LOADING_IDENTITY = "loading-identity"
    EXPORTING_PUBLIC = "exporting-public"
    EXPORTING_SECRET = "exporting-secret"
    DONE = "done"
    FAILED = "failed"


class KeyExportEngine:
    """Single-use engine running one export.

    Public exports walk the identity's active keys in order and keep every
    encodable key that matches the query. Secret exports unlock at most one
    key through the secret store; a store with no matching key yields an
    empty result rather than an error.
    """

    name = "KeyExportEngine"

    def __init__(self, query: ExportQuery, qtype: QueryType, context: ExportContext) -> None:
        self.query = query
        self.qtype = qtype
        self.context = context
        self.state = EngineState.IDLE
        self._res: List[KeyInfo] = []

    def results(self) -> List[KeyInfo]:
        return list(self._res)

    def _push_res(self, fp: Fingerprint, key: str, desc: str) -> None:
        self._res.append(KeyInfo(fingerprint=str(fp), key=key, desc=desc))

    def _load_me(self) -> Identity:
        self.state = EngineState.LOADING_IDENTITY
        return self.context.identities.load_me(public_key_optional=True)

    def _export_public(self, me: Identity) -> None:
        self.state = EngineState.EXPORTING_PUBLIC
        for key in me.active_keys(include_revoked=False):
            fp = key.fingerprint()
            if fp is None:
                continue
            try:
                encoded = key.encode()
            except EncodingError as exc:
                logger.debug("Skipping key %s: %s", key.key_id(), exc)
                continue
            if not key_matches(key, self.query.query, self.query.exact_match, self.qtype):
                continue
            self._push_res(fp, encoded, key.verbose_description())

    def _export_secret(self, me: Identity) -> None:
        self.state = EngineState.EXPORTING_SECRET
        try:
            key, skb = self.context.secret_keys.get_secret_key_with_prompt(
                me,
                EXPORTABLE_FAMILY,
                self.query.query,
                self.query.exact_match,
                self.context.secret_ui,
                EXPORT_REASON,
            )
        except NoSecretKeyError:
            logger.debug("No secret key found; returning an empty result")
            return

        try:
            fp = key.fingerprint()
            if fp is None:
                raise BadKeyError("no fingerprint found")
            if key.key_family() is not EXPORTABLE_FAMILY:
                raise BadKeyError(f"expected a {EXPORTABLE_FAMILY.value} key")
            raw = skb.raw_unlocked_key()
            if raw is None:
                raise BadKeyError("can't get raw representation of key")
            armored = raw_to_armored(raw, secret=True, family=EXPORTABLE_FAMILY)
        finally:
            skb.wipe()

        self._push_res(fp, armored, "")

    def run(self) -> None:
        logger.debug("+ %s.run", self.name)
        if self.state is not EngineState.IDLE:
            logger.debug("- %s.run -> ERROR (already ran)", self.name)
            raise ConfigurationError(f"{self.name}: engine already ran")

        ok = False
        try:
            if self.qtype is QueryType.UNSET:
                raise ConfigurationError(f"{self.name}: query type not set")
            me = self._load_me()
            if self.query.secret:
                self._export_secret(me)
            else:
                self._export_public(me)
            ok = True
        finally:
            self.state = EngineState.DONE if ok else EngineState.FAILED
            logger.debug("- %s.run -> %s", self.name, "ok" if ok else "ERROR")


def new_export_engine(query: ExportQuery, context: ExportContext) -> KeyExportEngine:
    return KeyExportEngine(query, QueryType.EITHER, context)


def new_export_by_kid_engine(query: ExportQuery, context: ExportContext) -> KeyExportEngine:
    return KeyExportEngine(query, QueryType.KID, context)


def new_export_by_fingerprint_engine(query: ExportQuery, context: ExportContext) -> KeyExportEngine:
    return KeyExportEngine(query, QueryType.FINGERPRINT, context)


def _run(engine: KeyExportEngine) -> List[KeyInfo]:
    engine.run()
    return engine.results()


def export_by_query(
    query: str, exact: bool, secret: bool, context: ExportContext
) -> List[KeyInfo]:
    """Match *query* against fingerprint, key id and user ids."""

    return _run(new_export_engine(ExportQuery(query, exact, secret), context))


def export_by_fingerprint(
    pattern: str, exact: bool, secret: bool, context: ExportContext
) -> List[KeyInfo]:
    return _run(new_export_by_fingerprint_engine(ExportQuery(pattern, exact, secret), context))


def export_by_kid(
    pattern: str, exact: bool, secret: bool, context: ExportContext
) -> List[KeyInfo]:
    return _run(new_export_by_kid_engine(ExportQuery(pattern, exact, secret), context))


__all__ = [
    "EngineState",
    "ExportContext",
    "KeyExportEngine",
    "KeyInfo",
    "export_by_fingerprint",
    "export_by_kid",
    "export_by_query",
    "new_export_by_fingerprint_engine",
    "new_export_by_kid_engine",
    "new_export_engine",
]
