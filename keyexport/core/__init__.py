"""Core export engine and its collaborators."""

from .encoding import EXPORTABLE_FAMILY, Fingerprint, KeyFamily, KeyID, raw_to_armored
from .export_engine import (
    EngineState,
    ExportContext,
    KeyExportEngine,
    KeyInfo,
    export_by_fingerprint,
    export_by_kid,
    export_by_query,
)
from .identity import Identity, IdentityStore, KeyRecord
from .query import ExportQuery, QueryType, key_matches
from .secret_store import SecretKey, SecretKeyBundle, SecretKeyStore

__all__ = [
    "EXPORTABLE_FAMILY",
    "EngineState",
    "ExportContext",
    "ExportQuery",
    "Fingerprint",
    "Identity",
    "IdentityStore",
    "KeyExportEngine",
    "KeyFamily",
    "KeyID",
    "KeyInfo",
    "KeyRecord",
    "QueryType",
    "SecretKey",
    "SecretKeyBundle",
    "SecretKeyStore",
    "export_by_fingerprint",
    "export_by_kid",
    "export_by_query",
    "key_matches",
    "raw_to_armored",
]
