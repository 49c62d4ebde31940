"""Query matching for key export."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional, Protocol

from .encoding import Fingerprint, KeyID


class QueryType(enum.Enum):
    """Which key field a query is matched against."""

    UNSET = "unset"
    FINGERPRINT = "fingerprint"
    KID = "kid"
    EITHER = "either"


class QueryableKey(Protocol):
    def fingerprint(self) -> Optional[Fingerprint]:
        ...

    def key_id(self) -> KeyID:
        ...

    def matches_query(self, query: str, exact: bool) -> bool:
        ...


@dataclass(frozen=True)
class ExportQuery:
    """Caller input for one export call."""

    query: str = ""
    exact_match: bool = False
    secret: bool = False


def key_matches(key: QueryableKey, query: str, exact: bool, qtype: QueryType) -> bool:
    """Return whether *key* satisfies *query* for the field chosen by *qtype*.

    An empty query matches every key. Fingerprints and key ids are hex and
    compare case-insensitively: equality when *exact*, containment otherwise.
    ``EITHER`` defers to the key's own broad matcher.
    """

    if not query:
        return True
    if qtype is QueryType.EITHER:
        return key.matches_query(query, exact)
    if qtype is QueryType.FINGERPRINT:
        fp = key.fingerprint()
        return fp is not None and fp.match(query, exact)
    if qtype is QueryType.KID:
        return key.key_id().match(query, exact)
    return False


__all__ = ["ExportQuery", "QueryType", "QueryableKey", "key_matches"]
