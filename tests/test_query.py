"""Tests for the fingerprint / key id query matcher."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

import pytest

from keyexport.core.encoding import Fingerprint, KeyID
from keyexport.core.query import QueryType, key_matches


@dataclass
class StubKey:
    fp: Optional[Fingerprint]
    kid: KeyID
    user_ids: Tuple[str, ...] = ()

    def fingerprint(self) -> Optional[Fingerprint]:
        return self.fp

    def key_id(self) -> KeyID:
        return self.kid

    def matches_query(self, query: str, exact: bool) -> bool:
        needle = query.lower()
        haystack = [str(self.kid).lower(), *(uid.lower() for uid in self.user_ids)]
        if self.fp is not None:
            haystack.append(str(self.fp))
        if exact:
            return needle in haystack
        return any(needle in item for item in haystack)


KEY_A = StubKey(Fingerprint.from_hex("AAAA1111"), KeyID("K1"), ("Alice <alice@example.com>",))
NO_FP = StubKey(None, KeyID("K3"))

ALL_TYPES = list(QueryType)


@pytest.mark.parametrize("qtype", ALL_TYPES)
@pytest.mark.parametrize("exact", [True, False])
def test_empty_query_matches_everything(qtype: QueryType, exact: bool) -> None:
    assert key_matches(KEY_A, "", exact, qtype)
    assert key_matches(NO_FP, "", exact, qtype)


def test_fingerprint_substring_and_exact() -> None:
    assert key_matches(KEY_A, "AAAA", False, QueryType.FINGERPRINT)
    assert key_matches(KEY_A, "a1111", False, QueryType.FINGERPRINT)
    assert not key_matches(KEY_A, "AAAA", True, QueryType.FINGERPRINT)
    assert key_matches(KEY_A, "aaaa1111", True, QueryType.FINGERPRINT)
    assert key_matches(KEY_A, "AAAA1111", True, QueryType.FINGERPRINT)
    assert not key_matches(KEY_A, "BBBB", False, QueryType.FINGERPRINT)


def test_fingerprint_selector_never_matches_missing_fingerprint() -> None:
    for pattern in ("K3", "k", "AAAA"):
        assert not key_matches(NO_FP, pattern, False, QueryType.FINGERPRINT)
        assert not key_matches(NO_FP, pattern, True, QueryType.FINGERPRINT)


def test_kid_selector_ignores_fingerprint() -> None:
    assert key_matches(KEY_A, "K1", True, QueryType.KID)
    assert key_matches(KEY_A, "k", False, QueryType.KID)
    assert not key_matches(KEY_A, "AAAA", False, QueryType.KID)
    assert key_matches(NO_FP, "k3", True, QueryType.KID)


def test_either_delegates_to_key_matcher() -> None:
    assert key_matches(KEY_A, "alice@example", False, QueryType.EITHER)
    assert key_matches(KEY_A, "AAAA", False, QueryType.EITHER)
    assert not key_matches(KEY_A, "alice", True, QueryType.EITHER)


def test_unset_selector_matches_nothing_for_real_queries() -> None:
    assert not key_matches(KEY_A, "AAAA", False, QueryType.UNSET)
