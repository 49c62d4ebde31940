from __future__ import annotations

import json
from pathlib import Path

import pytest
from cryptography.hazmat.primitives.asymmetric import ed25519, x25519

from keyexport.core.identity import IdentityStore, KeyRecord
from keyexport.core.encoding import KeyFamily
from keyexport.errors import EncodingError, LoadError


def _record(family: KeyFamily = KeyFamily.ED25519, user_ids=()) -> KeyRecord:
    if family is KeyFamily.X25519:
        public = x25519.X25519PrivateKey.generate().public_key().public_bytes_raw()
    else:
        public = ed25519.Ed25519PrivateKey.generate().public_key().public_bytes_raw()
    return KeyRecord.from_public(public, family, user_ids=user_ids)


def test_missing_identity_is_load_error(isolated_home: Path) -> None:
    with pytest.raises(LoadError):
        IdentityStore().load_me(public_key_optional=True)


def test_public_key_optional(isolated_home: Path) -> None:
    store = IdentityStore()
    store.create("alice")
    assert store.load_me(public_key_optional=True).keys == ()
    with pytest.raises(LoadError):
        store.load_me(public_key_optional=False)


def test_active_keys_keep_order_and_family(isolated_home: Path) -> None:
    store = IdentityStore()
    store.create("alice")
    first = _record(user_ids=("Alice <alice@example.com>",))
    device = _record(KeyFamily.X25519)
    second = _record()
    for record in (first, device, second):
        store.add_key(record)

    identity = store.load_me()
    assert [k.kid for k in identity.active_keys()] == [first.kid, second.kid]
    assert len(identity.all_keys()) == 3


def test_revoked_keys_hidden_unless_requested(isolated_home: Path) -> None:
    store = IdentityStore()
    store.create("alice")
    record = _record()
    store.add_key(record)
    payload = json.loads(store.path.read_text(encoding="utf-8"))
    payload["keys"][0]["revoked"] = True
    store.path.write_text(json.dumps(payload), encoding="utf-8")

    identity = store.load_me(public_key_optional=True)
    assert identity.active_keys() == []
    assert [k.kid for k in identity.active_keys(include_revoked=True)] == [record.kid]


def test_key_record_matching_and_description() -> None:
    record = _record(user_ids=("Alice <alice@example.com>",))
    fp = record.fingerprint()
    assert fp is not None
    assert record.matches_query(str(fp)[:12].upper(), exact=False)
    assert record.matches_query(str(record.kid), exact=True)
    assert record.matches_query(fp.short_key_id(), exact=True)
    assert record.matches_query("ALICE@example", exact=False)
    assert not record.matches_query("bob", exact=False)
    assert "user: Alice <alice@example.com>" in record.verbose_description()
    assert record.encode().startswith("-----BEGIN PUBLIC KEY-----")


def test_record_without_public_material() -> None:
    record = KeyRecord.from_dict({"family": "ed25519", "public": "", "kid": "ABCDEF0123456789"})
    assert record.fingerprint() is None
    assert str(record.key_id()) == "abcdef0123456789"
    with pytest.raises(EncodingError):
        record.encode()


def test_unreadable_entries_are_skipped(isolated_home: Path) -> None:
    store = IdentityStore()
    store.create("alice")
    good = _record()
    store.add_key(good)
    payload = json.loads(store.path.read_text(encoding="utf-8"))
    payload["keys"].append({"family": "rsa", "public": "AAAA", "kid": "00"})
    store.path.write_text(json.dumps(payload), encoding="utf-8")

    identity = store.load_me()
    assert [k.kid for k in identity.keys] == [good.kid]


def test_blank_query_is_not_an_exact_match() -> None:
    record = _record(user_ids=("Alice <alice@example.com>",))
    assert not record.matches_query("   ", exact=True)
    assert record.matches_query("", exact=True)


def test_readding_key_merges_user_ids_and_keeps_revocation(isolated_home: Path) -> None:
    store = IdentityStore()
    store.create("alice")
    record = _record(user_ids=("Alice <alice@work.example>",))
    store.add_key(record)
    payload = json.loads(store.path.read_text(encoding="utf-8"))
    payload["keys"][0]["revoked"] = True
    store.path.write_text(json.dumps(payload), encoding="utf-8")

    again = KeyRecord.from_public(
        record.public, user_ids=("Alice <alice@home.example>", "Alice <alice@work.example>")
    )
    identity = store.add_key(again)
    assert len(identity.keys) == 1
    merged = identity.keys[0]
    assert merged.user_ids == ("Alice <alice@work.example>", "Alice <alice@home.example>")
    assert merged.revoked is True
    assert merged.created == record.created


@pytest.mark.parametrize(
    "override",
    [{"revoked": "false"}, {"revoked": 1}, {"user_ids": "Alice <alice@example.com>"}],
)
def test_mistyped_fields_are_rejected(override: dict) -> None:
    entry = _record().to_dict()
    entry.update(override)
    with pytest.raises(LoadError):
        KeyRecord.from_dict(entry)
