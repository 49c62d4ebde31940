"""Tests for the audit log chaining and signatures."""

from __future__ import annotations

import base64
import hashlib
import json
from pathlib import Path

from cryptography.hazmat.primitives.asymmetric import ed25519

from keyexport.utils import logbook


def _verify_entry(entry: dict) -> None:
    public_key = ed25519.Ed25519PublicKey.from_public_bytes(base64.b64decode(entry["public_key"]))
    base_entry = {k: entry[k] for k in ("ts", "prev", "record")}
    canonical = json.dumps(base_entry, sort_keys=True, separators=(",", ":")).encode("utf-8")
    digest = hashlib.sha256(canonical).digest()
    public_key.verify(base64.b64decode(entry["signature"]), digest)
    assert entry["hash"] == digest.hex()


def test_audit_log_chain(isolated_home: Path) -> None:
    logbook.info({"action": "unit", "value": 1})
    logbook.info({"action": "unit", "value": 2})

    lines = (isolated_home / "audit.jsonl").read_text(encoding="utf-8").strip().splitlines()
    assert len(lines) == 2
    first, second = (json.loads(line) for line in lines)
    assert first["prev"] is None
    assert second["prev"] == first["hash"]
    _verify_entry(first)
    _verify_entry(second)

    rotating = (isolated_home / "logs" / "keyexport.log").read_text(encoding="utf-8")
    assert '"value": 2' in rotating
