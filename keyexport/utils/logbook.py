"""Rotating forensic logger emitting tamper-evident JSON lines."""

from __future__ import annotations

import base64
import hashlib
import json
import logging
import os
import time
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Dict, Optional

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ed25519

from .paths import state_dir

LOGGER_NAME = "keyexport.logbook"


def log_file() -> Path:
    return state_dir() / "logs" / "keyexport.log"


def audit_log() -> Path:
    return state_dir() / "audit.jsonl"


def audit_key() -> Path:
    return state_dir() / "audit_ed25519.pem"


def _get_logger() -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAME)
    target = log_file()
    for handler in list(logger.handlers):
        if isinstance(handler, RotatingFileHandler) and Path(handler.baseFilename) == target:
            return logger
        # state dir moved underneath us (tests, env override); reattach
        logger.removeHandler(handler)
        handler.close()

    target.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(target, maxBytes=1_000_000, backupCount=5)
    handler.setFormatter(logging.Formatter("%(message)s"))

    logger.setLevel(logging.INFO)
    logger.propagate = False
    logger.addHandler(handler)
    return logger


def _load_or_create_key() -> ed25519.Ed25519PrivateKey:
    path = audit_key()
    path.parent.mkdir(parents=True, exist_ok=True)
    if path.exists():
        return serialization.load_pem_private_key(path.read_bytes(), password=None)
    key = ed25519.Ed25519PrivateKey.generate()
    pem = key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    path.write_bytes(pem)
    os.chmod(path, 0o600)
    return key


def _last_hash() -> Optional[str]:
    path = audit_log()
    if not path.exists():
        return None
    try:
        lines = path.read_text(encoding="utf-8").strip().splitlines()
    except OSError:
        return None
    if not lines:
        return None
    try:
        return json.loads(lines[-1]).get("hash")
    except json.JSONDecodeError:
        return None


def _write_audit_record(record: Dict[str, object]) -> None:
    key = _load_or_create_key()
    entry: Dict[str, object] = {
        "ts": time.time(),
        "prev": _last_hash(),
        "record": record,
    }
    canonical = json.dumps(entry, sort_keys=True, separators=(",", ":")).encode("utf-8")
    digest = hashlib.sha256(canonical).digest()
    entry["hash"] = digest.hex()
    entry["signature"] = base64.b64encode(key.sign(digest)).decode("ascii")
    entry["public_key"] = base64.b64encode(
        key.public_key().public_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PublicFormat.Raw,
        )
    ).decode("ascii")
    with audit_log().open("a", encoding="utf-8") as fh:
        fh.write(json.dumps(entry, sort_keys=True) + "\n")


def info(record: Dict[str, object]) -> None:
    """Write a forensic JSON record to the rotating log and the audit chain."""

    _get_logger().info(json.dumps(record, sort_keys=True))
    _write_audit_record(record)
