"""Command handlers for the key export surface."""

from __future__ import annotations

import getpass
import json
import os
import sys
from pathlib import Path
from typing import Dict, List, Optional

from rich.console import Console
from rich.table import Table

from ..core import (
    ExportContext,
    IdentityStore,
    KeyInfo,
    SecretKeyStore,
    export_by_fingerprint,
    export_by_kid,
    export_by_query,
)
from ..errors import KeyExportError
from ..ui import SecretUI, StaticSecretUI, TerminalSecretUI
from ..utils import logbook
from ..utils.env_tools import Settings

_EXPORTERS = {
    "either": export_by_query,
    "fingerprint": export_by_fingerprint,
    "kid": export_by_kid,
}

console = Console(highlight=False)


def _secret_ui(settings: Settings) -> SecretUI:
    if settings.passphrase:
        return StaticSecretUI(settings.passphrase)
    return TerminalSecretUI()


def _identity_store(settings: Settings) -> IdentityStore:
    return IdentityStore(settings.state_dir / "identity.json")


def init(args, settings: Optional[Settings] = None) -> Dict[str, object]:
    settings = settings or Settings.from_env()
    try:
        identity = _identity_store(settings).create(args.username)
    except KeyExportError as exc:
        raise SystemExit(str(exc)) from exc
    logbook.info({"action": "identity_init", "username": identity.username})
    print(f"[KEYS] Created identity {identity.username}")
    return {"username": identity.username}


def import_key(args, settings: Optional[Settings] = None) -> Dict[str, object]:
    settings = settings or Settings.from_env()
    path = Path(args.path)
    try:
        armored = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SystemExit(f"cannot read {path}: {exc}") from exc

    passphrase = args.passphrase if args.passphrase is not None else settings.passphrase
    if passphrase is None:
        first = getpass.getpass("Passphrase to protect the key: ")
        second = getpass.getpass("Confirm passphrase: ")
        if first != second:
            raise SystemExit("passphrase confirmation does not match")
        passphrase = first
    if not passphrase:
        raise SystemExit("passphrase must not be empty")

    store = SecretKeyStore.from_settings(settings)
    try:
        record = store.import_secret_key(
            _identity_store(settings),
            armored,
            passphrase,
            user_ids=args.user_ids or (),
        )
    except KeyExportError as exc:
        raise SystemExit(str(exc)) from exc
    fp = record.fingerprint()
    logbook.info(
        {"action": "key_import", "family": record.family.value, "kid": str(record.kid), "fingerprint": str(fp)}
    )
    print(f"[KEYS] Imported {record.family.value} key {record.kid} ({fp})")
    return {"fingerprint": str(fp), "kid": str(record.kid), "family": record.family.value}


def list_keys(args, settings: Optional[Settings] = None) -> Dict[str, List[Dict[str, object]]]:
    settings = settings or Settings.from_env()
    try:
        identity = _identity_store(settings).load_me(public_key_optional=True)
    except KeyExportError as exc:
        raise SystemExit(str(exc)) from exc
    store = SecretKeyStore.from_settings(settings)

    rows: List[Dict[str, object]] = []
    table = Table(title=f"Keys for {identity.username}")
    for column in ("KID", "FAMILY", "FINGERPRINT", "SECRET", "USER IDS"):
        table.add_column(column)
    for record in identity.all_keys(include_revoked=getattr(args, "all", False)):
        fp = record.fingerprint()
        has_secret = fp is not None and store.has_secret_key(fp)
        rows.append(
            {
                "kid": str(record.kid),
                "family": record.family.value,
                "fingerprint": str(fp) if fp else None,
                "secret": has_secret,
                "revoked": record.revoked,
                "user_ids": list(record.user_ids),
            }
        )
        table.add_row(
            str(record.kid),
            record.family.value,
            str(fp) if fp else "-",
            "yes" if has_secret else "no",
            ", ".join(record.user_ids),
        )
    logbook.info({"action": "key_list", "count": len(rows)})
    console.print(table)
    return {"keys": rows}


def _render(results: List[KeyInfo], as_json: bool) -> str:
    if as_json:
        return json.dumps([info.to_dict() for info in results], indent=2)
    return "\n".join(info.key.rstrip("\n") for info in results) + ("\n" if results else "")


def _write_private(target: Path, text: str) -> None:
    fd = os.open(target, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "w", encoding="utf-8") as handle:
        # O_CREAT leaves the mode of an existing file alone
        os.chmod(target, 0o600)
        handle.write(text)


def export(args, settings: Optional[Settings] = None, secret_ui: Optional[SecretUI] = None) -> List[Dict[str, str]]:
    settings = settings or Settings.from_env()
    context = ExportContext.from_settings(settings, secret_ui or _secret_ui(settings))
    exporter = _EXPORTERS[args.by]
    try:
        results = exporter(args.query or "", args.exact, args.secret, context)
    except KeyExportError as exc:
        logbook.info({"action": "key_export", "by": args.by, "secret": args.secret, "ok": False, "error": str(exc)})
        raise SystemExit(str(exc)) from exc

    logbook.info(
        {
            "action": "key_export",
            "by": args.by,
            "query": args.query or "",
            "exact": args.exact,
            "secret": args.secret,
            "ok": True,
            "fingerprints": [info.fingerprint for info in results],
        }
    )
    if not results:
        print("[KEYS] No matching keys found", file=sys.stderr)
        return []

    rendered = _render(results, args.json)
    if args.output:
        target = Path(args.output)
        target.parent.mkdir(parents=True, exist_ok=True)
        if args.secret:
            _write_private(target, rendered)
        else:
            target.write_text(rendered, encoding="utf-8")
        print(f"[KEYS] Wrote {len(results)} key(s) to {target}", file=sys.stderr)
    else:
        sys.stdout.write(rendered)
    return [info.to_dict() for info in results]


__all__ = ["export", "import_key", "init", "list_keys"]
