"""Command line surface for keyexport."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Any, Optional, Sequence

from . import __version__
from . import commands
from .utils.env_tools import load_env_file


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="keyexport", description="Export signing keys from your key store")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging on stderr")
    subparsers = parser.add_subparsers(dest="command")

    init = subparsers.add_parser("init", help="Create the local identity record")
    init.add_argument("username")

    imp = subparsers.add_parser("import", help="Import an existing PEM private key")
    imp.add_argument("path", help="PEM file holding an unencrypted private key")
    imp.add_argument("--user-id", action="append", dest="user_ids", help="User id to attach (repeatable)")
    imp.add_argument("--passphrase", default=None, help="Passphrase protecting the stored key")

    lst = subparsers.add_parser("list", help="List the identity's keys")
    lst.add_argument("--all", action="store_true", help="Include revoked keys")

    export = subparsers.add_parser("export", help="Export public or secret keys")
    export.add_argument("query", nargs="?", default="", help="Fingerprint, key id or user id to match")
    export.add_argument(
        "--by",
        choices=("either", "fingerprint", "kid"),
        default="either",
        help="Field the query is matched against",
    )
    export.add_argument("--exact", action="store_true", help="Require an exact match")
    export.add_argument("--secret", action="store_true", help="Export the secret key")
    export.add_argument("--output", "-o", default=None, help="Write keys to a file instead of stdout")
    export.add_argument("--json", action="store_true", help="Emit JSON key info records")

    return parser


def _configure_logging(verbose: bool) -> None:
    logger = logging.getLogger("keyexport")
    if logger.handlers:
        return
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s - keyexport - %(levelname)s - %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


def main(argv: Optional[Sequence[str]] = None) -> Any:
    load_env_file()
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    _configure_logging(args.verbose)

    if args.command == "init":
        return commands.init(args)
    if args.command == "import":
        return commands.import_key(args)
    if args.command == "list":
        return commands.list_keys(args)
    if args.command == "export":
        return commands.export(args)
    parser.print_help()
    return None


__all__ = ["main"]
