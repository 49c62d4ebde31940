"""Command entry points for the keyexport CLI."""

from .keys import export, import_key, init, list_keys

__all__ = ["export", "import_key", "init", "list_keys"]
