"""Utility helpers exposed by keyexport."""

from .crypto_tools import decrypt_with_passphrase, encrypt_with_passphrase
from .env_tools import Settings, load_env_file
from .keyring_backend import KeyringEntry, get_entry, set_entry
from .paths import identity_path, state_dir

__all__ = [
    "KeyringEntry",
    "Settings",
    "decrypt_with_passphrase",
    "encrypt_with_passphrase",
    "get_entry",
    "identity_path",
    "load_env_file",
    "set_entry",
    "state_dir",
]
