"""Exception hierarchy shared by the export engine and its collaborators."""

from __future__ import annotations


class KeyExportError(RuntimeError):
    """Base class for every failure raised by keyexport."""


class ConfigurationError(KeyExportError):
    """Raised when an engine is run without a usable configuration."""


class LoadError(KeyExportError):
    """Raised when the identity record cannot be loaded."""


class NoSecretKeyError(KeyExportError):
    """Raised by the secret store when no secret key matches the request."""

    def __init__(self, message: str = "no secret key found") -> None:
        super().__init__(message)


class BadKeyError(KeyExportError):
    """Raised when an unlocked key fails a sanity check."""


class EncodingError(KeyExportError):
    """Raised when key material cannot be rendered or parsed."""


class SecretStoreError(KeyExportError):
    """Raised when the secret key store itself misbehaves."""


class PassphraseError(SecretStoreError):
    """Raised when a secret key cannot be unlocked with the supplied passphrase."""


class PromptCancelledError(KeyExportError):
    """Raised when the user dismisses a passphrase prompt."""


__all__ = [
    "BadKeyError",
    "ConfigurationError",
    "EncodingError",
    "KeyExportError",
    "LoadError",
    "NoSecretKeyError",
    "PassphraseError",
    "PromptCancelledError",
    "SecretStoreError",
]
