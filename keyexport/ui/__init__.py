"""User interaction helpers for keyexport."""

from .secret_ui import SecretUI, StaticSecretUI, TerminalSecretUI

__all__ = ["SecretUI", "StaticSecretUI", "TerminalSecretUI"]
