"""Passphrase prompts used when unlocking secret keys."""

from __future__ import annotations

import getpass
from typing import Callable, Optional, Protocol

from ..errors import PromptCancelledError


class SecretUI(Protocol):
    """Anything that can ask the user for a passphrase."""

    def get_passphrase(self, prompt: str, reason: str) -> str:
        ...


class TerminalSecretUI:
    """Prompt on the controlling terminal without echoing input."""

    def __init__(self, reader: Optional[Callable[[str], str]] = None) -> None:
        self._reader = reader or getpass.getpass

    def get_passphrase(self, prompt: str, reason: str) -> str:
        text = f"{prompt} (for {reason}): " if reason else f"{prompt}: "
        try:
            value = self._reader(text)
        except (EOFError, KeyboardInterrupt) as exc:
            raise PromptCancelledError("passphrase prompt cancelled") from exc
        if not value:
            raise PromptCancelledError("empty passphrase; prompt cancelled")
        return value


class StaticSecretUI:
    """Answer every prompt with a fixed passphrase (env var, scripts, tests)."""

    def __init__(self, passphrase: str) -> None:
        self._passphrase = passphrase

    def get_passphrase(self, prompt: str, reason: str) -> str:
        if not self._passphrase:
            raise PromptCancelledError("no passphrase available")
        return self._passphrase


__all__ = ["SecretUI", "StaticSecretUI", "TerminalSecretUI"]
