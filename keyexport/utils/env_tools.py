"""Environment driven configuration for keyexport."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .paths import state_dir

logger = logging.getLogger(__name__)

SERVICE_NAME_ENV = "KEYEXPORT_KEYRING_SERVICE"
PASSPHRASE_ENV = "KEYEXPORT_PASSPHRASE"
UNLOCK_ATTEMPTS_ENV = "KEYEXPORT_UNLOCK_ATTEMPTS"
DEFAULT_SERVICE_NAME = "keyexport"
DEFAULT_UNLOCK_ATTEMPTS = 3


def load_env_file(path: Optional[Path] = None) -> bool:
    """Populate ``os.environ`` from a ``.env`` file without overriding it."""

    target = path or (Path.cwd() / ".env")
    if not target.exists():
        return False
    return load_dotenv(target, override=False)


def _int_from_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r", name, raw)
        return default
    return max(1, value)


@dataclass(frozen=True)
class Settings:
    """Runtime knobs resolved from the environment."""

    state_dir: Path
    service_name: str = DEFAULT_SERVICE_NAME
    unlock_attempts: int = DEFAULT_UNLOCK_ATTEMPTS
    passphrase: Optional[str] = None

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            state_dir=state_dir(),
            service_name=os.getenv(SERVICE_NAME_ENV) or DEFAULT_SERVICE_NAME,
            unlock_attempts=_int_from_env(UNLOCK_ATTEMPTS_ENV, DEFAULT_UNLOCK_ATTEMPTS),
            passphrase=os.getenv(PASSPHRASE_ENV) or None,
        )


__all__ = [
    "DEFAULT_SERVICE_NAME",
    "DEFAULT_UNLOCK_ATTEMPTS",
    "PASSPHRASE_ENV",
    "SERVICE_NAME_ENV",
    "Settings",
    "UNLOCK_ATTEMPTS_ENV",
    "load_env_file",
]
