from __future__ import annotations

import sys
from pathlib import Path
from typing import Callable

import keyring
import keyring.backend
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ed25519, x25519

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from keyexport.utils.env_tools import Settings  # noqa: E402


class MemoryKeyring(keyring.backend.KeyringBackend):
    priority = 1

    def __init__(self) -> None:
        self._data: dict[tuple[str, str], str] = {}

    def get_password(self, service: str, username: str) -> str | None:
        return self._data.get((service, username))

    def set_password(self, service: str, username: str, password: str) -> None:
        self._data[(service, username)] = password

    def delete_password(self, service: str, username: str) -> None:
        self._data.pop((service, username), None)


@pytest.fixture()
def isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.setenv("KEYEXPORT_STATE_DIR", str(tmp_path))
    monkeypatch.delenv("KEYEXPORT_PASSPHRASE", raising=False)
    monkeypatch.delenv("KEYEXPORT_KEYRING_SERVICE", raising=False)
    monkeypatch.delenv("KEYEXPORT_UNLOCK_ATTEMPTS", raising=False)
    keyring.set_keyring(MemoryKeyring())
    return tmp_path


@pytest.fixture()
def settings(isolated_home: Path) -> Settings:
    return Settings.from_env()


@pytest.fixture()
def pem_private_key() -> Callable[..., str]:
    def _make(family: str = "ed25519") -> str:
        if family == "x25519":
            key = x25519.X25519PrivateKey.generate()
        else:
            key = ed25519.Ed25519PrivateKey.generate()
        return key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        ).decode("ascii")

    return _make
