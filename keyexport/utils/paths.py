"""Filesystem path helpers for keyexport state."""

from __future__ import annotations

import os
from pathlib import Path

STATE_DIR_ENV = "KEYEXPORT_STATE_DIR"


def state_dir() -> Path:
    """Return the directory used for persistent keyexport state.

    The location defaults to ``~/.keyexport`` but can be overridden via the
    ``KEYEXPORT_STATE_DIR`` environment variable. The override is expanded
    and resolved so callers always receive an absolute location.
    """

    override = os.environ.get(STATE_DIR_ENV)
    if override:
        return Path(override).expanduser().resolve()
    return Path.home() / ".keyexport"


def identity_path() -> Path:
    return state_dir() / "identity.json"
