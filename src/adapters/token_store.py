"""Persistencia del bearer token en disco.

Implements `core.interfaces.TokenPersistence` with a single plain-text file
in the user config dir. `clear()` deletes the file rather than blanking it.
"""

from __future__ import annotations

import contextlib
import os
from pathlib import Path


class FileTokenStore:
    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def save(self, token: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(self._path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(token + "\n")
        # O_CREAT's mode only applies to new files.
        with contextlib.suppress(OSError):
            os.chmod(self._path, 0o600)

    def load(self) -> str | None:
        if not self._path.is_file():
            return None
        value = self._path.read_text(encoding="utf-8").strip()
        return value or None

    def clear(self) -> None:
        self._path.unlink(missing_ok=True)
