"""
JSON file holding the runtime settings.

The file is rewritten as a whole on every change: the new content goes to a
sibling temp file first, which then replaces the old one, so readers never
see a half-written file.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Callable, Optional

from .models import GlobalSettings


logger = logging.getLogger(__name__)


class SettingsStore:
    """Load and persist GlobalSettings, serialized by one in-process lock."""

    def __init__(self, *, path: Path) -> None:
        self._path = Path(path)
        self._lock = threading.RLock()

    @property
    def path(self) -> Path:
        return self._path

    def _read_raw(self) -> Optional[dict[str, Any]]:
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            logger.warning("Cannot read settings file %s: %s", self._path, exc)
            return None

        try:
            raw = json.loads(text)
        except ValueError as exc:
            logger.warning("Ignoring malformed settings file %s: %s", self._path, exc)
            return None
        return raw if isinstance(raw, dict) else None

    def load(self) -> GlobalSettings:
        """
        Get the current settings.

        A missing, unreadable or malformed file yields the defaults.
        """
        with self._lock:
            raw = self._read_raw()
        if raw is None:
            return GlobalSettings()
        return GlobalSettings.from_persist_dict(raw)

    def save(self, settings: GlobalSettings) -> None:
        text = json.dumps(settings.to_persist_dict(), ensure_ascii=False, indent=2) + "\n"

        with self._lock:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self._path.name}.", suffix=".tmp", dir=str(self._path.parent)
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(text)
                os.replace(tmp_name, self._path)
            except BaseException:
                try:
                    os.unlink(tmp_name)
                except FileNotFoundError:
                    pass
                raise

    def update(self, *, mutator: Callable[[GlobalSettings], GlobalSettings]) -> GlobalSettings:
        """Apply ``mutator`` to the current settings and persist the result."""
        with self._lock:
            updated = mutator(self.load())
            if not isinstance(updated, GlobalSettings):
                raise TypeError("mutator must return GlobalSettings")
            self.save(updated)
        return updated

    def set_storage_root(self, root: Path) -> GlobalSettings:
        def mutate(settings: GlobalSettings) -> GlobalSettings:
            settings.storage_root = str(root)
            return settings

        updated = self.update(mutator=mutate)
        logger.info("Storage root set to %s", updated.storage_root)
        return updated
