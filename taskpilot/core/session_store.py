"""
Local session storage for taskpilot.

Holds a handful of small, per-user values that must survive a process
restart: the current organization id and the backend auth token. Values
live in a JSON file under ~/.taskpilot.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional


logger = logging.getLogger(__name__)

CURRENT_ORGANIZATION_KEY = "currentOrganizationId"
ACCESS_TOKEN_KEY = "accessToken"


@dataclass
class SessionStore:
    """
    Lightweight key/value store backed by a single JSON file.

    Load and save failures are logged and degrade to an empty store;
    a missing session value is never an error for callers.
    """

    storage_dir: Path = field(
        default_factory=lambda: Path(os.path.expanduser("~/.taskpilot"))
    )
    filename: str = "session.json"

    def __post_init__(self) -> None:
        self.storage_dir = Path(self.storage_dir)
        self._data: Dict[str, Any] = {}
        self._loaded: bool = False

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    @property
    def _path(self) -> Path:
        return self.storage_dir / self.filename

    def _load(self) -> None:
        if self._loaded:
            return
        self._loaded = True

        if not self._path.exists():
            self._data = {}
            return

        try:
            obj = json.loads(self._path.read_text(encoding="utf-8"))
            self._data = obj if isinstance(obj, dict) else {}
        except (OSError, ValueError) as e:
            logger.warning(f"SessionStore: failed to load {self._path}: {e}")
            self._data = {}

    def _save(self) -> None:
        try:
            self.storage_dir.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(self._data, indent=2), encoding="utf-8")
        except OSError as e:
            logger.warning(f"SessionStore: failed to save {self._path}: {e}")

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def get(self, key: str, default: Optional[Any] = None) -> Any:
        self._load()
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._load()
        self._data[key] = value
        self._save()

    def remove(self, key: str) -> None:
        self._load()
        if key not in self._data:
            return
        self._data.pop(key, None)
        self._save()

    @property
    def current_organization(self) -> Optional[str]:
        return self.get(CURRENT_ORGANIZATION_KEY)

    @current_organization.setter
    def current_organization(self, value: Optional[str]) -> None:
        if value is None:
            self.remove(CURRENT_ORGANIZATION_KEY)
        else:
            self.set(CURRENT_ORGANIZATION_KEY, value)


class MemorySessionStore(SessionStore):
    """SessionStore that never touches disk. Used by tests and one-shot CLI runs."""

    def _load(self) -> None:
        self._loaded = True

    def _save(self) -> None:
        pass
