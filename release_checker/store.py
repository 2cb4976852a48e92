"""Release stores: per-project sets of versions already seen."""

import json
import shutil
import threading
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Iterable

from .constants import BACKUP_SUFFIX
from .errors import StoreError
from .logging_config import get_logger

logger = get_logger(__name__)


class ReleaseStore(ABC):
    """Key-value store mapping a project identifier to its seen versions.

    Implementations must be safe for concurrent calls on distinct
    identifiers and raise StoreError on any read or write failure.
    """

    @abstractmethod
    def get(self, identifier: str) -> set[str]:
        """Return the versions seen for a project (empty if never stored)."""

    @abstractmethod
    def put(self, identifier: str, versions: Iterable[str]) -> None:
        """Replace the versions stored for a project."""

    @abstractmethod
    def delete(self, identifier: str) -> bool:
        """Remove a project's entry. Returns True if one existed."""

    @abstractmethod
    def identifiers(self) -> list[str]:
        """Return every identifier with a stored entry."""


class MemoryReleaseStore(ReleaseStore):
    """In-process store, mainly for tests and one-shot runs."""

    def __init__(self, initial: dict[str, Iterable[str]] | None = None) -> None:
        self._lock = threading.Lock()
        self._data: dict[str, set[str]] = {
            key: set(versions) for key, versions in (initial or {}).items()
        }

    def get(self, identifier: str) -> set[str]:
        with self._lock:
            return set(self._data.get(identifier, ()))

    def put(self, identifier: str, versions: Iterable[str]) -> None:
        with self._lock:
            self._data[identifier] = set(versions)

    def delete(self, identifier: str) -> bool:
        with self._lock:
            return self._data.pop(identifier, None) is not None

    def identifiers(self) -> list[str]:
        with self._lock:
            return sorted(self._data)


class JsonReleaseStore(ReleaseStore):
    """Store backed by a single JSON file.

    Every write goes to a temporary file that then replaces the real one,
    after copying the previous version to a ``.bak`` file. A corrupted file
    is restored from that backup on load.
    """

    def __init__(self, path: Path) -> None:
        self._path = Path(path)
        self._backup = self._path.with_name(self._path.name + BACKUP_SUFFIX)
        self._lock = threading.Lock()

    def get(self, identifier: str) -> set[str]:
        with self._lock:
            return set(self._load().get(identifier, ()))

    def put(self, identifier: str, versions: Iterable[str]) -> None:
        with self._lock:
            data = self._load()
            data[identifier] = set(versions)
            self._save(data)
        logger.debug("Stored %d versions for %s", len(data[identifier]), identifier)

    def delete(self, identifier: str) -> bool:
        with self._lock:
            data = self._load()
            if identifier not in data:
                return False
            del data[identifier]
            self._save(data)
        logger.info("Deleted stored releases for %s", identifier)
        return True

    def identifiers(self) -> list[str]:
        with self._lock:
            return sorted(self._load())

    def _load(self) -> dict[str, set[str]]:
        if not self._path.exists():
            return {}
        try:
            return self._read(self._path)
        except (ValueError, KeyError, TypeError) as e:
            logger.error("Failed to parse release store %s: %s", self._path, e)
            if self._restore_backup():
                try:
                    return self._read(self._path)
                except (ValueError, KeyError, TypeError, OSError) as e2:
                    raise StoreError(f"Release store backup is corrupted too: {e2}") from e2
            raise StoreError(
                f"Release store is corrupted and no backup available. "
                f"Manual intervention required at: {self._path}"
            ) from e
        except OSError as e:
            raise StoreError(f"Failed to read release store {self._path}: {e}") from e

    @staticmethod
    def _read(path: Path) -> dict[str, set[str]]:
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
        projects = raw["projects"]
        if not isinstance(projects, dict):
            raise TypeError("'projects' must be an object")
        return {key: set(map(str, versions)) for key, versions in projects.items()}

    def _save(self, data: dict[str, set[str]]) -> None:
        payload = {
            "projects": {key: sorted(versions) for key, versions in sorted(data.items())},
            "last_updated": datetime.now().isoformat(),
        }
        temp_file = self._path.with_suffix(".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            if self._path.exists():
                shutil.copy2(self._path, self._backup)
            with open(temp_file, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2, ensure_ascii=False)
            temp_file.replace(self._path)
        except OSError as e:
            logger.error("Failed to save release store: %s", e)
            if temp_file.exists():
                temp_file.unlink()
            raise StoreError(f"Failed to write release store {self._path}: {e}") from e

    def _restore_backup(self) -> bool:
        if not self._backup.exists():
            logger.warning("No backup file found at %s", self._backup)
            return False
        try:
            shutil.copy2(self._backup, self._path)
            logger.info("Restored release store from backup at %s", self._backup)
            return True
        except OSError as e:
            logger.error("Failed to restore from backup: %s", e)
            return False
