"""
Key-value flags shared between the processes taking part in a rebase.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional


logger = logging.getLogger(__name__)


REBASE_OLD_STEP = "REBASE_OLD_STEP"
REBASE_NEW_STEP = "REBASE_NEW_STEP"
REBASE_HOOKS_DISABLED = "REBASE_HOOKS_DISABLED"
REBASE_BRANCH = "REBASE_BRANCH"
HOOK_STEP = "HOOK_STEP"


class FlagStore(ABC):
    """Abstract string key-value store. Absent keys read as None."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    def remove(self, key: str) -> None:
        """Remove a key. Removing an absent key is not an error."""
        pass

    @abstractmethod
    def items(self) -> Dict[str, str]:
        pass

    def is_set(self, key: str) -> bool:
        return bool(self.get(key))


class MemoryFlagStore(FlagStore):
    """In-process flag store."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = str(value)

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def items(self) -> Dict[str, str]:
        return dict(self._data)


class FileFlagStore(FlagStore):
    """Flag store keeping one file per key inside a directory (usually under .git)."""

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        if not key or "/" in key or "\\" in key or key.startswith("."):
            raise ValueError(f"Invalid flag key: {key!r}")
        return self.directory / key

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.is_file():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        self._path(key).write_text(str(value), encoding="utf-8")
        logger.debug(f"Flag {key} set to {value!r}")

    def remove(self, key: str) -> None:
        path = self._path(key)
        if path.exists():
            path.unlink()
            logger.debug(f"Flag {key} removed")

    def items(self) -> Dict[str, str]:
        if not self.directory.is_dir():
            return {}
        return {
            p.name: p.read_text(encoding="utf-8")
            for p in sorted(self.directory.iterdir())
            if p.is_file()
        }
