"""
File-backed key-value storage.

Works like browser localStorage: string values under string keys. Each key
is one JSON document `<key>.json` in the data directory.
"""

import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger(__name__)

_SAFE_KEY = re.compile(r"^[A-Za-z0-9_.-]+$")


class StorageError(Exception):
    """Raised when a value cannot be written to local storage."""
    pass


class LocalStorage:
    """String key-value store persisted as files under one directory."""

    SUFFIX = ".json"

    def __init__(self, data_dir: Union[str, Path]):
        self.data_dir = Path(data_dir)

    def _path(self, key: str) -> Path:
        if not _SAFE_KEY.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.data_dir / f"{key}{self.SUFFIX}"

    def get_item(self, key: str) -> Optional[str]:
        """Return the stored value, or None when the key is not set."""
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def set_item(self, key: str, value: str) -> None:
        """Store a value, replacing the previous one atomically."""
        path = self._path(key)
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.data_dir, prefix=f".{key}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(value)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise StorageError(f"Failed to write {key} to {self.data_dir}: {e}") from e
        logger.debug(f"Wrote {len(value)} chars to {path}")

    def remove_item(self, key: str) -> None:
        try:
            self._path(key).unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to remove {key}: {e}") from e

    def keys(self) -> list[str]:
        if not self.data_dir.exists():
            return []
        return sorted(p.name[: -len(self.SUFFIX)] for p in self.data_dir.glob(f"*{self.SUFFIX}"))

    def clear(self) -> None:
        for key in self.keys():
            self.remove_item(key)
