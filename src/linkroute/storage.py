"""
Key-value persistence for routing debug state.

The recorder only needs get/set/remove on string blobs, so any backing
store that satisfies KeyValueStore can be injected: MemoryStore for tests
and in-process use, FileStore to keep history across runs.
"""

from pathlib import Path
from typing import Dict, Optional, Protocol, Union


class KeyValueStore(Protocol):
    """Protocol for string blob stores."""

    def get(self, key: str) -> Optional[str]:
        """Get the value stored under key, or None."""
        ...

    def set(self, key: str, value: str) -> None:
        """Store value under key, replacing any previous value."""
        ...

    def remove(self, key: str) -> None:
        """Delete key. Removing a missing key is not an error."""
        ...


class MemoryStore:
    """Dict-backed store."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)


class FileStore:
    """
    Store that keeps one UTF-8 file per key inside a directory.

    The directory is created on the first write. Keys are used as file
    names, so they must not contain path separators.

    Example:
        >>> store = FileStore(".linkroute")
        >>> store.set("routingDebugEnabled", "true")
        >>> store.get("routingDebugEnabled")
        'true'
    """

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        if not key or "/" in key or "\\" in key or key in (".", ".."):
            raise ValueError(f"invalid store key: {key!r}")
        return self.directory / key

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.is_file():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        self._path(key).write_text(value, encoding="utf-8")

    def remove(self, key: str) -> None:
        path = self._path(key)
        if path.exists():
            path.unlink()
