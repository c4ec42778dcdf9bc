"""
PointerStore - a single mutable reference persisted as a one-line file.

Used for the current snapshot and the active profile. Writes go through
FileStore.write, so a reader sees either the old or the new value.
"""

from pathlib import Path
from typing import Optional

from .filestore import FileStore


class PointerStore:
    """Single-value store with get/set/clear."""

    def __init__(self, store: FileStore, path: Path):
        self.store = store
        self.path = store.resolve(path)

    def get(self) -> Optional[str]:
        """Current value, or None when unset or blank."""
        if not self.path.is_file():
            return None
        value = self.store.read_text(self.path).strip()
        return value or None

    def set(self, value: str) -> None:
        value = value.strip()
        if not value or "\n" in value:
            raise ValueError(f"invalid pointer value: {value!r}")
        self.store.write_text(self.path, value + "\n")

    def clear(self) -> None:
        self.store.remove(self.path)

    def __repr__(self) -> str:
        return f"PointerStore({self.path})"
