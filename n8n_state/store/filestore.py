"""
FileStore - thin I/O over the data directory tree.

All mutations are direct file writes. The only transactional guarantee is
copy-to-temp-then-rename for single files; multi-file operations are the
caller's responsibility.
"""

import logging
import os
import shutil
import tempfile
import time
from pathlib import Path
from typing import List, Optional

from ..errors import NotFoundError, StorageError

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400


class FileStore:
    """File operations anchored at one root directory.

    Relative paths are taken relative to the root; absolute paths are used
    as-is so that user-supplied files (validate-config, restore-profile) can
    be read through the same error mapping.
    """

    def __init__(self, root: Path):
        self.root = Path(root)

    def resolve(self, path: Path) -> Path:
        path = Path(path).expanduser()
        if not path.is_absolute():
            path = self.root / path
        return path

    # =========================================================================
    # Reads
    # =========================================================================

    def read(self, path: Path) -> bytes:
        path = self.resolve(path)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            raise NotFoundError("file not found", subject=str(path))
        except OSError as e:
            raise StorageError(f"cannot read: {e.strerror}", subject=str(path), cause=e)

    def read_text(self, path: Path) -> str:
        data = self.read(path)
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise StorageError(f"not UTF-8 text (byte {e.start}: {e.reason})",
                               subject=str(self.resolve(path)), cause=e)

    def exists(self, path: Path) -> bool:
        return self.resolve(path).exists()

    def list_matching(self, directory: Path, pattern: str = "*") -> List[Path]:
        """
        List entries of a directory matching a glob pattern.

        Returns:
            Paths sorted lexicographically by name (empty if directory is missing)
        """
        directory = self.resolve(directory)
        if not directory.is_dir():
            return []
        return sorted(directory.glob(pattern), key=lambda p: p.name)

    def age_in_days(self, path: Path, now: Optional[float] = None) -> float:
        """Age of a path based on its modification time."""
        path = self.resolve(path)
        now = time.time() if now is None else now
        try:
            mtime = path.stat().st_mtime
        except FileNotFoundError:
            raise NotFoundError("file not found", subject=str(path))
        return (now - mtime) / SECONDS_PER_DAY

    def size_of(self, path: Path) -> int:
        """Size in bytes of a file or, recursively, of a directory tree."""
        path = self.resolve(path)
        if path.is_file():
            return path.stat().st_size
        if not path.is_dir():
            return 0
        total = 0
        for child in path.rglob("*"):
            if child.is_file() and not child.is_symlink():
                total += child.stat().st_size
        return total

    # =========================================================================
    # Writes
    # =========================================================================

    def write(self, path: Path, data: bytes) -> None:
        """Write bytes atomically (temp file in the same directory, then rename)."""
        path = self.resolve(path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "wb") as f:
                    f.write(data)
                os.replace(tmp_name, path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            raise StorageError(f"cannot write: {e.strerror}", subject=str(path), cause=e)

    def write_text(self, path: Path, text: str) -> None:
        self.write(path, text.encode("utf-8"))

    def makedirs(self, path: Path) -> Path:
        path = self.resolve(path)
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"cannot create directory: {e.strerror}", subject=str(path), cause=e)
        return path

    def copy_file(self, src: Path, dst: Path) -> None:
        """Copy a file via a temp sibling of dst and an atomic rename."""
        src = self.resolve(src)
        dst = self.resolve(dst)
        if not src.is_file():
            raise NotFoundError("file not found", subject=str(src))
        try:
            dst.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=dst.parent, prefix=f".{dst.name}.", suffix=".tmp")
            os.close(fd)
            try:
                shutil.copy2(src, tmp_name)
                os.replace(tmp_name, dst)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            raise StorageError(f"copy failed: {e.strerror}", subject=f"{src} -> {dst}", cause=e)
        logger.debug("Copied %s -> %s", src, dst)

    def copy_tree(self, src: Path, dst: Path) -> None:
        """Copy a directory tree; dst must not exist."""
        src = self.resolve(src)
        dst = self.resolve(dst)
        if not src.is_dir():
            raise NotFoundError("directory not found", subject=str(src))
        try:
            shutil.copytree(src, dst, symlinks=True)
        except FileExistsError as e:
            raise StorageError("destination already exists", subject=str(dst), cause=e)
        except (OSError, shutil.Error) as e:
            raise StorageError(f"copy failed: {e}", subject=f"{src} -> {dst}")
        logger.debug("Copied tree %s -> %s", src, dst)

    def remove(self, path: Path) -> bool:
        """
        Remove a file or directory tree.

        Returns:
            True if something was removed, False if it did not exist
        """
        path = self.resolve(path)
        try:
            if path.is_dir() and not path.is_symlink():
                shutil.rmtree(path)
            elif path.exists() or path.is_symlink():
                path.unlink()
            else:
                return False
        except OSError as e:
            raise StorageError(f"cannot remove: {e.strerror}", subject=str(path), cause=e)
        logger.debug("Removed %s", path)
        return True
