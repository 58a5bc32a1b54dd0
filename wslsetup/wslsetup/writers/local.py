"""Direct filesystem access with the caller's ambient permissions."""

from __future__ import annotations

import logging
import os
import shutil
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from ..core.errors import FilesystemError, PermissionDenied
from ..rendering.io import atomic_write_bytes

logger = logging.getLogger(__name__)


@contextmanager
def _translated(action: str, path: Path) -> Iterator[None]:
    try:
        yield
    except PermissionError as exc:
        raise PermissionDenied(f"Permission denied: {action} {path}", path=path) from exc
    except OSError as exc:
        raise FilesystemError(f"Cannot {action} {path}: {exc.strerror or exc}", path=path) from exc


class LocalWriter:
    """Filesystem operations performed in-process.

    Used for user-scoped paths, and for elevated paths when the process
    already runs as root.
    """

    def exists(self, path: Path) -> bool:
        with _translated("stat", path):
            return path.exists() or path.is_symlink()

    def read(self, path: Path) -> bytes:
        with _translated("read", path):
            return path.read_bytes()

    def write(self, path: Path, data: bytes, mode: int) -> None:
        with _translated("write", path):
            atomic_write_bytes(path, data, mode=mode)

    def copy(self, src: Path, dest: Path) -> None:
        """Copy a file, or merge a directory tree into *dest*."""
        with _translated("copy to", dest):
            if src.is_dir() and not src.is_symlink():
                shutil.copytree(src, dest, symlinks=True, dirs_exist_ok=True)
            else:
                dest.parent.mkdir(parents=True, exist_ok=True)
                shutil.copy2(src, dest, follow_symlinks=False)
        logger.debug(f"Copied {src} → {dest}")

    def mkdir(self, path: Path, mode: int) -> None:
        with _translated("mkdir", path):
            path.mkdir(parents=True, exist_ok=True)
            os.chmod(path, mode)

    def chmod(self, path: Path, mode: int) -> None:
        with _translated("chmod", path):
            os.chmod(path, mode)
