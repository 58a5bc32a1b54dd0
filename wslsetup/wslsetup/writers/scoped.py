"""Privilege-scoped filesystem writer."""

from __future__ import annotations

from pathlib import Path

from ..core.models import Privilege
from .elevation import ElevatedWriter, default_elevated_writer
from .local import LocalWriter


class ScopedWriter:
    """Route filesystem operations by required privilege.

    User-scoped operations run in-process; elevated ones go through the
    injected ``ElevatedWriter`` capability.
    """

    def __init__(
        self,
        elevated: ElevatedWriter | None = None,
        local: LocalWriter | None = None,
    ) -> None:
        self.local = local or LocalWriter()
        self.elevated = elevated or default_elevated_writer()

    def _backend(self, privilege: Privilege) -> ElevatedWriter:
        if privilege is Privilege.ELEVATED:
            return self.elevated
        return self.local

    def exists(self, path: Path, privilege: Privilege) -> bool:
        return self._backend(privilege).exists(path)

    def read(self, path: Path, privilege: Privilege) -> bytes:
        return self._backend(privilege).read(path)

    def write(self, path: Path, data: bytes, privilege: Privilege, mode: int) -> None:
        self._backend(privilege).write(path, data, mode)

    def copy(self, src: Path, dest: Path, privilege: Privilege) -> None:
        self._backend(privilege).copy(src, dest)

    def mkdir(self, path: Path, privilege: Privilege, mode: int) -> None:
        self._backend(privilege).mkdir(path, mode)

    def chmod(self, path: Path, mode: int, privilege: Privilege) -> None:
        self._backend(privilege).chmod(path, mode)
