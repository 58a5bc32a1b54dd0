"""Elevated filesystem access through an injectable capability."""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Protocol

from .._utils import is_root, run_logged
from ..core.errors import EscalationUnavailable, PermissionDenied
from .local import LocalWriter

logger = logging.getLogger(__name__)

# sudo -n prints one of these when it would have to prompt
_PROMPT_MARKERS = (
    "password is required",
    "a terminal is required",
    "no tty present",
)


class ElevatedWriter(Protocol):
    """Filesystem operations on paths the invoking user cannot write.

    Each call either completes fully or raises without a partial write
    being visible at the destination.
    """

    def exists(self, path: Path) -> bool: ...

    def read(self, path: Path) -> bytes: ...

    def write(self, path: Path, data: bytes, mode: int) -> None: ...

    def copy(self, src: Path, dest: Path) -> None: ...

    def mkdir(self, path: Path, mode: int) -> None: ...

    def chmod(self, path: Path, mode: int) -> None: ...


class SudoElevatedWriter:
    """Elevated writes through non-interactive ``sudo -n``."""

    def __init__(self, sudo: str = "sudo") -> None:
        self.sudo = sudo

    def _run(
        self, args: list[str], path: Path, *, text: bool = True
    ) -> subprocess.CompletedProcess:
        if shutil.which(self.sudo) is None:
            raise EscalationUnavailable(f"{self.sudo} not found on PATH", path=path)

        cmd = [self.sudo, "-n", *args]
        logger.debug(f"Running: {' '.join(cmd)}")
        try:
            return run_logged(cmd, capture_output=True, text=text, echo="never")
        except subprocess.CalledProcessError as exc:
            raise _translate(exc, path) from exc

    def exists(self, path: Path) -> bool:
        """``test`` exits 1 with no output when the path is absent."""
        if shutil.which(self.sudo) is None:
            raise EscalationUnavailable(f"{self.sudo} not found on PATH", path=path)

        cmd = [self.sudo, "-n", "test", "-e", str(path), "-o", "-L", str(path)]
        result = run_logged(cmd, capture_output=True, check=False, echo="never")
        if result.returncode == 0:
            return True
        if result.returncode == 1 and not (result.stderr or "").strip():
            return False
        raise _translate(
            subprocess.CalledProcessError(
                result.returncode, cmd, output=result.stdout, stderr=result.stderr
            ),
            path,
        )

    def read(self, path: Path) -> bytes:
        return self._run(["cat", str(path)], path, text=False).stdout

    def write(self, path: Path, data: bytes, mode: int) -> None:
        staged_in_place = path.with_name(f"{path.name}.wslsetup-tmp")
        fd, staged = tempfile.mkstemp(prefix=f".{path.name}.")
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
            self._run(
                ["install", "-D", "-m", f"{mode:o}", staged, str(staged_in_place)],
                path,
            )
            try:
                self._run(["mv", "-f", str(staged_in_place), str(path)], path)
            except (EscalationUnavailable, PermissionDenied):
                run_logged(
                    [self.sudo, "-n", "rm", "-f", str(staged_in_place)],
                    capture_output=True,
                    check=False,
                    echo="never",
                )
                raise
        finally:
            os.remove(staged)

    def copy(self, src: Path, dest: Path) -> None:
        if src.is_dir() and not src.is_symlink():
            self._run(["mkdir", "-p", str(dest)], dest)
            self._run(["cp", "-a", f"{src}/.", str(dest)], dest)
        else:
            self._run(["cp", "-a", str(src), str(dest)], dest)

    def mkdir(self, path: Path, mode: int) -> None:
        self._run(["mkdir", "-p", "-m", f"{mode:o}", str(path)], path)

    def chmod(self, path: Path, mode: int) -> None:
        self._run(["chmod", f"{mode:o}", str(path)], path)


def _translate(exc: subprocess.CalledProcessError, path: Path) -> Exception:
    stderr = exc.stderr or ""
    if isinstance(stderr, bytes):
        stderr = stderr.decode("utf-8", errors="replace")
    detail = stderr.strip() or f"exit status {exc.returncode}"
    if any(marker in stderr.lower() for marker in _PROMPT_MARKERS):
        return EscalationUnavailable(f"Cannot elevate without a prompt: {detail}", path=path)
    return PermissionDenied(f"Elevated operation failed on {path}: {detail}", path=path)


def default_elevated_writer() -> ElevatedWriter:
    """Return in-process access when already root, sudo otherwise."""
    if is_root():
        logger.debug("Running as root; elevated writes are direct")
        return LocalWriter()
    return SudoElevatedWriter()
