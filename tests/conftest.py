from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pytest

from wslsetup.apply import Applier, BackupManager
from wslsetup.core.errors import EscalationUnavailable, PermissionDenied
from wslsetup.core.models import BackupPolicy
from wslsetup.runlog import RunLog
from wslsetup.writers import LocalWriter, ScopedWriter

FIXED_NOW = datetime(2024, 5, 17, 9, 30, 0)


class RecordingElevatedWriter(LocalWriter):
    """Elevated writer that performs the operation locally and records it."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, Path]] = []

    def read(self, path: Path) -> bytes:
        self.calls.append(("read", path))
        return super().read(path)

    def write(self, path: Path, data: bytes, mode: int) -> None:
        self.calls.append(("write", path))
        super().write(path, data, mode)

    def copy(self, src: Path, dest: Path) -> None:
        self.calls.append(("copy", dest))
        super().copy(src, dest)

    def mkdir(self, path: Path, mode: int) -> None:
        self.calls.append(("mkdir", path))
        super().mkdir(path, mode)

    def chmod(self, path: Path, mode: int) -> None:
        self.calls.append(("chmod", path))
        super().chmod(path, mode)


class DenyingElevatedWriter:
    """Elevated writer that refuses every operation.

    Existence checks answer from the local filesystem unless *unreadable*
    is set, which models a parent directory the user cannot traverse.
    """

    def __init__(
        self, error: type[Exception] = PermissionDenied, *, unreadable: bool = False
    ) -> None:
        self.error = error
        self.unreadable = unreadable

    def _deny(self, path: Path) -> None:
        if self.error is EscalationUnavailable:
            raise EscalationUnavailable("sudo: a password is required", path=path)
        raise self.error(f"Permission denied: {path}", path=path)

    def exists(self, path: Path) -> bool:
        if self.unreadable:
            self._deny(path)
        return path.exists() or path.is_symlink()

    def read(self, path: Path) -> bytes:
        self._deny(path)
        return b""

    def write(self, path: Path, data: bytes, mode: int) -> None:
        self._deny(path)

    def copy(self, src: Path, dest: Path) -> None:
        self._deny(dest)

    def mkdir(self, path: Path, mode: int) -> None:
        self._deny(path)

    def chmod(self, path: Path, mode: int) -> None:
        self._deny(path)


@pytest.fixture
def run_log(tmp_path: Path):
    log = RunLog.open(tmp_path / "logs" / "setup.log", console=False)
    yield log
    log.close()


@pytest.fixture
def elevated() -> RecordingElevatedWriter:
    return RecordingElevatedWriter()


@pytest.fixture
def writer(elevated: RecordingElevatedWriter) -> ScopedWriter:
    return ScopedWriter(elevated=elevated)


def make_applier(
    writer: ScopedWriter, run_log: RunLog, *, backups_enabled: bool = True
) -> Applier:
    backups = BackupManager(
        BackupPolicy(enabled=backups_enabled), writer, clock=lambda: FIXED_NOW
    )
    return Applier(writer, backups, run_log)


@pytest.fixture
def applier(writer: ScopedWriter, run_log: RunLog) -> Applier:
    return make_applier(writer, run_log)
