"""Timestamped backups taken before an artifact is overwritten."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Callable

from ..core.errors import ApplyError, BackupFailed
from ..core.models import BackupPolicy, Privilege
from ..writers.scoped import ScopedWriter

logger = logging.getLogger(__name__)


class BackupManager:
    """Preserve an existing file or tree as ``<path>.backup.<timestamp>``."""

    def __init__(
        self,
        policy: BackupPolicy,
        writer: ScopedWriter,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.policy = policy
        self.writer = writer
        self.clock = clock

    def backup_path_for(
        self, path: Path, privilege: Privilege = Privilege.USER
    ) -> Path:
        """Next free backup name for *path*.

        Two backups within the same second get ``.1``, ``.2``... appended
        rather than overwriting the earlier one.
        """
        stamp = self.clock().strftime(self.policy.timestamp_format)
        candidate = path.with_name(f"{path.name}.backup.{stamp}")
        counter = 0
        while self.writer.exists(candidate, privilege):
            counter += 1
            candidate = path.with_name(f"{path.name}.backup.{stamp}.{counter}")
        return candidate

    def backup(self, path: Path, privilege: Privilege = Privilege.USER) -> Path | None:
        """Copy *path* aside if it exists and backups are enabled.

        Returns:
            The backup path, or None when nothing was copied
        """
        if not self.writer.exists(path, privilege):
            return None
        if not self.policy.enabled:
            logger.debug(f"Backups disabled; not backing up {path}")
            return None

        target = self.backup_path_for(path, privilege)
        try:
            self.writer.copy(path, target, privilege)
        except (ApplyError, OSError) as exc:
            raise BackupFailed(f"Could not back up {path}: {exc}", path=path) from exc

        logger.debug(f"Backed up {path} → {target}")
        return target
