"""Idempotent, backup-safe application of configuration artifacts."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterable

from ..core.errors import ApplyError, FilesystemError, PermissionDenied, SourceMissing
from ..core.models import (
    ApplyOutcome,
    ApplyResult,
    ConfigurationArtifact,
    RunSummary,
    SourceKind,
)
from ..rendering import engine
from ..runlog import RunLog
from ..writers.scoped import ScopedWriter
from .backup import BackupManager
from .permissions import classify_and_chmod

logger = logging.getLogger(__name__)

DEFAULT_FILE_MODE = 0o644
DEFAULT_DIR_MODE = 0o755


class Applier:
    """Apply one artifact at a time: check, back up, render, write, chmod, log."""

    def __init__(
        self, writer: ScopedWriter, backups: BackupManager, run_log: RunLog
    ) -> None:
        self.writer = writer
        self.backups = backups
        self.run_log = run_log

    def apply(self, artifact: ConfigurationArtifact) -> ApplyOutcome:
        """Apply *artifact*; errors never escape past this call."""
        self.run_log.info(f"Configuring {artifact.identity} at {artifact.destination_path}...")
        try:
            return self._apply(artifact)
        except SourceMissing as exc:
            self.run_log.warn(f"{exc}, skipping {artifact.identity}")
            return self._outcome(artifact, ApplyResult.SKIPPED, error=str(exc))
        except PermissionError as exc:
            return self._failed(artifact, PermissionDenied(f"Permission denied: {exc}"))
        except OSError as exc:
            return self._failed(artifact, FilesystemError(str(exc)))
        except ApplyError as exc:
            return self._failed(artifact, exc)

    def _failed(self, artifact: ConfigurationArtifact, exc: ApplyError) -> ApplyOutcome:
        self.run_log.error(f"{artifact.identity} failed: {exc}")
        return self._outcome(artifact, ApplyResult.FAILED, error=str(exc))

    def _apply(self, artifact: ConfigurationArtifact) -> ApplyOutcome:
        _check_source(artifact)

        dest = artifact.destination_path
        privilege = artifact.required_privilege
        exists = self.writer.exists(dest, privilege)

        current: bytes | None = None
        if exists and artifact.kind is not SourceKind.TREE and (
            artifact.present_pattern or artifact.append
        ):
            current = self.writer.read(dest, privilege)

        if artifact.present_pattern and current is not None:
            text = current.decode("utf-8", errors="replace")
            if re.search(artifact.present_pattern, text, re.MULTILINE):
                self.run_log.info(f"{artifact.identity} already configured, skipping")
                return self._outcome(artifact, ApplyResult.SKIPPED)

        backup_path = None
        if exists:
            self.run_log.warn(f"Existing {artifact.identity} found at {dest}")
            backup_path = self.backups.backup(dest, privilege)
            if backup_path is not None:
                self.run_log.info(f"Backed up {dest} to {backup_path}")

        if artifact.kind is SourceKind.TREE:
            self._apply_tree(artifact, exists)
        else:
            data = self._content(artifact, current)
            mode = artifact.permission_mode
            if mode is None:
                mode = _current_mode(dest) if exists else DEFAULT_FILE_MODE
            self.writer.write(dest, data, privilege, mode)
            logger.debug(f"Wrote {len(data)} bytes to {dest} (mode {mode:o})")

        self.run_log.success(f"{artifact.identity} configured at {dest}")
        for note in artifact.notes:
            self.run_log.warn(note)
        return self._outcome(artifact, ApplyResult.APPLIED, backup_path=backup_path)

    def _content(self, artifact: ConfigurationArtifact, current: bytes | None) -> bytes:
        if artifact.kind is SourceKind.TEMPLATE:
            if artifact.source_text is not None:
                text = engine.render(artifact.source_text, artifact.placeholders)
            else:
                assert artifact.source_path is not None
                self.run_log.info("Substituting configuration values...")
                text = engine.render_file(artifact.source_path, artifact.placeholders)
            leftover = engine.unresolved_tokens(text)
            if leftover:
                self.run_log.warn(
                    f"Unresolved placeholders in {artifact.identity}: {', '.join(leftover)}"
                )
            data = text.encode("utf-8")
        else:
            assert artifact.source_path is not None
            data = self.writer.local.read(artifact.source_path)

        if artifact.append and current:
            prefix = current if current.endswith(b"\n") else current + b"\n"
            data = prefix + b"\n" + data
        return data

    def _apply_tree(self, artifact: ConfigurationArtifact, exists: bool) -> None:
        assert artifact.source_path is not None
        dest = artifact.destination_path
        privilege = artifact.required_privilege

        if not exists:
            self.run_log.info(f"Creating {dest}...")
            self.writer.mkdir(dest, privilege, artifact.permission_mode or DEFAULT_DIR_MODE)

        self.run_log.info(f"Copying {artifact.source_path} to {dest}")
        self.writer.copy(artifact.source_path, dest, privilege)

        if artifact.permission_mode is not None:
            self.writer.chmod(dest, artifact.permission_mode, privilege)

        if artifact.secret_tree:
            self.run_log.info(f"Setting {artifact.identity} file permissions...")
            applied = classify_and_chmod(
                dest, chmod=lambda path, mode: self.writer.chmod(path, mode, privilege)
            )
            logger.debug(f"Classified {len(applied)} file(s) under {dest}")

    @staticmethod
    def _outcome(
        artifact: ConfigurationArtifact,
        result: ApplyResult,
        *,
        backup_path: Path | None = None,
        error: str | None = None,
    ) -> ApplyOutcome:
        return ApplyOutcome(
            identity=artifact.identity,
            result=result,
            destination=artifact.destination_path,
            backup_path=backup_path,
            error=error,
        )


def _check_source(artifact: ConfigurationArtifact) -> None:
    src = artifact.source_path
    if src is None:
        return
    present = src.is_dir() if artifact.kind is SourceKind.TREE else src.is_file()
    if not present:
        raise SourceMissing(f"Source for {artifact.identity} not found at {src}", path=src)


def _current_mode(path: Path) -> int:
    try:
        return path.stat().st_mode & 0o7777
    except OSError:
        return DEFAULT_FILE_MODE


def run_artifacts(
    artifacts: Iterable[ConfigurationArtifact],
    applier: Applier,
    *,
    fail_fast: bool = False,
) -> RunSummary:
    """Apply artifacts in order, continuing past failures unless *fail_fast*."""
    summary = RunSummary()
    for artifact in artifacts:
        outcome = applier.apply(artifact)
        summary.outcomes.append(outcome)
        if fail_fast and outcome.result is ApplyResult.FAILED:
            applier.run_log.error(f"Aborting run after {artifact.identity} failed")
            break
    return summary


def log_summary(summary: RunSummary, run_log: RunLog) -> None:
    """Record which artifacts were applied, skipped or failed."""
    for label, outcomes, severity_log in (
        ("Applied", summary.applied, run_log.success),
        ("Skipped", summary.skipped, run_log.warn),
        ("Failed", summary.failed, run_log.error),
    ):
        if outcomes:
            names = ", ".join(o.identity for o in outcomes)
            severity_log(f"{label} ({len(outcomes)}): {names}")
    if summary.ok:
        run_log.success("Run completed without failures")
    else:
        run_log.error(f"Run completed with {len(summary.failed)} failure(s)")
