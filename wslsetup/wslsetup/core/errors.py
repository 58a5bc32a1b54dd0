"""Error taxonomy for artifact application."""

from __future__ import annotations

from pathlib import Path


class ApplyError(Exception):
    """Base class for failures scoped to a single artifact."""

    def __init__(self, message: str, *, path: Path | None = None) -> None:
        super().__init__(message)
        self.path = path


class SourceMissing(ApplyError):
    """A template, file or tree expected as a source does not exist."""


class FilesystemError(ApplyError):
    """The filesystem rejected an operation for a reason other than permissions."""


class BackupFailed(ApplyError):
    """The pre-overwrite backup could not be created."""


class PermissionDenied(ApplyError):
    """The filesystem refused the operation."""


class EscalationUnavailable(ApplyError):
    """Elevated access is needed but cannot be obtained non-interactively."""


class RenderError(ApplyError):
    """Template could not be rendered.

    The current token format cannot fail, so nothing raises this yet.
    """


class RunLogUnavailable(Exception):
    """The run log sink cannot be opened; nothing can be recorded."""
