"""Domain models for configuration artifacts, backups and apply outcomes."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class Privilege(str, Enum):
    """Filesystem access level required to write an artifact."""

    USER = "user"
    ELEVATED = "elevated"


class SourceKind(str, Enum):
    """How an artifact's source becomes destination content."""

    TEMPLATE = "template"
    FILE = "file"
    TREE = "tree"


class Severity(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARN = "warn"
    ERROR = "error"


class ApplyResult(str, Enum):
    APPLIED = "applied"
    SKIPPED = "skipped"
    FAILED = "failed"


class ConfigurationArtifact(BaseModel):
    """A single file or directory tree managed by the apply engine."""

    model_config = ConfigDict(frozen=True)

    identity: str = Field(..., min_length=1, description="Logical name")
    kind: SourceKind = Field(..., description="Source handling")
    source_path: Path | None = Field(default=None, description="Source on disk")
    source_text: str | None = Field(
        default=None, description="In-memory template content"
    )
    destination_path: Path = Field(..., description="Absolute destination path")
    placeholders: dict[str, str] = Field(
        default_factory=dict, description="Token name to literal replacement"
    )
    required_privilege: Privilege = Field(default=Privilege.USER)
    permission_mode: int | None = Field(
        default=None, description="Destination mode bits (octal)"
    )
    secret_tree: bool = Field(
        default=False, description="Classify and chmod tree members by name"
    )
    present_pattern: str | None = Field(
        default=None,
        description="Regex; a matching destination is already configured",
    )
    append: bool = Field(
        default=False, description="Append rendered content to the destination"
    )
    notes: list[str] = Field(
        default_factory=list, description="Follow-up hints logged after apply"
    )

    @field_validator("destination_path")
    @classmethod
    def _absolute_destination(cls, value: Path) -> Path:
        if not value.is_absolute():
            raise ValueError(f"destination_path must be absolute: {value}")
        return value

    @model_validator(mode="after")
    def _check_source(self) -> ConfigurationArtifact:
        if (self.source_path is None) == (self.source_text is None):
            raise ValueError("exactly one of source_path or source_text is required")
        if self.kind is SourceKind.TREE:
            if self.source_path is None:
                raise ValueError("tree artifacts require source_path")
            if self.append:
                raise ValueError("tree artifacts cannot append")
        if self.kind is SourceKind.FILE and self.source_path is None:
            raise ValueError("file artifacts require source_path")
        if self.secret_tree and self.kind is not SourceKind.TREE:
            raise ValueError("secret_tree applies to tree artifacts only")
        return self


class BackupPolicy(BaseModel):
    """Global backup policy shared by every artifact of a run."""

    enabled: bool = Field(default=True, description="Create backups on overwrite")
    timestamp_format: str = Field(
        default="%Y%m%d_%H%M%S", description="strftime format of the backup suffix"
    )


class ApplyOutcome(BaseModel):
    """Result of applying one artifact."""

    identity: str
    result: ApplyResult
    destination: Path
    backup_path: Path | None = None
    error: str | None = None


class RunSummary(BaseModel):
    """Outcomes of a run, in apply order."""

    outcomes: list[ApplyOutcome] = Field(default_factory=list)

    def _with(self, result: ApplyResult) -> list[ApplyOutcome]:
        return [o for o in self.outcomes if o.result is result]

    @property
    def applied(self) -> list[ApplyOutcome]:
        return self._with(ApplyResult.APPLIED)

    @property
    def skipped(self) -> list[ApplyOutcome]:
        return self._with(ApplyResult.SKIPPED)

    @property
    def failed(self) -> list[ApplyOutcome]:
        return self._with(ApplyResult.FAILED)

    @property
    def ok(self) -> bool:
        return not self.failed
