from __future__ import annotations

import getpass
import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .core.models import BackupPolicy

logger = logging.getLogger(__name__)

BUNDLED_FILES_DIR = Path(__file__).resolve().parent / "files"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="WSLSETUP_", case_sensitive=False, extra="forbid"
    )

    target_user: str = Field(default_factory=getpass.getuser)
    target_home: Path | None = None
    vhdx_path: str = ""
    vhdx_mount_name: str = "__data"
    enable_backups: bool = True
    timestamp_format: str = "%Y%m%d_%H%M%S"
    log_file: Path = Path("setup.log")
    files_dir: Path = BUNDLED_FILES_DIR
    dotfiles_dir: Path = Path("dotfiles")

    @model_validator(mode="after")
    def _resolve_home(self) -> Settings:
        if self.target_home is None:
            self.target_home = Path(os.path.expanduser(f"~{self.target_user}"))
        return self

    @property
    def home(self) -> Path:
        assert self.target_home is not None
        return self.target_home

    @property
    def backup_policy(self) -> BackupPolicy:
        return BackupPolicy(
            enabled=self.enable_backups, timestamp_format=self.timestamp_format
        )

    @property
    def mount_script_path(self) -> Path:
        return self.home / "mount__data.sh"

    @property
    def custom_mount_point(self) -> Path:
        return Path("/mnt") / self.vhdx_mount_name

    @property
    def placeholders(self) -> dict[str, str]:
        return {
            "VHDX_PATH": self.vhdx_path,
            "VHDX_MOUNT_NAME": self.vhdx_mount_name,
            "TARGET_USER": self.target_user,
            "TARGET_HOME": str(self.home),
            "MOUNT_SCRIPT": str(self.mount_script_path),
        }


def load_settings(config_file: Path | None = None, **overrides: Any) -> Settings:
    """Build settings from an optional YAML file plus explicit overrides.

    File values and overrides are passed as init kwargs, so they take
    precedence over ``WSLSETUP_*`` environment variables.
    """
    data: dict[str, Any] = {}
    if config_file is not None:
        if not config_file.is_file():
            raise FileNotFoundError(f"Config file not found: {config_file}")
        loaded = yaml.safe_load(config_file.read_text(encoding="utf-8")) or {}
        if not isinstance(loaded, dict):
            raise ValueError(f"Config file must contain a mapping: {config_file}")
        data.update(loaded)
        logger.debug(f"Loaded {len(loaded)} setting(s) from {config_file}")

    data.update({k: v for k, v in overrides.items() if v is not None})
    return Settings(**data)
