"""Static artifact definitions for the mount and dotfiles steps."""

from __future__ import annotations

import logging
import re
from typing import Iterable

from .core.models import ConfigurationArtifact, Privilege, SourceKind
from .settings import BUNDLED_FILES_DIR, Settings

logger = logging.getLogger(__name__)

STEPS = ("mount", "dotfiles")

SUDOERS_PATH = "/etc/sudoers.d/mount-nopasswd"
SUDOERS_TEMPLATE = "{{TARGET_USER}} ALL=(ALL) NOPASSWD: /bin/bash -c {{MOUNT_SCRIPT}}\n"

RESTART_NOTE = "You need to restart WSL for changes to take effect: wsl.exe --shutdown"


def mount_artifacts(settings: Settings) -> list[ConfigurationArtifact]:
    """System mount configuration: wsl.conf, fstab, mount script, sudoers."""
    files = settings.files_dir
    return [
        ConfigurationArtifact(
            identity="wsl.conf",
            kind=SourceKind.FILE,
            source_path=files / "wsl.conf",
            destination_path="/etc/wsl.conf",
            required_privilege=Privilege.ELEVATED,
            permission_mode=0o644,
            notes=[RESTART_NOTE],
        ),
        ConfigurationArtifact(
            identity="fstab",
            kind=SourceKind.FILE,
            source_path=files / "fstab",
            destination_path="/etc/fstab",
            required_privilege=Privilege.ELEVATED,
            permission_mode=0o644,
        ),
        ConfigurationArtifact(
            identity="mount-script",
            kind=SourceKind.TEMPLATE,
            source_path=files / "mount__data.sh",
            destination_path=settings.mount_script_path,
            placeholders={
                "VHDX_PATH": settings.vhdx_path,
                "VHDX_MOUNT_NAME": settings.vhdx_mount_name,
            },
            permission_mode=0o755,
        ),
        ConfigurationArtifact(
            identity="sudoers-mount",
            kind=SourceKind.TEMPLATE,
            source_text=SUDOERS_TEMPLATE,
            destination_path=SUDOERS_PATH,
            placeholders=settings.placeholders,
            required_privilege=Privilege.ELEVATED,
            permission_mode=0o440,
            present_pattern=rf"{re.escape(settings.target_user)}.*mount__data\.sh",
        ),
    ]


def dotfile_artifacts(settings: Settings) -> list[ConfigurationArtifact]:
    """User dotfiles: aliases, SSH tree, per-app config trees, .bashrc hook."""
    src = settings.dotfiles_dir.resolve()
    home = settings.home

    artifacts = [
        ConfigurationArtifact(
            identity="bash-aliases",
            kind=SourceKind.FILE,
            source_path=src / ".bash_aliases",
            destination_path=home / ".bash_aliases",
        ),
        ConfigurationArtifact(
            identity="ssh-tree",
            kind=SourceKind.TREE,
            source_path=src / ".ssh",
            destination_path=home / ".ssh",
            permission_mode=0o700,
            secret_tree=True,
        ),
    ]
    artifacts.extend(_config_artifacts(settings))
    artifacts.append(
        ConfigurationArtifact(
            identity="bashrc-aliases",
            kind=SourceKind.TEMPLATE,
            source_path=BUNDLED_FILES_DIR / "bashrc_aliases.block",
            destination_path=home / ".bashrc",
            present_pattern=r"\.bash_aliases",
            append=True,
        )
    )
    return artifacts


def _config_artifacts(settings: Settings) -> list[ConfigurationArtifact]:
    # Each subdirectory is backed up and copied on its own so unrelated
    # entries under ~/.config are never touched.
    src = settings.dotfiles_dir.resolve() / ".config"
    dest = settings.home / ".config"
    if not src.is_dir():
        return [
            ConfigurationArtifact(
                identity="config-tree",
                kind=SourceKind.TREE,
                source_path=src,
                destination_path=dest,
            )
        ]
    return [
        ConfigurationArtifact(
            identity=f"config:{entry.name}",
            kind=SourceKind.TREE,
            source_path=entry,
            destination_path=dest / entry.name,
        )
        for entry in sorted(src.iterdir())
        if entry.is_dir()
    ]


def build_plan(settings: Settings, steps: Iterable[str] = STEPS) -> list[ConfigurationArtifact]:
    """Artifacts for the requested steps, always mount first, then dotfiles."""
    requested = set(steps)
    unknown = requested - set(STEPS)
    if unknown:
        raise ValueError(f"Unknown step(s): {', '.join(sorted(unknown))}")

    plan: list[ConfigurationArtifact] = []
    if "mount" in requested:
        plan.extend(mount_artifacts(settings))
    if "dotfiles" in requested:
        plan.extend(dotfile_artifacts(settings))
    logger.debug(f"Planned {len(plan)} artifact(s) for steps {sorted(requested)}")
    return plan
