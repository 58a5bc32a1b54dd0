"""Name-based permission classification for secret trees such as ~/.ssh."""

from __future__ import annotations

import os
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Callable

PRIVATE_MODE = 0o600
PUBLIC_MODE = 0o644

PRIVATE_KEY_PATTERNS = ("id_*", "*_rsa", "*_ed25519", "*_ecdsa")

# Fixed modes for well-known files directly under the tree root
ROOT_FILE_MODES = {
    "config": PRIVATE_MODE,
    "known_hosts": PUBLIC_MODE,
    "authorized_keys": PRIVATE_MODE,
}


def classify_secret(name: str, *, top_level: bool) -> int | None:
    """Return the mode for a file called *name*, or None to leave it alone.

    Only the name is consulted, never the content.
    """
    if name.endswith(".pub"):
        return PUBLIC_MODE
    if any(fnmatchcase(name, pattern) for pattern in PRIVATE_KEY_PATTERNS):
        return PRIVATE_MODE
    if top_level:
        return ROOT_FILE_MODES.get(name)
    return None


def classify_and_chmod(
    tree_root: Path, chmod: Callable[[Path, int], None] = os.chmod
) -> dict[Path, int]:
    """Walk *tree_root* and apply per-name modes to regular files.

    Returns:
        Mapping of each changed path to the mode it received
    """
    applied: dict[Path, int] = {}
    for dirpath, dirnames, filenames in os.walk(tree_root):
        dirnames.sort()
        current = Path(dirpath)
        for name in sorted(filenames):
            path = current / name
            if path.is_symlink() or not path.is_file():
                continue
            mode = classify_secret(name, top_level=current == tree_root)
            if mode is None:
                continue
            chmod(path, mode)
            applied[path] = mode
    return applied
