"""Placeholder template rendering."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Mapping

from ..core.errors import FilesystemError, RenderError, SourceMissing

logger = logging.getLogger(__name__)

TOKEN_PATTERN = re.compile(r"\{\{([A-Za-z_][A-Za-z0-9_]*)\}\}")


def render(template: str, placeholders: Mapping[str, str]) -> str:
    """Substitute ``{{NAME}}`` tokens with literal values.

    Tokens without a matching key are left verbatim. Values are inserted
    as-is and never re-scanned, so a value containing ``{{OTHER}}`` stays
    literal in the output.

    Args:
        template: Template text
        placeholders: Token name to replacement string

    Returns:
        Rendered text
    """

    def _substitute(match: re.Match[str]) -> str:
        name = match.group(1)
        if name in placeholders:
            return placeholders[name]
        return match.group(0)

    return TOKEN_PATTERN.sub(_substitute, template)


def render_file(template_path: Path, placeholders: Mapping[str, str]) -> str:
    """Render a UTF-8 template file.

    Args:
        template_path: Path to the template file
        placeholders: Token name to replacement string

    Returns:
        Rendered text
    """
    if not template_path.is_file():
        raise SourceMissing(f"Template not found: {template_path}", path=template_path)

    logger.debug(f"Rendering template: {template_path}")
    try:
        text = template_path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise RenderError(f"Template is not UTF-8: {template_path}", path=template_path) from exc
    except OSError as exc:
        raise FilesystemError(
            f"Cannot read template {template_path}: {exc.strerror or exc}", path=template_path
        ) from exc
    return render(text, placeholders)


def unresolved_tokens(text: str) -> list[str]:
    """Return token names still present in *text*, in order of first use."""
    seen: dict[str, None] = {}
    for match in TOKEN_PATTERN.finditer(text):
        seen.setdefault(match.group(1), None)
    return list(seen)
