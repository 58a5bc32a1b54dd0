"""CLI argument parsers and validators."""

from __future__ import annotations

from pathlib import Path

import typer
from pydantic import ValidationError

from ..plan import STEPS
from ..settings import Settings, load_settings


def parse_steps(values: list[str]) -> list[str]:
    """Validate --step values; no values means every step."""
    if not values:
        return list(STEPS)
    steps: list[str] = []
    for value in values:
        step = value.strip().lower()
        if step not in STEPS:
            raise typer.BadParameter(
                f"Unknown step {value!r}; expected one of: {', '.join(STEPS)}"
            )
        if step not in steps:
            steps.append(step)
    return steps


def parse_settings(config_file: str, **overrides: object) -> Settings:
    """Load settings, turning file and validation problems into CLI errors."""
    path = Path(config_file) if config_file else None
    try:
        return load_settings(path, **overrides)
    except (FileNotFoundError, ValueError, ValidationError) as e:
        raise typer.BadParameter(f"Invalid configuration: {e}") from e
