"""wslsetup - Idempotent, backup-safe configuration of a WSL environment.

Applies system mount configuration and user dotfiles through a single
apply engine that backs up, renders, writes and fixes permissions.
"""

__version__ = "0.1.0"

# Configure logging for library use
import logging

logging.getLogger(__name__).addHandler(logging.NullHandler())

# Re-export main CLI entry point
from .cli import main

__all__ = ["main"]
