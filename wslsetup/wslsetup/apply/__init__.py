from .applier import Applier, log_summary, run_artifacts
from .backup import BackupManager
from .permissions import classify_and_chmod, classify_secret

__all__ = [
    "Applier",
    "BackupManager",
    "classify_and_chmod",
    "classify_secret",
    "log_summary",
    "run_artifacts",
]
