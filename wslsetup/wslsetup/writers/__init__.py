from .elevation import ElevatedWriter, SudoElevatedWriter, default_elevated_writer
from .local import LocalWriter
from .scoped import ScopedWriter

__all__ = [
    "ElevatedWriter",
    "LocalWriter",
    "ScopedWriter",
    "SudoElevatedWriter",
    "default_elevated_writer",
]
