"""foldermon: zip a watched folder into timestamped backups whenever a new file appears.

Exports:
- app, main: Typer CLI entrypoints (from foldermon.cli)
- MonitorConfig: settings shared by every component (from foldermon.config)
- FolderMonitor: the event loop (from foldermon.monitor)
- ChangeObserver, CreationHandler: watchdog subscription (from foldermon.observer, foldermon.handlers)
- zip_and_move, write_archive, delete_files, bundle_name: backup steps (from foldermon.archive)
- BackupError, ArchiveError, RelocateError: failures of a backup run (from foldermon.errors)
"""

from .archive import bundle_name, delete_files, write_archive, zip_and_move  # noqa: F401
from .cli import app, main  # noqa: F401
from .config import MonitorConfig  # noqa: F401
from .errors import ArchiveError, BackupError, RelocateError  # noqa: F401
from .handlers import CreationHandler  # noqa: F401
from .monitor import FolderMonitor  # noqa: F401
from .observer import ChangeObserver  # noqa: F401

__all__ = [
    "app",
    "main",
    "MonitorConfig",
    "FolderMonitor",
    "ChangeObserver",
    "CreationHandler",
    "zip_and_move",
    "write_archive",
    "delete_files",
    "bundle_name",
    "BackupError",
    "ArchiveError",
    "RelocateError",
]
