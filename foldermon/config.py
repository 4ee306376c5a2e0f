from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from .utils import is_within


DEFAULT_LOG_FILE = "foldermon.log"
DEFAULT_DEBOUNCE_S = 1.0


@dataclass(frozen=True)
class MonitorConfig:
    """Everything the observer, the event loop and the archiver need.

    Built once by the CLI and handed to each component; nothing is kept in
    module globals.
    """

    watch_dir: Path
    backup_dir: Path
    staging_dir: Optional[Path] = None
    delete_after_zip: bool = False
    debounce_s: float = DEFAULT_DEBOUNCE_S
    wait_stable: bool = False
    retries: int = 30
    exit_on_error: bool = True
    use_polling: bool = False

    @property
    def creation_dir(self) -> Path:
        # Bundles are written straight into the backup folder unless staged
        return self.staging_dir if self.staging_dir is not None else self.backup_dir

    @property
    def excluded_dirs(self) -> List[Path]:
        """Backup/staging folders nested inside the watched folder."""
        dirs = []
        for d in (self.backup_dir, self.staging_dir):
            if d is None or d == self.watch_dir or d in dirs:
                continue
            if is_within(d, self.watch_dir):
                dirs.append(d)
        return dirs

    @classmethod
    def build(
        cls,
        watch_dir: Path,
        backup_dir: Path,
        staging_dir: Optional[Path] = None,
        **kwargs,
    ) -> "MonitorConfig":
        if staging_dir is not None:
            staging_dir = staging_dir.expanduser().resolve()
        return cls(
            watch_dir=watch_dir.expanduser().resolve(),
            backup_dir=backup_dir.expanduser().resolve(),
            staging_dir=staging_dir,
            **kwargs,
        )
