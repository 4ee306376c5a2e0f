import os
import time
import logging
from pathlib import Path
from typing import Callable, Optional

from watchdog.events import FileSystemEvent

from .archive import zip_and_move
from .config import MonitorConfig
from .errors import BackupError
from .handlers import CLOSED, ERROR, EVENT
from .observer import ChangeObserver
from .utils import wait_for_file_ready


class FolderMonitor:
    """Single-threaded loop: wait for a creation, debounce, back up, repeat.

    One event is handled to completion before the next message is read, so
    at most one bundle is ever being written.
    """

    def __init__(
        self,
        config: MonitorConfig,
        observer: Optional[ChangeObserver] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config
        self.observer = observer if observer is not None else ChangeObserver(config)
        self._sleep = sleep

    def start(self) -> None:
        self.observer.start()

    def run(self) -> None:
        """Consume observer messages until the channel closes.

        Raises BackupError on a failed run unless ``exit_on_error`` is off.
        """
        try:
            while True:
                message = self.observer.next_message()
                if message is None:
                    continue
                if message.kind == CLOSED:
                    logging.info("Watcher closed")
                    return
                if message.kind == ERROR:
                    logging.error(f"Watcher error: {message.payload}")
                    continue
                if message.kind == EVENT:
                    self.handle_created(message.payload)
        finally:
            self.observer.stop()

    def handle_created(self, event: FileSystemEvent) -> Optional[Path]:
        path = Path(os.fsdecode(event.src_path))
        logging.info(f"Detected new file: {path}")
        self.settle(path)

        try:
            return zip_and_move(self.config)
        except BackupError as e:
            if self.config.exit_on_error:
                raise
            logging.exception(f"Backup failed, still watching ({e})")
            return None

    def settle(self, path: Path) -> None:
        """Give the writer of *path* time to finish before archiving."""
        if self.config.debounce_s > 0:
            self._sleep(self.config.debounce_s)

        if self.config.wait_stable and not path.is_dir():
            if not wait_for_file_ready(path, retries=self.config.retries):
                logging.warning(f"File did not become ready: {path}")
