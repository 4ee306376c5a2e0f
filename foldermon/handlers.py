import os
import queue
import logging
from pathlib import Path
from typing import Any, Iterable, NamedTuple

from watchdog.events import FileSystemEvent, FileSystemEventHandler

from .utils import is_within


EVENT = "event"
ERROR = "error"
CLOSED = "closed"


class Message(NamedTuple):
    """One item on the observer channel: a creation event, a watcher error, or closure."""

    kind: str
    payload: Any = None


class CreationHandler(FileSystemEventHandler):
    """Forward creation events to the monitor loop; ignore everything else.

    Runs on the watchdog observer thread, so it only enqueues.
    """

    def __init__(self, messages: "queue.Queue[Message]", ignore_dirs: Iterable[Path] = ()) -> None:
        super().__init__()
        self.messages = messages
        self.ignore_dirs = list(ignore_dirs)

    def dispatch(self, event: FileSystemEvent) -> None:
        try:
            super().dispatch(event)
        except Exception as e:
            self.messages.put(Message(ERROR, e))

    def on_created(self, event: FileSystemEvent) -> None:
        path = Path(os.fsdecode(event.src_path))
        # Our own bundles land here when the backup folder is nested in the watched one
        if any(is_within(path, d) for d in self.ignore_dirs):
            logging.debug(f"Ignoring creation inside backup folder: {path}")
            return
        self.messages.put(Message(EVENT, event))
