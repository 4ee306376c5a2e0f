import queue
import logging
from typing import Optional

from watchdog.observers import Observer
from watchdog.observers.polling import PollingObserver

from .config import MonitorConfig
from .handlers import CLOSED, ERROR, CreationHandler, Message


class ChangeObserver:
    """Non-recursive watchdog subscription on the watched folder.

    Events and watcher errors share one queue; ``next_message`` hands them
    to the monitor loop in arrival order.
    """

    def __init__(self, config: MonitorConfig) -> None:
        self.watch_dir = config.watch_dir
        self.use_polling = config.use_polling
        self.messages: "queue.Queue[Message]" = queue.Queue()
        self.handler = CreationHandler(self.messages, config.excluded_dirs)
        self._observer = None
        self._dead_emitters = set()

    def start(self) -> None:
        if not self.watch_dir.is_dir():
            raise FileNotFoundError(f"Watch folder does not exist: {self.watch_dir}")

        observer = PollingObserver() if self.use_polling else Observer()
        # Only the top level is subscribed; nested creations depend on the backend
        observer.schedule(self.handler, str(self.watch_dir), recursive=False)
        observer.start()
        self._observer = observer
        logging.info(f"Observer: {'Polling' if self.use_polling else 'Native'}")

    def stop(self) -> None:
        if self._observer is not None:
            self._observer.stop()
            self._observer.join()
            self._observer = None
        self.close()

    def close(self) -> None:
        self.messages.put(Message(CLOSED))

    def report_error(self, error: Exception) -> None:
        self.messages.put(Message(ERROR, error))

    @property
    def is_alive(self) -> bool:
        return self._observer is not None and self._observer.is_alive()

    def next_message(self, timeout: float = 1.0) -> Optional[Message]:
        """Block up to *timeout* seconds for the next message.

        Returns None when nothing arrived, and a CLOSED message once the
        observer thread has gone away.
        """
        try:
            return self.messages.get(timeout=timeout)
        except queue.Empty:
            pass

        if not self.is_alive:
            return Message(CLOSED)
        self._check_emitters()
        return None

    def _check_emitters(self) -> None:
        for emitter in list(self._observer.emitters):
            if emitter.is_alive() or emitter in self._dead_emitters:
                continue
            self._dead_emitters.add(emitter)
            self.report_error(
                RuntimeError(f"event emitter for {emitter.watch.path} stopped")
            )
