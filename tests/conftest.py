import logging
from pathlib import Path

import pytest

from foldermon.config import MonitorConfig
from foldermon.handlers import CLOSED, Message


class FakeObserver:
    """Stands in for ChangeObserver: replays queued messages, then closes."""

    def __init__(self, messages=()):
        self.messages = list(messages)
        self.started = False
        self.stopped = False

    def start(self):
        self.started = True

    def stop(self):
        self.stopped = True

    def next_message(self, timeout=1.0):
        if self.messages:
            return self.messages.pop(0)
        return Message(CLOSED)


@pytest.fixture(autouse=True)
def restore_root_logging():
    """The CLI reconfigures the root logger; put pytest's handlers back afterwards."""
    root = logging.getLogger()
    saved_handlers = root.handlers[:]
    saved_level = root.level
    yield
    for handler in root.handlers[:]:
        if handler not in saved_handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in saved_handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(saved_level)


@pytest.fixture
def watch_dir(tmp_path: Path) -> Path:
    d = tmp_path / "watch"
    d.mkdir()
    return d


@pytest.fixture
def backup_dir(tmp_path: Path) -> Path:
    d = tmp_path / "backup"
    d.mkdir()
    return d


@pytest.fixture
def sample_tree(watch_dir: Path) -> Path:
    (watch_dir / "a.txt").write_text("hello")
    (watch_dir / "sub").mkdir()
    (watch_dir / "sub" / "b.txt").write_text("world")
    return watch_dir


@pytest.fixture
def config(watch_dir: Path, backup_dir: Path) -> MonitorConfig:
    return MonitorConfig.build(watch_dir, backup_dir, debounce_s=0)


@pytest.fixture
def fake_observer():
    return FakeObserver
