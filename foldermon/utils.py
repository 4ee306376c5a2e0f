import time
import logging
from pathlib import Path


def is_within(child: Path, parent: Path) -> bool:
    try:
        child.resolve().relative_to(parent.resolve())
        return True
    except Exception:
        return False


def wait_for_file_ready(path: Path, retries: int = 30, sleep_s: float = 0.5) -> bool:
    """Wait until a newly created file stops growing.

    Ready when the file exists and its size is unchanged across two
    consecutive checks. Returns whether the file exists once the checks
    run out.
    """
    last_size = -1
    stable_count = 0

    for _ in range(max(1, retries)):
        if not path.exists():
            time.sleep(sleep_s)
            continue

        try:
            size = path.stat().st_size
        except FileNotFoundError:
            size = -1
        if size >= 0 and size == last_size:
            stable_count += 1
            if stable_count >= 2:  # two consecutive stable checks
                return True
        else:
            stable_count = 0

        last_size = size
        time.sleep(sleep_s)

    logging.debug(f"Gave up waiting for {path} to settle after {retries} checks")
    return path.exists()
