import os
import shutil
import logging
import zipfile
from datetime import datetime
from pathlib import Path
from typing import Iterable, Iterator, Optional

from .config import MonitorConfig
from .errors import ArchiveError, RelocateError


BUNDLE_PREFIX = "backup_"
BUNDLE_SUFFIX = ".zip"
TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"


def bundle_name(now: Optional[datetime] = None) -> str:
    """Return ``backup_YYYYMMDD_HHMMSS.zip`` for *now* (local time).

    Two runs within the same second get the same name; the later bundle
    replaces the earlier one.
    """
    now = now or datetime.now()
    return f"{BUNDLE_PREFIX}{now.strftime(TIMESTAMP_FORMAT)}{BUNDLE_SUFFIX}"


def _raise(err: OSError) -> None:
    raise err


def iter_files(root: Path, exclude: Iterable[Path] = ()) -> Iterator[Path]:
    """Yield every non-directory entry under *root*, in lexical order.

    Walk errors are raised, not skipped. Directories listed in *exclude*
    are not descended into.
    """
    excluded = set(exclude)
    for dirpath, dirnames, filenames in os.walk(root, onerror=_raise):
        current = Path(dirpath)
        dirnames[:] = sorted(d for d in dirnames if current / d not in excluded)
        for name in sorted(filenames):
            yield current / name


def entry_name(relative: Path) -> str:
    # Undecodable bytes in file names become U+FFFD so the name can be stored
    name = relative.as_posix()
    return name.encode("utf-8", "surrogateescape").decode("utf-8", "replace")


def write_archive(watch_dir: Path, zip_path: Path, exclude: Iterable[Path] = ()) -> int:
    """Zip every file under *watch_dir* into *zip_path*, keyed by relative path.

    Returns the number of entries written. Any I/O failure aborts the run
    with ArchiveError; whatever was already written to *zip_path* is left
    on disk.
    """
    try:
        zf = zipfile.ZipFile(
            zip_path, "w", compression=zipfile.ZIP_DEFLATED, strict_timestamps=False
        )
    except OSError as e:
        logging.error(f"Failed to create zip: {e}")
        raise ArchiveError(f"Cannot create {zip_path}: {e}") from e

    count = 0
    try:
        with zf:
            for path in iter_files(watch_dir, exclude):
                if path == zip_path:
                    continue
                arcname = entry_name(path.relative_to(watch_dir))
                zf.write(path, arcname=arcname)
                logging.info(f"Added to zip: {path}")
                count += 1
    except (OSError, ValueError) as e:
        logging.error(f"Error creating zip archive: {e}")
        raise ArchiveError(f"Cannot archive {watch_dir} into {zip_path}: {e}") from e
    return count


def relocate(zip_path: Path, dest_path: Path) -> Path:
    # Same path in the default layout; the rename is then a no-op
    try:
        shutil.move(str(zip_path), str(dest_path))
    except OSError as e:
        logging.error(f"Failed to move zip file: {e}")
        raise RelocateError(f"Cannot move {zip_path} to {dest_path}: {e}") from e
    logging.info(f"Moved zip to: {dest_path}")
    return dest_path


def delete_files(watch_dir: Path, exclude: Iterable[Path] = ()) -> int:
    """Delete every file under *watch_dir*, leaving directories in place.

    Best effort: a file that cannot be removed is logged and skipped.
    Returns the number of files deleted.
    """
    excluded = set(exclude)
    deleted = 0

    def _log_walk_error(err: OSError) -> None:
        logging.error(f"Error deleting files: {err}")

    for dirpath, dirnames, filenames in os.walk(watch_dir, onerror=_log_walk_error):
        current = Path(dirpath)
        dirnames[:] = [d for d in dirnames if current / d not in excluded]
        for name in filenames:
            path = current / name
            try:
                path.unlink()
            except OSError as e:
                logging.error(f"Failed to delete {path}: {e}")
                continue
            logging.info(f"Deleted: {path}")
            deleted += 1
    return deleted


def zip_and_move(config: MonitorConfig, now: Optional[datetime] = None) -> Path:
    """Archive the watched folder, move the bundle into place, apply retention.

    Returns the final path of the bundle.
    """
    name = bundle_name(now)
    zip_path = config.creation_dir / name
    dest_path = config.backup_dir / name
    exclude = config.excluded_dirs

    logging.info(f"Zip file path: {zip_path}")
    count = write_archive(config.watch_dir, zip_path, exclude)
    logging.info(f"Archived {count} file(s) from {config.watch_dir}")

    relocate(zip_path, dest_path)

    if config.delete_after_zip:
        deleted = delete_files(config.watch_dir, exclude)
        logging.info(f"Removed {deleted} original file(s) from {config.watch_dir}")
    return dest_path
