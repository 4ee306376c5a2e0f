import sys
import logging
from pathlib import Path
from typing import List, Optional

import typer

from .config import DEFAULT_DEBOUNCE_S, DEFAULT_LOG_FILE, MonitorConfig
from .errors import BackupError
from .monitor import FolderMonitor
from .observer import ChangeObserver


app = typer.Typer(add_completion=False)


def setup_logging(log_file: Path, loglevel: str = "INFO") -> None:
    """Send every record to stdout and append it to *log_file*.

    The file is opened once here and stays open for the process lifetime.
    Raises OSError if it cannot be opened.
    """
    handlers = [
        logging.StreamHandler(sys.stdout),
        logging.FileHandler(log_file, mode="a", encoding="utf-8"),
    ]
    logging.basicConfig(
        level=getattr(logging, loglevel.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(message)s",
        handlers=handlers,
        force=True,
    )


@app.command()
def main(
    folders: Optional[List[Path]] = typer.Argument(
        None,
        metavar="WATCH_FOLDER BACKUP_FOLDER",
        help="Folder to watch for new files, then the folder receiving the zip backups (created if missing)",
        show_default=False,
    ),
    delete_after_zip: bool = typer.Option(
        False,
        "--delete-after-zip/--keep-files",
        help="Delete the watched files after a successful backup",
        envvar="FOLDERMON_DELETE_AFTER_ZIP",
    ),
    debounce: float = typer.Option(
        DEFAULT_DEBOUNCE_S,
        "--debounce",
        min=0.0,
        help="Seconds to wait after a new file appears before zipping",
        envvar="FOLDERMON_DEBOUNCE",
    ),
    wait_stable: bool = typer.Option(
        False,
        "--wait-stable/--no-wait-stable",
        help="After the debounce, also wait until the new file stops growing",
        envvar="FOLDERMON_WAIT_STABLE",
    ),
    retries: int = typer.Option(
        30,
        "--retries",
        help="Max size checks for --wait-stable before giving up",
        envvar="FOLDERMON_RETRIES",
    ),
    staging_dir: Optional[Path] = typer.Option(
        None,
        "--staging-dir",
        help="Build the zip here, then move it to the backup folder; defaults to the backup folder",
        envvar="FOLDERMON_STAGING_DIR",
    ),
    keep_going: bool = typer.Option(
        False,
        "--keep-going/--exit-on-error",
        help="Log a failed backup and keep watching instead of exiting",
        envvar="FOLDERMON_KEEP_GOING",
    ),
    use_polling: Optional[bool] = typer.Option(
        None,
        "--poll/--no-poll",
        help="Force polling observer (auto if under /mnt)",
        envvar="FOLDERMON_POLL",
    ),
    log_file: Path = typer.Option(
        Path(DEFAULT_LOG_FILE),
        "--log-file",
        help="Log file, appended to",
        envvar="FOLDERMON_LOG_FILE",
    ),
    loglevel: str = typer.Option(
        "INFO",
        "--loglevel",
        help="Logging level: DEBUG, INFO, WARNING, ERROR",
        envvar="FOLDERMON_LOGLEVEL",
    ),
):
    """Zip the contents of WATCH_FOLDER into BACKUP_FOLDER whenever a new file appears.

    - Each backup is named backup_YYYYMMDD_HHMMSS.zip; two backups in the same second overwrite each other.
    - Any failed backup stops the monitor with exit code 1 unless --keep-going is given.
    """
    try:
        setup_logging(log_file, loglevel)
    except OSError as e:
        typer.echo(f"Cannot open log file {log_file}: {e}", err=True)
        raise typer.Exit(code=1)

    logging.info("Starting folder monitor...")

    if not folders or len(folders) != 2:
        count = len(folders or [])
        logging.error(f"usage: foldermon <watchFolder> <backupFolder> (got {count} argument(s))")
        raise typer.Exit(code=2)
    watch_folder, backup_folder = folders

    watch_dir = watch_folder.expanduser().resolve()
    # Auto-poll under /mnt to avoid inotify issues
    if use_polling is None:
        use_polling = str(watch_dir).startswith("/mnt/")

    config = MonitorConfig.build(
        watch_folder,
        backup_folder,
        staging_dir,
        delete_after_zip=delete_after_zip,
        debounce_s=debounce,
        wait_stable=wait_stable,
        retries=retries,
        exit_on_error=not keep_going,
        use_polling=use_polling,
    )

    logging.info(f"Watching folder: {config.watch_dir}")
    logging.info(f"Backup folder: {config.backup_dir}")
    if config.staging_dir is not None:
        logging.info(f"Staging folder: {config.staging_dir}")
    if config.delete_after_zip:
        logging.info("Files are deleted after each backup")
    for d in config.excluded_dirs:
        logging.warning(f"{d} is inside the watched folder; it is left out of backups")
    if config.watch_dir in (config.backup_dir, config.creation_dir):
        logging.warning(
            "Backups are written into the watched folder; every new zip triggers another backup"
        )

    try:
        config.backup_dir.mkdir(parents=True, exist_ok=True)
        config.creation_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logging.error(f"Cannot create backup folder: {e}")
        raise typer.Exit(code=1)

    monitor = FolderMonitor(config, observer=ChangeObserver(config))
    try:
        monitor.start()
    except OSError as e:
        logging.error(f"Cannot watch {config.watch_dir}: {e}")
        raise typer.Exit(code=1)

    try:
        monitor.run()
    except KeyboardInterrupt:
        logging.info("Stopping folder monitor...")
    except BackupError as e:
        logging.error(f"Error during zip and move: {e}")
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
