class BackupError(Exception):
    """A triggered backup run failed."""


class ArchiveError(BackupError):
    """The bundle could not be created or populated."""


class RelocateError(BackupError):
    """The finished bundle could not be moved into the backup folder."""
