class ArchivistError(Exception):
    """Base exception for archivist domain errors."""

    def __init__(self, message: str, archive: str | None = None):
        super().__init__(message)
        self.archive = archive


class AlreadyExists(ArchivistError):
    """Raised when creating an archive whose name is already taken."""

    pass


class NotFound(ArchivistError):
    """Raised when no archive record matches the requested name."""

    pass


class ConfirmationRequired(ArchivistError):
    """Raised when a destructive operation is called without confirm=True."""

    pass


class PlatformError(ArchivistError):
    """Raised when the channel platform rejects or fails a request."""

    def __init__(self, message: str, archive: str | None = None, channel: str | None = None):
        super().__init__(message, archive)
        self.channel = channel


class PermissionDenied(PlatformError):
    """Raised when the platform denies a request for lack of permissions."""

    pass


class PartialFailure(ArchivistError):
    """Raised when a multi-channel operation succeeded for some channels only."""

    def __init__(self, message: str, errors: list[str], archive: str | None = None):
        super().__init__(message, archive)
        self.errors = errors


class ReconciliationAmbiguous(ArchivistError):
    """Raised when a scan cannot determine who owns a discovered archive."""

    pass


class TargetProtected(ArchivistError):
    """Raised when a moderation action targets a member it may not touch."""

    pass
