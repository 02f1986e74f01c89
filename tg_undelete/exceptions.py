"""Custom exception hierarchy for the Telegram undelete migration tool."""


class UndeleteError(Exception):
    """Base exception for all migration-related errors."""


class ConfigError(UndeleteError):
    """Raised when configuration is invalid or missing."""


class ArchiveError(UndeleteError):
    """Raised when the archive is unreadable or a row cannot be mapped."""


class MessageNotFoundError(ArchiveError):
    """Raised when the archive has no eligible message with the requested id."""

    def __init__(self, message_id: int) -> None:
        super().__init__(f"Message {message_id} not found in archive")
        self.message_id = message_id


class LedgerError(UndeleteError):
    """Raised when the migration ledger cannot be read or written."""


class LedgerEntryNotFoundError(LedgerError):
    """Raised when an outcome is recorded for an id that was never attempted."""

    def __init__(self, old_id: int) -> None:
        super().__init__(f"No ledger entry for message {old_id}; attempt was never recorded")
        self.old_id = old_id


class LedgerConflictError(LedgerError):
    """Raised when a migrated entry would be remapped to a different new id."""


class PublishError(UndeleteError):
    """Raised when the channel API call fails for any reason."""


class MediaNotFoundError(UndeleteError):
    """Raised when no local file exists for a media reference."""


class MigrationAbortedError(UndeleteError):
    """Raised when the migration is aborted on a fatal error."""
