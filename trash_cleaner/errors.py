"""
Errors raised by the trash cleaner
"""


class TrashCleanerError(Exception):
    """Base class for all trash cleaner errors"""


class InvalidKeyword(TrashCleanerError, ValueError):
    """A trash keyword configuration entry is malformed"""


class ConfigError(TrashCleanerError):
    """The configuration directory or one of its files is unusable"""


class ClientCreationFailed(TrashCleanerError):
    """An email client could not be authorized or constructed"""


class FetchFailed(TrashCleanerError):
    """Unread emails could not be retrieved from the mailbox"""


class DeleteFailed(TrashCleanerError):
    """The mailbox rejected the deletion of trash emails"""
