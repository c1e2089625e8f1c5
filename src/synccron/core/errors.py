"""Exception classes for synccron.

Every error carries the exit status the CLI should end the tick with.
"""

from __future__ import annotations

from synccron.core.types import ExitStatus


class SyncCronError(Exception):
    """Base exception for synccron errors."""

    exit_status = ExitStatus.ERROR


class RecordFormatError(SyncCronError):
    """A ``key: value`` record could not be parsed."""


class ConfigValueError(SyncCronError):
    """A configuration value is missing, blank, repeated or unusable."""

    exit_status = ExitStatus.CONFIG_ERROR


class CorruptStateError(SyncCronError):
    """The persisted failure record is malformed."""


class BadLockFileError(SyncCronError):
    """The lock file does not contain a process identifier."""


class SyncClientNotFoundError(SyncCronError):
    """The sync client executable is not on the PATH."""
