"""Core module - Configuration, record format, and shared types."""

from synccron.core.config import (
    LogPaths,
    SyncConfig,
    check_local_dir,
    credential_problem,
    load_sync_config,
    prepare_log_dir,
)
from synccron.core.errors import (
    BadLockFileError,
    ConfigValueError,
    CorruptStateError,
    RecordFormatError,
    SyncClientNotFoundError,
    SyncCronError,
)
from synccron.core.records import format_records, parse_records, read_records, write_atomic
from synccron.core.types import CONFIG_ERROR_MARKER, ConfigProblem, ExitStatus, FailureReason

__all__ = [
    # Config
    "LogPaths",
    "SyncConfig",
    "check_local_dir",
    "credential_problem",
    "load_sync_config",
    "prepare_log_dir",
    # Errors
    "BadLockFileError",
    "ConfigValueError",
    "CorruptStateError",
    "RecordFormatError",
    "SyncClientNotFoundError",
    "SyncCronError",
    # Records
    "format_records",
    "parse_records",
    "read_records",
    "write_atomic",
    # Types
    "CONFIG_ERROR_MARKER",
    "ConfigProblem",
    "ExitStatus",
    "FailureReason",
]
