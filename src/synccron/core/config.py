"""Configuration for synccron.

This module provides:
- SyncConfig: settings read from the ``key: value`` config file
- LogPaths: the per-target files holding state between ticks
- Pre-flight checks of the local and log directories and of credentials
"""

from __future__ import annotations

import logging
import math
import os
from dataclasses import dataclass, field
from pathlib import Path

from synccron.core.errors import ConfigValueError, RecordFormatError, SyncCronError
from synccron.core.records import read_records

logger = logging.getLogger(__name__)

DEFAULT_LOG_DIR_NAME = "._sync_nextcloud"

REQUIRED_KEYS = ("local", "remote")
OPTIONAL_KEYS = ("username", "password", "unsyncedfolders", "davpath", "exclude", "timeout")


@dataclass
class LogPaths:
    """Files kept for one target directory.

    Attributes:
        log_dir: Directory holding the files below.
        attempt_log: Append-only log with one line per tick.
        lock_file: Holds the pid of the running tick.
        output_file: Captured output of the last sync client run.
        failure_file: Failure record of the last failed attempt.
    """

    log_dir: Path
    attempt_log: Path = field(init=False)
    lock_file: Path = field(init=False)
    output_file: Path = field(init=False)
    failure_file: Path = field(init=False)

    def __post_init__(self) -> None:
        self.log_dir = Path(self.log_dir)
        self.attempt_log = self.log_dir / "sync.log"
        self.lock_file = self.log_dir / "sync.pid"
        self.output_file = self.log_dir / "nextcloudcmd.txt"
        self.failure_file = self.log_dir / "failures.txt"


@dataclass
class SyncConfig:
    """Settings for synchronising one local directory.

    Attributes:
        config_file: Path of the file the settings were read from.
        local: Local directory kept in sync.
        remote: Remote Nextcloud URL.
        username: Username, or None to use ~/.netrc.
        password: Password, or None to use ~/.netrc.
        unsyncedfolders: File listing remote folders not to sync.
        davpath: Custom WebDAV path on the server.
        exclude: File with local exclude patterns.
        timeout: Seconds after which the sync client is killed, or None.
    """

    config_file: Path
    local: Path
    remote: str
    username: str | None = None
    password: str | None = None
    unsyncedfolders: str | None = None
    davpath: str | None = None
    exclude: str | None = None
    timeout: float | None = None

    @property
    def uses_netrc(self) -> bool:
        """True when credentials come from ~/.netrc instead of the config."""
        return not self.username

    @property
    def netrc_path(self) -> Path:
        return Path.home() / ".netrc"

    def default_log_dir(self) -> Path:
        return self.local / DEFAULT_LOG_DIR_NAME

    def settings(self) -> dict[str, str]:
        """Optional settings that are in effect, for the output log header."""
        values = {
            "unsyncedfolders": self.unsyncedfolders,
            "davpath": self.davpath,
            "exclude": self.exclude,
        }
        return {k: v for k, v in values.items() if v}

    def fingerprint(self) -> int:
        """Newest modification time of the files holding the settings.

        Includes ~/.netrc when credentials are read from it. Whole seconds,
        comparable with the failure record timestamp.
        """
        sources = [self.config_file]
        if self.uses_netrc:
            sources.append(self.netrc_path)

        mtimes = []
        for source in sources:
            try:
                mtimes.append(int(source.stat().st_mtime))
            except OSError:
                logger.debug(f"Cannot stat {source}")
        return max(mtimes, default=0)


def load_sync_config(config_file: Path) -> SyncConfig:
    """Load and validate a config file.

    Args:
        config_file: Path to the ``key: value`` config file.

    Returns:
        The loaded configuration.

    Raises:
        SyncCronError: If the file is missing or unreadable.
        ConfigValueError: If a value is missing, blank, repeated or invalid.
    """
    config_file = Path(config_file)
    if not config_file.exists():
        raise SyncCronError(f"config file missing: {config_file}")
    if not config_file.is_file():
        raise SyncCronError(f"config file is not a file: {config_file}")
    if not os.access(config_file, os.R_OK):
        raise SyncCronError(f"cannot read config file: {config_file}")

    try:
        values = read_records(config_file)
    except RecordFormatError as e:
        raise ConfigValueError(f"config: {e}: {config_file}") from e

    for key in REQUIRED_KEYS:
        if key not in values:
            raise ConfigValueError(f'config: missing value for "{key}": {config_file}')
        if not values[key]:
            raise ConfigValueError(f'config: "{key}" cannot be blank: {config_file}')

    optional = {key: values.get(key) or None for key in OPTIONAL_KEYS}

    timeout = None
    if optional["timeout"] is not None:
        try:
            timeout = float(optional["timeout"])
        except ValueError:
            timeout = 0.0
        if not math.isfinite(timeout) or timeout <= 0:
            raise ConfigValueError(
                f'config: "timeout" must be a positive number of seconds: {config_file}'
            )

    return SyncConfig(
        config_file=config_file,
        local=Path(values["local"]).expanduser(),
        remote=values["remote"],
        username=optional["username"],
        password=optional["password"],
        unsyncedfolders=optional["unsyncedfolders"],
        davpath=optional["davpath"],
        exclude=optional["exclude"],
        timeout=timeout,
    )


def check_local_dir(local: Path) -> None:
    """Check the local directory exists and is fully accessible.

    Raises:
        SyncCronError: Describing the first problem found.
    """
    if not local.exists():
        raise SyncCronError(f"local directory missing: {local}")
    if not local.is_dir():
        raise SyncCronError(f"local directory is not a directory: {local}")
    if not os.access(local, os.R_OK):
        raise SyncCronError(f"cannot read local directory: {local}")
    if not os.access(local, os.W_OK):
        raise SyncCronError(f"cannot write to local directory: {local}")
    if not os.access(local, os.X_OK):
        raise SyncCronError(f"cannot access local directory: {local}")


def prepare_log_dir(log_dir: Path) -> LogPaths:
    """Create the log directory if needed and make sure the attempt log exists.

    Raises:
        SyncCronError: If the directory or attempt log cannot be created.
    """
    log_dir = Path(log_dir)
    if not log_dir.is_dir():
        try:
            log_dir.mkdir()
        except OSError as e:
            raise SyncCronError(f"cannot create log directory: {log_dir}") from e
    if not os.access(log_dir, os.W_OK):
        raise SyncCronError(f"cannot write to log directory: {log_dir}")
    if not os.access(log_dir, os.X_OK):
        raise SyncCronError(f"cannot access log directory: {log_dir}")

    paths = LogPaths(log_dir)
    try:
        paths.attempt_log.touch(exist_ok=True)
    except OSError as e:
        raise SyncCronError(f"could not create log file: {paths.attempt_log}") from e
    return paths


def credential_problem(config: SyncConfig) -> str | None:
    """Look for problems with credentials and referenced files.

    ~/.netrc is only checked for existence and readability, not content.

    Returns:
        Description of the problem, or None if everything looks usable.
    """
    if config.username and not config.password:
        return "config file has username without password"
    if config.password and not config.username:
        return "config file has password without username"
    if config.uses_netrc:
        netrc = config.netrc_path
        if not netrc.exists():
            return f"file missing: {netrc}"
        if not os.access(netrc, os.R_OK):
            return f"cannot read file: {netrc}"
    if config.unsyncedfolders and not os.access(config.unsyncedfolders, os.R_OK):
        return f"cannot read unsyncedfolders file: {config.unsyncedfolders}"
    if config.exclude and not os.access(config.exclude, os.R_OK):
        return f"cannot read excludelist file: {config.exclude}"
    return None
