"""Invocation of the nextcloudcmd sync client.

The client is a black box: only its exit status and combined output are
used. The output is appended to the output log file while the client runs.
It runs with stdin from /dev/null so that a missing password in ~/.netrc
makes it fail instead of waiting for input. ``--non-interactive``
is not used because nextcloudcmd 2.3 then exits 0 after failing to
authenticate.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from synccron.core.config import SyncConfig
from synccron.core.errors import SyncClientNotFoundError

logger = logging.getLogger(__name__)

DEFAULT_EXECUTABLE = "nextcloudcmd"
EXECUTABLE_ENV_VAR = "SYNCCRON_NEXTCLOUDCMD"

# Exit status reported when the client was killed after the timeout
TIMEOUT_EXIT_CODE = -1


@dataclass
class AttemptContext:
    """One run of the sync client.

    Attributes:
        start_epoch: When the run started (epoch seconds).
        end_epoch: When the run finished (epoch seconds).
        exit_code: Exit status of the client.
        output: Combined stdout and stderr.
        timed_out: True if the client was killed after the timeout.
    """

    start_epoch: int
    end_epoch: int
    exit_code: int
    output: str
    timed_out: bool = False

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0

    @property
    def elapsed(self) -> int:
        return self.end_epoch - self.start_epoch


def find_executable(name: str | None = None) -> str:
    """Locate the sync client on the PATH.

    Args:
        name: Executable name or path; defaults to $SYNCCRON_NEXTCLOUDCMD,
            then nextcloudcmd.

    Raises:
        SyncClientNotFoundError: If it cannot be found.
    """
    name = name or os.environ.get(EXECUTABLE_ENV_VAR) or DEFAULT_EXECUTABLE
    path = shutil.which(name)
    if path is None:
        raise SyncClientNotFoundError(f"command not found: {name}")
    return path


def build_command(executable: str, config: SyncConfig) -> list[str]:
    """Build the client command line for a configuration."""
    cmd = [executable]
    if config.uses_netrc:
        cmd.append("-n")
    else:
        cmd.extend(["--user", config.username or "", "--password", config.password or ""])
    if config.unsyncedfolders:
        cmd.extend(["--unsyncedfolders", config.unsyncedfolders])
    if config.davpath:
        cmd.extend(["--davpath", config.davpath])
    if config.exclude:
        cmd.extend(["--exclude", config.exclude])
    # Never pass -h: it would sync the hidden log directory too
    cmd.extend([str(config.local), config.remote])
    return cmd


class SyncClient:
    """Runs nextcloudcmd for a configuration."""

    def __init__(self, executable: str, clock: Callable[[], float] = time.time) -> None:
        self._executable = executable
        self._clock = clock

    def run(self, config: SyncConfig, output_file: Path) -> AttemptContext:
        """Run the client and wait for it to finish.

        The client's stdout and stderr are appended to ``output_file`` as
        they are written, so a run that hangs or is killed still leaves its
        output behind. Blocks for as long as the client runs, unless the
        configuration sets a timeout.
        """
        cmd = build_command(self._executable, config)
        logger.debug(f"Running {self._executable} for {config.local}")

        timed_out = False
        start = int(self._clock())
        with open(output_file, "ab") as out:
            offset = out.seek(0, os.SEEK_END)
            try:
                proc = subprocess.run(
                    cmd,
                    stdin=subprocess.DEVNULL,
                    stdout=out,
                    stderr=subprocess.STDOUT,
                    timeout=config.timeout,
                    check=False,
                )
                exit_code = proc.returncode
            except subprocess.TimeoutExpired:
                timed_out = True
                exit_code = TIMEOUT_EXIT_CODE
                note = f"\n{self._executable} killed after {config.timeout:g} s timeout\n"
                out.write(note.encode())
                logger.warning(f"{self._executable} timed out after {config.timeout:g}s")
        end = int(self._clock())

        with open(output_file, "rb") as f:
            f.seek(offset)
            output = f.read().decode(errors="replace")

        if not timed_out:
            logger.debug(f"{self._executable} exited with status {exit_code}")
        return AttemptContext(
            start_epoch=start,
            end_epoch=end,
            exit_code=exit_code,
            output=output,
            timed_out=timed_out,
        )
