"""Attempt log and captured output log.

This module provides:
- AttemptLog: append-only log with one line per tick
- OutputLog: the sync client output of the last run, with the settings used
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from synccron.core.config import SyncConfig
from synccron.runner.client import AttemptContext

PROGRAM_NAME = "synccron"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def format_timestamp(epoch: float) -> str:
    return datetime.fromtimestamp(epoch).strftime(TIMESTAMP_FORMAT)


class AttemptLog:
    """Append-only attempt log (``sync.log``)."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _append(self, epoch: float, text: str) -> None:
        with open(self._path, "a", encoding="utf-8") as f:
            f.write(f"{format_timestamp(epoch)}: {text}\n")

    def ok(self, epoch: float, elapsed: int) -> None:
        self._append(epoch, f"OK ({elapsed} s)")

    def fail(self, epoch: float, detail: str | None = None) -> None:
        self._append(epoch, f"fail: {detail}" if detail else "fail")

    def skip(self, epoch: float, wait: int) -> None:
        self._append(epoch, f"skipping (can sync in {wait} s)")

    def lines(self) -> list[str]:
        try:
            return self._path.read_text(encoding="utf-8").splitlines()
        except FileNotFoundError:
            return []


class OutputLog:
    """Captured output of the last sync client run (``nextcloudcmd.txt``).

    The file is overwritten by each run: a header with the settings used,
    the raw client output (appended by the client while it runs), then a
    trailer with the elapsed time.
    """

    def __init__(self, path: Path, script: str = PROGRAM_NAME) -> None:
        self._path = Path(path)
        self._script = script

    @property
    def path(self) -> Path:
        return self._path

    def begin(self, config: SyncConfig, start_epoch: float) -> None:
        """Start a new output log for a run."""
        lines = [
            f"# {PROGRAM_NAME}: nextcloudcmd output",
            "",
            f"# script: {self._script}",
            f"# config: {config.config_file}",
            f"# runtime: {format_timestamp(start_epoch)}",
            "",
            f"remote: {config.remote}",
            f"local: {config.local}",
            "",
        ]
        lines.extend(f"{key}: {value}" for key, value in config.settings().items())
        self._path.write_text("\n".join(lines) + "\n", encoding="utf-8")

    def finish(self, context: AttemptContext) -> None:
        """Append the trailer below the client output."""
        with open(self._path, "a", encoding="utf-8") as f:
            if context.output and not context.output.endswith("\n"):
                f.write("\n")
            f.write(f"\n# time taken: {context.elapsed} seconds\n")
            f.write(f"# finished: {format_timestamp(context.end_epoch)}\n")
