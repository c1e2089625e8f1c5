"""Command-line interface for synccron.

Meant to be run from cron. Once the attempt log exists, nothing is written
to stdout or stderr unless --verbose is given, so cron only mails when
something is wrong with the invocation or configuration itself. See the
attempt log for the outcome of each tick.
"""

from __future__ import annotations

import logging
import sys
import time
from pathlib import Path

import click

from synccron import __version__
from synccron.core.config import (
    SyncConfig,
    check_local_dir,
    credential_problem,
    load_sync_config,
    prepare_log_dir,
)
from synccron.core.errors import SyncCronError
from synccron.core.types import ExitStatus
from synccron.runner.client import SyncClient, find_executable
from synccron.runner.lock import InstanceLock
from synccron.runner.logs import PROGRAM_NAME, AttemptLog, OutputLog
from synccron.runner.orchestrator import AttemptOrchestrator
from synccron.runner.state import FileFailureStore

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool, debug: bool) -> None:
    """Send synccron log records to stderr in verbose or debug mode."""
    if not (verbose or debug):
        return
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(f"{PROGRAM_NAME}: %(message)s"))
    level = logging.DEBUG if debug else logging.WARNING
    handler.setLevel(level)

    synccron_logger = logging.getLogger("synccron")
    synccron_logger.handlers = [
        h for h in synccron_logger.handlers if not isinstance(h, logging.StreamHandler)
    ]
    synccron_logger.addHandler(handler)
    synccron_logger.setLevel(level)


def _error(message: str) -> None:
    click.echo(f"{PROGRAM_NAME}: {message}", err=True)


def run_tick(config_file: Path, logdir: Path | None, verbose: bool) -> ExitStatus:
    """Run one tick and return its exit status.

    Errors found before the attempt log exists are always reported on
    stderr. After that, outcomes go to the attempt log and are echoed
    only in verbose mode.
    """
    try:
        executable = find_executable()
        config = load_sync_config(config_file)
        check_local_dir(config.local)
        paths = prepare_log_dir(logdir or config.default_log_dir())
    except SyncCronError as e:
        _error(f"error: {e}")
        return e.exit_status

    # From here on: silent unless verbose
    attempt_log = AttemptLog(paths.attempt_log)

    problem = credential_problem(config)
    if problem:
        attempt_log.fail(time.time(), problem)
        if verbose:
            _error(f"error: {problem}")
        return ExitStatus.CONFIG_ERROR

    orchestrator = AttemptOrchestrator(
        config=config,
        lock=InstanceLock(paths.lock_file),
        store=FileFailureStore(paths.failure_file, header=_record_header(config)),
        client=SyncClient(executable),
        attempt_log=attempt_log,
        output_log=OutputLog(paths.output_file, script=sys.argv[0]),
    )

    try:
        result = orchestrator.run()
    except SyncCronError as e:
        attempt_log.fail(time.time(), str(e))
        if verbose:
            _error(f"error: {e}")
        return e.exit_status

    if verbose:
        for message in result.messages:
            _error(message)
    return result.status


def _record_header(config: SyncConfig) -> list[str]:
    return [
        f"{PROGRAM_NAME}: recent failures",
        "",
        f"script: {sys.argv[0]}",
        f"config: {config.config_file}",
    ]


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(__version__, "--version", prog_name=PROGRAM_NAME)
@click.option(
    "--logdir",
    "-l",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory for log files (default: ._sync_nextcloud in the local directory).",
)
@click.option("--verbose", "-v", is_flag=True, help="Always print error messages to stderr.")
@click.option("--debug", is_flag=True, help="Print debug logging to stderr.")
@click.argument("config_file", type=click.Path(path_type=Path))
def cli(logdir: Path | None, verbose: bool, debug: bool, config_file: Path) -> None:
    """Synchronise a local directory with Nextcloud, for use from cron.

    CONFIG_FILE holds "key: value" lines: "local" and "remote" are required;
    "username"/"password" (otherwise ~/.netrc is used), "unsyncedfolders",
    "davpath", "exclude" and "timeout" are optional.
    """
    setup_logging(verbose, debug)
    try:
        status = run_tick(config_file, logdir, verbose or debug)
    except Exception:
        logger.debug("Unexpected error", exc_info=True)
        _error("aborted")
        status = ExitStatus.UNEXPECTED_ERROR
    sys.exit(int(status))


def main() -> None:
    """Entry point for the CLI."""
    cli()


__all__ = [
    "cli",
    "main",
    "run_tick",
    "setup_logging",
]
