"""One synchronisation attempt (a tick).

Each cron run is a separate process, so every decision is made from the
lock file and the failure record left by earlier ticks:

    Idle -> LockCheck -> HistoryCheck -> Proceed -> Running -> Classify
         -> UpdateState -> Idle

HistoryCheck may instead end the tick with SkipBackoff (delay after a
transient failure not yet elapsed) or Blocked (configuration error and
the configuration has not changed since). LockCheck ends the tick with
SkipLockBusy when another tick holds the lock.
"""

from __future__ import annotations

import logging
import os
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Protocol

from synccron.core.config import SyncConfig
from synccron.core.types import ExitStatus
from synccron.runner.backoff import seconds_until_retry
from synccron.runner.classifier import classify
from synccron.runner.client import AttemptContext
from synccron.runner.lock import InstanceLock, LockStatus
from synccron.runner.logs import AttemptLog, OutputLog
from synccron.runner.state import FailureRecord, FailureStore

logger = logging.getLogger(__name__)


class Decision(Enum):
    """Outcome of the history check."""

    PROCEED = "proceed"
    SKIP_BACKOFF = "skip_backoff"
    BLOCKED = "blocked"


class Runner(Protocol):
    def run(self, config: SyncConfig, output_file: Path) -> AttemptContext: ...


@dataclass
class AttemptResult:
    """How a tick ended.

    Attributes:
        status: Exit status for the process.
        messages: Lines shown on stderr in verbose mode.
        context: The sync client run, if there was one.
    """

    status: ExitStatus
    messages: list[str]
    context: AttemptContext | None = None


def decide(
    record: FailureRecord | None,
    fingerprint: int,
    now: int,
) -> Decision:
    """Decide whether to run the sync client given the last failure.

    Args:
        record: Failure record of the last attempt, None if it succeeded.
        fingerprint: Newest modification time of the configuration files.
        now: Current time (epoch seconds).
    """
    if record is None:
        return Decision.PROCEED

    if record.reason.is_config_error:
        # Backoff does not apply: retry as soon as the config was edited
        if fingerprint > record.last_failure_epoch:
            return Decision.PROCEED
        return Decision.BLOCKED

    if seconds_until_retry(record.last_failure_epoch, record.count, now) == 0:
        return Decision.PROCEED
    return Decision.SKIP_BACKOFF


class AttemptOrchestrator:
    """Runs one tick for a target directory."""

    def __init__(
        self,
        config: SyncConfig,
        lock: InstanceLock,
        store: FailureStore,
        client: Runner,
        attempt_log: AttemptLog,
        output_log: OutputLog,
        clock: Callable[[], float] = time.time,
        pid: int | None = None,
    ) -> None:
        self._config = config
        self._lock = lock
        self._store = store
        self._client = client
        self._attempt_log = attempt_log
        self._output_log = output_log
        self._clock = clock
        self._pid = pid if pid is not None else os.getpid()

    def run(self) -> AttemptResult:
        """Run the tick.

        The lock is released on every path that acquired it.

        Raises:
            BadLockFileError: If the lock file is malformed.
            CorruptStateError: If the failure record is malformed.
        """
        if self._lock.try_acquire(self._pid) is LockStatus.ALREADY_RUNNING:
            return AttemptResult(
                ExitStatus.ALREADY_RUNNING, ["another process is already running"]
            )

        try:
            return self._run_locked()
        finally:
            self._lock.release()

    def _run_locked(self) -> AttemptResult:
        record = self._store.load()
        now = int(self._clock())
        decision = decide(record, self._config.fingerprint(), now)
        logger.debug(f"History check: {decision.value}")

        if record is None or decision is Decision.PROCEED:
            return self._attempt(record)

        if decision is Decision.BLOCKED:
            return self._blocked(record, now)

        wait = seconds_until_retry(record.last_failure_epoch, record.count, now)
        self._attempt_log.skip(now, wait)
        return AttemptResult(ExitStatus.SKIPPING, [f"skipping (can sync in {wait}s)"])

    def _blocked(self, record: FailureRecord, now: int) -> AttemptResult:
        config_file = self._config.config_file
        failure_file = self._store.location
        if self._config.uses_netrc:
            action = (
                f'fix "{config_file}" and/or "{self._config.netrc_path}",'
                f' or delete "{failure_file}"'
            )
        else:
            action = f'fix "{config_file}" or delete "{failure_file}"'

        self._attempt_log.fail(now, action)
        return AttemptResult(
            ExitStatus.CONFIG_NOT_FIXED,
            [str(record.reason), f"{action} before running again"],
        )

    def _attempt(self, record: FailureRecord | None) -> AttemptResult:
        failure_count = record.count if record else 0

        self._output_log.begin(self._config, self._clock())
        context = self._client.run(self._config, self._output_log.path)
        self._output_log.finish(context)

        outcome = classify(context.exit_code, context.output, self._output_log.path)

        if outcome.reason is None:
            if record is not None:
                self._store.clear()
            self._attempt_log.ok(context.start_epoch, context.elapsed)
            logger.debug(f"Sync succeeded in {context.elapsed}s")
            return AttemptResult(ExitStatus.OK, [], context)

        self._store.save(outcome.reason, failure_count + 1, context.start_epoch)
        self._attempt_log.fail(context.start_epoch)
        return AttemptResult(ExitStatus.ERROR, [f"error: {outcome.reason}"], context)
