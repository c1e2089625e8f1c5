"""Attempt controller: locking, failure history, backoff and classification."""

from synccron.runner.backoff import (
    BASE_DELAY,
    MAX_DELAY,
    compute_delay,
    seconds_until_retry,
    should_retry_now,
)
from synccron.runner.classifier import SUCCESS, Outcome, classify
from synccron.runner.client import AttemptContext, SyncClient, build_command, find_executable
from synccron.runner.lock import InstanceLock, LockStatus
from synccron.runner.logs import AttemptLog, OutputLog
from synccron.runner.orchestrator import AttemptOrchestrator, AttemptResult, Decision, decide
from synccron.runner.state import (
    FailureRecord,
    FailureStore,
    FileFailureStore,
    MemoryFailureStore,
)

__all__ = [
    # Backoff
    "BASE_DELAY",
    "MAX_DELAY",
    "compute_delay",
    "seconds_until_retry",
    "should_retry_now",
    # Classifier
    "SUCCESS",
    "Outcome",
    "classify",
    # Client
    "AttemptContext",
    "SyncClient",
    "build_command",
    "find_executable",
    # Lock
    "InstanceLock",
    "LockStatus",
    # Logs
    "AttemptLog",
    "OutputLog",
    # Orchestrator
    "AttemptOrchestrator",
    "AttemptResult",
    "Decision",
    "decide",
    # State
    "FailureRecord",
    "FailureStore",
    "FileFailureStore",
    "MemoryFailureStore",
]
