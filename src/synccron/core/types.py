"""Shared types for synccron.

This module defines the exit statuses of a tick and the structured
failure reasons recorded between ticks.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum

CONFIG_ERROR_MARKER = "configuration error"


class ExitStatus(IntEnum):
    """Process exit status of one tick.

    These values are a stable contract with cron wrappers and callers.
    """

    OK = 0
    ERROR = 1
    USAGE_ERROR = 2
    UNEXPECTED_ERROR = 3
    ALREADY_RUNNING = 4
    SKIPPING = 5
    CONFIG_ERROR = 6
    CONFIG_NOT_FIXED = 7


class ConfigProblem(str, Enum):
    """Configuration problems recognised in the sync client output."""

    BAD_HOST = 'bad host in "remote" URL'
    BAD_PATH = 'bad path in "remote" URL'
    BAD_CREDENTIALS = "incorrect username/password"


@dataclass(frozen=True)
class FailureReason:
    """Why an attempt failed.

    Configuration errors latch until the configuration changes; any other
    reason is retried with backoff.

    Attributes:
        detail: Human-readable detail text.
        is_config_error: True for the configuration error class.
        problem: Recognised configuration problem, if any.
    """

    detail: str
    is_config_error: bool = False
    problem: ConfigProblem | None = None

    @classmethod
    def config_error(cls, problem: ConfigProblem) -> FailureReason:
        return cls(detail=problem.value, is_config_error=True, problem=problem)

    @classmethod
    def other_error(cls, detail: str) -> FailureReason:
        return cls(detail=detail)

    @classmethod
    def from_text(cls, text: str) -> FailureReason:
        """Parse a reason as persisted in the failure record.

        Any text starting with the configuration error marker is a
        configuration error, even when its detail is not a known problem.
        """
        text = text.strip()
        if not text.startswith(CONFIG_ERROR_MARKER):
            return cls(detail=text)

        detail = text[len(CONFIG_ERROR_MARKER):].lstrip(":").strip()
        problem = next((p for p in ConfigProblem if p.value == detail), None)
        return cls(detail=detail, is_config_error=True, problem=problem)

    def __str__(self) -> str:
        if self.is_config_error:
            return f"{CONFIG_ERROR_MARKER}: {self.detail}"
        return self.detail
