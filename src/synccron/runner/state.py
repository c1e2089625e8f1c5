"""Failure record kept between ticks.

This module provides:
- FailureRecord: The persisted record of the last failed attempt
- FailureStore: Interface shared by the stores below
- FileFailureStore: Record kept in ``failures.txt``
- MemoryFailureStore: Record kept in memory, for tests

The record exists if and only if the most recent completed attempt failed.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Protocol

from synccron.core.errors import CorruptStateError, RecordFormatError
from synccron.core.records import format_records, read_records, write_atomic
from synccron.core.types import FailureReason

logger = logging.getLogger(__name__)

KEY_NUM_FAILURES = "number_of_failures"
KEY_TIMESTAMP = "last_runtime"
KEY_REASON = "reason"

_UNSIGNED = re.compile(r"^[0-9]+$")


@dataclass(frozen=True)
class FailureRecord:
    """The last failed attempt.

    Attributes:
        count: Number of consecutive failures, at least 1.
        last_failure_epoch: Start time of the failing attempt (epoch seconds).
        reason: Why it failed.
    """

    count: int
    last_failure_epoch: int
    reason: FailureReason


class FailureStore(Protocol):
    """Load, save and clear the failure record of one target directory."""

    @property
    def location(self) -> str: ...

    def load(self) -> FailureRecord | None: ...

    def save(self, reason: FailureReason, count: int, timestamp: int) -> None: ...

    def clear(self) -> None: ...


class FileFailureStore:
    """Failure record stored as a ``key: value`` file."""

    def __init__(self, path: Path, header: list[str] | None = None) -> None:
        """Initialize the store.

        Args:
            path: Path of the failure record file.
            header: Comment lines written at the top of the record.
        """
        self._path = Path(path)
        self._header = list(header or [])

    @property
    def path(self) -> Path:
        return self._path

    @property
    def location(self) -> str:
        return str(self._path)

    def load(self) -> FailureRecord | None:
        """Load the record.

        Returns:
            The record, or None if there is no known failure.

        Raises:
            CorruptStateError: If the record exists but is malformed.
        """
        try:
            values = read_records(self._path)
        except FileNotFoundError:
            return None
        except (RecordFormatError, OSError, UnicodeDecodeError) as e:
            raise CorruptStateError(f"corrupt file: {self._path}: {e}") from e

        for key in (KEY_NUM_FAILURES, KEY_TIMESTAMP, KEY_REASON):
            if not values.get(key):
                raise CorruptStateError(f'corrupt file: {self._path}: no "{key}"')

        count_text = values[KEY_NUM_FAILURES]
        timestamp_text = values[KEY_TIMESTAMP]
        if not _UNSIGNED.match(count_text) or int(count_text) <= 0:
            raise CorruptStateError(f"corrupt file: {self._path}: bad {KEY_NUM_FAILURES}")
        if not _UNSIGNED.match(timestamp_text):
            raise CorruptStateError(f"corrupt file: {self._path}: bad {KEY_TIMESTAMP}")

        return FailureRecord(
            count=int(count_text),
            last_failure_epoch=int(timestamp_text),
            reason=FailureReason.from_text(values[KEY_REASON]),
        )

    def save(self, reason: FailureReason, count: int, timestamp: int) -> None:
        """Overwrite the record atomically."""
        runtime = datetime.fromtimestamp(timestamp).strftime("%Y-%m-%d %H:%M:%S")
        content = format_records(
            {
                KEY_NUM_FAILURES: count,
                KEY_TIMESTAMP: timestamp,
                KEY_REASON: reason,
            },
            header=[*self._header, f"last_runtime: {runtime}"],
        )
        write_atomic(self._path, content)
        logger.debug(f"Saved failure #{count}: {reason}")

    def clear(self) -> None:
        self._path.unlink(missing_ok=True)


class MemoryFailureStore:
    """Failure record held in memory."""

    def __init__(self, record: FailureRecord | None = None) -> None:
        self.record = record

    @property
    def location(self) -> str:
        return "<memory>"

    def load(self) -> FailureRecord | None:
        return self.record

    def save(self, reason: FailureReason, count: int, timestamp: int) -> None:
        self.record = FailureRecord(count=count, last_failure_epoch=timestamp, reason=reason)

    def clear(self) -> None:
        self.record = None
