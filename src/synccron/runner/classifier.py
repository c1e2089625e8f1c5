"""Classification of sync client runs.

nextcloudcmd has no machine-readable result, so failures are recognised
by the diagnostics it prints. The patterns below match nextcloudcmd 2.x
and may need updating for other versions.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

from synccron.core.types import ConfigProblem, FailureReason

_CAPABILITIES = r'Network error:  "ocs/v1\.php/cloud/capabilities" '

# Checked in order
CONFIG_PATTERNS: list[tuple[ConfigProblem, re.Pattern[str]]] = [
    (
        ConfigProblem.BAD_HOST,
        re.compile(_CAPABILITIES + r'"Host .* not found" QVariant\(Invalid\)'),
    ),
    (
        ConfigProblem.BAD_PATH,
        re.compile(
            _CAPABILITIES
            + r'"Error transferring .* - server replied: Not Found" QVariant\(int, 404\)'
        ),
    ),
    (
        ConfigProblem.BAD_CREDENTIALS,
        re.compile(_CAPABILITIES + r'"Host requires authentication" QVariant\(int, 401\)'),
    ),
]


@dataclass(frozen=True)
class Outcome:
    """Result of one sync client run.

    Attributes:
        succeeded: True if the client exited with status 0.
        reason: Why it failed, None on success.
    """

    succeeded: bool
    reason: FailureReason | None = None


SUCCESS = Outcome(succeeded=True)


def classify(exit_code: int, output: str, output_file: Path | str) -> Outcome:
    """Classify a sync client run.

    Args:
        exit_code: Exit status of the client.
        output: Combined stdout and stderr of the client.
        output_file: Where the full output can be read, quoted in
            unrecognised failures.

    Returns:
        SUCCESS for exit status 0 whatever the output, otherwise a failure
        with a configuration error reason or an opaque one.
    """
    if exit_code == 0:
        return SUCCESS

    for problem, pattern in CONFIG_PATTERNS:
        if pattern.search(output):
            return Outcome(succeeded=False, reason=FailureReason.config_error(problem))

    return Outcome(
        succeeded=False,
        reason=FailureReason.other_error(f"see nextcloudcmd output: {output_file}"),
    )
