"""Reader and writer for ``key: value`` text records.

The configuration file and the failure record share this format:

- one ``key: value`` pair per line, whitespace around both is ignored
- blank lines and lines starting with ``#`` are ignored
- a key may appear only once
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

from synccron.core.errors import RecordFormatError


def parse_records(text: str) -> dict[str, str]:
    """Parse record text into a dict.

    Args:
        text: Record file content.

    Returns:
        Mapping of key to (possibly empty) value.

    Raises:
        RecordFormatError: If a key is repeated.
    """
    values: dict[str, str] = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        key, _, value = line.partition(":")
        key = key.strip()
        if key in values:
            raise RecordFormatError(f'multiple values for "{key}"')
        values[key] = value.strip()
    return values


def read_records(path: Path) -> dict[str, str]:
    """Read and parse a record file."""
    return parse_records(Path(path).read_text(encoding="utf-8"))


def format_records(values: dict[str, object], header: list[str] | None = None) -> str:
    """Render records, preceded by optional ``#`` comment lines."""
    lines = [f"# {h}" if h else "#" for h in header or []]
    if lines:
        lines.append("")
    lines.extend(f"{key}: {value}" for key, value in values.items())
    return "\n".join(lines) + "\n"


def write_atomic(path: Path, content: str) -> None:
    """Replace a file's content so readers never see it half-written.

    The content goes to a temporary file in the same directory, which is
    then renamed over the target.
    """
    path = Path(path)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise
