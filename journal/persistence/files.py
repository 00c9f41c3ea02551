"""Low-level file helpers shared by the trip store and the backup catalog."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any


def write_atomic(path: Path, content: bytes) -> None:
    """Write *content* to *path* through a temp file and an atomic rename.

    Readers see either the previous content or the new one, never a torn
    mix of two overlapping writers.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(
        dir=path.parent, prefix=f".{path.name}.", suffix=".tmp"
    )
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(content)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def dump_json(data: Any, indent: int = 2) -> bytes:
    """Pretty-print JSON the way trip files are stored."""
    return (json.dumps(data, indent=indent, ensure_ascii=False) + "\n").encode("utf-8")
