"""Whole-file JSON persistence helpers.

State files are small and always rewritten in full, so writes go to a
temporary sibling first and are moved into place with os.replace. A process
killed mid-write leaves the previous file intact.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any

from emailmaster.exceptions import PersistenceError, StateCorruptionError


def read_json(path: Path) -> Any | None:
    """Read a JSON document.

    Returns:
        The decoded document, or None if the file does not exist or is empty.

    Raises:
        StateCorruptionError: If the file exists but cannot be read or is not
            valid JSON.
    """

    if not path.exists():
        return None

    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise StateCorruptionError(f"Cannot read {path}: {exc}") from exc

    if not text.strip():
        return None

    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise StateCorruptionError(f"{path} is not valid JSON: {exc}") from exc


def write_json_atomic(path: Path, data: Any) -> None:
    """Serialize data to path, replacing any previous content atomically.

    Raises:
        PersistenceError: If the directory or file cannot be written.
    """

    tmp_name: str | None = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump(data, fh, indent=2, ensure_ascii=False)
            fh.write("\n")
        os.replace(tmp_name, path)
        tmp_name = None
    except (OSError, TypeError, ValueError) as exc:
        raise PersistenceError(f"Failed to write {path}: {exc}") from exc
    finally:
        if tmp_name is not None:
            try:
                os.unlink(tmp_name)
            except OSError:
                pass
