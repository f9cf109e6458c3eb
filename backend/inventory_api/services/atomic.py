from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any
from uuid import uuid4


def replace_file(path: Path, content: str) -> None:
    """
    Replace the contents of `path` with `content` atomically.

    The text goes to a uniquely named sibling first, is fsynced, and is then
    renamed over the target. Readers see either the old file or the new one.
    On failure the temporary file is removed and the OSError propagates; the
    target is left as it was.
    """

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(f".{path.name}.{uuid4().hex[:8]}.tmp")
    try:
        with tmp_path.open("w", encoding="utf-8") as handle:
            handle.write(content)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_path, path)
    except BaseException:
        try:
            tmp_path.unlink(missing_ok=True)
        except OSError:
            pass
        raise


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-standard JSON constant {name}")


def read_json(path: Path) -> Any:
    """Parse strict JSON; `NaN` and `Infinity` raise ValueError."""
    with Path(path).open("r", encoding="utf-8") as handle:
        return json.load(handle, parse_constant=_reject_constant)


def dump_json(data: Any) -> str:
    return json.dumps(data, ensure_ascii=False, allow_nan=False, indent=2) + "\n"


def write_json(path: Path, data: Any) -> None:
    replace_file(path, dump_json(data))
