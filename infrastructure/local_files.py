"""
Local File Helpers.

Auth state is replaced while other invocations on the same instance may
be reading it, so every write goes to a sibling temp file first and is
then renamed over the target (os.replace is atomic on one filesystem).

Exports:
    temp_path_for: Unique sibling temp path for a target file
    atomic_write_bytes: Write bytes to a path atomically
    atomic_replace: Move a finished temp file over the target
"""

import os
import time
from pathlib import Path
from typing import Union

PathLike = Union[str, Path]


def temp_path_for(target: PathLike) -> Path:
    """<target>.download-<pid>-<ms> in the same directory as target."""
    target = Path(target)
    return target.with_name(f"{target.name}.download-{os.getpid()}-{int(time.time() * 1000)}")


def atomic_replace(temp_path: PathLike, target: PathLike) -> Path:
    target = Path(target)
    os.replace(temp_path, target)
    return target


def atomic_write_bytes(target: PathLike, data: bytes) -> Path:
    """Create parent directories, write to a temp sibling, rename into place."""
    target = Path(target)
    target.parent.mkdir(parents=True, exist_ok=True)
    temp_path = temp_path_for(target)
    try:
        with open(temp_path, "wb") as handle:
            handle.write(data)
        return atomic_replace(temp_path, target)
    finally:
        if temp_path.exists():
            temp_path.unlink()
