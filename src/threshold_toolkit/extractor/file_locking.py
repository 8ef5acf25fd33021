"""
Module: extractor.file_locking

Purpose:
    Cross-platform file locking for batch output. Parsed output is
    written only once per run, but two runs (or a run and a reader
    seeding a store) may overlap, so every write takes a lock file and
    replaces the target atomically.

Key Functions:
    - locked_file: Context manager for locked file access
    - atomic_write_json: Lock, write to a temp file, replace the target
    - locked_read_json: Read a JSON file under a shared lock

Dependencies:
    - portalocker: Cross-platform file locking

Used By:
    - core.utils.serialization: thresholds.json / components.json
    - extractor.pipeline: diagnostics.json
"""

from __future__ import annotations

import json
import logging
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Generator

import portalocker

logger = logging.getLogger(__name__)

LOCK_SUFFIX = ".lock"


def lock_path_for(path: Path) -> Path:
    """Sidecar lock file for a target ("thresholds.json.lock")."""
    return path.with_name(path.name + LOCK_SUFFIX)


@contextmanager
def locked_file(
    path: Path,
    mode: str = 'r',
    lock_type: int = portalocker.LOCK_EX,
) -> Generator:
    """
    Context manager for cross-platform locked file access.

    Args:
        path: Path to file.
        mode: File open mode ('r', 'w', 'a', etc.).
        lock_type: Lock type (LOCK_EX for exclusive, LOCK_SH for shared).

    Yields:
        Open file handle with lock held.

    Example:
        >>> with locked_file(path, 'a') as f:
        ...     f.write('data')
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    # Ensure file exists for read modes
    if 'r' in mode and not path.exists():
        path.touch()

    with open(path, mode, encoding='utf-8') as f:
        portalocker.lock(f, lock_type)
        try:
            yield f
        finally:
            portalocker.unlock(f)


def atomic_write_json(path: Path, data: Any) -> None:
    """
    Write JSON atomically while holding an exclusive lock.

    The payload goes to a temp file in the target directory which then
    replaces the target, so readers see the old file or the new one,
    never a partial write.

    Example:
        >>> atomic_write_json(out_dir / "thresholds.json", records)
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    with locked_file(lock_path_for(path), 'a', portalocker.LOCK_EX):
        with tempfile.NamedTemporaryFile(
            mode="w",
            suffix=".json",
            dir=path.parent,
            delete=False,
            encoding="utf-8",
        ) as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
            temp_path = Path(f.name)

        try:
            # replace() overwrites the target on all platforms
            temp_path.replace(path)
        except OSError:
            temp_path.unlink(missing_ok=True)
            raise

    logger.debug(f"Wrote {path.name} atomically")


def locked_read_json(path: Path) -> Any:
    """
    Read a JSON file under a shared lock.

    Raises:
        FileNotFoundError: If path doesn't exist.
        json.JSONDecodeError: If the content is not valid JSON.
    """
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    with locked_file(lock_path_for(path), 'a', portalocker.LOCK_SH):
        return json.loads(path.read_text(encoding="utf-8"))
