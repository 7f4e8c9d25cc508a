"""Filesystem helpers for snapshot files and merge markers."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path


def is_file_empty(path: Path) -> bool:
    """True if the file has zero bytes (a missing file counts as empty)."""
    try:
        return path.stat().st_size == 0
    except FileNotFoundError:
        return True


def is_trimmed_file_empty(path: Path) -> bool:
    """True if the file is empty once surrounding whitespace is stripped."""
    if is_file_empty(path):
        return True
    return not path.read_bytes().strip()


def read_text(path: Path) -> str:
    # Marker files are opaque: no newline translation in either direction.
    with open(path, encoding="utf-8", newline="") as f:
        return f.read()


def write_text(path: Path, content: str) -> None:
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(content)


def delete_files(paths: Iterable[Path]) -> None:
    for p in paths:
        p.unlink(missing_ok=True)


def delete_if_exists(path: Path) -> bool:
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    return True
