"""Utility helpers for walking and sizing filesystem trees."""

from __future__ import annotations

import logging
import os
import stat
from pathlib import Path
from typing import Iterator, List

from namefinder.models import DIRECTORY_KIND, FILE_KIND, FileSystemEntry

LOGGER = logging.getLogger(__name__)


def _log_walk_error(exc: OSError) -> None:
    LOGGER.debug("Skipping unreadable entry %s: %s", exc.filename, exc)


def directory_size(path: Path | str) -> int:
    """Sum the sizes of all regular files below ``path``.

    Best effort: unreadable entries are skipped and symlinks are neither
    followed nor counted, so the result is a lower bound when parts of the
    tree cannot be read. Never raises.
    """
    total = 0
    for dirpath, _dirnames, filenames in os.walk(path, onerror=_log_walk_error):
        for filename in filenames:
            file_path = os.path.join(dirpath, filename)
            try:
                info = os.lstat(file_path)
            except OSError as exc:
                LOGGER.debug("Skipping unreadable entry %s: %s", file_path, exc)
                continue
            if stat.S_ISREG(info.st_mode):
                total += info.st_size
    return total


def file_kind(name: str) -> str:
    """Return the extension of ``name`` without its dot, or ``file``."""
    suffix = Path(name).suffix
    return suffix[1:] if len(suffix) > 1 else FILE_KIND


def _lossy(text: str) -> str:
    """Replace undecodable filename bytes (held as surrogates) with U+FFFD."""
    return os.fsencode(text).decode("utf-8", "replace")


def _make_entry(path: Path, info: os.stat_result) -> FileSystemEntry:
    name = _lossy(path.name or str(path))
    full_path = _lossy(str(path))
    if stat.S_ISDIR(info.st_mode):
        return FileSystemEntry(
            name=name, path=full_path, kind=DIRECTORY_KIND, size=directory_size(path)
        )
    return FileSystemEntry(name=name, path=full_path, kind=file_kind(name), size=info.st_size)


def _sorted_children(directory: Path) -> List[os.DirEntry]:
    try:
        with os.scandir(directory) as entries:
            return sorted(entries, key=lambda child: child.name)
    except OSError as exc:
        LOGGER.debug("Skipping unreadable directory %s: %s", directory, exc)
        return []


def iter_entries(root: Path | str) -> Iterator[FileSystemEntry]:
    """Yield ``root`` and everything below it, depth first, children sorted by name.

    Symlinks are reported as files and never followed. Entries that cannot be
    read are skipped.
    """
    root_path = Path(root)
    try:
        info = root_path.lstat()
    except OSError as exc:
        LOGGER.warning("Cannot read %s: %s", root_path, exc)
        return

    entry = _make_entry(root_path, info)
    yield entry
    if not entry.is_directory:
        return

    stack = [iter(_sorted_children(root_path))]
    while stack:
        child = next(stack[-1], None)
        if child is None:
            stack.pop()
            continue
        try:
            child_info = child.stat(follow_symlinks=False)
        except OSError as exc:
            LOGGER.debug("Skipping unreadable entry %s: %s", child.path, exc)
            continue
        child_path = Path(child.path)
        child_entry = _make_entry(child_path, child_info)
        yield child_entry
        if child_entry.is_directory:
            stack.append(iter(_sorted_children(child_path)))
