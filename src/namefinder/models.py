"""Core NameFinder data models."""

from __future__ import annotations

from dataclasses import dataclass

DIRECTORY_KIND = "Directory"
FILE_KIND = "file"


@dataclass(frozen=True, slots=True)
class FileSystemEntry:
    """One scanned filesystem object.

    ``kind`` is ``Directory`` for directories, otherwise the file extension
    without its dot, or ``file`` when there is none. Directory sizes are the
    recursive sum of the regular files below them.
    """

    name: str
    path: str
    kind: str
    size: int

    @property
    def is_directory(self) -> bool:
        return self.kind == DIRECTORY_KIND


@dataclass(frozen=True, slots=True)
class IndexedEntry:
    """Entry read back from the index, with its surrogate key."""

    id: int
    name: str
    path: str
    kind: str
    size: int


@dataclass(slots=True)
class SearchResult:
    """Ranked candidate produced by a semantic search."""

    id: int
    name: str
    path: str
    similarity: float
