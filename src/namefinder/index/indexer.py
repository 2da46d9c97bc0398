"""Filesystem indexing pipeline."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from namefinder.index.storage import SQLiteIndexStore
from namefinder.models import FileSystemEntry
from namefinder.utils.files import iter_entries

LOGGER = logging.getLogger(__name__)

EntryCallback = Callable[[FileSystemEntry], None]


@dataclass(slots=True)
class IndexStats:
    processed: int = 0
    inserted: int = 0
    skipped: int = 0

    def increment(self, inserted: bool) -> None:
        self.processed += 1
        if inserted:
            self.inserted += 1
        else:
            self.skipped += 1


class Indexer:
    """Walks a tree and records every entry in the store."""

    def __init__(self, store: SQLiteIndexStore) -> None:
        self.store = store

    def index(self, root: Path, on_entry: Optional[EntryCallback] = None) -> IndexStats:
        """Index ``root`` and everything below it in a single exclusive transaction.

        Paths already in the store are left untouched. If the store fails part
        way through, nothing from this run is kept. ``on_entry`` is called with
        each processed entry, for reporting only; its failures are logged and
        ignored.
        """
        stats = IndexStats()
        with self.store.transaction(exclusive=True):
            for entry in iter_entries(root):
                inserted = self.store.insert_entry(entry)
                stats.increment(inserted)
                if not inserted:
                    LOGGER.debug("Already indexed: %s", entry.path)
                if on_entry is not None:
                    try:
                        on_entry(entry)
                    except Exception as exc:
                        LOGGER.debug("Could not report %s: %s", entry.path, exc)

        if stats.processed == 0:
            LOGGER.warning("Nothing to index under %s", root)
        else:
            LOGGER.info(
                "Indexed %s: %d processed, %d new, %d already present",
                root,
                stats.processed,
                stats.inserted,
                stats.skipped,
            )
        return stats
