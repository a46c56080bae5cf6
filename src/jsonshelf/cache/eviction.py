"""Capacity enforcement for a namespace directory.

Eviction is approximate LRU *by write*: entries are ranked by file
modification time, which only changes when an entry is (re)written. Reads
never bump it, so an entry that is read constantly but never rewritten is
still the first to go once it is the oldest write.

Nothing is tracked between calls. Every ``put`` lists the directory afresh
via :func:`enforce_capacity`, so a brief overshoot caused by concurrent
writers is corrected by whichever ``put`` comes next.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EntryFile:
    """One entry file as seen by a directory listing."""

    path: Path
    key: str
    mtime_ns: int
    size: int

    @property
    def sort_key(self) -> tuple[int, str]:
        """Oldest first; equal mtimes fall back to the file name."""
        return (self.mtime_ns, self.path.name)


def is_entry_name(name: str, extension: str) -> bool:
    """Return True for ``<key><extension>`` names, excluding in-flight temp files."""
    return name.endswith(extension) and not name.startswith(".") and len(name) > len(extension)


def list_entries(directory: Path, extension: str) -> list[EntryFile]:
    """List the entry files in *directory*.

    Files removed by a concurrent writer between the listing and the
    ``stat`` call are skipped silently.

    Raises:
        OSError: If the directory itself cannot be listed.
    """
    entries: list[EntryFile] = []
    with os.scandir(directory) as it:
        for dirent in it:
            if not is_entry_name(dirent.name, extension):
                continue
            try:
                if not dirent.is_file(follow_symlinks=False):
                    continue
                st = dirent.stat(follow_symlinks=False)
            except FileNotFoundError:
                continue
            except OSError as exc:
                logger.warning("Could not stat cache file %s: %s", dirent.path, exc)
                continue
            entries.append(
                EntryFile(
                    path=Path(dirent.path),
                    key=dirent.name[: -len(extension)],
                    mtime_ns=st.st_mtime_ns,
                    size=st.st_size,
                )
            )
    return entries


def select_victims(
    entries: Iterable[EntryFile],
    max_entries: int,
    incoming: Optional[str] = None,
) -> list[EntryFile]:
    """Pick the entries to delete so one more entry fits under *max_entries*.

    Args:
        entries: Current entry files of the namespace.
        max_entries: Capacity of the namespace (at least 1).
        incoming: Key about to be written. Its existing file, if any, is
            going to be replaced rather than added, so it is neither
            counted nor chosen as a victim.

    Returns:
        The ``count - max_entries + 1`` oldest entries, oldest first, or
        an empty list if there is already room.
    """
    others = sorted(
        (e for e in entries if e.key != incoming),
        key=lambda e: e.sort_key,
    )
    excess = len(others) - max_entries + 1
    if excess <= 0:
        return []
    return others[:excess]


def delete_entries(victims: Iterable[EntryFile]) -> int:
    """Delete *victims*, logging and skipping failures. Returns the number removed."""
    removed = 0
    for victim in victims:
        try:
            victim.path.unlink()
        except FileNotFoundError:
            # Someone else got there first; the slot is free either way.
            removed += 1
        except OSError as exc:
            logger.warning("Could not delete old cache file %s: %s", victim.path, exc)
        else:
            removed += 1
            logger.debug("Evicted cache entry %s", victim.path.name)
    return removed


def enforce_capacity(
    directory: Path,
    max_entries: int,
    extension: str = ".json",
    incoming: Optional[str] = None,
) -> int:
    """Make room for one entry in *directory*.

    Returns:
        The number of entry files removed.

    Raises:
        OSError: If the directory cannot be listed.
    """
    victims = select_victims(list_entries(directory, extension), max_entries, incoming)
    if not victims:
        return 0
    return delete_entries(victims)
