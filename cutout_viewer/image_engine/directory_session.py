"""Directory-backed image session: ordered entries plus a current pointer.

The session is rebuilt from a directory scan when an image is opened, refreshed
after edits that may create files, and shrunk when the current file is deleted.
Physical deletion happens elsewhere (``cutout_viewer.ops.file_operations``);
this module only updates the in-memory sequence after the file is gone.
"""

from __future__ import annotations

import os
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path

from cutout_viewer.logger import get_logger
from cutout_viewer.path_utils import abs_path, abs_path_str, sort_key

from .formats import is_image_extension

_logger = get_logger("directory_session")


@dataclass(frozen=True)
class ImageEntry:
    path: str

    @property
    def name(self) -> str:
        return os.path.basename(self.path)

    @property
    def suffix(self) -> str:
        return Path(self.path).suffix.lower()

    def matches(self, path: str | Path) -> bool:
        return self.path == abs_path_str(path)


def is_image_path(path: str | Path) -> bool:
    """Recognized image extension and an existing regular file."""
    try:
        return is_image_extension(path) and abs_path(path).is_file()
    except OSError:
        return False


def list_images_in_directory(path: str | Path) -> list[ImageEntry]:
    """List recognized image files in ``path`` (or in the directory containing it).

    Sorted by case-insensitive path. A missing or unreadable directory yields an
    empty list.
    """
    p = abs_path(path)
    folder = p if p.is_dir() else p.parent
    try:
        children = list(folder.iterdir())
    except OSError as e:
        _logger.warning("list images failed for %s: %s", folder, e)
        return []

    entries = [ImageEntry(abs_path_str(c)) for c in children if is_image_extension(c) and c.is_file()]
    entries.sort(key=lambda e: sort_key(e.path))
    _logger.debug("scanned %s: %d images", folder, len(entries))
    return entries


class DirectorySession:
    """Ordered image entries with an optional current index.

    Invariant: when non-empty, ``0 <= current_index < len(self)``; when empty,
    ``current_index`` is None.
    """

    def __init__(self, entries: Iterable[ImageEntry] = (), current_index: int | None = None) -> None:
        self._entries: list[ImageEntry] = list(entries)
        if not self._entries:
            current_index = None
        elif current_index is not None and not 0 <= current_index < len(self._entries):
            raise ValueError(f"current_index {current_index} out of range for {len(self._entries)} entries")
        self._current_index = current_index

    @classmethod
    def open(cls, image_path: str | Path) -> DirectorySession:
        """Scan the directory containing ``image_path`` and make it current."""
        entries = list_images_in_directory(image_path)
        session = cls(entries)
        session.select(image_path)
        return session

    # ---- read access ----
    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[ImageEntry]:
        return iter(self._entries)

    @property
    def entries(self) -> list[ImageEntry]:
        return list(self._entries)

    @property
    def paths(self) -> list[str]:
        return [e.path for e in self._entries]

    @property
    def current_index(self) -> int | None:
        return self._current_index

    @property
    def current(self) -> ImageEntry | None:
        if self._current_index is None:
            return None
        return self._entries[self._current_index]

    @property
    def is_empty(self) -> bool:
        return not self._entries

    def index_of(self, path: str | Path) -> int | None:
        key = abs_path_str(path)
        for i, e in enumerate(self._entries):
            if e.path == key:
                return i
        return None

    # ---- mutations ----
    def select(self, path: str | Path) -> bool:
        """Make ``path`` current if present; otherwise clear the current entry."""
        idx = self.index_of(path)
        self._current_index = idx
        return idx is not None

    def navigate(self, direction: int) -> ImageEntry | None:
        """Move the current pointer by ``direction`` (+1/-1), wrapping circularly."""
        if self._current_index is None:
            return None
        if direction not in (1, -1):
            raise ValueError(f"direction must be +1 or -1, got {direction}")
        self._current_index = (self._current_index + direction) % len(self._entries)
        return self.current

    def delete(self, entry: ImageEntry | str | Path) -> ImageEntry | None:
        """Remove an entry whose file is already gone and reindex.

        The new current index is ``min(i, len - 1)`` where ``i`` was the removed
        entry's index; an emptied session has no current entry. Returns the new
        current entry.
        """
        path = entry.path if isinstance(entry, ImageEntry) else entry
        idx = self.index_of(path)
        if idx is None:
            raise ValueError(f"not in session: {path}")

        del self._entries[idx]
        if not self._entries:
            self._current_index = None
        else:
            self._current_index = min(idx, len(self._entries) - 1)
        _logger.debug("session delete: index=%d remaining=%d current=%s", idx, len(self._entries), self._current_index)
        return self.current

    def refresh(self, reference_path: str | Path | None = None) -> None:
        """Re-scan the directory of ``reference_path`` (default: the current entry).

        The previously current path stays current if it still exists in the new
        listing; otherwise there is no current entry. The scan completes before
        any state changes.
        """
        previous = self.current
        ref = reference_path if reference_path is not None else (previous.path if previous else None)
        if ref is None:
            return

        entries = list_images_in_directory(ref)
        self._entries = entries
        self._current_index = None
        if previous is not None:
            self.select(previous.path)
        _logger.debug("session refresh: %d entries, current=%s", len(entries), self._current_index)
