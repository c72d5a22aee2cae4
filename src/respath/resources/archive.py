"""
Zip archive access for archive-backed resources and archive traversal.

Archive handles are short-lived by default: `open_archive()` opens a fresh
`ZipFile` and closes it when the `with` block ends. A `SharedArchives`
registry can hold long-lived handles instead; those belong to the registry's
owner and are never closed by `open_archive()`.
"""

from __future__ import annotations

import threading
import zipfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path


def _key(path: str | Path) -> Path:
    return Path(path).absolute()


class SharedArchives:
    """
    Thread-safe registry of open archive handles shared across discovery calls.

    Handles are opened on `register()` and stay open until `close()`. Reading
    entries and listing names through a shared `ZipFile` does not move any
    cursor visible to other callers.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._handles: dict[Path, zipfile.ZipFile] = {}

    def register(self, path: str | Path) -> zipfile.ZipFile:
        """Open (once) and keep a handle for the archive at `path`."""
        key = _key(path)
        with self._lock:
            handle = self._handles.get(key)
            if handle is None:
                handle = zipfile.ZipFile(key)
                self._handles[key] = handle
            return handle

    def get(self, path: str | Path) -> zipfile.ZipFile | None:
        with self._lock:
            return self._handles.get(_key(path))

    def close(self) -> None:
        with self._lock:
            handles = list(self._handles.values())
            self._handles.clear()
        for handle in handles:
            handle.close()

    def __len__(self) -> int:
        with self._lock:
            return len(self._handles)

    def __enter__(self) -> SharedArchives:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


@contextmanager
def open_archive(
    path: str | Path, shared: SharedArchives | None = None
) -> Iterator[zipfile.ZipFile]:
    """
    Yield a `ZipFile` for `path`. A handle from `shared` is used as-is and left
    open; otherwise a fresh handle is opened and closed on exit.
    """
    handle = shared.get(path) if shared is not None else None
    if handle is not None:
        yield handle
        return
    with zipfile.ZipFile(path) as archive:
        yield archive


def find_entry(archive: zipfile.ZipFile, entry: str) -> zipfile.ZipInfo | None:
    """The `ZipInfo` for an exact entry name, or `None`."""
    try:
        return archive.getinfo(entry)
    except KeyError:
        return None


def is_directory_entry(archive: zipfile.ZipFile, entry: str) -> bool:
    """
    Whether `entry` names a folder inside the archive. Archives written without
    explicit folder entries still count a folder as present when any entry
    lives underneath it.
    """
    if not entry:
        return True
    folder = entry if entry.endswith("/") else entry + "/"
    if find_entry(archive, folder) is not None:
        return True
    return any(name.startswith(folder) for name in archive.namelist())


def entry_exists(archive: zipfile.ZipFile, entry: str) -> bool:
    if entry and not entry.endswith("/") and find_entry(archive, entry) is not None:
        return True
    return is_directory_entry(archive, entry)
