"""
The read-only `Resource` contract shared by every backing kind.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager
from enum import Enum
from pathlib import Path
from typing import BinaryIO, ClassVar

from respath.errors import ResourceError, ResourceNotFoundError, UnreadableResourceError

_READ_CHUNK_SIZE = 64 * 1024


class BackingKind(str, Enum):
    """
    How a resource is addressed.

    - `filesystem`: a path on the local filesystem
    - `url`: a URL (`file:`, `jar:`/`zip:` archive entries, `http(s):`, ...)
    - `classpath`: a name looked up on a `SearchPath`
    """

    filesystem = "filesystem"
    url = "url"
    classpath = "classpath"


class Resource(ABC):
    """
    Immutable, read-only handle to a file, URL, or classpath entry.

    Probes (`exists()`, `is_readable()`, `content_length()`, `last_modified()`)
    hit the backing store on every call. `open()` returns a new binary stream
    each time; callers are responsible for closing it.
    """

    backing_kind: ClassVar[BackingKind]

    @abstractmethod
    def exists(self) -> bool: ...

    def is_readable(self) -> bool:
        return self.exists()

    @abstractmethod
    def open(self) -> BinaryIO:
        """
        Open a fresh binary stream. Raises `ResourceNotFoundError` if the resource
        is absent and `UnreadableResourceError` if it cannot be read.
        """

    @abstractmethod
    def get_url(self) -> str: ...

    def get_file(self) -> Path:
        raise ResourceNotFoundError(
            f"{self.description} cannot be resolved to a filesystem path", str(self)
        )

    def content_length(self) -> int:
        """Length in bytes. Reads the whole stream unless a subclass knows better."""
        total = 0
        with self.open() as stream:
            while chunk := stream.read(_READ_CHUNK_SIZE):
                total += len(chunk)
        return total

    def last_modified(self) -> float:
        """Last-modified time in seconds since the epoch."""
        path = self.get_file()
        with translate_os_errors(self.description):
            return path.stat().st_mtime

    @abstractmethod
    def create_relative(self, relative_path: str) -> Resource:
        """
        A new resource of the same backing kind, relative to this one's folder.
        Never modifies this resource.
        """

    @property
    def filename(self) -> str | None:
        return None

    @property
    @abstractmethod
    def description(self) -> str: ...

    def __str__(self) -> str:
        return self.description


@contextmanager
def translate_os_errors(description: str) -> Iterator[None]:
    """Map `OSError`s raised by filesystem calls to typed resource errors."""
    try:
        yield
    except ResourceError:
        raise
    except (FileNotFoundError, NotADirectoryError) as e:
        raise ResourceNotFoundError(f"{description} does not exist", description) from e
    except (PermissionError, IsADirectoryError) as e:
        raise UnreadableResourceError(
            f"{description} cannot be read: {e.strerror or e}", description
        ) from e
