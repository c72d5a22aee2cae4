"""
Layered search path ("classpath") of directory and zip archive roots, and the
resources looked up by name on it.
"""

from __future__ import annotations

import logging
import os
import sys
import zipfile
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, ClassVar

from respath.errors import ResourceNotFoundError
from respath.resources.archive import SharedArchives, entry_exists, open_archive
from respath.resources.base import BackingKind, Resource
from respath.resources.paths import (
    FOLDER_SEPARATOR,
    TOP_PATH,
    apply_relative_path,
    build_archive_url,
    clean_path,
    get_filename,
    path_to_url,
)
from respath.resources.url import UrlResource

log = logging.getLogger(__name__)


def _namespace_name(name: str) -> str | None:
    """
    Clean `name` for lookup below a root. `None` when it still climbs above the
    root with `..` after cleaning.
    """
    name = clean_path(name).lstrip(FOLDER_SEPARATOR)
    if name == TOP_PATH or name.startswith(TOP_PATH + FOLDER_SEPARATOR):
        log.debug("Ignoring search path name outside the roots: %s", name)
        return None
    return name


@dataclass(frozen=True)
class SearchPath:
    """
    Ordered roots sharing one logical namespace. Each root is a directory or a
    zip archive (`.zip`, `.jar`, `.whl`, `.egg`, ...). Roots that are missing
    or unreadable are skipped at lookup time, not at construction.

    Archive roots are opened for each lookup and closed again, unless the
    optional `shared_archives` registry holds a handle for them.
    """

    roots: tuple[Path, ...]
    shared_archives: SharedArchives | None = field(default=None, compare=False, repr=False)

    def __init__(
        self, roots: Iterable[str | Path], shared_archives: SharedArchives | None = None
    ) -> None:
        object.__setattr__(self, "roots", tuple(Path(root).absolute() for root in roots))
        object.__setattr__(self, "shared_archives", shared_archives)

    @classmethod
    def from_sys_path(cls, shared_archives: SharedArchives | None = None) -> SearchPath:
        """Search path over `sys.path`; an empty entry stands for the current directory."""
        return cls([entry or os.curdir for entry in sys.path], shared_archives)

    def find_urls(self, name: str) -> list[str]:
        """
        URLs of every root that holds `name`, in root order. An empty name
        yields the URL of every root itself. Names that climb above the roots
        with `..` are never found.
        """
        lookup = _namespace_name(name)
        if lookup is None:
            return []
        urls: list[str] = []
        for root in self.roots:
            url = self._find_in_root(root, lookup)
            if url is not None:
                urls.append(url)
        return urls

    def find_url(self, name: str) -> str | None:
        """URL from the first root that holds `name`, or `None`."""
        lookup = _namespace_name(name)
        if lookup is None:
            return None
        for root in self.roots:
            url = self._find_in_root(root, lookup)
            if url is not None:
                return url
        return None

    def _find_in_root(self, root: Path, name: str) -> str | None:
        try:
            if root.is_dir():
                candidate = root / name if name else root
                if not candidate.exists():
                    return None
                return path_to_url(candidate, directory=candidate.is_dir())
            if root.is_file() and zipfile.is_zipfile(root):
                with open_archive(root, self.shared_archives) as archive:
                    if entry_exists(archive, name):
                        return build_archive_url(root, name)
        except (OSError, zipfile.BadZipFile) as e:
            log.debug("Skipping unreadable search path root %s: %s", root, e)
        return None

    def __iter__(self) -> Iterator[Path]:
        return iter(self.roots)

    def __len__(self) -> int:
        return len(self.roots)


@dataclass(frozen=True)
class ClasspathResource(Resource):
    """
    A resource named relative to a `SearchPath`. The name is resolved lazily to
    the first matching root on every call, so a resource that appears later on
    the search path is picked up without recreating the handle.
    """

    path: str
    search_path: SearchPath

    backing_kind: ClassVar[BackingKind] = BackingKind.classpath

    def __post_init__(self) -> None:
        object.__setattr__(self, "path", clean_path(self.path).lstrip(FOLDER_SEPARATOR))

    def resolve_url(self) -> str | None:
        return self.search_path.find_url(self.path)

    def _url_resource(self) -> UrlResource:
        url = self.resolve_url()
        if url is None:
            raise ResourceNotFoundError(
                f"{self.description} cannot be resolved because it does not exist", self.path
            )
        return UrlResource(url)

    def exists(self) -> bool:
        return self.resolve_url() is not None

    def is_readable(self) -> bool:
        url = self.resolve_url()
        return url is not None and UrlResource(url).is_readable()

    def open(self) -> BinaryIO:
        return self._url_resource().open()

    def content_length(self) -> int:
        return self._url_resource().content_length()

    def last_modified(self) -> float:
        return self._url_resource().last_modified()

    def get_url(self) -> str:
        return self._url_resource().get_url()

    def get_file(self) -> Path:
        return self._url_resource().get_file()

    def create_relative(self, relative_path: str) -> ClasspathResource:
        return ClasspathResource(apply_relative_path(self.path, relative_path), self.search_path)

    @property
    def filename(self) -> str | None:
        return get_filename(self.path)

    @property
    def description(self) -> str:
        return f"classpath resource [{self.path}]"
