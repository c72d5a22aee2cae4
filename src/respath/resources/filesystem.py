"""Resources backed directly by the local filesystem."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, ClassVar

from respath.resources.base import BackingKind, Resource, translate_os_errors
from respath.resources.paths import (
    FOLDER_SEPARATOR,
    apply_relative_path,
    clean_path,
    get_filename,
    path_to_url,
    url_to_path,
)


@dataclass(frozen=True)
class FileSystemResource(Resource):
    """
    A file or directory on the local filesystem.

    `path` is stored cleaned and `/`-separated; a trailing `/` is kept, so a
    resource created for `lib/` resolves relative paths inside `lib`.
    """

    path: str

    backing_kind: ClassVar[BackingKind] = BackingKind.filesystem

    def __post_init__(self) -> None:
        object.__setattr__(self, "path", clean_path(os.fspath(self.path)))

    @classmethod
    def from_url(cls, url: str) -> FileSystemResource:
        """Resource for a `file:` URL, keeping a trailing `/`."""
        path = url_to_path(url).as_posix()
        if url.endswith(FOLDER_SEPARATOR) and not path.endswith(FOLDER_SEPARATOR):
            path += FOLDER_SEPARATOR
        return cls(path)

    @property
    def file_path(self) -> Path:
        return Path(self.path)

    def exists(self) -> bool:
        return os.path.exists(self.path)

    def is_readable(self) -> bool:
        return os.path.isfile(self.path) and os.access(self.path, os.R_OK)

    def open(self) -> BinaryIO:
        with translate_os_errors(self.description):
            return open(self.path, "rb")

    def content_length(self) -> int:
        with translate_os_errors(self.description):
            return os.stat(self.path).st_size

    def last_modified(self) -> float:
        with translate_os_errors(self.description):
            return os.stat(self.path).st_mtime

    def get_url(self) -> str:
        directory = self.path.endswith("/") or os.path.isdir(self.path)
        return path_to_url(self.path, directory=directory)

    def get_file(self) -> Path:
        return self.file_path

    def create_relative(self, relative_path: str) -> FileSystemResource:
        return FileSystemResource(apply_relative_path(self.path, relative_path))

    @property
    def filename(self) -> str | None:
        return get_filename(self.path)

    @property
    def description(self) -> str:
        return f"file [{self.file_path.absolute()}]"
