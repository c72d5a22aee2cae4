"""
Turning a location string into a `Resource` handle.

Loaders never perform I/O and never return `None`: a handle for a missing
resource is still returned, and reports `exists() == False`.
"""

from __future__ import annotations

from typing import Protocol

from respath.errors import MalformedExpressionError
from respath.resources.base import Resource
from respath.resources.classpath import ClasspathResource, SearchPath
from respath.resources.filesystem import FileSystemResource
from respath.resources.paths import (
    CLASSPATH_ALL_URL_PREFIX,
    CLASSPATH_URL_PREFIX,
    FILE_URL_PREFIX,
    is_url,
)
from respath.resources.url import UrlResource


class ResourceLoader(Protocol):
    """Anything that can map a location string to a `Resource`."""

    @property
    def search_path(self) -> SearchPath: ...

    def get_resource(self, location: str) -> Resource: ...


class DefaultResourceLoader:
    """
    Resolves locations as follows:

    - `classpath:name` -> `ClasspathResource` on this loader's search path
    - `file:path` -> `FileSystemResource`
    - other absolute URLs (`jar:file:...!/x`, `https://...`) -> `UrlResource`
    - anything else -> `_get_resource_by_path()`, which by default is a
      `ClasspathResource`

    `search_path` defaults to one built from `sys.path`.
    """

    def __init__(self, search_path: SearchPath | None = None) -> None:
        self._search_path = search_path if search_path is not None else SearchPath.from_sys_path()

    @property
    def search_path(self) -> SearchPath:
        return self._search_path

    def get_resource(self, location: str) -> Resource:
        if location.startswith(CLASSPATH_ALL_URL_PREFIX):
            raise MalformedExpressionError(
                f"{CLASSPATH_ALL_URL_PREFIX!r} locations name many resources; "
                "resolve them with a ResourcePatternResolver",
                location,
            )
        if location.startswith(CLASSPATH_URL_PREFIX):
            return ClasspathResource(location[len(CLASSPATH_URL_PREFIX) :], self._search_path)
        if location.startswith(FILE_URL_PREFIX):
            return FileSystemResource.from_url(location)
        if is_url(location):
            return UrlResource(location)
        return self._get_resource_by_path(location)

    def _get_resource_by_path(self, path: str) -> Resource:
        return ClasspathResource(path, self._search_path)


class FileSystemResourceLoader(DefaultResourceLoader):
    """Like `DefaultResourceLoader`, but plain paths name filesystem resources."""

    def _get_resource_by_path(self, path: str) -> Resource:
        return FileSystemResource(path)

