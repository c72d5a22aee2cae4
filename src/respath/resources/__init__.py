"""
Read-only resource handles over the filesystem, URLs, zip archive entries, and a
layered search path, plus the loaders that create them from location strings.

Usage::

    from respath.resources import DefaultResourceLoader, SearchPath

    loader = DefaultResourceLoader(SearchPath(["lib/app.zip", "conf"]))
    resource = loader.get_resource("classpath:settings/app.toml")
    if resource.exists():
        with resource.open() as stream:
            data = stream.read()
"""

from respath.resources.archive import SharedArchives, open_archive
from respath.resources.base import BackingKind, Resource
from respath.resources.classpath import ClasspathResource, SearchPath
from respath.resources.filesystem import FileSystemResource
from respath.resources.loader import DefaultResourceLoader, FileSystemResourceLoader, ResourceLoader
from respath.resources.url import UrlResource

__all__ = [
    "BackingKind",
    "ClasspathResource",
    "DefaultResourceLoader",
    "FileSystemResource",
    "FileSystemResourceLoader",
    "Resource",
    "ResourceLoader",
    "SearchPath",
    "SharedArchives",
    "UrlResource",
    "open_archive",
]
