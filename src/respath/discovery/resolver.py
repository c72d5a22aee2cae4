"""
ResourcePatternResolver: main entry point for resource discovery.

Resolves a location expression, which may contain `?`, `*`, `**` and
`{name}` wildcards and may start with `classpath*:`, into a de-duplicated,
insertion-ordered `DiscoveryResult` of concrete resources. Roots are
traversed either as folders inside zip archives or as filesystem directories.
"""

from __future__ import annotations

import logging
import os
import zipfile
from pathlib import Path

import pathspec

from respath.discovery.cache import BoundedCache
from respath.discovery.excludes import compile_excludes, is_excluded
from respath.discovery.types import DiscoveryConfig, DiscoveryResult, RootKind
from respath.errors import BackingIOError, ResourceNotFoundError
from respath.matching import PathMatcher
from respath.resources import (
    DefaultResourceLoader,
    FileSystemResource,
    Resource,
    ResourceLoader,
    SharedArchives,
    UrlResource,
    open_archive,
)
from respath.resources.paths import (
    CLASSPATH_ALL_URL_PREFIX,
    FOLDER_SEPARATOR,
    build_archive_url,
    is_archive_url,
    is_file_url,
    url_to_path,
)

log = logging.getLogger(__name__)


class ResourcePatternResolver:
    """
    Finds every resource matching a location expression.

    - No wildcards: the expression names one resource, created by the loader
      (or, with `classpath*:`, every search path root that holds the name).
    - Wildcards: the literal root prefix is resolved first (recursively, so
      `classpath*:` roots fan out over the whole search path), then each root
      is traversed and entries are matched against the remaining sub-pattern.

    With a separator other than `/`, the expression uses it throughout. The
    literal root is loaded with `/` in its place, and filesystem paths and
    archive entry names are matched with `/` replaced by it.

    Failures scanning a single named root raise `BackingIOError`. Under
    `classpath*:` a failing root is logged and contributes nothing.
    """

    def __init__(
        self,
        loader: ResourceLoader | None = None,
        config: DiscoveryConfig | None = None,
        path_matcher: PathMatcher | None = None,
        classification_cache: BoundedCache[str, RootKind] | None = None,
        shared_archives: SharedArchives | None = None,
    ) -> None:
        self._config: DiscoveryConfig = config if config is not None else DiscoveryConfig()
        self._loader: ResourceLoader = (
            loader if loader is not None else DefaultResourceLoader()
        )
        self._path_matcher: PathMatcher = (
            path_matcher if path_matcher is not None else PathMatcher(self._config.separator)
        )
        self._classification_cache: BoundedCache[str, RootKind] = (
            classification_cache
            if classification_cache is not None
            else BoundedCache(self._config.classification_cache_size)
        )
        self._shared_archives = shared_archives
        self._exclude_spec: pathspec.PathSpec | None = compile_excludes(
            self._config.effective_exclude
        )

    @property
    def loader(self) -> ResourceLoader:
        return self._loader

    @property
    def path_matcher(self) -> PathMatcher:
        return self._path_matcher

    @property
    def classification_cache(self) -> BoundedCache[str, RootKind]:
        return self._classification_cache

    def get_resource(self, location: str) -> Resource:
        return self._loader.get_resource(location)

    def get_resources(self, location: str) -> list[Resource]:
        return self.resolve(location).resources

    def resolve(self, location: str) -> DiscoveryResult:
        """
        Resolve a location expression into every matching resource.

        Resolving the same expression twice against an unchanged backing store
        gives set-equal results.
        """
        if location.startswith(CLASSPATH_ALL_URL_PREFIX):
            name = location[len(CLASSPATH_ALL_URL_PREFIX) :]
            if self._path_matcher.is_pattern(name):
                return self._find_path_matching_resources(location, aggregate=True)
            return self.find_all_classpath_resources(name)

        # Scheme detection uses the first colon in the expression.
        prefix_end = location.find(":") + 1
        if self._path_matcher.is_pattern(location[prefix_end:]):
            return self._find_path_matching_resources(location, aggregate=False)
        return DiscoveryResult([self.get_resource(location)])

    def find_all_classpath_resources(self, name: str) -> DiscoveryResult:
        """Every search path root that holds `name`, as URL resources in root order."""
        name = name.lstrip(FOLDER_SEPARATOR)
        urls = self._loader.search_path.find_urls(name)
        log.debug("Resolved classpath name %r to %d root(s)", name, len(urls))
        return DiscoveryResult(UrlResource(url) for url in urls)

    def determine_root_dir(self, location: str) -> str:
        """
        The longest wildcard-free prefix of `location` that ends on a separator,
        including any scheme prefix. `location[len(root):]` is the sub-pattern.
        """
        separator = self._path_matcher.path_separator
        prefix_end = location.find(":") + 1
        root_dir_end = len(location)
        while root_dir_end > prefix_end and self._path_matcher.is_pattern(
            location[prefix_end:root_dir_end]
        ):
            # The separator ending the current root lies outside the search window.
            search_end = max(root_dir_end - 1, 0)
            separator_index = location.rfind(separator, 0, search_end)
            root_dir_end = separator_index + len(separator) if separator_index != -1 else 0
        if root_dir_end == 0:
            root_dir_end = prefix_end
        return location[:root_dir_end]

    def _find_path_matching_resources(self, location: str, aggregate: bool) -> DiscoveryResult:
        root_dir = self.determine_root_dir(location)
        sub_pattern = location[len(root_dir) :]
        roots = self.resolve(self._to_folder_separator(root_dir))

        found: dict[Resource, None] = {}
        for root in roots:
            try:
                kind = self._classify(root)
                log.debug(
                    "Scanning %s as %s root for %r", root.description, kind.value, sub_pattern
                )
                if kind is RootKind.archive:
                    matches = self._find_archive_matches(root, sub_pattern)
                else:
                    matches = self._find_filesystem_matches(root, sub_pattern)
            except (OSError, zipfile.BadZipFile) as e:
                if aggregate:
                    log.warning(
                        "Skipping %s while resolving %r: %s", root.description, location, e
                    )
                    continue
                raise BackingIOError(
                    f"Cannot scan {root.description} while resolving {location!r}: {e}",
                    root.description,
                    partial_results=list(found),
                ) from e
            found.update(dict.fromkeys(matches))

        log.debug("Resolved %r to %d resource(s)", location, len(found))
        return DiscoveryResult(found)

    def _classify(self, root: Resource) -> RootKind:
        if isinstance(root, UrlResource) and root.archive_location is not None:
            return RootKind.archive
        try:
            url = root.get_url()
        except ResourceNotFoundError:
            # Unresolvable roots are handled (as empty) by the filesystem traversal.
            return RootKind.filesystem
        return self._classification_cache.get_or_compute(url, lambda: self._classify_url(url))

    @staticmethod
    def _classify_url(url: str) -> RootKind:
        if is_archive_url(url):
            return RootKind.archive
        if is_file_url(url):
            path = url_to_path(url)
            if path.is_file() and zipfile.is_zipfile(path):
                return RootKind.archive
        return RootKind.filesystem

    def _archive_root(self, root: Resource) -> UrlResource:
        if isinstance(root, UrlResource) and root.archive_location is not None:
            return root
        url = root.get_url()
        if is_archive_url(url):
            return UrlResource(url)
        # A zip file named directly as the root.
        return UrlResource(build_archive_url(url_to_path(url)))

    def _find_archive_matches(self, root: Resource, sub_pattern: str) -> list[Resource]:
        """
        Match every archive entry below the root's entry prefix against the
        sub-pattern. The archive is opened for this traversal only, unless it
        is held by the shared archive registry.
        """
        archive_root = self._archive_root(root)
        location = archive_root.archive_location
        assert location is not None
        archive_path, root_entry = location
        if root_entry and not root_entry.endswith(FOLDER_SEPARATOR):
            root_entry += FOLDER_SEPARATOR

        matches: list[Resource] = []
        with open_archive(archive_path, self._shared_archives) as archive:
            for entry in archive.namelist():
                if not entry.startswith(root_entry):
                    continue
                relative = entry[len(root_entry) :]
                if is_excluded(self._exclude_spec, relative):
                    continue
                if self._path_matcher.match(sub_pattern, self._to_pattern_separator(relative)):
                    matches.append(archive_root.create_relative(relative))
        return matches

    def _root_directory(self, root: Resource) -> Path | None:
        try:
            root_dir = root.get_file().absolute()
        except ResourceNotFoundError as e:
            log.debug("Cannot resolve %s to a directory, skipping: %s", root.description, e)
            return None
        if not root_dir.exists():
            log.debug("Skipping %s: directory does not exist", root_dir)
            return None
        if not root_dir.is_dir():
            log.debug("Skipping %s: not a directory", root_dir)
            return None
        if not os.access(root_dir, os.R_OK):
            log.debug("Skipping %s: directory is not readable", root_dir)
            return None
        return root_dir

    def _find_filesystem_matches(self, root: Resource, sub_pattern: str) -> list[Resource]:
        """
        Walk the root directory depth-first, in name order, matching every entry
        against the root path joined with the sub-pattern. A subdirectory is only
        entered when its path (with a trailing separator) can still start a
        match. A missing, non-directory, or unreadable root yields no matches.
        """
        root_dir = self._root_directory(root)
        if root_dir is None:
            return []

        separator = self._path_matcher.path_separator
        root_path = self._pattern_path(root_dir)
        if not root_path.endswith(separator) and not sub_pattern.startswith(separator):
            root_path += separator
        full_pattern = root_path + sub_pattern

        matches: list[Resource] = []
        root_real = os.path.realpath(root_dir)
        stack: list[tuple[Path, frozenset[str]]] = [
            (child, frozenset([root_real])) for child in reversed(self._list_directory(root_dir))
        ]
        while stack:
            path, ancestors = stack.pop()
            relative = path.relative_to(root_dir).as_posix()
            path_str = self._pattern_path(path)
            directory = self._is_traversable_directory(path)

            if is_excluded(self._exclude_spec, relative + "/" if directory else relative):
                continue
            if self._path_matcher.match(full_pattern, path_str):
                matches.append(FileSystemResource(path.as_posix()))
            if not directory or not self._path_matcher.match_start(
                full_pattern, path_str + separator
            ):
                continue

            real = os.path.realpath(path)
            if real in ancestors:
                log.debug("Skipping %s: symlink cycle back to %s", path, real)
                continue
            children = self._list_directory(path)
            stack.extend((child, ancestors | {real}) for child in reversed(children))
        return matches

    def _is_traversable_directory(self, path: Path) -> bool:
        if not self._config.follow_symlinks and path.is_symlink():
            return False
        return path.is_dir()

    def _pattern_path(self, path: Path) -> str:
        return self._to_pattern_separator(path.as_posix())

    def _to_pattern_separator(self, path: str) -> str:
        separator = self._path_matcher.path_separator
        return path if separator == FOLDER_SEPARATOR else path.replace(FOLDER_SEPARATOR, separator)

    def _to_folder_separator(self, location: str) -> str:
        separator = self._path_matcher.path_separator
        if separator == FOLDER_SEPARATOR:
            return location
        return location.replace(separator, FOLDER_SEPARATOR)

    def _list_directory(self, directory: Path) -> list[Path]:
        """Entries of `directory` sorted by name. Unreadable directories have none."""
        try:
            return sorted(directory.iterdir(), key=lambda p: p.name)
        except OSError as e:
            log.debug("Could not list directory %s: %s", directory, e)
            return []
