"""Tests for discovery inside zip archives."""

from __future__ import annotations

import threading
import zipfile
from pathlib import Path

import pytest

from respath.discovery import (
    METADATA_EXCLUDES,
    BoundedCache,
    DiscoveryConfig,
    ResourcePatternResolver,
    RootKind,
)
from respath.resources import (
    DefaultResourceLoader,
    FileSystemResourceLoader,
    SearchPath,
    SharedArchives,
    UrlResource,
    open_archive,
)
from respath.resources.paths import build_archive_url


@pytest.fixture
def archive(tmp_path: Path) -> Path:
    path = tmp_path / "bundle.jar"
    with zipfile.ZipFile(path, "w") as zf:
        zf.writestr("lib/", b"")
        zf.writestr("lib/a.txt", b"a")
        zf.writestr("lib/sub/b.txt", b"b")
        zf.writestr("lib/sub/c.java", b"c")
        zf.writestr("lib/.git/config", b"")
        zf.writestr("other/d.txt", b"d")
    return path


def _resolver(**kwargs) -> ResourcePatternResolver:
    return ResourcePatternResolver(FileSystemResourceLoader(SearchPath([])), **kwargs)


def _entries(resources) -> list[str]:
    entries: list[str] = []
    for resource in resources:
        assert isinstance(resource, UrlResource)
        location = resource.archive_location
        assert location is not None
        entries.append(location[1])
    return entries


def test_double_star_inside_archive(archive: Path):
    location = build_archive_url(archive, "lib/") + "**/*.txt"
    result = _resolver().resolve(location)
    assert _entries(result) == ["lib/a.txt", "lib/sub/b.txt"]


def test_single_star_inside_archive(archive: Path):
    location = build_archive_url(archive, "lib/") + "*.txt"
    result = _resolver().resolve(location)
    assert _entries(result) == ["lib/a.txt"]


def test_pattern_spanning_root_entry(archive: Path):
    location = build_archive_url(archive) + "lib/**/*.txt"
    result = _resolver().resolve(location)
    assert _entries(result) == ["lib/a.txt", "lib/sub/b.txt"]


def test_archive_matches_are_readable(archive: Path):
    location = build_archive_url(archive, "lib/sub/") + "*"
    result = _resolver().resolve(location)
    contents: dict[str, bytes] = {}
    for resource in result:
        with resource.open() as stream:
            contents[resource.filename or ""] = stream.read()
    assert contents == {"b.txt": b"b", "c.java": b"c"}


def test_archive_metadata_entries_match_by_default(archive: Path):
    location = build_archive_url(archive, "lib/") + "**"
    entries = _entries(_resolver().resolve(location))
    assert "lib/.git/config" in entries
    assert "lib/sub/c.java" in entries


def test_archive_excludes(archive: Path):
    location = build_archive_url(archive, "lib/") + "**"
    resolver = _resolver(config=DiscoveryConfig(extend_exclude=METADATA_EXCLUDES))
    entries = _entries(resolver.resolve(location))
    assert "lib/.git/config" not in entries
    assert "lib/sub/c.java" in entries


def test_custom_separator_inside_archive(archive: Path):
    resolver = _resolver(config=DiscoveryConfig(separator="||"))
    location = build_archive_url(archive, "lib/").replace("/", "||") + "**||*.txt"
    assert _entries(resolver.resolve(location)) == ["lib/a.txt", "lib/sub/b.txt"]

    single = build_archive_url(archive, "lib/").replace("/", "||") + "*||*.txt"
    assert _entries(resolver.resolve(single)) == ["lib/sub/b.txt"]


def test_zip_file_named_as_filesystem_root(archive: Path):
    # A directory-style pattern rooted at the archive file itself.
    location = archive.as_posix() + "/lib/*.txt"
    resolver = _resolver()
    assert resolver.determine_root_dir(location) == archive.as_posix() + "/lib/"
    # The root is the folder inside the archive path, which is not a directory.
    assert len(resolver.resolve(location)) == 0

    direct = resolver.resolve(archive.parent.as_posix() + "/*.jar")
    assert [r.filename for r in direct] == ["bundle.jar"]


def test_search_path_archive_root(archive: Path):
    resolver = ResourcePatternResolver(DefaultResourceLoader(SearchPath([archive])))
    result = resolver.resolve("classpath*:lib/sub/*.txt")
    assert [r.get_url() for r in result] == [build_archive_url(archive, "lib/sub/b.txt")]


def test_classpath_root_with_zip_file(archive: Path, tmp_path: Path):
    # A plain file URL for a zip archive is traversed as an archive.
    resolver = _resolver()
    root = UrlResource(archive.as_uri())
    assert resolver._classify(root) is RootKind.archive  # pyright: ignore[reportPrivateUsage]
    matches = resolver._find_archive_matches(root, "lib/*.txt")  # pyright: ignore[reportPrivateUsage]
    assert [m.get_url() for m in matches] == [build_archive_url(archive, "lib/a.txt")]


def test_classification_is_memoised(archive: Path, tmp_path: Path):
    cache: BoundedCache[str, RootKind] = BoundedCache(8)
    resolver = _resolver(classification_cache=cache)
    folder = tmp_path / "folder"
    folder.mkdir()
    (folder / "x.txt").write_text("x")

    resolver.resolve(folder.as_posix() + "/*.txt")
    resolver.resolve(folder.as_posix() + "/*.txt")
    assert len(cache) == 1
    assert cache.get(folder.as_uri() + "/") is RootKind.filesystem


def test_shared_archives_are_not_closed_by_discovery(archive: Path):
    with SharedArchives() as shared:
        handle = shared.register(archive)
        resolver = _resolver(shared_archives=shared)
        location = build_archive_url(archive, "lib/") + "*.txt"
        assert _entries(resolver.resolve(location)) == ["lib/a.txt"]
        # Still open: reading through the shared handle works.
        assert handle.read("lib/a.txt") == b"a"
        assert len(shared) == 1
    assert len(shared) == 0


def test_open_archive_closes_fresh_handles(archive: Path):
    with open_archive(archive) as handle:
        assert "lib/a.txt" in handle.namelist()
    assert handle.fp is None


def test_open_archive_reuses_shared_handle(archive: Path):
    shared = SharedArchives()
    try:
        registered = shared.register(archive)
        assert shared.register(archive) is registered
        with open_archive(archive, shared) as handle:
            assert handle is registered
        assert registered.fp is not None
    finally:
        shared.close()
    assert registered.fp is None


def test_concurrent_discovery_on_same_archive(archive: Path):
    location = build_archive_url(archive, "lib/") + "**/*.txt"
    results: list[list[str]] = []
    errors: list[BaseException] = []

    with SharedArchives() as shared:
        shared.register(archive)
        resolver = _resolver(shared_archives=shared)

        def worker() -> None:
            try:
                for _ in range(20):
                    results.append(_entries(resolver.resolve(location)))
            except BaseException as e:  # noqa: BLE001
                errors.append(e)

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

    assert errors == []
    assert len(results) == 80
    assert all(entries == ["lib/a.txt", "lib/sub/b.txt"] for entries in results)
