"""Configuration and result types for resource discovery."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Set
from dataclasses import dataclass, field
from enum import Enum

from respath.discovery.defaults import DEFAULT_CLASSIFICATION_CACHE_SIZE
from respath.matching import DEFAULT_PATH_SEPARATOR
from respath.resources import Resource


class RootKind(str, Enum):
    """
    How a discovery root is traversed.

    - `archive`: the root denotes a folder inside a zip archive (or the archive itself)
    - `filesystem`: the root is a directory on the local filesystem
    """

    archive = "archive"
    filesystem = "filesystem"


@dataclass
class DiscoveryConfig:
    """
    Settings for a `ResourcePatternResolver`.

    Nothing is excluded by default. `exclude` and `extend_exclude` are
    concatenated, so a config file can set `exclude` while callers add to it.
    `classification_cache_size=0` disables memoising root classification.
    """

    separator: str = DEFAULT_PATH_SEPARATOR
    exclude: list[str] | None = None
    extend_exclude: list[str] = field(default_factory=list)
    follow_symlinks: bool = True
    classification_cache_size: int = DEFAULT_CLASSIFICATION_CACHE_SIZE

    def __post_init__(self) -> None:
        if not self.separator:
            raise ValueError("Path separator must not be empty")
        if self.classification_cache_size < 0:
            raise ValueError(
                f"classification_cache_size must be >= 0, got {self.classification_cache_size}"
            )

    @property
    def effective_exclude(self) -> list[str]:
        """Combined exclude patterns: `exclude` + `extend_exclude`."""
        return [*(self.exclude or []), *self.extend_exclude]


class DiscoveryResult(Set[Resource]):
    """
    De-duplicated, insertion-ordered collection of discovered resources.

    Resources are compared by backing identity, so the same file reached
    through two roots appears once, at the position it was first found.
    """

    def __init__(self, resources: Iterable[Resource] = ()) -> None:
        self._resources: dict[Resource, None] = dict.fromkeys(resources)

    @property
    def resources(self) -> list[Resource]:
        return list(self._resources)

    def __contains__(self, item: object) -> bool:
        return item in self._resources

    def __iter__(self) -> Iterator[Resource]:
        return iter(self._resources)

    def __len__(self) -> int:
        return len(self._resources)

    def __repr__(self) -> str:
        return f"DiscoveryResult({self.resources!r})"
