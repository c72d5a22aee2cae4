"""
Glob-pattern resource discovery across filesystem trees, zip archives, and a
layered search path.

Usage::

    from respath.discovery import DiscoveryConfig, ResourcePatternResolver
    from respath.resources import DefaultResourceLoader, SearchPath

    loader = DefaultResourceLoader(SearchPath(["build/classes", "lib/app.jar"]))
    resolver = ResourcePatternResolver(loader, DiscoveryConfig(extend_exclude=["*.bak"]))
    for resource in resolver.resolve("classpath*:META-INF/**/*.toml"):
        print(resource.get_url())
"""

from respath.discovery.cache import BoundedCache
from respath.discovery.defaults import DEFAULT_CLASSIFICATION_CACHE_SIZE, METADATA_EXCLUDES
from respath.discovery.resolver import ResourcePatternResolver
from respath.discovery.types import DiscoveryConfig, DiscoveryResult, RootKind

__all__ = [
    "DEFAULT_CLASSIFICATION_CACHE_SIZE",
    "METADATA_EXCLUDES",
    "BoundedCache",
    "DiscoveryConfig",
    "DiscoveryResult",
    "ResourcePatternResolver",
    "RootKind",
]
