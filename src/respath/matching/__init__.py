"""
Ant-style path pattern matching (`?`, `*`, `**`, `{name}` / `{name:regex}`).

Usage::

    from respath.matching import PathMatcher

    matcher = PathMatcher()
    matcher.match("com/**/*.jsp", "com/a/b/test.jsp")  # True
    matcher.extract_variables("/users/{id}", "/users/42")  # {"id": "42"}
"""

from respath.matching.path_matcher import DEFAULT_PATH_SEPARATOR, PathMatcher, PatternComparator

__all__ = [
    "DEFAULT_PATH_SEPARATOR",
    "PathMatcher",
    "PatternComparator",
]
