"""Gitignore-style exclusion patterns applied during traversal, using pathspec."""

from __future__ import annotations

from collections.abc import Iterable

import pathspec


def compile_excludes(patterns: Iterable[str]) -> pathspec.PathSpec | None:
    """
    Compile gitignore-style patterns, skipping blanks and `#` comments.
    Returns `None` when nothing is left to exclude.
    """
    lines = [line for line in patterns if line.strip() and not line.strip().startswith("#")]
    if not lines:
        return None
    return pathspec.PathSpec.from_lines("gitignore", lines)


def is_excluded(spec: pathspec.PathSpec | None, relative_path: str) -> bool:
    """
    Check a `/`-separated path, relative to the traversal root, against `spec`.
    Directories are passed with a trailing `/`. A path is also excluded when
    any of its parent directories is.
    """
    if spec is None or not relative_path:
        return False
    parts = relative_path.rstrip("/").split("/")
    for i in range(1, len(parts)):
        if spec.match_file("/".join(parts[:i]) + "/"):
            return True
    return spec.match_file(relative_path)
