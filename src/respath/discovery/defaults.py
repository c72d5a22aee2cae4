"""
Exclusion presets and defaults for discovery traversal.

Nothing is excluded unless asked for. Patterns use gitignore syntax and
directory patterns end with `/`.
"""

from __future__ import annotations

# Tool metadata directories, for callers that want them pruned
# (`DiscoveryConfig(extend_exclude=METADATA_EXCLUDES)` or `--exclude-metadata`).
METADATA_EXCLUDES: list[str] = [
    # Version control
    ".git/",
    ".hg/",
    ".svn/",
    ".bzr/",
    "_darcs/",
    # Python
    "__pycache__/",
]

DEFAULT_CLASSIFICATION_CACHE_SIZE = 256
