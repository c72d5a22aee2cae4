"""
Ant-style path pattern matching.

Patterns are split on the path separator into segments:

- `?` matches exactly one character
- `*` matches zero or more characters within a segment
- `**` (a whole segment) matches zero or more segments
- `{name}` / `{name:regex}` capture a template variable

Examples with the default `/` separator:

- `com/t?st.jsp` matches `com/test.jsp` and `com/tast.jsp`
- `com/*.jsp` matches `com/test.jsp` but not `com/sub/test.jsp`
- `com/**/test.jsp` matches `com/test.jsp` and `com/a/b/test.jsp`
- `/users/{id}` matches `/users/42`, capturing `id=42`
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from functools import cmp_to_key, lru_cache
from typing import Any

DEFAULT_PATH_SEPARATOR = "/"

DOUBLE_WILDCARD = "**"

# `?`, `*`, or a `{...}` template token (which may itself contain `{n}` quantifiers).
_GLOB_PATTERN = re.compile(r"\?|\*|\{((?:\{[^/]+?\}|[^/{}]|\\[{}])+?)\}")

_DEFAULT_VARIABLE_PATTERN = "(.*)"


@dataclass(frozen=True)
class _CompiledSegment:
    """
    A pattern segment translated to an anchored regex. `regex` is `None` for
    segments without wildcard or template tokens, which match by equality.
    """

    text: str
    regex: re.Pattern[str] | None
    variable_names: tuple[str, ...]

    def match(self, segment: str, variables: dict[str, str] | None) -> bool:
        if self.regex is None:
            return segment == self.text
        m = self.regex.fullmatch(segment)
        if m is None:
            return False
        if variables is not None:
            for name, value in zip(self.variable_names, m.groups(), strict=True):
                variables[name] = value
        return True


@lru_cache(maxsize=1024)
def _compile_segment(segment: str) -> _CompiledSegment:
    """Translate one pattern segment. Cached; compiled segments are immutable."""
    parts: list[str] = []
    names: list[str] = []
    end = 0
    has_tokens = False
    for m in _GLOB_PATTERN.finditer(segment):
        has_tokens = True
        parts.append(re.escape(segment[end : m.start()]))
        token = m.group()
        if token == "?":
            parts.append(".")
        elif token == "*":
            parts.append(".*")
        else:
            colon = token.find(":")
            if colon == -1:
                parts.append(_DEFAULT_VARIABLE_PATTERN)
                names.append(m.group(1))
            else:
                parts.append(f"({token[colon + 1 : -1]})")
                names.append(token[1:colon])
        end = m.end()

    if not has_tokens:
        return _CompiledSegment(segment, None, ())

    parts.append(re.escape(segment[end:]))
    regex = re.compile("".join(parts))
    if regex.groups != len(names):
        raise ValueError(
            f"The number of capturing groups in the pattern segment {segment!r} does not "
            f"match the number of template variables it defines; use non-capturing "
            f"groups `(?:...)` inside variable patterns"
        )
    return _CompiledSegment(segment, regex, tuple(names))


@lru_cache(maxsize=16)
def _template_variable_pattern(path_separator: str) -> re.Pattern[str]:
    sep = re.escape(path_separator)
    return re.compile(rf"\{{(?:(?!{sep}).)+?\}}")


def _count_occurrences(text: str, sub: str) -> int:
    if not text or not sub:
        return 0
    return text.count(sub)


@dataclass(frozen=True)
class PatternComparator:
    """
    Orders patterns from most to least specific relative to one concrete `path`.

    An exact match for the path sorts first. Remaining patterns sort by fewer
    wildcards plus template variables, then longer length (each template
    variable counts as length 1), then fewer wildcards, then fewer template
    variables. `None` sorts last.
    """

    path: str
    path_separator: str = DEFAULT_PATH_SEPARATOR

    def __call__(self, pattern1: str | None, pattern2: str | None) -> int:
        if pattern1 is None and pattern2 is None:
            return 0
        if pattern1 is None:
            return 1
        if pattern2 is None:
            return -1

        pattern1_equals_path = pattern1 == self.path
        pattern2_equals_path = pattern2 == self.path
        if pattern1_equals_path and pattern2_equals_path:
            return 0
        if pattern1_equals_path:
            return -1
        if pattern2_equals_path:
            return 1

        wildcards1 = self._wildcard_count(pattern1)
        wildcards2 = self._wildcard_count(pattern2)
        brackets1 = _count_occurrences(pattern1, "{")
        brackets2 = _count_occurrences(pattern2, "{")

        total1 = wildcards1 + brackets1
        total2 = wildcards2 + brackets2
        if total1 != total2:
            return total1 - total2

        length1 = self._pattern_length(pattern1)
        length2 = self._pattern_length(pattern2)
        if length1 != length2:
            return length2 - length1

        if wildcards1 != wildcards2:
            return -1 if wildcards1 < wildcards2 else 1
        if brackets1 != brackets2:
            return -1 if brackets1 < brackets2 else 1
        return 0

    def key(self) -> Callable[[str | None], Any]:
        """Key function for `sorted()` / `list.sort()`."""
        return cmp_to_key(self)

    @staticmethod
    def _wildcard_count(pattern: str) -> int:
        if pattern.endswith(".*"):
            pattern = pattern[:-2]
        return _count_occurrences(pattern, "*")

    def _pattern_length(self, pattern: str) -> int:
        return len(_template_variable_pattern(self.path_separator).sub("#", pattern))


class PathMatcher:
    """
    Matches paths against Ant-style patterns.

    Instances are immutable and safe to share between threads.
    """

    def __init__(self, path_separator: str = DEFAULT_PATH_SEPARATOR) -> None:
        if not path_separator:
            raise ValueError("Path separator must not be empty")
        self._path_separator: str = path_separator

    @property
    def path_separator(self) -> str:
        return self._path_separator

    def is_pattern(self, path: str) -> bool:
        """Whether `path` contains wildcard syntax (`*` or `?`)."""
        return "*" in path or "?" in path

    def match(self, pattern: str, path: str) -> bool:
        """Full match of `path` against `pattern`."""
        return self._do_match(pattern, path, True, None)

    def match_start(self, pattern: str, path: str) -> bool:
        """
        Whether `pattern` can still match some path that starts with `path`.
        Used to decide whether a directory is worth descending into.
        """
        return self._do_match(pattern, path, False, None)

    def extract_variables(self, pattern: str, path: str) -> dict[str, str]:
        """
        Capture template variables: `("/users/{id}", "/users/42") -> {"id": "42"}`.

        Raises `ValueError` if `path` does not match `pattern`.
        """
        variables: dict[str, str] = {}
        if not self._do_match(pattern, path, True, variables):
            raise ValueError(f"Pattern {pattern!r} is not a match for {path!r}")
        return variables

    def extract_path_within_pattern(self, pattern: str, path: str) -> str:
        """
        Return the part of `path` mapped by the wildcard parts of `pattern`.

        - `/docs/cvs/commit.html` and `/docs/cvs/commit.html` -> ``
        - `/docs/*` and `/docs/cvs/commit` -> `cvs/commit`
        - `/docs/**/*.html` and `/docs/cvs/commit.html` -> `cvs/commit.html`
        - `*.html` and `/docs/cvs/commit.html` -> `/docs/cvs/commit.html`

        Assumes `match(pattern, path)` is true but does not check it.
        """
        sep = self._path_separator
        pattern_parts = self._tokenize(pattern)
        path_parts = self._tokenize(path)

        builder: list[str] = []
        puts = 0
        for i, pattern_part in enumerate(pattern_parts):
            if ("*" in pattern_part or "?" in pattern_part) and len(path_parts) > i:
                if puts > 0 or (i == 0 and not pattern.startswith(sep)):
                    builder.append(sep)
                builder.append(path_parts[i])
                puts += 1

        for i in range(len(pattern_parts), len(path_parts)):
            if puts > 0 or i > 0:
                builder.append(sep)
            builder.append(path_parts[i])

        return "".join(builder)

    def combine(self, pattern1: str | None, pattern2: str | None) -> str:
        """
        Combine two patterns into one.

        | pattern1 | pattern2 | result |
        | --- | --- | --- |
        | `/hotels` | `/bookings` | `/hotels/bookings` |
        | `/hotels/*` | `/bookings` | `/hotels/bookings` |
        | `/hotels/**` | `{hotel}` | `/hotels/**/{hotel}` |
        | `/*.html` | `/hotels` | `/hotels.html` |
        | `/*.html` | `/*.txt` | `ValueError` |
        """
        if not pattern1 and not pattern2:
            return ""
        if not pattern1:
            return pattern2 or ""
        if not pattern2:
            return pattern1

        sep = self._path_separator
        if "{" not in pattern1 and self.match(pattern1, pattern2):
            return pattern2
        if pattern1.endswith(sep + "*"):
            if pattern2.startswith(sep):
                # /hotels/* + /booking -> /hotels/booking
                return pattern1[:-1] + pattern2[len(sep) :]
            return pattern1[:-1] + pattern2
        if pattern1.endswith(sep + DOUBLE_WILDCARD):
            if pattern2.startswith(sep):
                return pattern1 + pattern2
            return pattern1 + sep + pattern2

        dot1 = pattern1.find(".")
        if dot1 == -1:
            if pattern1.endswith(sep) or pattern2.startswith(sep):
                return pattern1 + pattern2
            return pattern1 + sep + pattern2

        ext1 = pattern1[dot1:]
        dot2 = pattern2.find(".")
        file2 = pattern2 if dot2 == -1 else pattern2[:dot2]
        ext2 = "" if dot2 == -1 else pattern2[dot2:]
        ext1_all = ext1 in (".*", "")
        ext2_all = ext2 in (".*", "")
        if not ext1_all and not ext2_all:
            raise ValueError(f"Cannot combine patterns: {pattern1} vs {pattern2}")
        return file2 + (ext2 if ext1_all else ext1)

    def pattern_comparator(self, path: str) -> PatternComparator:
        """Comparator ranking patterns by specificity for the given full `path`."""
        return PatternComparator(path, self._path_separator)

    def sort_patterns(self, patterns: Iterable[str], path: str) -> list[str]:
        """Sort `patterns` most-specific first relative to `path`."""
        return sorted(patterns, key=self.pattern_comparator(path).key())

    def _tokenize(self, path: str) -> list[str]:
        return [token for token in path.split(self._path_separator) if token]

    def _match_segment(
        self, pattern_segment: str, segment: str, variables: dict[str, str] | None
    ) -> bool:
        return _compile_segment(pattern_segment).match(segment, variables)

    def _do_match(
        self,
        pattern: str,
        path: str,
        full_match: bool,
        variables: dict[str, str] | None,
    ) -> bool:
        sep = self._path_separator
        if path.startswith(sep) != pattern.startswith(sep):
            return False

        patt_dirs = self._tokenize(pattern)
        path_dirs = self._tokenize(path)

        patt_start = 0
        patt_end = len(patt_dirs) - 1
        path_start = 0
        path_end = len(path_dirs) - 1

        # Match all segments up to the first **
        while patt_start <= patt_end and path_start <= path_end:
            patt_dir = patt_dirs[patt_start]
            if patt_dir == DOUBLE_WILDCARD:
                break
            if not self._match_segment(patt_dir, path_dirs[path_start], variables):
                return False
            patt_start += 1
            path_start += 1

        if path_start > path_end:
            # Path is exhausted
            if patt_start > patt_end:
                if pattern.endswith(sep):
                    return path.endswith(sep)
                return not path.endswith(sep)
            if not full_match:
                return True
            if patt_start == patt_end and patt_dirs[patt_start] == "*" and path.endswith(sep):
                return True
            return self._only_double_wildcards(patt_dirs, patt_start, patt_end)
        elif patt_start > patt_end:
            # Path not exhausted, but pattern is
            return False
        elif not full_match and patt_dirs[patt_start] == DOUBLE_WILDCARD:
            # Path start definitely matches due to ** in the pattern
            return True

        # Match all segments back to the last **
        while patt_start <= patt_end and path_start <= path_end:
            patt_dir = patt_dirs[patt_end]
            if patt_dir == DOUBLE_WILDCARD:
                break
            if not self._match_segment(patt_dir, path_dirs[path_end], variables):
                return False
            patt_end -= 1
            path_end -= 1

        if path_start > path_end:
            return self._only_double_wildcards(patt_dirs, patt_start, patt_end)

        # Place each run of segments between two ** at its first fitting position
        while patt_start != patt_end and path_start <= path_end:
            next_double = -1
            for i in range(patt_start + 1, patt_end + 1):
                if patt_dirs[i] == DOUBLE_WILDCARD:
                    next_double = i
                    break
            if next_double == patt_start + 1:
                # **/** situation, so skip one
                patt_start += 1
                continue

            run_length = next_double - patt_start - 1
            remaining = path_end - path_start + 1
            found = -1
            for offset in range(remaining - run_length + 1):
                captured: dict[str, str] | None = {} if variables is not None else None
                if all(
                    self._match_segment(
                        patt_dirs[patt_start + j + 1], path_dirs[path_start + offset + j], captured
                    )
                    for j in range(run_length)
                ):
                    found = path_start + offset
                    if variables is not None and captured:
                        variables.update(captured)
                    break

            if found == -1:
                return False

            patt_start = next_double
            path_start = found + run_length

        return self._only_double_wildcards(patt_dirs, patt_start, patt_end)

    @staticmethod
    def _only_double_wildcards(patt_dirs: list[str], start: int, end: int) -> bool:
        return all(patt_dirs[i] == DOUBLE_WILDCARD for i in range(start, end + 1))
