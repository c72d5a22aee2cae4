"""
String-level path and URL helpers shared by the resource implementations.

All paths handled here use `/` as the folder separator. URLs are plain strings;
archive entries are addressed as `jar:<archive-file-url>!/<entry>`.
"""

from __future__ import annotations

import re
from pathlib import Path
from urllib.parse import unquote, urlsplit
from urllib.request import url2pathname

FOLDER_SEPARATOR = "/"
WINDOWS_FOLDER_SEPARATOR = "\\"
TOP_PATH = ".."
CURRENT_PATH = "."

CLASSPATH_URL_PREFIX = "classpath:"
CLASSPATH_ALL_URL_PREFIX = "classpath*:"
FILE_URL_PREFIX = "file:"
ARCHIVE_URL_SEPARATOR = "!/"

URL_PROTOCOL_FILE = "file"
URL_PROTOCOL_JAR = "jar"
URL_PROTOCOL_ZIP = "zip"
ARCHIVE_URL_PROTOCOLS = frozenset({URL_PROTOCOL_JAR, URL_PROTOCOL_ZIP})

# A scheme needs at least two characters so Windows drive letters (`C:/...`)
# are never mistaken for URLs.
_URL_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]+:")


def clean_path(path: str) -> str:
    """
    Normalize a path by collapsing `.` and `name/..` sequences.

    Backslashes become `/`. A `scheme:` prefix and a leading `/` are kept out of
    the normalization, so `file:core/../io/x` becomes `file:io/x`. Leading `..`
    elements that have nothing to cancel are retained.
    """
    path_to_use = path.replace(WINDOWS_FOLDER_SEPARATOR, FOLDER_SEPARATOR)

    prefix = ""
    prefix_index = path_to_use.find(":")
    if prefix_index != -1:
        prefix = path_to_use[: prefix_index + 1]
        path_to_use = path_to_use[prefix_index + 1 :]
    if path_to_use.startswith(FOLDER_SEPARATOR):
        prefix += FOLDER_SEPARATOR
        path_to_use = path_to_use[1:]

    elements: list[str] = []
    tops = 0
    for element in reversed(path_to_use.split(FOLDER_SEPARATOR) if path_to_use else []):
        if element == CURRENT_PATH:
            continue
        if element == TOP_PATH:
            tops += 1
        elif tops > 0:
            tops -= 1
        else:
            elements.insert(0, element)

    elements[:0] = [TOP_PATH] * tops
    return prefix + FOLDER_SEPARATOR.join(elements)


def apply_relative_path(path: str, relative_path: str) -> str:
    """
    Apply `relative_path` to the folder that contains `path`.

    `apply_relative_path("a/b/c.txt", "d.txt") == "a/b/d.txt"`, and a path that
    ends with `/` is treated as the folder itself.
    """
    separator_index = path.rfind(FOLDER_SEPARATOR)
    if separator_index == -1:
        return relative_path
    new_path = path[:separator_index]
    if not relative_path.startswith(FOLDER_SEPARATOR):
        new_path += FOLDER_SEPARATOR
    return new_path + relative_path


def get_filename(path: str) -> str | None:
    """Extract the last path element: `mypath/myfile.txt` -> `myfile.txt`."""
    if not path:
        return None
    return path[path.rfind(FOLDER_SEPARATOR) + 1 :]


def is_url(location: str) -> bool:
    """Check for absolute URL syntax (`scheme:...` with a scheme of two or more chars)."""
    return _URL_SCHEME_RE.match(location) is not None


def url_scheme(url: str) -> str:
    """Lower-cased scheme of a URL, or empty string."""
    colon = url.find(":")
    return url[:colon].lower() if colon > 0 else ""


def is_archive_url(url: str) -> bool:
    """Whether the URL addresses an entry inside a zip/jar archive."""
    return url_scheme(url) in ARCHIVE_URL_PROTOCOLS


def is_file_url(url: str) -> bool:
    return url_scheme(url) == URL_PROTOCOL_FILE


def path_to_url(path: str | Path, directory: bool = False) -> str:
    """Absolute `file:` URL for a filesystem path, with a trailing `/` for directories."""
    url = Path(path).absolute().as_uri()
    if directory and not url.endswith(FOLDER_SEPARATOR):
        url += FOLDER_SEPARATOR
    return url


def url_to_path(url: str) -> Path:
    """Convert a `file:` URL (`file:///abs` or `file:relative`) to a filesystem path."""
    parts = urlsplit(url)
    if parts.netloc and parts.netloc != "localhost":
        # UNC share: file://server/share/x
        return Path(url2pathname(f"//{parts.netloc}{parts.path}"))
    return Path(url2pathname(unquote(parts.path)) if parts.path else ".")


def build_archive_url(archive_path: str | Path, entry: str = "") -> str:
    """`jar:` URL for an entry inside the archive file at `archive_path`."""
    return f"{URL_PROTOCOL_JAR}:{path_to_url(archive_path)}{ARCHIVE_URL_SEPARATOR}{entry}"


def split_archive_url(url: str) -> tuple[str, str] | None:
    """
    Split `jar:<archive-url>!/<entry>` into `(archive_url, entry)`.

    Returns `None` when the URL lacks the `!/` separator.
    """
    scheme = url_scheme(url)
    rest = url[len(scheme) + 1 :]
    separator_index = rest.find(ARCHIVE_URL_SEPARATOR)
    if separator_index == -1:
        return None
    return rest[:separator_index], rest[separator_index + len(ARCHIVE_URL_SEPARATOR) :]


def archive_file_path(archive_url: str) -> Path:
    """
    Filesystem path of the archive named inside an archive URL.

    Accepts both `file:` URLs and bare paths (as in `jar:/opt/lib/app.zip!/`).
    """
    if is_file_url(archive_url):
        return url_to_path(archive_url)
    return Path(archive_url)
