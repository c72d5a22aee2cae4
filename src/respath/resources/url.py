"""
Resources addressed by URL: `file:`, archive entries (`jar:`/`zip:`),
`http:`/`https:`, and anything else `urllib` can open.
"""

from __future__ import annotations

import logging
import urllib.error
import urllib.request
import zipfile
from dataclasses import dataclass, field
from datetime import datetime
from email.utils import parsedate_to_datetime
from pathlib import Path
from typing import BinaryIO, ClassVar
from urllib.parse import unquote, urljoin, urlsplit, uses_relative

import requests

from respath.errors import MalformedExpressionError, ResourceNotFoundError, UnreadableResourceError
from respath.resources.archive import entry_exists, find_entry, is_directory_entry
from respath.resources.base import BackingKind, Resource, translate_os_errors
from respath.resources.filesystem import FileSystemResource
from respath.resources.paths import (
    ARCHIVE_URL_SEPARATOR,
    FOLDER_SEPARATOR,
    apply_relative_path,
    archive_file_path,
    clean_path,
    get_filename,
    is_archive_url,
    is_file_url,
    is_url,
    split_archive_url,
    url_scheme,
    url_to_path,
)

log = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0

_HTTP_SCHEMES = frozenset({"http", "https"})
_ABSENT_STATUS_CODES = frozenset({404, 410})
_HEAD_NOT_ALLOWED_STATUS_CODES = frozenset({405, 501})


@dataclass(frozen=True)
class _HttpProbe:
    status_code: int
    headers: dict[str, str]

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


@dataclass(frozen=True)
class UrlResource(Resource):
    """
    A resource addressed by an absolute URL.

    Archive URLs have the form `jar:<archive-file-url>!/<entry>`; the entry part
    is stored cleaned. Every archive operation opens the archive afresh and
    closes it before returning. HTTP probes use a `HEAD` request (or a streamed
    `GET` closed right away where `HEAD` is not allowed) with `timeout` seconds.
    """

    url: str
    timeout: float = field(default=DEFAULT_TIMEOUT, compare=False)

    backing_kind: ClassVar[BackingKind] = BackingKind.url

    def __post_init__(self) -> None:
        url = self.url
        if not is_url(url):
            raise MalformedExpressionError(f"Not an absolute URL: {url!r}", url)
        if is_archive_url(url):
            parts = split_archive_url(url)
            if parts is None:
                raise MalformedExpressionError(
                    f"Archive URL has no {ARCHIVE_URL_SEPARATOR!r} separator: {url!r}", url
                )
            archive_url, entry = parts
            if not archive_url:
                raise MalformedExpressionError(f"Archive URL names no archive: {url!r}", url)
            entry = clean_path(entry).lstrip(FOLDER_SEPARATOR)
            url = f"{url_scheme(url)}:{archive_url}{ARCHIVE_URL_SEPARATOR}{entry}"
        elif self.scheme in _HTTP_SCHEMES and not urlsplit(url).netloc:
            raise MalformedExpressionError(f"HTTP URL has no host: {url!r}", url)
        object.__setattr__(self, "url", url)

    @property
    def scheme(self) -> str:
        return url_scheme(self.url)

    @property
    def archive_location(self) -> tuple[Path, str] | None:
        """`(archive file path, entry name)` for archive URLs, else `None`."""
        parts = split_archive_url(self.url) if is_archive_url(self.url) else None
        if parts is None:
            return None
        archive_url, entry = parts
        return archive_file_path(archive_url), entry

    def _file_resource(self) -> FileSystemResource:
        return FileSystemResource.from_url(self.url)

    def exists(self) -> bool:
        if is_file_url(self.url):
            return self._file_resource().exists()
        if is_archive_url(self.url):
            return self._archive_exists()
        if self.scheme in _HTTP_SCHEMES:
            try:
                return self._http_probe().ok
            except requests.RequestException as e:
                log.debug("HTTP probe failed for %s: %s", self.url, e)
                return False
        try:
            with urllib.request.urlopen(self.url, timeout=self.timeout):
                return True
        except (OSError, ValueError) as e:
            log.debug("Could not open %s: %s", self.url, e)
            return False

    def is_readable(self) -> bool:
        if is_file_url(self.url):
            return self._file_resource().is_readable()
        if is_archive_url(self.url):
            location = self.archive_location
            assert location is not None
            archive_path, entry = location
            if not entry or entry.endswith(FOLDER_SEPARATOR):
                return False
            try:
                with zipfile.ZipFile(archive_path) as archive:
                    return find_entry(archive, entry) is not None
            except (OSError, zipfile.BadZipFile):
                return False
        return self.exists()

    def open(self) -> BinaryIO:
        if is_file_url(self.url):
            return self._file_resource().open()
        if is_archive_url(self.url):
            return self._open_archive_entry()
        if self.scheme in _HTTP_SCHEMES:
            return self._open_http()
        return self._open_other()

    def content_length(self) -> int:
        if is_file_url(self.url):
            return self._file_resource().content_length()
        if is_archive_url(self.url):
            return self._archive_entry_info().file_size
        if self.scheme in _HTTP_SCHEMES:
            length = self._checked_http_probe().headers.get("Content-Length")
            if length is not None and length.isdigit():
                return int(length)
        return super().content_length()

    def last_modified(self) -> float:
        """
        Last-modified time in epoch seconds, or `0.0` when an HTTP server does
        not report one.
        """
        if is_file_url(self.url):
            return self._file_resource().last_modified()
        if is_archive_url(self.url):
            return datetime(*self._archive_entry_info().date_time).timestamp()
        if self.scheme in _HTTP_SCHEMES:
            header = self._checked_http_probe().headers.get("Last-Modified")
            if not header:
                return 0.0
            try:
                return parsedate_to_datetime(header).timestamp()
            except (TypeError, ValueError):
                return 0.0
        return super().last_modified()

    def get_url(self) -> str:
        return self.url

    def get_file(self) -> Path:
        if is_file_url(self.url):
            return url_to_path(self.url)
        return super().get_file()

    def create_relative(self, relative_path: str) -> UrlResource:
        relative_path = relative_path.lstrip(FOLDER_SEPARATOR)
        location = split_archive_url(self.url) if is_archive_url(self.url) else None
        if location is not None:
            archive_url, entry = location
            new_entry = clean_path(apply_relative_path(entry, relative_path))
            return UrlResource(
                f"{self.scheme}:{archive_url}{ARCHIVE_URL_SEPARATOR}{new_entry}",
                timeout=self.timeout,
            )
        if self.scheme in uses_relative:
            return UrlResource(urljoin(self.url, relative_path), timeout=self.timeout)
        return UrlResource(
            clean_path(apply_relative_path(self.url, relative_path)), timeout=self.timeout
        )

    @property
    def filename(self) -> str | None:
        location = self.archive_location
        if location is not None:
            return get_filename(location[1])
        return get_filename(unquote(urlsplit(self.url).path))

    @property
    def description(self) -> str:
        return f"URL [{self.url}]"

    def _archive_exists(self) -> bool:
        location = self.archive_location
        assert location is not None
        archive_path, entry = location
        try:
            with zipfile.ZipFile(archive_path) as archive:
                return entry_exists(archive, entry)
        except (OSError, zipfile.BadZipFile) as e:
            log.debug("Could not read archive %s: %s", archive_path, e)
            return False

    def _archive_entry_info(self) -> zipfile.ZipInfo:
        location = self.archive_location
        assert location is not None
        archive_path, entry = location
        with translate_os_errors(self.description):
            try:
                with zipfile.ZipFile(archive_path) as archive:
                    info = find_entry(archive, entry) if entry else None
                    directory = info is None and is_directory_entry(archive, entry)
            except zipfile.BadZipFile as e:
                raise UnreadableResourceError(
                    f"{self.description} is in an unreadable archive: {e}", self.url
                ) from e
        if info is not None:
            return info
        if directory:
            raise UnreadableResourceError(
                f"{self.description} is a directory without its own archive entry", self.url
            )
        raise ResourceNotFoundError(f"{self.description} does not exist", self.url)

    def _open_archive_entry(self) -> BinaryIO:
        location = self.archive_location
        assert location is not None
        archive_path, entry = location
        with translate_os_errors(self.description):
            try:
                # The entry stream keeps the underlying file open after the
                # archive itself is closed, until the stream is closed.
                with zipfile.ZipFile(archive_path) as archive:
                    info = find_entry(archive, entry) if entry else None
                    if info is None:
                        if is_directory_entry(archive, entry):
                            raise UnreadableResourceError(
                                f"{self.description} is a directory", self.url
                            )
                        raise ResourceNotFoundError(
                            f"{self.description} does not exist", self.url
                        )
                    if info.is_dir():
                        raise UnreadableResourceError(
                            f"{self.description} is a directory", self.url
                        )
                    return archive.open(info)  # type: ignore[return-value]
            except zipfile.BadZipFile as e:
                raise UnreadableResourceError(
                    f"{self.description} is in an unreadable archive: {e}", self.url
                ) from e

    def _http_probe(self) -> _HttpProbe:
        with requests.head(self.url, allow_redirects=True, timeout=self.timeout) as response:
            status_code = response.status_code
            headers = dict(response.headers)
        if status_code in _HEAD_NOT_ALLOWED_STATUS_CODES:
            with requests.get(self.url, stream=True, timeout=self.timeout) as response:
                status_code = response.status_code
                headers = dict(response.headers)
        return _HttpProbe(status_code, headers)

    def _check_status(self, status_code: int) -> None:
        if status_code in _ABSENT_STATUS_CODES:
            raise ResourceNotFoundError(
                f"{self.description} does not exist (HTTP {status_code})", self.url
            )
        if not 200 <= status_code < 300:
            raise UnreadableResourceError(
                f"{self.description} cannot be read (HTTP {status_code})", self.url
            )

    def _checked_http_probe(self) -> _HttpProbe:
        try:
            probe = self._http_probe()
        except requests.RequestException as e:
            message = f"{self.description} cannot be read: {e}"
            raise UnreadableResourceError(message, self.url) from e
        self._check_status(probe.status_code)
        return probe

    def _open_http(self) -> BinaryIO:
        try:
            response = requests.get(self.url, stream=True, timeout=self.timeout)
        except requests.RequestException as e:
            message = f"{self.description} cannot be read: {e}"
            raise UnreadableResourceError(message, self.url) from e
        try:
            self._check_status(response.status_code)
        except (ResourceNotFoundError, UnreadableResourceError):
            response.close()
            raise
        response.raw.decode_content = True
        return response.raw

    def _open_other(self) -> BinaryIO:
        try:
            return urllib.request.urlopen(self.url, timeout=self.timeout)
        except urllib.error.HTTPError as e:
            e.close()
            if e.code in _ABSENT_STATUS_CODES:
                raise ResourceNotFoundError(f"{self.description} does not exist", self.url) from e
            raise UnreadableResourceError(
                f"{self.description} cannot be read (HTTP {e.code})", self.url
            ) from e
        except FileNotFoundError as e:
            raise ResourceNotFoundError(f"{self.description} does not exist", self.url) from e
        except (OSError, ValueError) as e:
            message = f"{self.description} cannot be read: {e}"
            raise UnreadableResourceError(message, self.url) from e
