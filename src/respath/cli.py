#!/usr/bin/env python3
"""
respath: Find resources matching Ant-style glob patterns across directories,
zip archives, and a layered search path

Common usage:
  respath 'src/**/*.py'
  respath --classpath lib/app.zip --classpath conf 'classpath*:META-INF/*.toml'
  respath 'jar:file:/opt/app.jar!/templates/**/*.html'
  respath --format path --existing 'docs/{section}/*.md'

Plain paths are filesystem paths unless `--bare-paths classpath` is given.
Settings can also come from `.respath.toml`, `respath.toml`, or
`pyproject.toml [tool.respath]`.
"""

from __future__ import annotations

import argparse
import importlib.metadata
import logging
import sys
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from respath.config import find_config_file, load_config, merge_cli_with_config
from respath.discovery import METADATA_EXCLUDES, DiscoveryConfig, ResourcePatternResolver
from respath.errors import MalformedExpressionError, ResourceError, ResourceNotFoundError
from respath.matching import DEFAULT_PATH_SEPARATOR
from respath.resources import (
    DefaultResourceLoader,
    FileSystemResourceLoader,
    Resource,
    ResourceLoader,
    SearchPath,
)

log = logging.getLogger(__name__)


class OutputFormat(str, Enum):
    """How each discovered resource is printed."""

    url = "url"
    description = "description"
    path = "path"


class BarePaths(str, Enum):
    """Which backing a location without a scheme resolves against."""

    filesystem = "filesystem"
    classpath = "classpath"


@dataclass
class Options:
    """Command-line options for the respath tool."""

    locations: list[str]
    classpath: list[str]
    bare_paths: str
    separator: str
    exclude: list[str] | None
    extend_exclude: list[str]
    exclude_metadata: bool
    follow_symlinks: bool
    classification_cache_size: int | None
    format: str
    existing: bool
    verbose: bool
    version: bool


def _parse_args(args: list[str] | None = None) -> tuple[Options, set[str]]:
    """
    Parse command-line arguments.

    Returns a tuple of (options, explicit_flags) where `explicit_flags` tracks
    which flags the user explicitly passed (for config merge precedence).
    """
    module_doc = __doc__ or ""
    doc_parts = module_doc.split("\n\n")
    description = doc_parts[0]
    epilog = "\n\n".join(doc_parts[1:])

    parser = argparse.ArgumentParser(
        prog="respath",
        description=description,
        epilog=epilog,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "locations",
        nargs="*",
        type=str,
        default=[],
        metavar="LOCATION",
        help="Location expressions, e.g. 'src/**/*.py' or 'classpath*:conf/*.toml'",
    )
    parser.add_argument(
        "--classpath",
        action="append",
        default=[],
        metavar="ROOT",
        help="Directory or zip archive to add to the search path. Can be repeated "
        "(default: sys.path)",
    )
    parser.add_argument(
        "--bare-paths",
        type=str,
        choices=[b.value for b in BarePaths],
        default=BarePaths.filesystem.value,
        dest="bare_paths",
        help="Resolve locations without a scheme against the filesystem or the search path "
        "(default: %(default)s)",
    )
    parser.add_argument(
        "--separator",
        type=str,
        default=DEFAULT_PATH_SEPARATOR,
        help="Path separator used in patterns (default: %(default)s)",
    )
    parser.add_argument(
        "--exclude",
        action="append",
        default=None,
        metavar="PATTERN",
        help="Exclusion pattern (gitignore syntax, e.g. 'build/'). Can be repeated",
    )
    parser.add_argument(
        "--extend-exclude",
        action="append",
        default=[],
        metavar="PATTERN",
        help="Exclusion pattern added after those from --exclude or the config file. "
        "Can be repeated",
    )
    parser.add_argument(
        "--no-follow-symlinks",
        action="store_true",
        dest="no_follow_symlinks",
        help="Do not descend into symlinked directories",
    )
    parser.add_argument(
        "--exclude-metadata",
        action="store_true",
        help="Also exclude VCS metadata and __pycache__ directories",
    )
    parser.add_argument(
        "--format",
        type=str,
        choices=[f.value for f in OutputFormat],
        default=OutputFormat.url.value,
        help="How to print each resource (default: %(default)s)",
    )
    parser.add_argument(
        "--existing",
        action="store_true",
        help="Only print resources that exist",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log discovery details to stderr",
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Show version information and exit",
    )
    opts = parser.parse_args(args)

    # A second parse with sentinel defaults tells which options were actually typed,
    # so a config file never overrides them.
    _SENTINEL = object()
    _tracked_flags: dict[str, str] = {
        # dest -> Options field
        "classpath": "classpath",
        "bare_paths": "bare_paths",
        "separator": "separator",
        "exclude": "exclude",
        "extend_exclude": "extend_exclude",
        "no_follow_symlinks": "follow_symlinks",
        "format": "format",
    }
    # Repeatable options stay None unless given at least once.
    sentinel_parser = argparse.ArgumentParser(add_help=False)
    sentinel_parser.add_argument("--classpath", action="append", default=None)
    sentinel_parser.add_argument("--bare-paths", dest="bare_paths", default=_SENTINEL)
    sentinel_parser.add_argument("--separator", default=_SENTINEL)
    sentinel_parser.add_argument("--exclude", action="append", default=None)
    sentinel_parser.add_argument("--extend-exclude", action="append", default=None)
    sentinel_parser.add_argument(
        "--no-follow-symlinks",
        dest="no_follow_symlinks",
        action="store_true",
        default=_SENTINEL,
    )
    sentinel_parser.add_argument("--format", default=_SENTINEL)
    sentinel_opts, _ = sentinel_parser.parse_known_args(args if args is not None else sys.argv[1:])

    explicit_flags: set[str] = set()
    for dest_name, field_name in _tracked_flags.items():
        val = getattr(sentinel_opts, dest_name, _SENTINEL)
        if dest_name in ("classpath", "exclude", "extend_exclude"):
            if val is not None:
                explicit_flags.add(field_name)
        elif val is not _SENTINEL:
            explicit_flags.add(field_name)

    return (
        Options(
            locations=opts.locations,
            classpath=opts.classpath,
            bare_paths=opts.bare_paths,
            separator=opts.separator,
            exclude=opts.exclude,
            extend_exclude=opts.extend_exclude,
            exclude_metadata=opts.exclude_metadata,
            follow_symlinks=not opts.no_follow_symlinks,
            classification_cache_size=None,
            format=opts.format,
            existing=opts.existing,
            verbose=opts.verbose,
            version=opts.version,
        ),
        explicit_flags,
    )


def _build_resolver(options: Options) -> ResourcePatternResolver:
    search_path = (
        SearchPath(options.classpath) if options.classpath else SearchPath.from_sys_path()
    )
    loader: ResourceLoader
    if BarePaths(options.bare_paths) is BarePaths.classpath:
        loader = DefaultResourceLoader(search_path)
    else:
        loader = FileSystemResourceLoader(search_path)

    config = DiscoveryConfig(
        separator=options.separator,
        exclude=options.exclude,
        extend_exclude=[
            *options.extend_exclude,
            *(METADATA_EXCLUDES if options.exclude_metadata else []),
        ],
        follow_symlinks=options.follow_symlinks,
    )
    if options.classification_cache_size is not None:
        config.classification_cache_size = options.classification_cache_size
    return ResourcePatternResolver(loader, config)


def _format_resource(resource: Resource, output_format: OutputFormat) -> str:
    if output_format is OutputFormat.description:
        return resource.description
    if output_format is OutputFormat.path:
        try:
            return str(resource.get_file())
        except ResourceNotFoundError:
            # Archive entries and remote resources have no local path.
            log.warning("No filesystem path for %s, printing its URL", resource.description)
    return resource.get_url()


def main(args: list[str] | None = None) -> int:
    """
    Main entry point for the respath CLI.

    Args:
        args: Command-line arguments (uses sys.argv if None)

    Returns:
        Exit code (0 for success, 1 for usage errors and malformed expressions,
        2 for other errors)
    """
    options, explicit_flags = _parse_args(args)

    if options.version:
        try:
            version = importlib.metadata.version("respath")
            print(f"v{version}")
        except importlib.metadata.PackageNotFoundError:
            print("unknown (package not installed)")
        return 0

    logging.basicConfig(
        level=logging.DEBUG if options.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    if not options.locations:
        print(
            "Error: No location specified. Provide one or more location expressions."
            " Use --help for more options.",
            file=sys.stderr,
        )
        return 1

    try:
        config_path = find_config_file(Path.cwd())
        if config_path:
            merge_cli_with_config(options, load_config(config_path), explicit_flags)

        output_format = OutputFormat(options.format)
        resolver = _build_resolver(options)
        for location in options.locations:
            for resource in resolver.resolve(location):
                if options.existing and not resource.exists():
                    continue
                print(_format_resource(resource, output_format))
    except (MalformedExpressionError, ValueError) as e:
        # Malformed expressions, invalid settings and unparseable config files.
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except (ResourceError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    return 0


if __name__ == "__main__":
    sys.exit(main())
