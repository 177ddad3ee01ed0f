# cli.py
import argparse
import logging
import sys
from typing import List, Optional

import shtab

from . import __version__, operations
from .config import OUTPUT_FORMATS, Config
from .errors import GlabuError
from .gateway import Gateway
from .logger import setup_logger
from .models import ProjectVisibility
from .utils import print_output

_logger = setup_logger()

GLOBAL_KEYS = ("func", "command", "format", "verbose")
COMPLETION_SHELLS = ("bash", "zsh", "tcsh")


def _global_options(suppress: bool) -> argparse.ArgumentParser:
    """
    Options accepted both before and after the subcommand. The subcommand copy
    uses SUPPRESS defaults so it never clobbers values given up front.
    """
    default = argparse.SUPPRESS if suppress else None
    parent = argparse.ArgumentParser(add_help=False)
    parent.add_argument("--format", choices=OUTPUT_FORMATS, default=default, help="Output format (default: from config, json)")
    parent.add_argument(
        "--verbose", "-V", action="store_true", default=argparse.SUPPRESS if suppress else False, help="Debug logging"
    )
    return parent


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="glabu",
        description="GitLab Utility (glabu) - A command-line tool for interacting with GitLab api v4",
        parents=[_global_options(suppress=False)],
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    common = [_global_options(suppress=True)]

    subparsers = parser.add_subparsers(dest="command", required=True)

    # ------------------------
    # Project Commands
    # ------------------------

    p_create = subparsers.add_parser("project-create", parents=common, help="Create a new project")
    p_create.add_argument("project", help="Name of the project")
    p_create.add_argument("--group", "-g", help="Group of the project")
    p_create.add_argument("--description", "-d", default="", help="Description of the project")
    p_create.add_argument(
        "--visibility", "-v", choices=[v.value for v in ProjectVisibility], default=ProjectVisibility.PRIVATE.value
    )
    p_create.add_argument("--mirror-to-github", "-m", action="store_true")
    p_create.set_defaults(func=operations.project_create)

    p_fork = subparsers.add_parser("project-fork-private", parents=common, help="Create a private fork of a project")
    p_fork.add_argument("--project-url", "-u", required=True, help="Url of the project to fork")
    p_fork.add_argument("--target-name", "-n", required=True, help="Name of the forked project")
    p_fork.add_argument("--description", "-d", default="", help="Description of the forked project")
    p_fork.add_argument("--group", "-g", help="Group to create the fork in")
    p_fork.add_argument("--mirror-to-github", "-m", action="store_true")
    p_fork.set_defaults(func=operations.project_fork_private)

    p_delete = subparsers.add_parser("project-delete", parents=common, help="Delete a project")
    p_delete.add_argument("project", help="Full path to the project, for example: owner/project")
    p_delete.set_defaults(func=operations.project_delete)

    p_search = subparsers.add_parser("project-search", parents=common, help="Search for project")
    p_search.add_argument("term", help="Query term")
    p_search.set_defaults(func=operations.project_search)

    # ------------------------
    # Package Commands
    # ------------------------

    p_download = subparsers.add_parser("package-download", parents=common, help="Download package file(s)")
    p_download.add_argument("project", help="Full path to the project, for example: owner/project")
    p_download.add_argument("--package-name", "-n", required=True)
    p_download.add_argument("--package-version", "-v")
    p_download.add_argument("--latest", "-l", action="store_true", help="Use the most recently created version")
    p_download.add_argument("--package-file", "-f", help="Exact package file to download")
    p_download.add_argument("--regex", "-r", help="Filename regex to filter files (searched anywhere in the name)")
    p_download.add_argument("--output-dir", "-o", help="Output file directory (default: from config)")
    p_download.set_defaults(func=operations.package_download)

    p_upload = subparsers.add_parser("package-upload", parents=common, help="Upload a single package file")
    p_upload.add_argument("project", help="Full path to the project, for example: owner/project")
    p_upload.add_argument("--package-name", "-n", required=True)
    p_upload.add_argument("--package-version", "-v", required=True)
    p_upload.add_argument("--file-path", "-f", required=True, help="Local file to upload")
    p_upload.add_argument("--file-name", "-m", help="Name in the registry (default: basename of --file-path)")
    p_upload.set_defaults(func=operations.package_upload)

    p_files = subparsers.add_parser(
        "package-file-list", parents=common, help="List files of a given package (with a given version)"
    )
    p_files.add_argument("project", help="Full path to the project, for example: owner/project")
    p_files.add_argument("--package-name", "-n", required=True)
    p_files.add_argument("--package-version", "-v", required=True)
    p_files.set_defaults(func=operations.package_file_list)

    p_list = subparsers.add_parser("package-list", parents=common, help="List packages in the project's registry")
    p_list.add_argument("project", help="Full path to the project, for example: owner/project")
    p_list.add_argument("--package-name", "-n")
    p_list.add_argument("--latest", "-l", action="store_true", help="Show only the latest package")
    p_list.set_defaults(func=operations.package_list)

    # ------------------------
    # Release Commands
    # ------------------------

    p_releases = subparsers.add_parser("release-list", parents=common, help="List releases of a project")
    p_releases.add_argument("project")
    p_releases.set_defaults(func=operations.release_list)

    p_latest = subparsers.add_parser("release-latest", parents=common, help="Show the latest release of a project")
    p_latest.add_argument("project")
    p_latest.set_defaults(func=operations.release_latest)

    # ------------------------
    # Shell completions
    # ------------------------

    p_comp = subparsers.add_parser("completions", help="Print a shell completion script")
    p_comp.add_argument("shell", choices=COMPLETION_SHELLS)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "completions":
        print(shtab.complete(parser, shell=args.shell))
        return 0

    arg_dict = vars(args)
    func = arg_dict.get("func")
    fmt = arg_dict.get("format")
    verbose = arg_dict.get("verbose", False)
    for key in GLOBAL_KEYS:
        arg_dict.pop(key, None)

    try:
        config = Config()
        setup_logger(level=logging.DEBUG if verbose else config.log_level)
        with Gateway(config) as gw:
            result = func(gw, **arg_dict)
        print_output(result, fmt or config.output_format)
    except GlabuError as e:
        _logger.error("Error: %s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
