"""
glabu - GitLab Utility, a command-line client for the GitLab API v4.

Creates, deletes, searches and privately forks projects, and manages
generic package registry artifacts (upload, filtered download, listing).

Modules:
- cli: Command-line interface entry point.
- operations: Command implementations.
- packages: Package query, version resolution, file selection and transfer.
- projects: Project lookup, creation, deletion, search and private forks.
- gateway: Authenticated REST/GraphQL access to the GitLab host.
- config: Configuration management.
"""

__version__ = "0.1.0"


def main(argv=None):
    from .cli import main as _main

    return _main(argv)


__all__ = ["main", "__version__"]
