"""
Command implementations.

Each function takes the Gateway first followed by the parsed CLI arguments,
and returns the payload printed under ``output``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional

from . import packages, projects, releases
from .errors import ConfigurationError
from .gateway import Gateway
from .models import PackageFileInfo, PackageInfo, Project, ProjectSearchResult, ProjectVisibility, Release


# -------------------------
# Project commands
# -------------------------
def project_create(
    gw: Gateway,
    project: str,
    group: Optional[str],
    description: str,
    visibility: str,
    mirror_to_github: bool,
) -> Project:
    vis = ProjectVisibility(visibility)
    if group:
        draft = projects.ProjectCreate.for_group(gw, project, group, description=description, visibility=vis)
    else:
        draft = projects.ProjectCreate(name=project, description=description, visibility=vis)
    return projects.create_project(gw, draft, mirror_to_github=mirror_to_github)


def project_delete(gw: Gateway, project: str) -> Any:
    return projects.delete_project(gw, project)


def project_search(gw: Gateway, term: str) -> ProjectSearchResult:
    return projects.search_projects(gw, term)


def project_fork_private(
    gw: Gateway,
    project_url: str,
    target_name: str,
    description: str,
    group: Optional[str],
    mirror_to_github: bool,
) -> Project:
    return projects.fork_private(
        gw,
        project_url,
        target_name,
        description=description,
        group=group,
        mirror_to_github=mirror_to_github,
    )


# -------------------------
# Package commands
# -------------------------
def _version_selection(package_version: Optional[str], latest: bool) -> packages.VersionSelection:
    if latest:
        return packages.VersionSelection.latest()
    if package_version:
        return packages.VersionSelection.explicit(package_version)
    raise ConfigurationError("Please provide either --package-version or --latest")


def package_download(
    gw: Gateway,
    project: str,
    package_name: str,
    package_version: Optional[str],
    latest: bool,
    package_file: Optional[str],
    regex: Optional[str],
    output_dir: Optional[str],
) -> List[str]:
    # Validate local input before any network call
    selection = _version_selection(package_version, latest)
    selector = packages.FileSelector.from_args(package_file, regex)
    target = output_dir if output_dir is not None else gw.config.download_path

    project_id = projects.resolve_project(gw, project)
    return packages.download_files(gw, project_id, package_name, selection, selector, target)


def package_upload(
    gw: Gateway,
    project: str,
    package_name: str,
    package_version: str,
    file_path: str,
    file_name: Optional[str],
) -> Dict[str, Any]:
    path = Path(file_path)
    if not path.is_file():
        raise ConfigurationError(f"File not found: {path}")
    file_name = file_name or path.name

    project_id = projects.resolve_project(gw, project)
    reply = packages.upload_file(gw, project_id, package_name, package_version, file_name, path)
    return {
        "url": gw.api_url(packages.generic_file_path(project_id, package_name, package_version, file_name)),
        "response": reply,
    }


def package_file_list(gw: Gateway, project: str, package_name: str, package_version: str) -> List[PackageFileInfo]:
    project_id = projects.resolve_project(gw, project)
    package = packages.resolve_package(
        gw, project_id, package_name, packages.VersionSelection.explicit(package_version)
    )
    return packages.list_package_files(gw, project_id, package)


def package_list(gw: Gateway, project: str, package_name: Optional[str], latest: bool) -> List[PackageInfo]:
    project_id = projects.resolve_project(gw, project)
    if latest:
        if not package_name:
            raise ConfigurationError("--latest requires --package-name")
        return [packages.resolve_package(gw, project_id, package_name, packages.VersionSelection.latest())]
    return packages.list_packages(gw, project_id, packages.PackageQuery(package_name=package_name))


# -------------------------
# Release commands
# -------------------------
def release_list(gw: Gateway, project: str) -> List[Release]:
    return releases.list_releases(gw, projects.resolve_project(gw, project))


def release_latest(gw: Gateway, project: str) -> Release:
    return releases.latest_release(gw, projects.resolve_project(gw, project))
