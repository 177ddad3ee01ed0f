"""
Generic package registry: listing, version resolution, file selection and transfer.

GitLab organizes packages like this (conceptually; the API is flatter)::

    project:
      packages:
        - name: pack1
          version: 1.55.0
          files:
            - pack1_1.55.0_Windows_x86_64_installer.exe
            - pack1_1.55.0_Linux_x86_64.tgz
        - name: pack1
          version: 1.54.0
          files:
            - ...

A download therefore goes: package name + version (or "latest") -> one
PackageInfo -> its PackageFileInfo list -> filter by name/regex -> fetch each
file from ``/packages/generic/{name}/{version}/{file_name}``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, fields
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, List, Optional, Pattern, Tuple, Union

from .errors import ConfigurationError, PackageNotFound, UploadFailed
from .gateway import Gateway
from .logger import setup_logger
from .models import (
    PackageFileInfo,
    PackageInfo,
    PackageOrderBy,
    PackageStatus,
    PackageType,
    SortDirection,
)

_logger = setup_logger()


# -------------------------
# Package query
# -------------------------
@dataclass(frozen=True)
class PackageQuery:
    """Filters for ``GET /projects/:id/packages``; unset fields are not sent."""

    order_by: Optional[PackageOrderBy] = None
    sort: Optional[SortDirection] = None
    package_type: Optional[PackageType] = None
    package_name: Optional[str] = None
    package_version: Optional[str] = None
    include_versionless: Optional[bool] = None
    status: Optional[PackageStatus] = None
    per_page: Optional[int] = None
    page: Optional[int] = None

    def to_params(self) -> List[Tuple[str, str]]:
        params: List[Tuple[str, str]] = []
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None:
                continue
            params.append((f.name, _param_value(value)))
        return params


def _param_value(value: Any) -> str:
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def list_packages(gw: Gateway, project_id: int, query: PackageQuery) -> List[PackageInfo]:
    rows = gw.get_json(f"/projects/{project_id}/packages", params=query.to_params())
    packages = [PackageInfo.from_dict(r) for r in rows]
    _logger.info("Found %d packages for project %s", len(packages), project_id)
    return packages


# -------------------------
# Version resolution
# -------------------------
@dataclass(frozen=True)
class VersionSelection:
    """Either an explicit version or "latest" (``version is None``)."""

    version: Optional[str] = None

    @classmethod
    def explicit(cls, version: str) -> "VersionSelection":
        if not version:
            raise ConfigurationError("package version must not be empty")
        return cls(version)

    @classmethod
    def latest(cls) -> "VersionSelection":
        return cls(None)

    @property
    def is_latest(self) -> bool:
        return self.version is None

    def __str__(self) -> str:
        return "latest" if self.is_latest else self.version


def resolve_package(gw: Gateway, project_id: int, package_name: str, selection: VersionSelection) -> PackageInfo:
    """
    Pick exactly one package record.

    "Latest" means most recently created as ordered by the server; the client
    never sorts locally.
    """
    if selection.is_latest:
        query = PackageQuery(
            package_name=package_name,
            order_by=PackageOrderBy.CREATED_AT,
            sort=SortDirection.DESC,
            per_page=1,
            page=1,
        )
    else:
        query = PackageQuery(package_name=package_name, package_version=selection.version)

    packages = list_packages(gw, project_id, query)
    if not packages:
        raise PackageNotFound(f"Package not found: {package_name} ({selection}) in project {project_id}")
    package = packages[0]
    _logger.debug("Resolved %s (%s) to package id %s version %s", package_name, selection, package.id, package.version)
    return package


# -------------------------
# Package files
# -------------------------
def list_package_files(gw: Gateway, project_id: int, package: PackageInfo) -> List[PackageFileInfo]:
    rows = gw.get_all(f"/projects/{project_id}/packages/{package.id}/package_files")
    files = []
    for row in rows:
        pf = PackageFileInfo.from_dict(row)
        pf.version = package.version
        pf.name = package.name
        files.append(pf)
    _logger.info(
        "Found %d package files for package %s from project %s", len(files), package.id, project_id
    )
    return files


@dataclass(frozen=True)
class FileSelector:
    """
    Exactly one of ``file_name`` (equality) or ``pattern`` (``re.search``).

    Patterns match anywhere in the file name; anchor them (``\\.tgz$``) when
    a full or suffix match is wanted.
    """

    file_name: Optional[str] = None
    pattern: Optional[Pattern[str]] = None

    def __post_init__(self) -> None:
        if (self.file_name is None) == (self.pattern is None):
            raise ConfigurationError("Exactly one of a package file name or a filename regex must be provided")

    @classmethod
    def exact(cls, file_name: str) -> "FileSelector":
        return cls(file_name=file_name)

    @classmethod
    def regex(cls, pattern: Union[str, Pattern[str]]) -> "FileSelector":
        if isinstance(pattern, str):
            try:
                pattern = re.compile(pattern)
            except re.error as e:
                raise ConfigurationError(f"Invalid filename regex {pattern!r}: {e}") from e
        return cls(pattern=pattern)

    @classmethod
    def from_args(cls, file_name: Optional[str], regex: Optional[str]) -> "FileSelector":
        if file_name is not None and regex is not None:
            raise ConfigurationError("Use either --package-file or --regex, not both")
        if regex is not None:
            return cls.regex(regex)
        if file_name is not None:
            return cls.exact(file_name)
        raise ConfigurationError("Either --package-file or --regex must be provided")

    def matches(self, file_name: str) -> bool:
        if self.pattern is not None:
            return self.pattern.search(file_name) is not None
        return file_name == self.file_name


def select_files(files: Iterable[PackageFileInfo], selector: FileSelector) -> List[PackageFileInfo]:
    return [f for f in files if selector.matches(f.file_name)]


def generic_file_path(project_id: int, package_name: str, version: str, file_name: str) -> str:
    return f"/projects/{project_id}/packages/generic/{package_name}/{version}/{file_name}"


# -------------------------
# Download
# -------------------------
def resolve_output_dir(output_dir: Optional[Union[str, Path]], fallback_dir: Union[str, Path]) -> Path:
    if output_dir is not None and Path(output_dir).is_dir():
        return Path(output_dir).resolve()
    if output_dir is None:
        _logger.warning("No output dir given, using %s", fallback_dir)
    else:
        _logger.warning("Output dir %s is not a directory, using %s as fallback", output_dir, fallback_dir)
    fallback = Path(fallback_dir)
    try:
        fallback.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ConfigurationError(f"Cannot create fallback dir {fallback}: {e}") from e
    return fallback.resolve()


def download_files(
    gw: Gateway,
    project_id: int,
    package_name: str,
    selection: VersionSelection,
    selector: FileSelector,
    output_dir: Optional[Union[str, Path]],
) -> List[str]:
    """
    Download every file of the selected package version accepted by ``selector``.

    Returns the absolute paths written, in listing order. No match is an empty
    success; the first failing file aborts the whole batch.
    """
    package = resolve_package(gw, project_id, package_name, selection)
    _logger.info("download package %s version: %s", package.name, package.version)

    files = select_files(list_package_files(gw, project_id, package), selector)
    if not files:
        _logger.info("No package files matched")
        return []

    target_dir = resolve_output_dir(output_dir, gw.config.fallback_dir)
    outputs: List[str] = []
    for pf in files:
        path = generic_file_path(project_id, pf.name, pf.version, pf.file_name)
        output_file = target_dir / pf.file_name
        _logger.info("Fetching: %s", pf.file_name)
        gw.download_to_file(path, output_file, expected_sha256=pf.file_sha256)
        outputs.append(str(output_file))
    return outputs


# -------------------------
# Upload
# -------------------------
def upload_file(
    gw: Gateway,
    project_id: int,
    package_name: str,
    version: str,
    file_name: str,
    local_path: Union[str, Path],
) -> Any:
    """
    PUT ``local_path`` into the generic registry; only 201 counts as success.

    Returns the server's reply (parsed JSON when possible).
    """
    try:
        body = Path(local_path).read_bytes()
    except OSError as e:
        raise UploadFailed(f"Cannot read {local_path}: {e}") from e
    path = generic_file_path(project_id, package_name, version, file_name)
    _logger.info("Uploading %s (%d bytes) as %s/%s/%s", local_path, len(body), package_name, version, file_name)

    resp = gw.put_bytes(path, body)
    content = resp.text
    if resp.status_code != 201:
        raise UploadFailed(
            f"Upload failed with status: {resp.status_code}, and message: {content}",
            status_code=resp.status_code,
            body=content,
        )
    try:
        return resp.json()
    except ValueError:
        return content
