"""
Dataclasses mirroring the GitLab API payloads glabu works with.

Every model has a ``from_dict`` constructor that ignores unknown keys, so new
fields on the server side never break parsing.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Dict, List, Optional


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class PackageOrderBy(str, Enum):
    CREATED_AT = "created_at"
    NAME = "name"
    VERSION = "version"
    TYPE = "type"


class PackageType(str, Enum):
    GENERIC = "generic"
    CONAN = "conan"
    MAVEN = "maven"
    NPM = "npm"
    PYPI = "pypi"
    COMPOSER = "composer"
    NUGET = "nuget"
    HELM = "helm"
    TERRAFORM_MODULE = "terraform_module"
    GOLANG = "golang"


class PackageStatus(str, Enum):
    DEFAULT = "default"
    HIDDEN = "hidden"
    PROCESSING = "processing"
    ERROR = "error"
    PENDING_DESTRUCTION = "pending_destruction"


class ProjectVisibility(str, Enum):
    PUBLIC = "public"
    INTERNAL = "internal"
    PRIVATE = "private"


def encode_project_ref(ref: Any) -> str:
    """
    Turn a project ID or ``owner/name`` path into a URL path segment.

    Only ``/`` is escaped (as ``%2F``); numeric IDs pass through untouched.
    """
    return str(ref).strip().replace("/", "%2F")


def _known(cls, row: Dict[str, Any]) -> Dict[str, Any]:
    names = {f.name for f in fields(cls)}
    return {k: v for k, v in row.items() if k in names}


@dataclass
class Project:
    id: int
    name: str
    path: str = ""
    path_with_namespace: str = ""
    description: Optional[str] = None
    visibility: Optional[str] = None
    web_url: str = ""
    ssh_url_to_repo: str = ""
    http_url_to_repo: str = ""
    default_branch: Optional[str] = None
    created_at: Optional[str] = None

    @classmethod
    def from_dict(cls, row: Dict[str, Any]) -> "Project":
        return cls(**_known(cls, row))


@dataclass
class PackageInfo:
    id: int
    name: str
    version: str
    created_at: Optional[str] = None
    package_type: Optional[str] = None
    status: Optional[str] = None
    tags: List[Any] = field(default_factory=list)

    @classmethod
    def from_dict(cls, row: Dict[str, Any]) -> "PackageInfo":
        data = _known(cls, row)
        data["tags"] = list(data.get("tags") or [])
        return cls(**data)


@dataclass
class PackageFileInfo:
    id: int
    package_id: int
    file_name: str
    created_at: Optional[str] = None
    size: Optional[int] = None
    file_md5: Optional[str] = None
    file_sha1: Optional[str] = None
    file_sha256: Optional[str] = None
    # not present in the API response; stamped from the owning PackageInfo
    version: Optional[str] = None
    name: Optional[str] = None

    @classmethod
    def from_dict(cls, row: Dict[str, Any]) -> "PackageFileInfo":
        data = _known(cls, row)
        data.pop("version", None)
        data.pop("name", None)
        return cls(**data)


@dataclass
class ProjectSearchNode:
    full_path: str
    web_url: str
    ssh_url_to_repo: str
    description: Optional[str] = None

    @classmethod
    def from_dict(cls, node: Dict[str, Any]) -> "ProjectSearchNode":
        return cls(
            full_path=node.get("fullPath", ""),
            web_url=node.get("webUrl", ""),
            ssh_url_to_repo=node.get("sshUrlToRepo", ""),
            description=node.get("description"),
        )


@dataclass
class ProjectSearchResult:
    count: int
    nodes: List[ProjectSearchNode] = field(default_factory=list)

    @classmethod
    def from_dict(cls, projects: Dict[str, Any]) -> "ProjectSearchResult":
        nodes = [ProjectSearchNode.from_dict(n) for n in projects.get("nodes") or []]
        return cls(count=int(projects.get("count") or 0), nodes=nodes)


@dataclass
class User:
    id: int
    username: str
    name: str = ""
    web_url: str = ""

    @classmethod
    def from_dict(cls, row: Dict[str, Any]) -> "User":
        return cls(**_known(cls, row))


@dataclass
class Group:
    id: int
    name: str
    path: str = ""
    full_path: str = ""
    web_url: str = ""
    description: Optional[str] = None

    @classmethod
    def from_dict(cls, row: Dict[str, Any]) -> "Group":
        return cls(**_known(cls, row))


@dataclass
class Release:
    tag_name: str
    name: Optional[str] = None
    description: Optional[str] = None
    created_at: Optional[str] = None
    released_at: Optional[str] = None
    upcoming_release: bool = False
    assets: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, row: Dict[str, Any]) -> "Release":
        data = _known(cls, row)
        data["assets"] = dict(data.get("assets") or {})
        return cls(**data)
