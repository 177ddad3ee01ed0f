from __future__ import annotations

import shutil
import tempfile
from dataclasses import asdict, dataclass, replace
from pathlib import Path
from typing import Any, Dict, Optional

from . import github
from .errors import NotFound
from .gateway import Gateway
from .logger import setup_logger
from .models import Project, ProjectSearchResult, ProjectVisibility, encode_project_ref
from .profiles import group_by_id, group_by_name, me
from .utils import run_command

_logger = setup_logger()

SEARCH_QUERY = """
query($search: String) {
    projects(membership: true, search: $search) {
        count
        nodes {
            fullPath
            description
            webUrl
            sshUrlToRepo
        }
    }
}
"""


# -------------------------
# Lookup
# -------------------------
def get_project(gw: Gateway, ref: Any) -> Project:
    """Fetch a project by numeric ID or ``namespace/name`` path."""
    path = f"/projects/{encode_project_ref(ref)}"
    try:
        data = gw.get_json(path)
    except NotFound as e:
        raise NotFound(f"Project not found: {ref}", status_code=404, body=e.body) from e
    return Project.from_dict(data)


def resolve_project(gw: Gateway, ref: Any) -> int:
    return get_project(gw, ref).id


# -------------------------
# Create
# -------------------------
@dataclass
class ProjectCreate:
    name: str
    namespace_id: Optional[int] = None
    description: str = ""
    visibility: ProjectVisibility = ProjectVisibility.PRIVATE
    initialize_with_readme: bool = False

    @classmethod
    def for_group(cls, gw: Gateway, name: str, group: str, **kwargs) -> "ProjectCreate":
        return cls(name=name, namespace_id=group_by_name(gw, group).id, **kwargs)

    def payload(self) -> Dict[str, Any]:
        data = asdict(self)
        data["visibility"] = ProjectVisibility(self.visibility).value
        if self.namespace_id is None:
            data.pop("namespace_id")
        return data


def create_project(gw: Gateway, draft: ProjectCreate, mirror_to_github: bool = False) -> Project:
    """
    Create ``draft`` under the group (or the current user's namespace).

    An existing project with the same full path is returned as-is.
    """
    if draft.namespace_id is not None:
        namespace = group_by_id(gw, draft.namespace_id).full_path
    else:
        namespace = me(gw).username
    _logger.info("namespace: %s", namespace)

    full_name = f"{namespace}/{draft.name}"
    try:
        project = get_project(gw, full_name)
        _logger.info("Project already exists: %s", full_name)
    except NotFound:
        _logger.info("Project does not exist, creating: %s", full_name)
        project = Project.from_dict(gw.post_json("/projects", draft.payload()))

    if mirror_to_github:
        gh_repo = github.repo_create(
            draft.name,
            draft.description,
            public=ProjectVisibility(draft.visibility) == ProjectVisibility.PUBLIC,
        )
        _logger.info("repo on gitlab: %s, repo on github: %s", project.path_with_namespace, gh_repo.full_name)
        remote_url = github.repo_link_with_cred(gh_repo, gw.config.github_token)
        create_push_mirror(gw, project.id, remote_url)
    return project


def create_push_mirror(gw: Gateway, project_id: int, remote_url: str) -> Dict[str, Any]:
    payload = {
        "url": remote_url,
        "enabled": True,
        "only_protected_branches": False,
        "keep_divergent_refs": False,
    }
    return gw.post_json(f"/projects/{project_id}/remote_mirrors", payload)


# -------------------------
# Delete / search
# -------------------------
def delete_project(gw: Gateway, ref: str) -> str:
    full_name = ref if "/" in ref or ref.isdigit() else f"{me(gw).username}/{ref}"
    content = gw.delete(f"/projects/{encode_project_ref(full_name)}")
    _logger.info("Deleted project %s", full_name)
    return content


def search_projects(gw: Gateway, term: str) -> ProjectSearchResult:
    data = gw.graphql(SEARCH_QUERY, {"search": term})
    return ProjectSearchResult.from_dict(data.get("projects") or {})


# -------------------------
# Private fork
# -------------------------
def fork_private(
    gw: Gateway,
    source_url: str,
    target_name: str,
    description: str = "",
    group: Optional[str] = None,
    mirror_to_github: bool = False,
) -> Project:
    """
    Re-home ``source_url`` as a new private project.

    The source is cloned bare into a scratch directory and pushed with
    ``--mirror``; optionally the same clone is pushed to a fresh GitHub repo.
    Any failing git/gh call aborts the fork. The scratch clone is always removed.
    """
    if group:
        draft = ProjectCreate.for_group(gw, target_name, group, description=description)
    else:
        draft = ProjectCreate(name=target_name, description=description)
    draft = replace(draft, visibility=ProjectVisibility.PRIVATE, initialize_with_readme=False)

    workdir = Path(tempfile.mkdtemp(prefix="glabu-fork-"))
    clone_path = workdir / target_name
    try:
        run_command(["git", "clone", "--bare", source_url, str(clone_path)])

        project = create_project(gw, draft)
        run_command(["git", "push", "--mirror", project.ssh_url_to_repo], cwd=clone_path)
        _logger.info("Pushed mirror of %s to %s", source_url, project.path_with_namespace)

        if mirror_to_github:
            gh_repo = github.repo_create(target_name, description, public=False)
            remote_url = github.repo_link_with_cred(gh_repo, gw.config.github_token)
            run_command(["git", "push", "--mirror", remote_url], cwd=clone_path)
            _logger.info("Pushed mirror of %s to github.com/%s", source_url, gh_repo.full_name)
        return project
    finally:
        shutil.rmtree(workdir, ignore_errors=True)
