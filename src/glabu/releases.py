from __future__ import annotations

from typing import List

from .gateway import Gateway
from .models import Release


def list_releases(gw: Gateway, project_id: int) -> List[Release]:
    return [Release.from_dict(r) for r in gw.get_json(f"/projects/{project_id}/releases")]


def latest_release(gw: Gateway, project_id: int) -> Release:
    return Release.from_dict(gw.get_json(f"/projects/{project_id}/releases/permalink/latest"))
