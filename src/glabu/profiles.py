"""Current user and group lookups."""

from __future__ import annotations

from .gateway import Gateway
from .logger import setup_logger
from .models import Group, User, encode_project_ref

_logger = setup_logger()


def me(gw: Gateway) -> User:
    user = User.from_dict(gw.get_json("/user"))
    _logger.debug("Authenticated as %s", user.username)
    return user


def group_by_name(gw: Gateway, group_name: str) -> Group:
    _logger.debug("group_by_name: %s", group_name)
    return Group.from_dict(gw.get_json(f"/groups/{encode_project_ref(group_name)}"))


def group_by_id(gw: Gateway, group_id: int) -> Group:
    return group_by_name(gw, str(group_id))
