"""
Shared fixtures: a Config rooted in tmp_path and a Gateway whose
requests.Session is replaced by an in-memory router.
"""

import json as jsonlib

import pytest

from glabu.config import Config
from glabu.gateway import Gateway

HOST = "https://gitlab.example.com"
API = f"{HOST}/api/v4"


class FakeResponse:
    def __init__(self, status_code=200, json=None, content=None, headers=None, reason=""):
        self.status_code = status_code
        if content is None:
            content = jsonlib.dumps(json).encode() if json is not None else b""
        elif isinstance(content, str):
            content = content.encode()
        self.content = content
        self.headers = headers or {"content-length": str(len(content))}
        self.reason = reason
        self.closed = False

    @property
    def text(self):
        return self.content.decode("utf-8", errors="replace")

    def json(self):
        return jsonlib.loads(self.text)

    def iter_content(self, chunk_size=1):
        for i in range(0, len(self.content), chunk_size):
            yield self.content[i : i + chunk_size]

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.closed = True


class FakeSession:
    """
    Routes ``(METHOD, url)`` to a FakeResponse or to a callable receiving the
    request kwargs. Every call is recorded in ``calls``.
    """

    def __init__(self):
        self.routes = {}
        self.calls = []

    def add(self, method, path, response):
        url = path if path.startswith("http") else f"{API}{path}"
        self.routes[(method, url)] = response

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        try:
            route = self.routes[(method, url)]
        except KeyError:
            raise AssertionError(f"unexpected request: {method} {url}")
        return route(kwargs) if callable(route) else route

    def urls(self, method=None):
        return [u for m, u, _ in self.calls if method is None or m == method]

    def close(self):
        pass


@pytest.fixture
def environ():
    return {"GITLAB_TOKEN": "glpat-test", "GITLAB_HOST": HOST}


@pytest.fixture
def config(tmp_path, environ):
    cfg = Config(config_dir=tmp_path / "conf", environ=environ)
    cfg.fallback_dir = tmp_path / "fallback"
    return cfg


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def gw(config, session):
    return Gateway(config, session=session)
