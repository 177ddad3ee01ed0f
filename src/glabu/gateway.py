from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import requests
import urllib3
from requests.adapters import HTTPAdapter
from tqdm import tqdm

from .config import Config
from .errors import ApiError, DownloadFailed, NotFound
from .logger import setup_logger

_logger = setup_logger()

Params = Union[Dict[str, str], Sequence[Tuple[str, str]], None]


class Gateway:
    """
    Authenticated access to one GitLab instance.

    REST calls go to ``{host}/api/v4`` with a ``Private-Token`` header,
    GraphQL calls to ``{host}/api/graphql`` with a bearer token. Nothing is
    retried: the first failure surfaces to the caller.
    """

    CHUNK_SIZE = 64 * 1024
    PER_PAGE = 100

    def __init__(self, config: Config, session: Optional[requests.Session] = None) -> None:
        self.config = config
        self.host = config.host
        self.token = config.gitlab_token
        self.timeout = (config.timeout_connect, config.timeout_read)
        self.session = session if session is not None else self._init_session()

    def _init_session(self) -> requests.Session:
        session = requests.Session()
        session.trust_env = self.config.trust_env

        if self.config.proxy_url:
            session.proxies.update({
                "http": self.config.proxy_url,
                "https": self.config.proxy_url,
            })

        # Connection pooling only; no retry strategy.
        adapter = HTTPAdapter(pool_connections=4, pool_maxsize=4, max_retries=0)
        session.mount("http://", adapter)
        session.mount("https://", adapter)

        if not self.config.verify_ssl:
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)
            session.verify = False
            _logger.warning("SSL verification disabled (Insecure).")
        else:
            session.verify = self.config.ca_bundle if self.config.ca_bundle else True

        session.headers.update({"User-Agent": "glabu"})
        return session

    def close(self) -> None:
        if self.session:
            self.session.close()

    def __enter__(self) -> "Gateway":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # --------------------------------------------------------
    # URLs
    # --------------------------------------------------------

    def api_url(self, path: str) -> str:
        return f"{self.host}/api/v4{path}"

    def graphql_url(self) -> str:
        return f"{self.host}/api/graphql"

    # --------------------------------------------------------
    # REST
    # --------------------------------------------------------

    def request(
        self,
        method: str,
        path: str,
        params: Params = None,
        json: Any = None,
        data: Optional[bytes] = None,
        stream: bool = False,
    ) -> requests.Response:
        url = self.api_url(path)
        _logger.debug("%s %s", method, url)
        try:
            return self.session.request(
                method,
                url,
                params=params,
                json=json,
                data=data,
                headers={"Private-Token": self.token},
                stream=stream,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise ApiError(f"{method} {url} failed: {e}") from e

    @staticmethod
    def check(resp: requests.Response, what: str) -> requests.Response:
        """Raise NotFound on 404 and ApiError on any other non-2xx status."""
        status = resp.status_code
        if status == 404:
            raise NotFound(f"{what}: not found (404)", status_code=status, body=resp.text)
        if not 200 <= status < 300:
            raise ApiError(f"{what} failed with status {status}: {resp.text}", status_code=status, body=resp.text)
        return resp

    def get_json(self, path: str, params: Params = None) -> Any:
        resp = self.check(self.request("GET", path, params=params), f"GET {path}")
        return _decode_json(resp, path)

    def get_all(self, path: str, params: Optional[Dict[str, Any]] = None) -> List[Any]:
        """GET every page of a list endpoint, following ``X-Next-Page``."""
        query = dict(params or {})
        query.setdefault("per_page", self.PER_PAGE)
        rows: List[Any] = []
        page = str(query.get("page", 1))
        while page:
            resp = self.check(self.request("GET", path, params=dict(query, page=page)), f"GET {path}")
            rows.extend(_decode_json(resp, path))
            page = (resp.headers.get("X-Next-Page") or "").strip()
        return rows

    def post_json(self, path: str, payload: Dict[str, Any]) -> Any:
        resp = self.check(self.request("POST", path, json=payload), f"POST {path}")
        return _decode_json(resp, path)

    def delete(self, path: str) -> str:
        resp = self.check(self.request("DELETE", path), f"DELETE {path}")
        return resp.text

    def put_bytes(self, path: str, body: bytes) -> requests.Response:
        return self.request("PUT", path, data=body)

    # --------------------------------------------------------
    # GraphQL
    # --------------------------------------------------------

    def graphql(self, query: str, variables: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        url = self.graphql_url()
        payload: Dict[str, Any] = {"query": query}
        if variables:
            payload["variables"] = variables
        try:
            resp = self.session.request(
                "POST",
                url,
                json=payload,
                headers={"Authorization": f"Bearer {self.token}"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise ApiError(f"POST {url} failed: {e}") from e

        self.check(resp, "GraphQL query")
        body = _decode_json(resp, "/api/graphql")
        if body.get("errors"):
            messages = "; ".join(str(e.get("message", e)) for e in body["errors"])
            raise ApiError(f"GraphQL query failed: {messages}", status_code=resp.status_code, body=resp.text)
        return body.get("data") or {}

    # --------------------------------------------------------
    # Download
    # --------------------------------------------------------

    def download_to_file(self, path: str, output_path: Union[str, Path], expected_sha256: Optional[str] = None) -> Path:
        """
        Stream ``GET path`` into ``output_path``.

        Anything but 200 raises DownloadFailed carrying the response body, and
        the output file is not created. A transfer cut off mid-stream also
        raises DownloadFailed and may leave a partial file behind; a file
        failing its checksum is removed.
        """
        output_path = Path(output_path)
        with self.request("GET", path, stream=True) as resp:
            if resp.status_code != 200:
                body = resp.text
                raise DownloadFailed(
                    f"Download of {path} failed with status {resp.status_code}: {body or resp.reason}",
                    status_code=resp.status_code,
                    body=body,
                )

            total = int(resp.headers.get("content-length", 0) or 0)
            digest = hashlib.sha256()
            try:
                with open(output_path, "wb") as fh:
                    with tqdm(total=total, unit="B", unit_scale=True, desc=output_path.name, disable=None) as bar:
                        for chunk in resp.iter_content(chunk_size=self.CHUNK_SIZE):
                            if chunk:
                                fh.write(chunk)
                                digest.update(chunk)
                                bar.update(len(chunk))
            # RequestException subclasses OSError, so it must come first
            except requests.RequestException as e:
                raise DownloadFailed(f"Download of {path} interrupted: {e}") from e
            except OSError as e:
                raise DownloadFailed(f"Cannot write {output_path}: {e}") from e

        if expected_sha256 and digest.hexdigest() != expected_sha256.lower():
            output_path.unlink()
            raise DownloadFailed(
                f"Checksum mismatch for {output_path.name}: expected sha256 {expected_sha256}, got {digest.hexdigest()}"
            )
        _logger.debug("Downloaded %s -> %s", path, output_path)
        return output_path


def _decode_json(resp: requests.Response, path: str) -> Any:
    try:
        return resp.json()
    except ValueError as e:
        raise ApiError(f"Invalid JSON from {path}: {resp.text[:200]}", status_code=resp.status_code, body=resp.text) from e
