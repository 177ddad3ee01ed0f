from __future__ import annotations

from typing import Optional, Sequence


class GlabuError(Exception):
    """Base class for every error the CLI reports to the user."""


class ConfigurationError(GlabuError):
    pass


class ApiError(GlabuError):
    def __init__(self, message: str, status_code: Optional[int] = None, body: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class NotFound(ApiError):
    pass


class PackageNotFound(NotFound):
    pass


class UploadFailed(ApiError):
    pass


class DownloadFailed(ApiError):
    pass


class SubprocessFailed(GlabuError):
    def __init__(self, cmd: Sequence[str], returncode: int, stderr: str = "") -> None:
        self.cmd = list(cmd)
        self.returncode = returncode
        self.stderr = stderr
        detail = f": {stderr.strip()}" if stderr and stderr.strip() else ""
        super().__init__(f"Command '{' '.join(self.cmd)}' exited with status {returncode}{detail}")
