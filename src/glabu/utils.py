from __future__ import annotations

import dataclasses
import json
import re
import subprocess
import sys
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Sequence, Union

import yaml

from .errors import SubprocessFailed
from .logger import setup_logger

_logger = setup_logger()

_CRED_RE = re.compile(r"(://)[^/@\s]+@")


def redact(text: str) -> str:
    """Hide ``user:token@`` credentials embedded in URLs."""
    return _CRED_RE.sub(r"\1***@", text)


def run_command(args: Sequence[str], cwd: Optional[Union[str, Path]] = None) -> str:
    """Run an external tool, returning stdout. Non-zero exit raises SubprocessFailed."""
    shown = [redact(str(a)) for a in args]
    _logger.debug("Running: %s", " ".join(shown))
    try:
        proc = subprocess.run(
            [str(a) for a in args],
            cwd=str(cwd) if cwd is not None else None,
            capture_output=True,
            check=True,
            text=True,
        )
    except FileNotFoundError as e:
        raise SubprocessFailed(shown, 127, f"{args[0]}: command not found") from e
    except subprocess.CalledProcessError as e:
        raise SubprocessFailed(shown, e.returncode, redact(e.stderr or "")) from e
    return proc.stdout or ""


def to_plain(value: Any) -> Any:
    """Convert dataclasses/enums/paths into JSON- and YAML-safe builtins."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return to_plain(dataclasses.asdict(value))
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, dict):
        return {str(k): to_plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_plain(v) for v in value]
    return value


def print_output(output: Any, fmt: str = "json", status: str = "ok", stream=None) -> None:
    stream = stream or sys.stdout
    msg = {"status": status, "output": to_plain(output)}
    if fmt == "yaml":
        stream.write(yaml.safe_dump(msg, sort_keys=False, allow_unicode=True))
    else:
        stream.write(json.dumps(msg, indent=2, ensure_ascii=False) + "\n")
