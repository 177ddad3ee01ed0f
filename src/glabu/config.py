import configparser
import os
import tempfile
from pathlib import Path
from typing import Mapping, Optional

from .errors import ConfigurationError
from .logger import setup_logger

_logger = setup_logger()

DEFAULT_HOST = "https://gitlab.com"
OUTPUT_FORMATS = ("json", "yaml")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

ENV_TOKEN = "GITLAB_TOKEN"
ENV_HOST = "GITLAB_HOST"
ENV_GITHUB_TOKEN = "GITHUB_TOKEN"
ENV_CONFIG_DIR = "GLABU_CONFIG_DIR"


class Config:
    def __init__(self, config_dir: Optional[Path] = None, environ: Optional[Mapping[str, str]] = None) -> None:
        self.environ = os.environ if environ is None else environ

        if config_dir is None:
            env_dir = self.environ.get(ENV_CONFIG_DIR)
            config_dir = Path(env_dir) if env_dir else Path.home() / ".config" / "glabu"
        self.config_dir = Path(config_dir)
        self.config_path = self.config_dir / "glabu.conf"
        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConfigurationError(f"Cannot create config dir {self.config_dir}: {e}") from e

        # Default values
        self.host: str = DEFAULT_HOST
        self.download_path: Path = Path(".")
        self.fallback_dir: Path = Path(tempfile.gettempdir())
        self.output_format: str = "json"
        self.log_level: str = "INFO"

        # Network Defaults
        self.timeout_connect: int = 10
        self.timeout_read: int = 60
        self.verify_ssl: bool = True
        self.trust_env: bool = True
        self.proxy_url: Optional[str] = None
        self.ca_bundle: Optional[str] = None

        self.load()

    def load(self) -> None:
        parser = configparser.ConfigParser()
        if not self.config_path.is_file():
            _logger.warning(f"Config file {self.config_path} not found. Creating default config.")
            self._write_default_config()

        parser.read(self.config_path)

        # [general]
        self.host = parser.get("general", "host", fallback=self.host)
        self.download_path = Path(parser.get("general", "download_path", fallback=str(self.download_path)))
        self.fallback_dir = Path(parser.get("general", "fallback_dir", fallback=str(self.fallback_dir)))
        self.output_format = parser.get("general", "output_format", fallback=self.output_format).lower()
        self.log_level = parser.get("general", "log_level", fallback=self.log_level).upper()

        if self.output_format not in OUTPUT_FORMATS:
            raise ConfigurationError(
                f"Invalid output_format '{self.output_format}' in {self.config_path} "
                f"(expected one of: {', '.join(OUTPUT_FORMATS)})"
            )
        if self.log_level not in LOG_LEVELS:
            raise ConfigurationError(f"Invalid log_level '{self.log_level}' in {self.config_path}")

        # [network]
        if parser.has_section("network"):
            try:
                self.timeout_connect = parser.getint("network", "timeout_connect", fallback=10)
                self.timeout_read = parser.getint("network", "timeout_read", fallback=60)
                self.verify_ssl = parser.getboolean("network", "verify_ssl", fallback=True)
                self.trust_env = parser.getboolean("network", "trust_env", fallback=True)
            except ValueError as e:
                raise ConfigurationError(f"Invalid [network] value in {self.config_path}: {e}") from e

            # Handle empty strings mapping to None
            ca = parser.get("network", "ca_bundle", fallback=None)
            self.ca_bundle = ca if ca else None
            p_url = parser.get("network", "proxy_url", fallback=None)
            self.proxy_url = p_url if p_url else None

        # Environment wins over the file
        env_host = (self.environ.get(ENV_HOST) or "").strip()
        if env_host:
            self.host = env_host
        self.host = self.host.rstrip("/")

    def _write_default_config(self) -> None:
        parser = configparser.ConfigParser()
        parser["general"] = {
            "host": self.host,
            "download_path": str(self.download_path),
            "fallback_dir": str(self.fallback_dir),
            "output_format": self.output_format,
            "log_level": self.log_level,
        }
        parser["network"] = {
            "timeout_connect": str(self.timeout_connect),
            "timeout_read": str(self.timeout_read),
            "verify_ssl": str(self.verify_ssl).lower(),
            "trust_env": str(self.trust_env).lower(),
            "ca_bundle": self.ca_bundle or "",
            "proxy_url": self.proxy_url or "",
        }
        try:
            with self.config_path.open("w") as f:
                parser.write(f)
        except OSError as e:
            raise ConfigurationError(f"Cannot write default config {self.config_path}: {e}") from e
        _logger.info(f"Default config written to {self.config_path}")

    # -------------------------
    # Credentials (env only)
    # -------------------------
    @property
    def gitlab_token(self) -> str:
        token = (self.environ.get(ENV_TOKEN) or "").strip()
        if not token:
            raise ConfigurationError(f"missing {ENV_TOKEN} (set it to a GitLab personal access token)")
        return token

    @property
    def github_token(self) -> Optional[str]:
        token = (self.environ.get(ENV_GITHUB_TOKEN) or "").strip()
        return token or None
