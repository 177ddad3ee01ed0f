import pytest

from glabu.config import DEFAULT_HOST, Config
from glabu.errors import ConfigurationError


def test_default_config_written(tmp_path):
    cfg = Config(config_dir=tmp_path, environ={})
    assert (tmp_path / "glabu.conf").exists()
    assert cfg.host == DEFAULT_HOST
    assert cfg.output_format == "json"
    assert cfg.verify_ssl is True
    assert cfg.proxy_url is None


def test_file_values_loaded(tmp_path):
    (tmp_path / "glabu.conf").write_text(
        "[general]\n"
        "host = https://git.internal/\n"
        "output_format = YAML\n"
        "fallback_dir = /var/tmp/glabu\n"
        "[network]\n"
        "timeout_read = 5\n"
        "verify_ssl = false\n"
        "proxy_url = http://proxy:3128\n"
        "ca_bundle =\n"
    )
    cfg = Config(config_dir=tmp_path, environ={})
    assert cfg.host == "https://git.internal"
    assert cfg.output_format == "yaml"
    assert str(cfg.fallback_dir) == "/var/tmp/glabu"
    assert cfg.timeout_read == 5
    assert cfg.verify_ssl is False
    assert cfg.proxy_url == "http://proxy:3128"
    assert cfg.ca_bundle is None


def test_env_host_overrides_file(tmp_path):
    (tmp_path / "glabu.conf").write_text("[general]\nhost = https://git.internal\n")
    cfg = Config(config_dir=tmp_path, environ={"GITLAB_HOST": "https://gitlab.example.com/"})
    assert cfg.host == "https://gitlab.example.com"


def test_config_dir_from_env(tmp_path):
    cfg = Config(environ={"GLABU_CONFIG_DIR": str(tmp_path / "x")})
    assert cfg.config_path == tmp_path / "x" / "glabu.conf"


def test_missing_token_is_configuration_error(tmp_path):
    cfg = Config(config_dir=tmp_path, environ={})
    with pytest.raises(ConfigurationError, match="GITLAB_TOKEN"):
        cfg.gitlab_token


def test_tokens_from_env(tmp_path):
    cfg = Config(config_dir=tmp_path, environ={"GITLAB_TOKEN": " glpat-1 ", "GITHUB_TOKEN": ""})
    assert cfg.gitlab_token == "glpat-1"
    assert cfg.github_token is None


@pytest.mark.parametrize(
    "body",
    [
        "[general]\noutput_format = xml\n",
        "[general]\nlog_level = chatty\n",
        "[network]\ntimeout_connect = soon\n",
    ],
)
def test_invalid_values_rejected(tmp_path, body):
    (tmp_path / "glabu.conf").write_text(body)
    with pytest.raises(ConfigurationError):
        Config(config_dir=tmp_path, environ={})


def test_uncreatable_config_dir(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("x")
    with pytest.raises(ConfigurationError, match="config dir"):
        Config(config_dir=blocker / "glabu", environ={})


def test_unwritable_default_config(tmp_path):
    (tmp_path / "glabu.conf").mkdir()
    with pytest.raises(ConfigurationError, match="default config"):
        Config(config_dir=tmp_path, environ={})
