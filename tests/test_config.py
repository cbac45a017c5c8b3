"""Tests for config loading from file and environment."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from uhost_mcp.config.models import EnvSettings, UCloudConfig, UCloudEnvSettings, load_config
from uhost_mcp.errors import ConfigError

_UCLOUD_VARS = (
    "UCLOUD_REGION",
    "UCLOUD_PROJECT_ID",
    "UCLOUD_PUBLIC_KEY",
    "UCLOUD_PRIVATE_KEY",
    "UCLOUD_BASE_URL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _UCLOUD_VARS:
        monkeypatch.delenv(name, raising=False)


def _write(tmp_path: Path, data) -> Path:
    path = tmp_path / "config.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def test_file_values_are_loaded(tmp_path):
    path = _write(
        tmp_path,
        {
            "region": "cn-bj2",
            "project_id": "org-1",
            "public_key": "pub",
            "private_key": "secret",
            "page_size": 50,
        },
    )
    cfg = UCloudConfig.load(path)
    assert (cfg.region, cfg.project_id, cfg.page_size) == ("cn-bj2", "org-1", 50)
    assert cfg.base_url == "https://api.ucloud.cn"
    assert cfg.max_pages == 1000


def test_blank_file_fields_fall_back_to_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("UCLOUD_PUBLIC_KEY", "env-pub")
    monkeypatch.setenv("UCLOUD_PRIVATE_KEY", "env-secret")
    monkeypatch.setenv("UCLOUD_REGION", "env-region")
    path = _write(tmp_path, {"region": "cn-sh2", "project_id": "org-1"})
    cfg = UCloudConfig.load(path)
    # File values win over the environment
    assert cfg.region == "cn-sh2"
    assert (cfg.public_key, cfg.private_key) == ("env-pub", "env-secret")


def test_missing_fields_reported_together(tmp_path):
    path = _write(tmp_path, {"region": "cn-bj2"})
    with pytest.raises(ConfigError) as exc_info:
        UCloudConfig.load(path)
    assert str(exc_info.value) == (
        "missing required fields: project_id, public_key, private_key"
    )


def test_private_key_not_in_repr():
    cfg = UCloudConfig(private_key="top-secret")
    assert "top-secret" not in repr(cfg)


def test_load_config_falls_back_to_environment(tmp_path, monkeypatch, caplog):
    monkeypatch.setenv("UCLOUD_REGION", "cn-gd")
    monkeypatch.setenv("UCLOUD_PROJECT_ID", "org-2")
    monkeypatch.setenv("UCLOUD_PUBLIC_KEY", "pub")
    monkeypatch.setenv("UCLOUD_PRIVATE_KEY", "secret")
    monkeypatch.setenv("UCLOUD_BASE_URL", "https://api.example.test")
    caplog.set_level("WARNING", logger="uhost_mcp.config.models")
    cfg = load_config(tmp_path / "absent.json")
    assert cfg.region == "cn-gd"
    assert cfg.base_url == "https://api.example.test"
    assert any(r.getMessage() == "config.file_unavailable" for r in caplog.records)


def test_load_config_invalid_json_falls_back(tmp_path, monkeypatch):
    path = tmp_path / "config.json"
    path.write_text("{not json", encoding="utf-8")
    monkeypatch.setenv("UCLOUD_REGION", "cn-bj2")
    with pytest.raises(ConfigError, match="project_id, public_key, private_key"):
        load_config(path)


def test_load_config_without_path_uses_explicit_env():
    env = UCloudEnvSettings(
        region="r", project_id="p", public_key="k", private_key="s"
    )
    cfg = load_config(None, env)
    assert cfg.missing_fields() == []


def test_out_of_range_page_size_rejected(tmp_path, monkeypatch):
    monkeypatch.setenv("UCLOUD_REGION", "cn-bj2")
    monkeypatch.setenv("UCLOUD_PROJECT_ID", "org-1")
    monkeypatch.setenv("UCLOUD_PUBLIC_KEY", "pub")
    monkeypatch.setenv("UCLOUD_PRIVATE_KEY", "secret")
    path = _write(tmp_path, {"page_size": 0})
    # Invalid file: the file is skipped and the environment alone is used
    cfg = load_config(path)
    assert cfg.page_size == 100


def test_env_settings_prefix(monkeypatch):
    monkeypatch.setenv("UHOST_MCP_LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("UHOST_MCP_HTTP_TOKEN", "t0k")
    settings = EnvSettings()
    assert settings.log_level == "DEBUG"
    assert settings.http_token == "t0k"
