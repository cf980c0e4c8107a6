"""Tests for ClientConfig loading."""

from __future__ import annotations

import pytest

from director_client import config as config_module
from director_client import ClientConfig


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("DIRECTOR_ENDPOINT", "DIRECTOR_SCOPE", "DIRECTOR_TASK_TIMEOUT", "DIRECTOR_AUTH_METHOD"):
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    config = ClientConfig()

    assert config.endpoint == "https://localhost/api"
    assert config.scope == "user"
    assert config.user_prefix == "https://localhost/api/"
    assert config.admin_prefix == "https://localhost/api/admin/"
    assert config.retry_status_codes == (502, 503, 504)


def test_environment(monkeypatch):
    monkeypatch.setenv("DIRECTOR_ENDPOINT", "https://vcd.example.com/api/")
    monkeypatch.setenv("DIRECTOR_SCOPE", "admin")
    monkeypatch.setenv("DIRECTOR_TASK_TIMEOUT", "45")

    config = ClientConfig()

    assert config.user_prefix == "https://vcd.example.com/api/"
    assert config.scope == "admin"
    assert config.task_timeout == 45.0


def test_custom_admin_segment():
    config = ClientConfig(endpoint="https://vcd.example.com/api", admin_segment="/tenant-admin/")
    assert config.admin_prefix == "https://vcd.example.com/api/tenant-admin/"


def test_from_dict():
    config = ClientConfig.from_dict({
        "endpoint": "https://vcd.example.com/api",
        "scope": "admin",
        "api_version": 36.0,
        "retry_status_codes": [503],
    })

    assert config.scope == "admin"
    assert config.api_version == "36.0"
    assert config.retry_status_codes == (503,)


def test_from_yaml(tmp_path):
    path = tmp_path / "client.yaml"
    path.write_text("endpoint: https://vcd.example.com/api\ntask_poll_interval: 2\n")

    config = ClientConfig.from_yaml(path)

    assert config.endpoint == "https://vcd.example.com/api"
    assert config.task_poll_interval == 2.0


def test_from_empty_yaml(tmp_path):
    path = tmp_path / "client.yaml"
    path.write_text("")

    assert ClientConfig.from_yaml(path).endpoint == "https://localhost/api"


def test_load_merges_files_last_wins(tmp_path, monkeypatch):
    user_file = tmp_path / "user.yaml"
    user_file.write_text("endpoint: https://user.example.com/api\ntimeout: 10\n")
    project_file = tmp_path / "project.yaml"
    project_file.write_text("endpoint: https://project.example.com/api\n")
    explicit = tmp_path / "explicit.yaml"
    explicit.write_text("scope: admin\n")
    monkeypatch.setattr(config_module, "CONFIG_SEARCH_PATHS", [user_file, project_file, tmp_path / "missing.yaml"])

    config = ClientConfig.load(explicit)

    assert config.endpoint == "https://project.example.com/api"
    assert config.timeout == 10.0
    assert config.scope == "admin"


def test_unknown_keys_ignored(caplog):
    with caplog.at_level("WARNING", logger="director_client.config"):
        config = ClientConfig.from_dict({"endpoint": "https://vcd.example.com/api", "colour": "blue"})

    assert config.endpoint == "https://vcd.example.com/api"
    assert "colour" in caplog.text


def test_yaml_must_be_a_mapping(tmp_path):
    path = tmp_path / "client.yaml"
    path.write_text("- just\n- a list\n")

    with pytest.raises(ValueError, match="must contain a mapping"):
        ClientConfig.from_yaml(path)
