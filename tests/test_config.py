"""Tests for configuration loading."""

from pathlib import Path

import pytest
import yaml

from notif_sync.auth import Role, Session
from notif_sync.config import ClientConfig, load_config


def test_load_config_from_yaml(tmp_path):
    config_data = {
        "backend": {"url": "https://notify.example.com/notifications"},
        "session": {"user_id": 5, "role": "DOCTOR"},
        "defaults": {"chat_id": 12},
    }
    path = tmp_path / "config.yaml"
    path.write_text(yaml.dump(config_data))

    cfg = load_config(path)
    assert cfg.backend.url == "https://notify.example.com/notifications"
    assert cfg.session.role is Role.DOCTOR
    assert cfg.defaults.chat_id == 12
    assert cfg.defaults.chat_type == "PRIVATE"


def test_load_config_defaults():
    cfg = ClientConfig()
    assert cfg.backend.url == "http://localhost:8080/notifications"
    assert cfg.backend.ws_url == "ws://localhost:8080/ws/websocket"
    assert cfg.defaults.consent_request_id == 888
    assert cfg.session.to_session() == Session(user_id=1, role=Role.PATIENT)


def test_load_empty_file(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")
    assert load_config(path) == ClientConfig()


def test_load_config_file_not_found():
    with pytest.raises(FileNotFoundError):
        load_config("/nonexistent/path.yaml")


def test_session_env_override(monkeypatch):
    monkeypatch.setenv("NOTIF_SYNC_USER_ID", "9")
    monkeypatch.setenv("NOTIF_SYNC_ROLE", "DOCTOR")
    assert ClientConfig().session.to_session() == Session(user_id=9, role=Role.DOCTOR)


def test_example_config_is_valid():
    path = Path(__file__).parent.parent / "notif-sync.example.yaml"
    cfg = load_config(path)
    assert cfg.session.to_session().user_id >= 1
    assert cfg.logging.format == "text"


@pytest.mark.parametrize(
    "name, value",
    [("NOTIF_SYNC_ROLE", "NURSE"), ("NOTIF_SYNC_USER_ID", "abc")],
)
def test_invalid_session_override_names_variable(monkeypatch, name, value):
    monkeypatch.setenv(name, value)
    with pytest.raises(ValueError, match="NOTIF_SYNC_USER_ID/NOTIF_SYNC_ROLE override"):
        ClientConfig().session.to_session()
