import pytest
from pydantic import ValidationError

from app.common import config


def test_server_defaults(monkeypatch):
    for var in ("AUTH_HOST", "AUTH_PORT", "AUTH_READ_TIMEOUT", "AUTH_MAX_CONNECTIONS"):
        monkeypatch.delenv(var, raising=False)

    settings = config.server_settings()
    assert settings.host == "0.0.0.0"
    assert settings.port == 6969
    assert settings.deadline == 30.0
    assert settings.max_connections == 0


def test_server_settings_from_env(monkeypatch):
    monkeypatch.setenv("AUTH_HOST", "127.0.0.1")
    monkeypatch.setenv("AUTH_PORT", "7000")
    monkeypatch.setenv("AUTH_READ_TIMEOUT", "0")
    monkeypatch.setenv("AUTH_MAX_CONNECTIONS", "64")

    settings = config.server_settings()
    assert settings.port == 7000
    assert settings.deadline is None
    assert settings.max_connections == 64


def test_invalid_port_rejected(monkeypatch):
    monkeypatch.setenv("AUTH_PORT", "70000")
    with pytest.raises(ValidationError):
        config.server_settings()


def test_client_settings_from_env(monkeypatch):
    monkeypatch.setenv("SERVER_HOST", "auth.example")
    monkeypatch.setenv("SERVER_PORT", "5000")
    settings = config.client_settings()
    assert (settings.host, settings.port) == ("auth.example", 5000)


def test_mysql_settings_from_env(monkeypatch):
    monkeypatch.setenv("MYSQL_PORT", "3307")
    monkeypatch.setenv("MYSQL_DB", "logins")
    settings = config.mysql_settings()
    assert settings.port == 3307
    assert settings.database == "logins"
