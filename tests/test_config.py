from pathlib import Path
from unittest.mock import patch

import pytest

from fazuh.akademik.config import Config
from fazuh.akademik.error import ConfigError


@pytest.fixture(autouse=True)
def fresh_config():
    Config._instance = None
    with patch("fazuh.akademik.config.load_dotenv"):
        yield
    Config._instance = None


def test_defaults(monkeypatch):
    for name in ("API_URL", "API_TIMEOUT", "SESSION_FILE", "MONITOR_INTERVAL", "EXPORT_SEMESTER"):
        monkeypatch.delenv(name, raising=False)

    conf = Config()

    assert conf.api_base_url == "http://localhost:8000/api"
    assert conf.api_timeout == 30
    assert conf.session_file == Path("data/session.json")
    assert conf.monitor_interval == 1
    assert conf.export_semester == "2023/2024"


def test_singleton(monkeypatch):
    monkeypatch.setenv("API_URL", "https://akademik.example.ac.id/")
    assert Config() is Config()
    assert Config().api_base_url == "https://akademik.example.ac.id/api"


def test_invalid_url_falls_back(monkeypatch):
    monkeypatch.setenv("API_URL", "akademik.local")
    assert Config().api_url == "http://localhost:8000"


def test_non_numeric_timeout(monkeypatch):
    monkeypatch.setenv("API_TIMEOUT", "lama")
    with pytest.raises(ConfigError, match="API_TIMEOUT"):
        Config()


def test_monitor_interval_must_be_positive(monkeypatch):
    monkeypatch.setenv("MONITOR_INTERVAL", "0")
    with pytest.raises(ConfigError):
        Config()
