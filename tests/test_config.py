import pytest

from santadraw.core.config import load_settings


def clear_env(monkeypatch):
    for name in ("DRAW_MAX_ATTEMPTS", "DRAW_DEADLINE_SECONDS", "LOG_LEVEL", "LOG_PATH"):
        monkeypatch.delenv(name, raising=False)


def test_defaults(monkeypatch):
    clear_env(monkeypatch)
    settings = load_settings()
    assert settings.draw_max_attempts == 20
    assert settings.draw_deadline_seconds == 5.0
    assert settings.log_level == "INFO"
    assert settings.log_path == "logs/santadraw.log"


def test_reads_environment(monkeypatch):
    clear_env(monkeypatch)
    monkeypatch.setenv("DRAW_MAX_ATTEMPTS", "50")
    monkeypatch.setenv("DRAW_DEADLINE_SECONDS", "0.25")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("LOG_PATH", "")
    settings = load_settings()
    assert settings.draw_max_attempts == 50
    assert settings.draw_deadline_seconds == 0.25
    assert settings.log_level == "DEBUG"
    assert settings.log_path == ""


def test_rejects_bad_numbers(monkeypatch):
    clear_env(monkeypatch)
    monkeypatch.setenv("DRAW_MAX_ATTEMPTS", "many")
    with pytest.raises(ValueError, match="DRAW_MAX_ATTEMPTS"):
        load_settings()


def test_rejects_non_positive_values(monkeypatch):
    clear_env(monkeypatch)
    monkeypatch.setenv("DRAW_DEADLINE_SECONDS", "0")
    with pytest.raises(ValueError, match="DRAW_DEADLINE_SECONDS"):
        load_settings()
