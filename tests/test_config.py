"""Tests for configuration."""

from pathlib import Path

from carelog.config import Settings, _env_bool

ENV_EXAMPLE = Path(__file__).resolve().parent.parent / ".env.example"


def test_env_example_lists_every_setting():
    documented = {
        line.split("=", 1)[0]
        for line in ENV_EXAMPLE.read_text().splitlines()
        if line and not line.startswith("#")
    }
    names = {name for name in vars(Settings) if name.isupper()}
    assert names - documented == set()


def test_env_bool(monkeypatch):
    monkeypatch.setenv("CARELOG_FLAG", "Yes")
    assert _env_bool("CARELOG_FLAG", False) is True
    monkeypatch.setenv("CARELOG_FLAG", "0")
    assert _env_bool("CARELOG_FLAG", True) is False
    monkeypatch.delenv("CARELOG_FLAG")
    assert _env_bool("CARELOG_FLAG", True) is True
