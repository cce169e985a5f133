import pytest
from pydantic import ValidationError

from settings import AddressPolicy, AnalysisSettings


def test_defaults():
    settings = AnalysisSettings()
    assert settings.workers == 1
    assert settings.sample_size is None
    assert settings.address == AddressPolicy()
    assert settings.address.casefold is True


def test_from_env(monkeypatch):
    monkeypatch.setenv("EMAILNET_WORKERS", "4")
    monkeypatch.setenv("EMAILNET_SAMPLE_SIZE", "10000")
    monkeypatch.setenv("EMAILNET_CASEFOLD", "false")
    settings = AnalysisSettings.from_env()
    assert settings.workers == 4
    assert settings.sample_size == 10_000
    assert settings.address.casefold is False


def test_overrides_win_over_env(monkeypatch):
    monkeypatch.setenv("EMAILNET_WORKERS", "4")
    monkeypatch.setenv("EMAILNET_INCLUDE_CC", "true")
    settings = AnalysisSettings.from_env(workers=2, seed=None, address={"include_cc": False})
    assert settings.workers == 2
    assert settings.seed == 42
    assert settings.address.include_cc is False


def test_invalid_values_are_rejected(monkeypatch):
    with pytest.raises(ValidationError):
        AnalysisSettings(workers=0)
    monkeypatch.setenv("EMAILNET_CHUNK_SIZE", "lots")
    with pytest.raises(ValidationError):
        AnalysisSettings.from_env()
