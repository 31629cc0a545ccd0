"""Tests for environment-driven game settings."""

import pydantic
import pytest

from navalbattle import settings as settings_module
from navalbattle.settings import GameSettings


def test_defaults() -> None:
    settings = GameSettings()
    assert settings.computer_shot_delay_ms == 600
    assert settings.auto_advance_computer is True
    assert settings.strict_attempts == settings.relaxed_attempts == 100


def test_from_env_reads_prefixed_variables(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("NAVALBATTLE_RNG_SEED", "42")
    monkeypatch.setenv("NAVALBATTLE_COMPUTER_SHOT_DELAY_MS", "0")
    monkeypatch.setenv("NAVALBATTLE_AUTO_ADVANCE", "no")

    settings = GameSettings.from_env(relaxed_attempts=5)

    assert settings.rng_seed == 42
    assert settings.computer_shot_delay_ms == 0
    assert settings.auto_advance_computer is False
    assert settings.relaxed_attempts == 5


def test_overrides_win_over_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("NAVALBATTLE_RNG_SEED", "1")
    assert GameSettings.from_env(rng_seed=9).rng_seed == 9


def test_negative_delay_is_rejected() -> None:
    with pytest.raises(pydantic.ValidationError):
        GameSettings(computer_shot_delay_ms=-1)


def test_load_game_settings_cached() -> None:
    settings_module.load_game_settings.cache_clear()
    assert settings_module.load_game_settings() is settings_module.load_game_settings()
    settings_module.load_game_settings.cache_clear()
