from __future__ import annotations

import pytest
from pydantic import ValidationError

from timeaccount.clock import SystemClock, get_clock
from timeaccount.config import Settings, get_settings


def test_defaults() -> None:
    settings = Settings()
    assert settings.timezone == "Europe/Berlin"
    assert settings.min_overtime_balance_minutes == -20 * 60
    assert settings.verify_cache_on_read is False


def test_log_level_is_normalized() -> None:
    assert Settings(log_level="debug").log_level == "DEBUG"


@pytest.mark.parametrize(("field", "value"), [("log_level", "chatty"), ("timezone", "Mars/Olympus_Mons")])
def test_rejects_unknown_values(field: str, value: str) -> None:
    with pytest.raises(ValidationError, match=field):
        Settings(**{field: value})


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MIN_OVERTIME_BALANCE_MINUTES", "-600")
    monkeypatch.setenv("VERIFY_CACHE_ON_READ", "true")
    settings = Settings()
    assert settings.min_overtime_balance_minutes == -600
    assert settings.verify_cache_on_read is True


def test_get_settings_is_cached() -> None:
    assert get_settings() is get_settings()


def test_default_clock_uses_configured_zone() -> None:
    clock = get_clock()
    assert isinstance(clock, SystemClock)
    assert clock.today() == SystemClock(get_settings().timezone).today()
