import pytest
from pydantic import ValidationError as SettingsValidationError

from app.core.config import Settings


def test_defaults():
    settings = Settings(_env_file=None)

    assert settings.EOD_SNAPSHOT_TIME == "22:00"
    assert settings.FAULT_TIMEOUT_SECONDS == 1.0
    assert settings.ACCOUNT_NUMBER_MAX_ATTEMPTS == 5


def test_snapshot_time_is_zero_padded():
    assert Settings(_env_file=None, EOD_SNAPSHOT_TIME="7:05").EOD_SNAPSHOT_TIME == "07:05"


@pytest.mark.parametrize("value", ["25:00", "22", "noon", "22:61"])
def test_invalid_snapshot_time_is_rejected(value):
    with pytest.raises(SettingsValidationError):
        Settings(_env_file=None, EOD_SNAPSHOT_TIME=value)


def test_customer_service_url_trailing_slash_is_stripped():
    settings = Settings(_env_file=None, CUSTOMER_SERVICE_URL="http://customers:8081/")

    assert settings.CUSTOMER_SERVICE_URL == "http://customers:8081"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("CIRCUIT_MIN_CALLS", "3")
    monkeypatch.setenv("EOD_SNAPSHOT_ENABLED", "false")

    settings = Settings(_env_file=None)

    assert settings.CIRCUIT_MIN_CALLS == 3
    assert settings.EOD_SNAPSHOT_ENABLED is False
