import pytest
from pydantic import ValidationError

from conftest import make_settings


def test_defaults():
    settings = make_settings()
    assert settings.JWT_EXPIRATION == 3600
    assert settings.JWT_REFRESH_EXPIRATION == 604800
    assert settings.OTP_EXPIRY_MINUTES == 10
    assert settings.OTP_LENGTH == 4
    assert settings.is_production is False


def test_secrets_must_differ():
    with pytest.raises(ValidationError):
        make_settings(JWT_SECRET="same", JWT_REFRESH_SECRET="same")


def test_bypass_code_refused_in_production():
    with pytest.raises(ValidationError):
        make_settings(ENVIRONMENT="production", OTP_DEV_BYPASS_CODE="0000")
    assert make_settings(ENVIRONMENT="development", OTP_DEV_BYPASS_CODE="0000").OTP_DEV_BYPASS_CODE == "0000"


@pytest.mark.parametrize("length", [3, 9])
def test_otp_length_bounds(length):
    with pytest.raises(ValidationError):
        make_settings(OTP_LENGTH=length)


def test_environment_variables_are_read(monkeypatch):
    monkeypatch.setenv("JWT_EXPIRATION", "900")
    monkeypatch.setenv("DB_NAME", "from_env")
    settings = make_settings()
    assert settings.JWT_EXPIRATION == 900
    # explicit arguments win over the environment
    assert settings.DB_NAME == "khao_test"
