"""Unit tests for core/config.py -- settings validation and duration parsing.

Covers:
- parse_duration() units, bare seconds, negatives, garbage
- JWT_SECRET policy: required in production, generated in dev/test, min length
- BCRYPT_ROUNDS bounds
- derived token_ttl_seconds / is_development
"""

import pytest
from pydantic import ValidationError

from core.config import Settings, parse_duration

GOOD_SECRET = "x" * 32


@pytest.mark.parametrize(
    "value,seconds",
    [
        ("7d", 7 * 86400),
        ("1h", 3600),
        ("30m", 1800),
        ("45s", 45),
        ("2w", 2 * 604800),
        ("3600", 3600),
        ("-1h", -3600),
        (" 12H ", 12 * 3600),
    ],
)
def test_parse_duration(value, seconds):
    assert parse_duration(value) == seconds


@pytest.mark.parametrize("value", ["", "7 days", "h", "1.5h", "1y"])
def test_parse_duration_rejects_garbage(value):
    with pytest.raises(ValueError):
        parse_duration(value)


class TestSettings:
    def test_production_requires_secret(self, monkeypatch):
        monkeypatch.delenv("JWT_SECRET", raising=False)
        with pytest.raises(ValidationError, match="JWT_SECRET is required"):
            Settings(_env_file=None, environment="production", debug=False)

    @pytest.mark.parametrize("environment", ["development", "test"])
    def test_dev_generates_secret(self, monkeypatch, environment):
        monkeypatch.delenv("JWT_SECRET", raising=False)
        settings = Settings(_env_file=None, environment=environment)
        assert len(settings.jwt_secret) >= 32

    def test_debug_generates_secret_in_production(self, monkeypatch):
        monkeypatch.delenv("JWT_SECRET", raising=False)
        settings = Settings(_env_file=None, environment="production", debug=True)
        assert len(settings.jwt_secret) >= 32

    def test_short_secret_rejected(self):
        with pytest.raises(ValidationError, match="at least 32 characters"):
            Settings(_env_file=None, jwt_secret="too-short")

    def test_defaults(self, monkeypatch):
        for var in ("JWT_EXPIRES_IN", "BCRYPT_ROUNDS", "ENVIRONMENT"):
            monkeypatch.delenv(var, raising=False)
        settings = Settings(_env_file=None, jwt_secret=GOOD_SECRET)
        assert settings.token_ttl_seconds == 7 * 86400
        assert settings.bcrypt_rounds == 10
        assert settings.environment == "production"
        assert settings.is_development is False

    @pytest.mark.parametrize("rounds", [3, 32])
    def test_bcrypt_rounds_bounds(self, rounds):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, jwt_secret=GOOD_SECRET, bcrypt_rounds=rounds)

    def test_invalid_ttl_rejected(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, jwt_secret=GOOD_SECRET, jwt_expires_in="forever")

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("JWT_SECRET", GOOD_SECRET)
        monkeypatch.setenv("JWT_EXPIRES_IN", "15m")
        monkeypatch.setenv("BCRYPT_ROUNDS", "6")
        monkeypatch.setenv("ENVIRONMENT", "development")
        settings = Settings(_env_file=None)
        assert settings.jwt_secret == GOOD_SECRET
        assert settings.token_ttl_seconds == 900
        assert settings.bcrypt_rounds == 6
        assert settings.is_development is True
