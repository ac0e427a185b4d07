"""TDD: Config tests written FIRST"""
from pathlib import Path

import pytest

from voxrelay.config import Config
from voxrelay.errors import ConfigurationError

OPTIONAL_VARS = (
    "SMTP_HOST", "SMTP_PORT", "SMTP_USER", "SMTP_PASS", "SMTP_SECURE",
    "MAX_FILE_SIZE_MB", "REQUEST_TIMEOUT", "LOG_LEVEL", "PORT", "WEBHOOK_URL",
    "APP_ENV", "TMP_DIR", "FFMPEG_PATH", "GPT_MODEL", "CONFIRMATION_TIMEOUT",
    "MAX_PENDING_CONFIRMATIONS", "ALLOWED_CHAT_IDS",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.setattr("voxrelay.config.load_dotenv", lambda **_: None)
    for name in OPTIONAL_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "bot123:ABC")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")


def test_config_from_env_success(monkeypatch):
    """Happy-path: all required env vars present."""
    monkeypatch.setenv("SMTP_HOST", "smtp.example.com")
    monkeypatch.setenv("SMTP_PORT", "587")
    monkeypatch.setenv("SMTP_USER", "bot@example.com")
    monkeypatch.setenv("SMTP_PASS", "secret")

    config = Config.from_env()

    assert config.telegram_bot_token == "bot123:ABC"
    assert config.openai_api_key == "sk-test"
    assert config.smtp_host == "smtp.example.com"
    assert config.smtp_port == 587
    assert config.smtp_user == "bot@example.com"
    assert config.smtp_password == "secret"


def test_config_missing_token_fails(monkeypatch):
    """Missing TELEGRAM_BOT_TOKEN must raise."""
    monkeypatch.delenv("TELEGRAM_BOT_TOKEN", raising=False)

    with pytest.raises(ValueError, match="TELEGRAM_BOT_TOKEN"):
        Config.from_env()


def test_config_missing_openai_key_fails(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)

    with pytest.raises(ConfigurationError, match="OPENAI_API_KEY"):
        Config.from_env()


def test_config_defaults():
    """Optional fields have sensible defaults."""
    config = Config.from_env()

    assert config.smtp_host is None
    assert config.smtp_port is None
    assert config.smtp_secure is False
    assert config.max_file_size_mb == 25
    assert config.max_file_size_bytes == 25 * 1024 * 1024
    assert config.request_timeout == 30.0
    assert config.log_level == "INFO"
    assert config.port == 3000
    assert config.webhook_url is None
    assert config.environment == "development"
    assert config.tmp_dir == Path("tmp")
    assert config.confirmation_timeout == 600.0
    assert config.max_pending == 100
    assert config.allowed_chat_ids == ()


def test_config_parses_optional_values(monkeypatch):
    monkeypatch.setenv("SMTP_SECURE", "true")
    monkeypatch.setenv("MAX_FILE_SIZE_MB", "10")
    monkeypatch.setenv("REQUEST_TIMEOUT", "12.5")
    monkeypatch.setenv("PORT", "8443")
    monkeypatch.setenv("WEBHOOK_URL", "https://bot.example.com/hook")
    monkeypatch.setenv("APP_ENV", "production")
    monkeypatch.setenv("TMP_DIR", "/var/tmp/voxrelay")
    monkeypatch.setenv("ALLOWED_CHAT_IDS", "111, 222,")

    config = Config.from_env()

    assert config.smtp_secure is True
    assert config.max_file_size_bytes == 10 * 1024 * 1024
    assert config.request_timeout == 12.5
    assert config.port == 8443
    assert config.webhook_url == "https://bot.example.com/hook"
    assert config.environment == "production"
    assert config.tmp_dir == Path("/var/tmp/voxrelay")
    assert config.allowed_chat_ids == ("111", "222")


def test_config_rejects_unknown_environment(monkeypatch):
    monkeypatch.setenv("APP_ENV", "staging")

    with pytest.raises(ConfigurationError, match="APP_ENV"):
        Config.from_env()


@pytest.mark.parametrize("name,value", [("PORT", "http"), ("MAX_FILE_SIZE_MB", "-1"), ("SMTP_PORT", "x")])
def test_config_rejects_bad_numbers(monkeypatch, name, value):
    monkeypatch.setenv(name, value)

    with pytest.raises(ConfigurationError, match=name):
        Config.from_env()


def test_config_immutable():
    """Frozen dataclass: attribute assignment must fail."""
    config = Config(
        telegram_bot_token="token",
        openai_api_key="sk",
        smtp_host=None,
        smtp_port=None,
        smtp_user=None,
        smtp_password=None,
    )

    with pytest.raises(Exception):
        config.telegram_bot_token = "other"
