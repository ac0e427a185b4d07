from dataclasses import dataclass
from pathlib import Path
from typing import Optional
import os
from dotenv import load_dotenv

from voxrelay.constants import (
    BYTES_PER_MB,
    DEFAULT_CONFIRMATION_TIMEOUT,
    DEFAULT_GPT_MODEL,
    DEFAULT_MAX_FILE_SIZE_MB,
    DEFAULT_MAX_PENDING,
    DEFAULT_REQUEST_TIMEOUT,
)
from voxrelay.errors import ConfigurationError

ENVIRONMENTS = ("development", "production")
_TRUTHY = ("1", "true", "yes", "on")


def _number(name: str, raw: str, kind: type = int):
    try:
        value = kind(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from None
    match value:
        case v if v > 0:
            return v
        case _:
            raise ConfigurationError(f"{name} must be positive, got {raw!r}")


@dataclass(frozen=True)
class Config:
    telegram_bot_token: str
    openai_api_key: str
    smtp_host: Optional[str]
    smtp_port: Optional[int]
    smtp_user: Optional[str]
    smtp_password: Optional[str]
    smtp_secure: bool = False
    max_file_size_mb: int = DEFAULT_MAX_FILE_SIZE_MB
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    log_level: str = "INFO"
    port: int = 3000
    webhook_url: Optional[str] = None
    environment: str = "development"
    tmp_dir: Path = Path("tmp")
    ffmpeg_path: str = "ffmpeg"
    gpt_model: str = DEFAULT_GPT_MODEL
    confirmation_timeout: float = DEFAULT_CONFIRMATION_TIMEOUT
    max_pending: int = DEFAULT_MAX_PENDING
    allowed_chat_ids: tuple[str, ...] = ()

    @property
    def max_file_size_bytes(self) -> int:
        return self.max_file_size_mb * BYTES_PER_MB

    @classmethod
    def from_env(cls) -> "Config":
        load_dotenv()

        token = os.getenv("TELEGRAM_BOT_TOKEN")
        openai_api_key = os.getenv("OPENAI_API_KEY")
        smtp_host = os.getenv("SMTP_HOST") or None
        smtp_port = os.getenv("SMTP_PORT") or None
        smtp_user = os.getenv("SMTP_USER") or None
        smtp_password = os.getenv("SMTP_PASS") or None
        smtp_secure = os.getenv("SMTP_SECURE", "false")
        max_file_size = os.getenv("MAX_FILE_SIZE_MB", str(DEFAULT_MAX_FILE_SIZE_MB))
        request_timeout = os.getenv("REQUEST_TIMEOUT", str(DEFAULT_REQUEST_TIMEOUT))
        log_level = os.getenv("LOG_LEVEL", "INFO")
        port = os.getenv("PORT", "3000")
        webhook_url = os.getenv("WEBHOOK_URL") or None
        environment = os.getenv("APP_ENV", "development")
        tmp_dir = os.getenv("TMP_DIR", "tmp")
        ffmpeg_path = os.getenv("FFMPEG_PATH", "ffmpeg")
        gpt_model = os.getenv("GPT_MODEL", DEFAULT_GPT_MODEL)
        confirmation_timeout = os.getenv(
            "CONFIRMATION_TIMEOUT", str(DEFAULT_CONFIRMATION_TIMEOUT)
        )
        max_pending = os.getenv("MAX_PENDING_CONFIRMATIONS", str(DEFAULT_MAX_PENDING))
        raw_chat_ids = os.getenv("ALLOWED_CHAT_IDS", "")

        chat_ids = tuple(c.strip() for c in raw_chat_ids.split(",") if c.strip())

        return cls._validate(
            telegram_bot_token=token,
            openai_api_key=openai_api_key,
            smtp_host=smtp_host,
            smtp_port=_number("SMTP_PORT", smtp_port) if smtp_port else None,
            smtp_user=smtp_user,
            smtp_password=smtp_password,
            smtp_secure=smtp_secure.strip().lower() in _TRUTHY,
            max_file_size_mb=_number("MAX_FILE_SIZE_MB", max_file_size),
            request_timeout=_number("REQUEST_TIMEOUT", request_timeout, float),
            log_level=log_level,
            port=_number("PORT", port),
            webhook_url=webhook_url,
            environment=environment,
            tmp_dir=Path(tmp_dir),
            ffmpeg_path=ffmpeg_path,
            gpt_model=gpt_model,
            confirmation_timeout=_number("CONFIRMATION_TIMEOUT", confirmation_timeout, float),
            max_pending=_number("MAX_PENDING_CONFIRMATIONS", max_pending),
            allowed_chat_ids=chat_ids,
        )

    @staticmethod
    def _validate(
        telegram_bot_token: Optional[str],
        openai_api_key: Optional[str],
        environment: str,
        **rest,
    ) -> "Config":
        match telegram_bot_token:
            case None | "":
                raise ConfigurationError("TELEGRAM_BOT_TOKEN must be set in .env")
            case _:
                pass

        match openai_api_key:
            case None | "":
                raise ConfigurationError("OPENAI_API_KEY must be set in .env")
            case _:
                pass

        match environment:
            case env if env in ENVIRONMENTS:
                pass
            case _:
                raise ConfigurationError(
                    f"APP_ENV must be one of {', '.join(ENVIRONMENTS)}, got {environment!r}"
                )

        return Config(
            telegram_bot_token=telegram_bot_token,
            openai_api_key=openai_api_key,
            environment=environment,
            **rest,
        )
