"""Value objects passed between pipeline stages — validated on construction."""
import mimetypes
from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from typing import Any, Optional, Union

from email_validator import EmailNotValidError, validate_email

from voxrelay.constants import (
    DEFAULT_GPT_MAX_TOKENS,
    DEFAULT_GPT_MODEL,
    DEFAULT_GPT_TEMPERATURE,
    DEFAULT_RESPONSE_FORMAT,
    GPT_TEMPERATURE_RANGE,
    RESPONSE_FORMATS,
)
from voxrelay.errors import InvalidConfig, InvalidDraft, InvalidTranscriptionOptions


def email_problem(address: Any) -> Optional[str]:
    """Return why `address` is not a valid email address, or None."""
    match address:
        case str() as s if s.strip():
            try:
                validate_email(s.strip(), check_deliverability=False)
                return None
            except EmailNotValidError as exc:
                return str(exc)
        case _:
            return "must be a non-empty email address"


def _single_line(value: str) -> str:
    """Header-safe text: CR/LF runs become a single space."""
    return " ".join(part.strip() for part in value.splitlines() if part.strip())


def _text_problem(value: Any) -> Optional[str]:
    match value:
        case str() as s if s.strip():
            return None
        case str():
            return "cannot be empty"
        case _:
            return "must be a string"


@dataclass(frozen=True)
class VoiceMessageRef:
    file_id: str
    url: str


@dataclass(frozen=True)
class TranscriptionOptions:
    language: Optional[str] = None
    response_format: str = DEFAULT_RESPONSE_FORMAT
    temperature: Optional[float] = None
    prompt: Optional[str] = None

    def __post_init__(self) -> None:
        if self.response_format not in RESPONSE_FORMATS:
            raise InvalidTranscriptionOptions(
                f"response_format must be one of {', '.join(RESPONSE_FORMATS)}"
            )
        match self.temperature:
            case None:
                pass
            case int() | float() as t if 0 <= t <= 1:
                pass
            case _:
                raise InvalidTranscriptionOptions("temperature must be between 0 and 1")

    def as_params(self) -> dict[str, Any]:
        """Only the options that were actually provided."""
        params: dict[str, Any] = {"response_format": self.response_format}
        if self.language:
            params["language"] = self.language
        if self.temperature is not None:
            params["temperature"] = self.temperature
        if self.prompt:
            params["prompt"] = self.prompt
        return params


@dataclass(frozen=True)
class EmailDraft:
    to: str
    subject: str
    body: str

    def __post_init__(self) -> None:
        problems = self.problems(self.to, self.subject, self.body)
        if problems:
            raise InvalidDraft(problems)
        object.__setattr__(self, "to", self.to.strip())
        object.__setattr__(self, "subject", _single_line(self.subject))

    @staticmethod
    def problems(to: Any, subject: Any, body: Any) -> list[tuple[str, str]]:
        checks = (
            ("to", email_problem(to)),
            ("subject", _text_problem(subject)),
            ("body", _text_problem(body)),
        )
        return [(name, reason) for name, reason in checks if reason]

    @classmethod
    def from_mapping(cls, data: Any) -> "EmailDraft":
        match data:
            case Mapping():
                return cls(to=data.get("to"), subject=data.get("subject"), body=data.get("body"))
            case _:
                raise InvalidDraft([("draft", "expected a JSON object with to, subject and body")])


@dataclass(frozen=True)
class UsageStats:
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    @classmethod
    def from_usage(cls, usage: Any) -> "UsageStats":
        return cls(
            prompt_tokens=getattr(usage, "prompt_tokens", None) or 0,
            completion_tokens=getattr(usage, "completion_tokens", None) or 0,
            total_tokens=getattr(usage, "total_tokens", None) or 0,
        )


@dataclass(frozen=True)
class ExtractedDraft:
    draft: EmailDraft
    usage: UsageStats


@dataclass(frozen=True)
class NoDraft:
    reason: str


Extraction = Union[ExtractedDraft, NoDraft]


@dataclass(frozen=True)
class GenerationConfig:
    model: str = DEFAULT_GPT_MODEL
    temperature: float = DEFAULT_GPT_TEMPERATURE
    max_tokens: int = DEFAULT_GPT_MAX_TOKENS

    def __post_init__(self) -> None:
        low, high = GPT_TEMPERATURE_RANGE
        match self.model:
            case str() as m if m.strip():
                pass
            case _:
                raise InvalidConfig("model must be a non-empty string")
        match self.temperature:
            case bool():
                raise InvalidConfig("temperature must be a number")
            case int() | float() as t if low <= t <= high:
                pass
            case _:
                raise InvalidConfig(f"temperature must be between {low:g} and {high:g}")
        match self.max_tokens:
            case bool():
                raise InvalidConfig("max_tokens must be a positive integer")
            case int() as n if n > 0:
                pass
            case _:
                raise InvalidConfig("max_tokens must be a positive integer")

    def merged(self, overrides: Optional[Mapping[str, Any]] = None) -> "GenerationConfig":
        """Return a copy with caller overrides applied over these defaults."""
        overrides = dict(overrides or {})
        known = {f.name for f in fields(self)}
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise InvalidConfig(f"Unknown generation option(s): {', '.join(unknown)}")
        return replace(self, **overrides)


@dataclass(frozen=True)
class Attachment:
    filename: str
    content: Union[bytes, str]
    content_type: Optional[str] = None

    def mime_type(self) -> tuple[str, str]:
        guessed = self.content_type or mimetypes.guess_type(self.filename)[0]
        maintype, _, subtype = (guessed or "application/octet-stream").partition("/")
        return maintype, subtype or "octet-stream"


@dataclass(frozen=True)
class DeliveryOptions:
    html: bool = False
    cc: tuple[str, ...] = ()
    bcc: tuple[str, ...] = ()
    attachments: tuple[Attachment, ...] = ()

    def problems(self) -> list[tuple[str, str]]:
        found: list[tuple[str, str]] = []
        if not isinstance(self.html, bool):
            found.append(("html", "must be a boolean"))
        for name in ("cc", "bcc"):
            addresses = getattr(self, name)
            if isinstance(addresses, str) or not isinstance(addresses, (list, tuple)):
                found.append((name, "must be a list of email addresses"))
                continue
            for i, address in enumerate(addresses):
                reason = email_problem(address)
                if reason:
                    found.append((f"{name}[{i}]", reason))
        if not isinstance(self.attachments, (list, tuple)):
            found.append(("attachments", "must be a list of attachments"))
            return found
        for i, attachment in enumerate(self.attachments):
            match attachment:
                case Attachment(filename=str() as name, content=bytes() | str()) if name.strip():
                    pass
                case _:
                    found.append(
                        (f"attachments[{i}]", "must have a filename and bytes or text content")
                    )
        return found


@dataclass(frozen=True)
class PendingConfirmation:
    chat_id: str
    draft: EmailDraft
    created_at: float
