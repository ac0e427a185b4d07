"""Error taxonomy — validation, upstream and configuration failures."""


class RelayError(Exception):
    """Base for every error raised by the relay pipeline."""


# ── validation: bad input shape, always recoverable ──────────────────────────


class ValidationError(RelayError):
    pass


class NotFound(ValidationError):
    pass


class EmptyFile(ValidationError):
    pass


class TooLarge(ValidationError):
    pass


class UnsupportedFormat(ValidationError):
    pass


class InvalidTranscriptionOptions(ValidationError):
    pass


class InvalidInput(ValidationError):
    pass


class InvalidConfig(ValidationError):
    pass


class _FieldErrors(ValidationError):
    """Validation failure that names every offending field."""

    label = "Invalid data"

    def __init__(self, problems: list[tuple[str, str]]):
        self.problems = tuple(problems)
        self.fields = tuple(dict.fromkeys(field for field, _ in problems))
        detail = "; ".join(f"{field}: {reason}" for field, reason in problems)
        super().__init__(f"{self.label}: {detail}")


class InvalidDraft(_FieldErrors):
    label = "Invalid email draft"


class InvalidEmailData(_FieldErrors):
    label = "Invalid email data"


# ── upstream: third-party API or tool failed ─────────────────────────────────


class UpstreamError(RelayError):
    pass


class InvalidCredentials(UpstreamError):
    pass


class RateLimited(UpstreamError):
    pass


class UpstreamTimeout(UpstreamError):
    pass


class TranscriptionFailed(UpstreamError):
    pass


class TranscodingFailed(TranscriptionFailed):
    pass


class MalformedResponse(UpstreamError):
    pass


class ExtractionFailed(UpstreamError):
    pass


class DeliveryFailed(UpstreamError):
    pass


class FileResolutionFailed(UpstreamError):
    pass


class DownloadFailed(UpstreamError):
    pass


# ── configuration: fatal at startup ───────────────────────────────────────────


class ConfigurationError(RelayError, ValueError):
    pass


class MissingSmtpConfig(ConfigurationError):
    pass


class SmtpUnreachable(ConfigurationError):
    pass
