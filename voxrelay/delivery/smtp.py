"""SmtpDeliveryClient — sends confirmed drafts through the configured SMTP account."""
import asyncio
import logging
import smtplib
import ssl
from collections.abc import Mapping
from email.message import EmailMessage
from email.utils import make_msgid
from typing import Any, Optional, Union

from voxrelay.config import Config
from voxrelay.constants import MSG_LOG_SEND_FAILED, MSG_LOG_SENT, MSG_LOG_SMTP_VERIFIED
from voxrelay.delivery.client import DeliveryClient
from voxrelay.errors import DeliveryFailed, InvalidEmailData, MissingSmtpConfig, SmtpUnreachable
from voxrelay.models import DeliveryOptions, EmailDraft


def _draft_fields(draft: Any) -> tuple[Any, Any, Any]:
    match draft:
        case EmailDraft(to=to, subject=subject, body=body):
            return to, subject, body
        case Mapping():
            return draft.get("to"), draft.get("subject"), draft.get("body")
        case _:
            return None, None, None


def validate_email_data(
    draft: Union[EmailDraft, Mapping[str, Any]], options: DeliveryOptions
) -> EmailDraft:
    """Re-check an outbound draft and its options, reporting every bad field at once."""
    to, subject, body = _draft_fields(draft)
    problems = EmailDraft.problems(to, subject, body) + options.problems()
    if problems:
        raise InvalidEmailData(problems)
    return EmailDraft(to=to, subject=subject, body=body)


def build_message(sender: str, draft: EmailDraft, options: DeliveryOptions) -> EmailMessage:
    message = EmailMessage()
    message["From"] = sender
    message["To"] = draft.to
    message["Subject"] = draft.subject
    message["Message-ID"] = make_msgid(domain=sender.rpartition("@")[2] or None)
    if options.cc:
        message["Cc"] = ", ".join(options.cc)
    if options.bcc:
        message["Bcc"] = ", ".join(options.bcc)
    message.set_content(draft.body, subtype="html" if options.html else "plain")

    for attachment in options.attachments:
        maintype, subtype = attachment.mime_type()
        match attachment.content:
            case str() as text if maintype == "text":
                message.add_attachment(text, subtype=subtype, filename=attachment.filename)
            case str() as text:
                message.add_attachment(
                    text.encode(), maintype=maintype, subtype=subtype, filename=attachment.filename
                )
            case data:
                message.add_attachment(
                    data, maintype=maintype, subtype=subtype, filename=attachment.filename
                )
    return message


class SmtpDeliveryClient(DeliveryClient):

    def __init__(self, config: Config, logger: Optional[logging.Logger] = None) -> None:
        required = {
            "SMTP_HOST": config.smtp_host,
            "SMTP_PORT": config.smtp_port,
            "SMTP_USER": config.smtp_user,
            "SMTP_PASS": config.smtp_password,
        }
        missing = [name for name, value in required.items() if not value]
        if missing:
            raise MissingSmtpConfig(f"SMTP configuration missing: {', '.join(missing)}")

        self._host = config.smtp_host
        self._port = config.smtp_port
        self._user = config.smtp_user
        self._password = config.smtp_password
        self._secure = config.smtp_secure
        self._timeout = config.request_timeout
        self._logger = logger or logging.getLogger(__name__)

    # ── DeliveryClient interface ──────────────────────────────────────────────

    async def verify(self) -> None:
        def _verify_sync() -> None:
            with self._connect() as client:
                client.noop()

        try:
            await asyncio.to_thread(_verify_sync)
        except (smtplib.SMTPException, OSError) as exc:
            raise SmtpUnreachable(
                f"Cannot reach SMTP server {self._host}:{self._port}: {exc}"
            ) from exc
        self._logger.info(MSG_LOG_SMTP_VERIFIED, self._host, self._port)

    async def send_email(
        self,
        draft: Union[EmailDraft, Mapping[str, Any]],
        options: Optional[DeliveryOptions] = None,
    ) -> str:
        options = options or DeliveryOptions()
        email = validate_email_data(draft, options)
        try:
            message = build_message(self._user, email, options)
        except (ValueError, TypeError) as exc:
            raise InvalidEmailData([("headers", str(exc))]) from exc

        def _send_sync() -> None:
            with self._connect() as client:
                client.send_message(message)

        try:
            await asyncio.to_thread(_send_sync)
        except (smtplib.SMTPException, OSError) as exc:
            self._logger.error(MSG_LOG_SEND_FAILED, email.to, exc)
            raise DeliveryFailed(f"Email sending failed: {exc}") from exc

        message_id = message["Message-ID"]
        self._logger.info(MSG_LOG_SENT, email.to, message_id)
        return message_id

    # ── helpers ───────────────────────────────────────────────────────────────

    def _connect(self) -> smtplib.SMTP:
        context = ssl.create_default_context()
        match self._secure:
            case True:
                client = smtplib.SMTP_SSL(
                    self._host, self._port, context=context, timeout=self._timeout
                )
            case False:
                client = smtplib.SMTP(self._host, self._port, timeout=self._timeout)
        try:
            if not self._secure:
                client.ehlo()
                if client.has_extn("starttls"):
                    client.starttls(context=context)
                    client.ehlo()
            client.login(self._user, self._password)
        except (smtplib.SMTPException, OSError):
            client.close()
            raise
        return client
