"""VoiceRelayPipeline — per-message state machine, transport-agnostic.

One pipeline run covers a single voice note: download, transcribe, extract
a draft, then park it in the pending table until the chat replies yes or no.
The downloaded file is removed on every exit path.
"""
import logging
from enum import Enum
from pathlib import Path
from typing import Optional

from voxrelay.bot_client import Reply, VoiceFetcher
from voxrelay.constants import (
    CONFIRM_NO,
    CONFIRM_YES,
    DEFAULT_RESPONSE_FORMAT,
    DEFAULT_TRANSCRIPTION_LANGUAGE,
    MSG_CANCELLED,
    MSG_DOWNLOAD_FAILED,
    MSG_DRAFT,
    MSG_LOG_DOWNLOADED,
    MSG_LOG_NO_DRAFT,
    MSG_LOG_STAGE_FAILED,
    MSG_LOG_UNEXPECTED,
    MSG_NO_EMAIL_FOUND,
    MSG_NOTHING_PENDING,
    MSG_PROCESSING,
    MSG_PROCESSING_FAILED,
    MSG_REPROMPT,
    MSG_SEND_FAILED,
    MSG_SENT,
    MSG_TRANSCRIPT,
    MSG_UNEXPECTED_ERROR,
    VOICE_EXTENSION,
)
from voxrelay.delivery.client import DeliveryClient
from voxrelay.errors import RelayError
from voxrelay.extraction.client import EmailExtractionClient
from voxrelay.models import EmailDraft, ExtractedDraft, NoDraft, TranscriptionOptions
from voxrelay.pending_store import PendingConfirmationStore
from voxrelay.transcription.client import TranscriptionClient


class PipelineState(str, Enum):
    IDLE = "idle"
    DOWNLOADING = "downloading"
    TRANSCRIBING = "transcribing"
    AWAITING_EXTRACTION = "awaiting_extraction"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    DELIVERING = "delivering"
    ABORTED = "aborted"


VOICE_TRANSCRIPTION_OPTIONS = TranscriptionOptions(
    language=DEFAULT_TRANSCRIPTION_LANGUAGE,
    response_format=DEFAULT_RESPONSE_FORMAT,
)


def format_draft(draft: EmailDraft) -> str:
    return MSG_DRAFT % (draft.to, draft.subject, draft.body)


def voice_path_for(tmp_dir: Path, file_id: str) -> Path:
    safe_id = "".join(c if c.isalnum() or c in "-_" else "_" for c in file_id)
    return tmp_dir / f"{safe_id}{VOICE_EXTENSION}"


class VoiceRelayPipeline:

    def __init__(
        self,
        transcriber: TranscriptionClient,
        extractor: EmailExtractionClient,
        delivery: DeliveryClient,
        fetcher: VoiceFetcher,
        pending: PendingConfirmationStore,
        tmp_dir: Path,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._transcriber = transcriber
        self._extractor = extractor
        self._delivery = delivery
        self._fetcher = fetcher
        self._pending = pending
        self._tmp_dir = Path(tmp_dir)
        self._tmp_dir.mkdir(parents=True, exist_ok=True)
        self._logger = logger or logging.getLogger(__name__)

    # ── voice note ────────────────────────────────────────────────────────────

    async def handle_voice(self, chat_id: str, file_id: str, reply: Reply) -> PipelineState:
        """Run one voice note through to a draft awaiting confirmation."""
        local_path = voice_path_for(self._tmp_dir, file_id)
        state = PipelineState.DOWNLOADING
        try:
            await reply(MSG_PROCESSING)
            ref = await self._fetcher.resolve(file_id)
            await self._fetcher.download(ref, local_path)
            self._logger.info(MSG_LOG_DOWNLOADED, local_path)

            state = PipelineState.TRANSCRIBING
            transcript = await self._transcriber.transcribe(local_path, VOICE_TRANSCRIPTION_OPTIONS)
            await reply(MSG_TRANSCRIPT % transcript)

            state = PipelineState.AWAITING_EXTRACTION
            match await self._extractor.try_extract(transcript):
                case NoDraft(reason=reason):
                    self._logger.info(MSG_LOG_NO_DRAFT, chat_id, reason)
                    await reply(MSG_NO_EMAIL_FOUND)
                    return PipelineState.IDLE
                case ExtractedDraft(draft=draft):
                    self._pending.put(chat_id, draft)
                    await reply(format_draft(draft))
                    return PipelineState.AWAITING_CONFIRMATION
        except RelayError as exc:
            self._logger.error(MSG_LOG_STAGE_FAILED, chat_id, state.value, exc)
            match state:
                case PipelineState.DOWNLOADING:
                    await reply(MSG_DOWNLOAD_FAILED)
                case PipelineState.AWAITING_EXTRACTION:
                    await reply(MSG_NO_EMAIL_FOUND)
                    return PipelineState.IDLE
                case _:
                    await reply(MSG_PROCESSING_FAILED)
            return PipelineState.ABORTED
        except Exception:
            self._logger.exception(MSG_LOG_UNEXPECTED, chat_id)
            await reply(MSG_UNEXPECTED_ERROR)
            return PipelineState.ABORTED
        finally:
            local_path.unlink(missing_ok=True)

    # ── yes / no reply ────────────────────────────────────────────────────────

    def has_pending(self, chat_id: str) -> bool:
        return self._pending.get(chat_id) is not None

    async def handle_reply(self, chat_id: str, text: str, reply: Reply) -> PipelineState:
        entry = self._pending.get(chat_id)
        if entry is None:
            await reply(MSG_NOTHING_PENDING)
            return PipelineState.IDLE

        match text.strip().lower():
            case answer if answer == CONFIRM_YES:
                self._pending.pop(chat_id)
                return await self._deliver(entry.draft, reply)
            case answer if answer == CONFIRM_NO:
                self._pending.pop(chat_id)
                await reply(MSG_CANCELLED)
                return PipelineState.IDLE
            case _:
                await reply(MSG_REPROMPT)
                return PipelineState.AWAITING_CONFIRMATION

    async def _deliver(self, draft: EmailDraft, reply: Reply) -> PipelineState:
        try:
            await self._delivery.send_email(draft)
        except RelayError as exc:
            self._logger.error("Delivery failed: %s", exc)
            await reply(MSG_SEND_FAILED)
            return PipelineState.IDLE
        except Exception:
            self._logger.exception("Unexpected error delivering email to %s", draft.to)
            await reply(MSG_SEND_FAILED)
            return PipelineState.IDLE
        await reply(MSG_SENT % draft.to)
        return PipelineState.IDLE
