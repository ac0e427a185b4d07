"""WhisperTranscriptionClient — OpenAI Whisper speech-to-text backend."""
import logging
import shutil
import time
from pathlib import Path
from typing import Optional

import openai
from openai import AsyncOpenAI

from voxrelay.constants import (
    BYTES_PER_MB,
    DEFAULT_MAX_FILE_SIZE_MB,
    DEFAULT_REQUEST_TIMEOUT,
    MP3_EXTENSION,
    MSG_LOG_TRANSCRIBED,
    SUPPORTED_AUDIO_FORMATS,
    WHISPER_MODEL,
)
from voxrelay.errors import (
    EmptyFile,
    InvalidCredentials,
    NotFound,
    RateLimited,
    TooLarge,
    TranscriptionFailed,
    UnsupportedFormat,
    UpstreamTimeout,
)
from voxrelay.models import TranscriptionOptions
from voxrelay.transcription.client import TranscriptionClient
from voxrelay.transcription.transcoder import FFmpegTranscoder


def validate_audio_file(path: Path, max_size: int) -> None:
    """Raise a ValidationError unless `path` is a non-empty supported file within `max_size`."""
    match path.is_file():
        case False:
            raise NotFound(f"Audio file not found: {path.name}")
        case True:
            pass

    size = path.stat().st_size
    match size:
        case 0:
            raise EmptyFile("Audio file is empty")
        case n if n > max_size:
            raise TooLarge(
                f"Audio file is too large. Maximum size is {max_size / BYTES_PER_MB:g}MB"
            )
        case _:
            pass

    match path.suffix.lower():
        case ext if ext in SUPPORTED_AUDIO_FORMATS:
            pass
        case _:
            raise UnsupportedFormat(
                "Unsupported file format. Supported formats are: "
                + ", ".join(SUPPORTED_AUDIO_FORMATS)
            )


def mp3_path_for(source: Path, tmp_dir: Path) -> Path:
    """Fresh MP3 path in `tmp_dir`, disambiguated by a millisecond timestamp."""
    return tmp_dir / f"{source.stem}_{int(time.time() * 1000)}{MP3_EXTENSION}"


class WhisperTranscriptionClient(TranscriptionClient):

    def __init__(
        self,
        api_key: str,
        transcoder: FFmpegTranscoder,
        tmp_dir: Path,
        max_file_size: int = DEFAULT_MAX_FILE_SIZE_MB * BYTES_PER_MB,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._client = AsyncOpenAI(api_key=api_key, timeout=timeout, max_retries=0)
        self._transcoder = transcoder
        self._tmp_dir = Path(tmp_dir)
        self._tmp_dir.mkdir(parents=True, exist_ok=True)
        self._max_file_size = max_file_size
        self._logger = logger or logging.getLogger(__name__)

    async def transcribe(
        self, audio_path: Path, options: Optional[TranscriptionOptions] = None
    ) -> str:
        audio_path = Path(audio_path)
        options = options or TranscriptionOptions()
        validate_audio_file(audio_path, self._max_file_size)

        mp3_path = mp3_path_for(audio_path, self._tmp_dir)
        try:
            match audio_path.suffix.lower():
                case ext if ext == MP3_EXTENSION:
                    shutil.copyfile(audio_path, mp3_path)
                case _:
                    await self._transcoder.to_mp3(audio_path, mp3_path)
            text = await self._send_to_whisper(mp3_path, options)
        except Exception as exc:
            self._logger.error("Transcription failed: %s", exc)
            raise
        finally:
            mp3_path.unlink(missing_ok=True)

        self._logger.info(MSG_LOG_TRANSCRIBED, audio_path.name, len(text))
        self._logger.debug("Transcription response: %s", text)
        return text

    async def _send_to_whisper(self, mp3_path: Path, options: TranscriptionOptions) -> str:
        try:
            with open(mp3_path, "rb") as audio_file:
                response = await self._client.audio.transcriptions.create(
                    model=WHISPER_MODEL,
                    file=audio_file,
                    **options.as_params(),
                )
        except openai.AuthenticationError as exc:
            raise InvalidCredentials("Invalid OpenAI API key") from exc
        except openai.RateLimitError as exc:
            raise RateLimited("OpenAI API rate limit exceeded") from exc
        except openai.APITimeoutError as exc:
            raise UpstreamTimeout("OpenAI API request timed out") from exc
        except openai.OpenAIError as exc:
            raise TranscriptionFailed(f"Failed to transcribe audio with Whisper: {exc}") from exc

        match response:
            case str() as text:
                return text.strip()
            case _:
                return (getattr(response, "text", "") or "").strip()
