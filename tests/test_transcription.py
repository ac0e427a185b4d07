"""TDD: TranscriptionClient tests written FIRST"""
import httpx
import openai
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

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
from voxrelay.transcription.whisper import WhisperTranscriptionClient

WHISPER_URL = "https://api.openai.com/v1/audio/transcriptions"


def _request() -> httpx.Request:
    return httpx.Request("POST", WHISPER_URL)


def _status_error(cls, status: int):
    return cls("upstream says no", response=httpx.Response(status, request=_request()), body=None)


def make_client(tmp_path, *, create=None, max_file_size=25 * 1024 * 1024):
    mock_openai = MagicMock()
    mock_openai.audio.transcriptions.create = create or AsyncMock(return_value="hello from voice")
    transcoder = MagicMock()

    async def fake_to_mp3(source, destination):
        destination.write_bytes(b"mp3-data")
        return destination

    transcoder.to_mp3 = AsyncMock(side_effect=fake_to_mp3)
    with patch("voxrelay.transcription.whisper.AsyncOpenAI", return_value=mock_openai):
        client = WhisperTranscriptionClient(
            api_key="test-key",
            transcoder=transcoder,
            tmp_dir=tmp_path / "work",
            max_file_size=max_file_size,
        )
    return client, mock_openai, transcoder


def write_audio(tmp_path, name: str, size: int = 2048):
    path = tmp_path / name
    path.write_bytes(b"\x00" * size)
    return path


def test_whisper_client_implements_abc():
    assert issubclass(WhisperTranscriptionClient, TranscriptionClient)


# ── preconditions ─────────────────────────────────────────────────────────────


async def test_missing_file_fails_before_network(tmp_path):
    client, mock_openai, _ = make_client(tmp_path)

    with pytest.raises(NotFound):
        await client.transcribe(tmp_path / "missing.ogg")

    mock_openai.audio.transcriptions.create.assert_not_called()


async def test_empty_file_fails(tmp_path):
    client, mock_openai, _ = make_client(tmp_path)

    with pytest.raises(EmptyFile):
        await client.transcribe(write_audio(tmp_path, "voice.ogg", size=0))

    mock_openai.audio.transcriptions.create.assert_not_called()


async def test_file_over_ceiling_fails_without_network_call(tmp_path):
    client, mock_openai, transcoder = make_client(tmp_path, max_file_size=1024)

    with pytest.raises(TooLarge, match="Maximum size"):
        await client.transcribe(write_audio(tmp_path, "voice.wav", size=1025))

    mock_openai.audio.transcriptions.create.assert_not_called()
    transcoder.to_mp3.assert_not_called()


async def test_unsupported_extension_fails_before_transcoding(tmp_path):
    client, mock_openai, transcoder = make_client(tmp_path)

    with pytest.raises(UnsupportedFormat, match=".ogg"):
        await client.transcribe(write_audio(tmp_path, "voice.flac"))

    transcoder.to_mp3.assert_not_called()
    mock_openai.audio.transcriptions.create.assert_not_called()


async def test_extension_check_is_case_insensitive(tmp_path):
    client, _, transcoder = make_client(tmp_path)

    assert await client.transcribe(write_audio(tmp_path, "VOICE.OGG")) == "hello from voice"
    transcoder.to_mp3.assert_awaited_once()


# ── procedure ─────────────────────────────────────────────────────────────────


async def test_non_mp3_is_transcoded_then_uploaded(tmp_path):
    client, mock_openai, transcoder = make_client(tmp_path)

    result = await client.transcribe(
        write_audio(tmp_path, "voice.ogg"), TranscriptionOptions(language="en")
    )

    assert result == "hello from voice"
    transcoder.to_mp3.assert_awaited_once()
    kwargs = mock_openai.audio.transcriptions.create.call_args.kwargs
    assert kwargs["model"] == "whisper-1"
    assert kwargs["language"] == "en"
    assert kwargs["response_format"] == "text"
    assert "temperature" not in kwargs
    assert "prompt" not in kwargs


async def test_mp3_skips_transcoding_and_uploads_identical_copy(tmp_path):
    uploaded = {}

    async def capture(**kwargs):
        uploaded["bytes"] = kwargs["file"].read()
        uploaded["name"] = kwargs["file"].name
        return "ok"

    client, _, transcoder = make_client(tmp_path, create=AsyncMock(side_effect=capture))
    source = tmp_path / "memo.mp3"
    source.write_bytes(b"ID3-original-mp3")

    await client.transcribe(source)

    transcoder.to_mp3.assert_not_called()
    assert uploaded["bytes"] == b"ID3-original-mp3"
    assert uploaded["name"] != str(source)
    assert source.exists()


async def test_returns_text_attribute_for_object_responses(tmp_path):
    client, _, _ = make_client(
        tmp_path, create=AsyncMock(return_value=MagicMock(text="  hello  "))
    )

    assert await client.transcribe(write_audio(tmp_path, "voice.ogg")) == "hello"


async def test_temp_mp3_removed_after_success(tmp_path):
    client, _, _ = make_client(tmp_path)

    await client.transcribe(write_audio(tmp_path, "voice.ogg"))

    assert list((tmp_path / "work").iterdir()) == []


# ── upstream errors ───────────────────────────────────────────────────────────


@pytest.mark.parametrize(
    "error,expected",
    [
        (_status_error(openai.AuthenticationError, 401), InvalidCredentials),
        (_status_error(openai.RateLimitError, 429), RateLimited),
        (openai.APITimeoutError(request=_request()), UpstreamTimeout),
        (_status_error(openai.InternalServerError, 500), TranscriptionFailed),
        (openai.APIConnectionError(request=_request()), TranscriptionFailed),
    ],
)
async def test_upstream_errors_are_translated_and_temp_file_removed(tmp_path, error, expected):
    client, _, _ = make_client(tmp_path, create=AsyncMock(side_effect=error))

    with pytest.raises(expected):
        await client.transcribe(write_audio(tmp_path, "voice.ogg"))

    assert list((tmp_path / "work").iterdir()) == []


async def test_transcoding_failure_leaves_no_temp_file(tmp_path):
    client, mock_openai, transcoder = make_client(tmp_path)

    async def half_written(source, destination):
        destination.write_bytes(b"partial")
        raise RuntimeError("ffmpeg crashed")

    transcoder.to_mp3 = AsyncMock(side_effect=half_written)

    with pytest.raises(RuntimeError):
        await client.transcribe(write_audio(tmp_path, "voice.ogg"))

    mock_openai.audio.transcriptions.create.assert_not_called()
    assert list((tmp_path / "work").iterdir()) == []
