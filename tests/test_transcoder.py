import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from voxrelay.errors import TranscodingFailed, TranscriptionFailed
from voxrelay.transcription.transcoder import FFmpegTranscoder, mp3_args


def make_process(returncode: int = 0, stderr: bytes = b"") -> MagicMock:
    process = MagicMock()
    process.returncode = returncode
    process.communicate = AsyncMock(return_value=(b"", stderr))
    return process


def test_mp3_args_request_mono_16khz_128kbps(tmp_path):
    args = mp3_args("ffmpeg", tmp_path / "in.ogg", tmp_path / "out.mp3")

    assert args[0] == "ffmpeg"
    assert args[args.index("-ac") + 1] == "1"
    assert args[args.index("-ar") + 1] == "16000"
    assert args[args.index("-b:a") + 1] == "128k"
    assert args[-1] == str(tmp_path / "out.mp3")


async def test_to_mp3_runs_ffmpeg_with_same_args_every_time(tmp_path):
    source, destination = tmp_path / "in.ogg", tmp_path / "out.mp3"
    source.write_bytes(b"ogg")

    async def fake_exec(*args, **kwargs):
        destination.write_bytes(b"mp3")
        return make_process()

    transcoder = FFmpegTranscoder("/usr/bin/ffmpeg")
    with patch(
        "voxrelay.transcription.transcoder.asyncio.create_subprocess_exec",
        side_effect=fake_exec,
    ) as mock_exec:
        await transcoder.to_mp3(source, destination)
        await transcoder.to_mp3(source, destination)

    first, second = mock_exec.call_args_list
    assert first.args == second.args
    assert first.args[0] == "/usr/bin/ffmpeg"


async def test_to_mp3_raises_on_nonzero_exit(tmp_path):
    transcoder = FFmpegTranscoder()
    with patch(
        "voxrelay.transcription.transcoder.asyncio.create_subprocess_exec",
        new=AsyncMock(return_value=make_process(1, b"Invalid data found")),
    ):
        with pytest.raises(TranscodingFailed, match="Invalid data found"):
            await transcoder.to_mp3(tmp_path / "in.ogg", tmp_path / "out.mp3")


async def test_to_mp3_raises_when_ffmpeg_missing(tmp_path):
    transcoder = FFmpegTranscoder("/nope/ffmpeg")
    with patch(
        "voxrelay.transcription.transcoder.asyncio.create_subprocess_exec",
        new=AsyncMock(side_effect=FileNotFoundError("ffmpeg")),
    ):
        with pytest.raises(TranscodingFailed, match="cannot run ffmpeg"):
            await transcoder.to_mp3(tmp_path / "in.ogg", tmp_path / "out.mp3")


async def test_to_mp3_raises_on_empty_output(tmp_path):
    transcoder = FFmpegTranscoder()
    with patch(
        "voxrelay.transcription.transcoder.asyncio.create_subprocess_exec",
        new=AsyncMock(return_value=make_process()),
    ):
        with pytest.raises(TranscodingFailed, match="no output"):
            await transcoder.to_mp3(tmp_path / "in.ogg", tmp_path / "out.mp3")


def test_transcoding_failure_is_a_transcription_failure():
    assert issubclass(TranscodingFailed, TranscriptionFailed)
