"""FFmpegTranscoder — normalizes any supported audio file to Whisper-friendly MP3."""
import asyncio
import logging
from pathlib import Path
from typing import Optional

from voxrelay.constants import MP3_BITRATE, MP3_CHANNELS, MP3_SAMPLE_RATE, MSG_LOG_TRANSCODED
from voxrelay.errors import TranscodingFailed


def mp3_args(ffmpeg_path: str, source: Path, destination: Path) -> list[str]:
    """ffmpeg argv for a mono / 16 kHz / 128 kbps MP3."""
    return [
        ffmpeg_path,
        "-y",
        "-loglevel", "error",
        "-i", str(source),
        "-vn",
        "-ac", str(MP3_CHANNELS),
        "-ar", str(MP3_SAMPLE_RATE),
        "-b:a", MP3_BITRATE,
        "-f", "mp3",
        str(destination),
    ]


class FFmpegTranscoder:

    def __init__(self, ffmpeg_path: str = "ffmpeg", logger: Optional[logging.Logger] = None) -> None:
        self._ffmpeg_path = ffmpeg_path
        self._logger = logger or logging.getLogger(__name__)

    async def to_mp3(self, source: Path, destination: Path) -> Path:
        args = mp3_args(self._ffmpeg_path, source, destination)
        self._logger.debug("FFmpeg started with command: %s", " ".join(args))
        try:
            process = await asyncio.create_subprocess_exec(
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise TranscodingFailed(f"Failed to convert audio: cannot run ffmpeg ({exc})") from exc

        _, stderr = await process.communicate()
        match process.returncode:
            case 0:
                pass
            case code:
                detail = stderr.decode(errors="replace").strip() or f"exit code {code}"
                raise TranscodingFailed(f"Failed to convert audio: {detail}")

        match destination.exists() and destination.stat().st_size > 0:
            case True:
                self._logger.info(MSG_LOG_TRANSCODED, source, destination)
                return destination
            case False:
                raise TranscodingFailed("Failed to convert audio: ffmpeg produced no output")
