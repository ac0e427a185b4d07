"""TelegramVoiceFetcher — resolves voice file ids and streams them to disk."""
import logging
from pathlib import Path
from typing import Optional

import httpx
from telegram import Bot
from telegram.error import TelegramError

from voxrelay.bot_client import VoiceFetcher
from voxrelay.constants import DEFAULT_REQUEST_TIMEOUT, TELEGRAM_FILE_URL
from voxrelay.errors import DownloadFailed, FileResolutionFailed
from voxrelay.models import VoiceMessageRef


class TelegramVoiceFetcher(VoiceFetcher):

    def __init__(
        self,
        bot: Bot,
        token: str,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._bot = bot
        self._token = token
        self._timeout = timeout
        self._transport = transport
        self._logger = logger or logging.getLogger(__name__)

    async def resolve(self, file_id: str) -> VoiceMessageRef:
        try:
            tg_file = await self._bot.get_file(file_id)
        except TelegramError as exc:
            self._logger.error("Failed to get file URL: %s", exc)
            raise FileResolutionFailed("Failed to retrieve voice message from Telegram") from exc

        match tg_file.file_path:
            case str() as path if path.startswith(("http://", "https://")):
                return VoiceMessageRef(file_id=file_id, url=path)
            case str() as path if path:
                return VoiceMessageRef(
                    file_id=file_id, url=TELEGRAM_FILE_URL % (self._token, path)
                )
            case _:
                raise FileResolutionFailed("Invalid response from Telegram API: no file path")

    async def download(self, ref: VoiceMessageRef, destination: Path) -> Path:
        destination = Path(destination)
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                async with client.stream("GET", ref.url) as response:
                    response.raise_for_status()
                    with open(destination, "wb") as out:
                        async for chunk in response.aiter_bytes():
                            out.write(chunk)
        except (httpx.HTTPError, OSError) as exc:
            self._logger.error("Download failed: %s", exc)
            raise DownloadFailed("Failed to download voice message") from exc
        return destination
