"""Telegram typing indicator — sends chat action every N seconds until stopped."""
import asyncio
import logging

from telegram import Bot
from telegram.constants import ChatAction

from voxrelay.bot_client import TypingIndicator
from voxrelay.constants import TELEGRAM_TYPING_INTERVAL

logger = logging.getLogger(__name__)


async def _keep_typing(bot: Bot, chat_id: str, stop: asyncio.Event) -> None:
    while not stop.is_set():
        try:
            await bot.send_chat_action(chat_id=int(chat_id), action=ChatAction.TYPING)
        except Exception as exc:
            logger.debug("Typing action failed: %s", exc)
        try:
            await asyncio.wait_for(stop.wait(), timeout=TELEGRAM_TYPING_INTERVAL)
        except asyncio.TimeoutError:
            pass


class TelegramTypingIndicator(TypingIndicator):
    """Shows "typing…" in one chat while a pipeline run is in progress."""

    def __init__(self, bot: Bot, chat_id: str) -> None:
        self._bot = bot
        self._chat_id = chat_id
        self._stop_event: asyncio.Event | None = None
        self._task: asyncio.Task | None = None

    async def start(self) -> None:
        await self.stop()
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(
            _keep_typing(self._bot, self._chat_id, self._stop_event)
        )

    async def stop(self) -> None:
        if self._stop_event is not None:
            self._stop_event.set()
            self._stop_event = None

        match self._task:
            case None:
                pass
            case task:
                self._task = None
                await task
