"""TelegramClient — event-driven transport via python-telegram-bot."""
import logging
from typing import Awaitable, Callable, Optional

from telegram import Update
from telegram.ext import Application, CommandHandler, ContextTypes
from telegram.ext import MessageHandler as TGMessageHandler
from telegram.ext import filters

from voxrelay.bot_client import BotClient, Reply, VoiceFetcher
from voxrelay.config import Config
from voxrelay.constants import (
    CMD_HELP,
    CMD_START,
    MSG_BLOCKED_CHAT,
    MSG_BOT_ENVIRONMENT,
    MSG_BOT_LISTENING,
    MSG_HELP,
    MSG_LOG_UNEXPECTED,
    MSG_LOG_UNEXPECTED_REPLY,
    MSG_UNEXPECTED_ERROR,
    MSG_WELCOME,
)
from voxrelay.pipeline import VoiceRelayPipeline
from voxrelay.telegram.fetcher import TelegramVoiceFetcher
from voxrelay.telegram.typing import TelegramTypingIndicator

PipelineFactory = Callable[[VoiceFetcher], VoiceRelayPipeline]


class TelegramClient(BotClient):

    def __init__(
        self,
        config: Config,
        pipeline_factory: PipelineFactory,
        on_startup: Optional[Callable[[], Awaitable[None]]] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._config = config
        self._token = config.telegram_bot_token
        self._allowed_chat_ids = config.allowed_chat_ids
        self._pipeline_factory = pipeline_factory
        self._on_startup = on_startup
        self._logger = logger or logging.getLogger(__name__)
        self._app: Optional[Application] = None
        self._pipeline: Optional[VoiceRelayPipeline] = None

    # ── BotClient interface ───────────────────────────────────────────────────

    def build_application(self) -> Application:
        builder = Application.builder().token(self._token).concurrent_updates(True)
        if self._on_startup is not None:
            builder = builder.post_init(self._post_init)
        self._app = builder.build()
        fetcher = TelegramVoiceFetcher(
            self._app.bot, self._token, timeout=self._config.request_timeout
        )
        self._pipeline = self._pipeline_factory(fetcher)

        self._app.add_handler(CommandHandler(CMD_START, self._make_text_command(MSG_WELCOME)))
        self._app.add_handler(CommandHandler(CMD_HELP, self._make_text_command(MSG_HELP)))
        self._app.add_handler(TGMessageHandler(filters.VOICE, self._make_voice_handler()))
        self._app.add_handler(
            TGMessageHandler(filters.TEXT & ~filters.COMMAND, self._make_reply_handler())
        )
        self._app.add_error_handler(self._on_error)
        return self._app

    def run(self) -> None:
        app = self.build_application()
        self._logger.info(MSG_BOT_ENVIRONMENT, self._config.environment)
        match self._config.webhook_url:
            case None:
                app.run_polling()
            case url:
                self._logger.info(MSG_BOT_LISTENING, self._config.port)
                app.run_webhook(listen="0.0.0.0", port=self._config.port, webhook_url=url)

    async def send_message(self, to: str, text: str) -> bool:
        match self._app:
            case None:
                self._logger.error("send_message called before run()")
                return False
            case app:
                try:
                    await app.bot.send_message(chat_id=int(to), text=text)
                    return True
                except Exception as exc:
                    self._logger.error("Telegram send_message failed: %s", exc)
                    return False

    # ── helpers (also used in tests) ─────────────────────────────────────────

    def _is_allowed(self, update: Update) -> bool:
        if update.effective_chat is None:
            return False
        match self._allowed_chat_ids:
            case ():
                return True
            case allowed:
                return str(update.effective_chat.id) in allowed

    def _reply_to(self, chat_id: str) -> Reply:
        async def _reply(text: str) -> None:
            await self.send_message(chat_id, text)

        return _reply

    def _chat_id(self, update: Update) -> Optional[str]:
        match self._is_allowed(update):
            case False:
                chat_id = update.effective_chat.id if update.effective_chat else "?"
                self._logger.warning(MSG_BLOCKED_CHAT, chat_id)
                return None
            case True:
                return str(update.effective_chat.id)

    # ── internal handler factory ──────────────────────────────────────────────

    def _make_text_command(self, text: str) -> Callable:
        async def _handler(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
            match self._chat_id(update):
                case None:
                    return
                case chat_id:
                    await self.send_message(chat_id, text)

        return _handler

    def _make_voice_handler(self) -> Callable:
        async def _handler(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
            chat_id = self._chat_id(update)
            voice = update.message.voice if update.message else None
            match (chat_id, voice):
                case (None, _) | (_, None):
                    return
                case _:
                    pass

            try:
                async with TelegramTypingIndicator(context.bot, chat_id):
                    await self._pipeline.handle_voice(
                        chat_id, voice.file_id, self._reply_to(chat_id)
                    )
            except Exception:
                self._logger.exception(MSG_LOG_UNEXPECTED, chat_id)
                await self.send_message(chat_id, MSG_UNEXPECTED_ERROR)

        return _handler

    def _make_reply_handler(self) -> Callable:
        async def _handler(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
            chat_id = self._chat_id(update)
            text = (update.message.text or "") if update.message else ""
            match (chat_id, text.strip()):
                case (None, _) | (_, ""):
                    return
                case (chat, answer):
                    try:
                        await self._pipeline.handle_reply(chat, answer, self._reply_to(chat))
                    except Exception:
                        self._logger.exception(MSG_LOG_UNEXPECTED_REPLY, chat)
                        await self.send_message(chat, MSG_UNEXPECTED_ERROR)

        return _handler

    async def _post_init(self, app: Application) -> None:
        await self._on_startup()

    async def _on_error(self, update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
        self._logger.error("Bot error: %s", context.error)
