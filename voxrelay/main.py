"""Entry point — wires Config → clients → VoiceRelayPipeline → TelegramClient."""
import logging
import sys

from rich.logging import RichHandler

from voxrelay.bot_client import VoiceFetcher
from voxrelay.config import Config
from voxrelay.constants import MSG_BOT_STARTING
from voxrelay.delivery.smtp import SmtpDeliveryClient
from voxrelay.errors import ConfigurationError
from voxrelay.extraction.openai import OpenAIExtractionClient
from voxrelay.models import GenerationConfig
from voxrelay.pending_store import PendingConfirmationStore
from voxrelay.pipeline import VoiceRelayPipeline
from voxrelay.telegram.client import TelegramClient
from voxrelay.transcription.transcoder import FFmpegTranscoder
from voxrelay.transcription.whisper import WhisperTranscriptionClient


def _setup_logging(level: str) -> None:
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    list(map(root.removeHandler, root.handlers[:]))
    root.addHandler(RichHandler(rich_tracebacks=True))


def build_client(config: Config) -> TelegramClient:
    """Construct every collaborator. SMTP is verified once the bot starts."""
    config.tmp_dir.mkdir(parents=True, exist_ok=True)

    delivery = SmtpDeliveryClient(config, logger=logging.getLogger("voxrelay.delivery"))

    transcriber = WhisperTranscriptionClient(
        config.openai_api_key,
        transcoder=FFmpegTranscoder(config.ffmpeg_path),
        tmp_dir=config.tmp_dir,
        max_file_size=config.max_file_size_bytes,
        timeout=config.request_timeout,
        logger=logging.getLogger("voxrelay.transcription"),
    )
    extractor = OpenAIExtractionClient(
        config.openai_api_key,
        defaults=GenerationConfig(model=config.gpt_model),
        logger=logging.getLogger("voxrelay.extraction"),
    )
    pending = PendingConfirmationStore(
        ttl_seconds=config.confirmation_timeout, max_entries=config.max_pending
    )

    def _pipeline(fetcher: VoiceFetcher) -> VoiceRelayPipeline:
        return VoiceRelayPipeline(
            transcriber=transcriber,
            extractor=extractor,
            delivery=delivery,
            fetcher=fetcher,
            pending=pending,
            tmp_dir=config.tmp_dir,
            logger=logging.getLogger("voxrelay.pipeline"),
        )

    return TelegramClient(config, pipeline_factory=_pipeline, on_startup=delivery.verify)


def main() -> None:
    logger = logging.getLogger(__name__)
    try:
        config = Config.from_env()
        _setup_logging(config.log_level)
        logger.info(MSG_BOT_STARTING)
        build_client(config).run()
    except ConfigurationError as exc:
        if not logging.getLogger().handlers:
            _setup_logging("INFO")
        logger.error("Startup failed: %s", exc)
        sys.exit(1)


if __name__ == "__main__":
    main()
