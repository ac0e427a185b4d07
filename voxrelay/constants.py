"""All magic values live here — no inline literals anywhere else."""

# Telegram typing indicator re-send interval (seconds).
# The TYPING action expires after ~5 s, so we refresh every 4 s.
TELEGRAM_TYPING_INTERVAL: float = 4.0
TELEGRAM_FILE_URL = "https://api.telegram.org/file/bot%s/%s"
CMD_START = "start"
CMD_HELP = "help"

# Audio validation / transcoding
SUPPORTED_AUDIO_FORMATS: tuple[str, ...] = (".ogg", ".mp3", ".wav", ".m4a", ".webm")
MP3_EXTENSION = ".mp3"
VOICE_EXTENSION = ".ogg"
BYTES_PER_MB = 1024 * 1024
DEFAULT_MAX_FILE_SIZE_MB = 25
DEFAULT_REQUEST_TIMEOUT: float = 30.0
MP3_BITRATE = "128k"
MP3_CHANNELS = 1
MP3_SAMPLE_RATE = 16000

# Whisper
WHISPER_MODEL = "whisper-1"
RESPONSE_FORMATS: tuple[str, ...] = ("text", "json", "srt", "verbose_json", "vtt")
DEFAULT_TRANSCRIPTION_LANGUAGE = "en"
DEFAULT_RESPONSE_FORMAT = "text"

# Email extraction
DEFAULT_GPT_MODEL = "gpt-4o"
DEFAULT_GPT_TEMPERATURE: float = 0.7
DEFAULT_GPT_MAX_TOKENS = 1000
GPT_TEMPERATURE_RANGE: tuple[float, float] = (0.0, 2.0)
EMAIL_EXTRACTION_PROMPT = """\
You are a helpful assistant that receives a transcribed voice message.
Your job is to extract an email draft from the following text.

Guidelines:
1. Extract a valid email address for the "to" field
2. Create a concise and relevant subject line
3. Format the body text appropriately with paragraphs
4. Remove any filler words or hesitations from the transcription

Return only a JSON object with exactly the keys "to", "subject" and "body":
{
    "to": "example@example.com",
    "subject": "Email subject here",
    "body": "Full email message here"
}

Transcribed text:
\"\"\"
%s
\"\"\""""

# Confirmation
CONFIRM_YES = "yes"
CONFIRM_NO = "no"
DEFAULT_CONFIRMATION_TIMEOUT: float = 600.0
DEFAULT_MAX_PENDING = 100

# Log messages
MSG_BOT_STARTING = "Starting voxrelay bot…"
MSG_BOT_LISTENING = "Bot is running on port %s"
MSG_BOT_ENVIRONMENT = "Environment: %s"
MSG_BLOCKED_CHAT = "Blocked update from chat_id: %s"
MSG_LOG_DOWNLOADED = "Voice message downloaded: %s"
MSG_LOG_TRANSCODED = "Converted %s to %s"
MSG_LOG_TRANSCRIBED = "Transcribed %s (%d chars)"
MSG_LOG_EXTRACTED = "Extracted draft for %s (tokens: %d)"
MSG_LOG_NO_DRAFT = "No email draft for chat %s: %s"
MSG_LOG_NO_DRAFT_UPSTREAM = "Email extraction failed upstream: %s"
MSG_LOG_SENT = "Email sent to %s: %s"
MSG_LOG_SEND_FAILED = "Failed to send email to %s: %s"
MSG_LOG_STAGE_FAILED = "Pipeline for chat %s aborted while %s: %s"
MSG_LOG_UNEXPECTED = "Unexpected error processing voice message for chat %s"
MSG_LOG_UNEXPECTED_REPLY = "Unexpected error handling reply for chat %s"
MSG_LOG_SMTP_VERIFIED = "SMTP connection verified (%s:%s)"
MSG_LOG_PENDING_EXPIRED = "Evicted %d expired confirmation(s)"

# User-facing replies
MSG_WELCOME = (
    "👋 Welcome! Send me a voice message describing an email and I'll "
    "draft it for you and send it once you confirm."
)
MSG_HELP = (
    "🎯 How to use this bot:\n"
    "\n"
    "1. Send a voice message, e.g. \"email jane@example.com about the report\"\n"
    "2. Check the transcript and the drafted email\n"
    "3. Reply yes to send it, or no to cancel\n"
    "\n"
    "Commands:\n"
    "  /start — welcome message\n"
    "  /help  — show this message\n"
)
MSG_PROCESSING = "⏳ Processing your voice message..."
MSG_TRANSCRIPT = "📝 Transcript:\n%s"
MSG_NO_EMAIL_FOUND = "🤷 No email information was found in your message."
MSG_DRAFT = (
    "📧 Email draft\n"
    "\n"
    "To: %s\n"
    "Subject: %s\n"
    "\n"
    "%s\n"
    "\n"
    "Send this email? Reply yes or no."
)
MSG_REPROMPT = "Please reply yes to send the email or no to cancel."
MSG_SENT = "✅ Email sent to %s."
MSG_CANCELLED = "🚫 Email cancelled."
MSG_SEND_FAILED = "❌ Failed to send the email. Please try again."
MSG_NOTHING_PENDING = "Send me a voice message to draft an email."
MSG_DOWNLOAD_FAILED = "❌ Failed to retrieve your voice message. Please try again."
MSG_PROCESSING_FAILED = "❌ Failed to process your voice message. Please try again."
MSG_UNEXPECTED_ERROR = (
    "❌ Sorry, I encountered an error while processing your voice message. "
    "Please try again later."
)
