"""OpenAIExtractionClient — turns a transcript into an email draft with a chat model."""
import json
import logging
import re
from collections.abc import Mapping
from typing import Any, Optional

import openai
from openai import AsyncOpenAI

from voxrelay.constants import EMAIL_EXTRACTION_PROMPT, MSG_LOG_EXTRACTED
from voxrelay.errors import ExtractionFailed, InvalidDraft, InvalidInput, MalformedResponse
from voxrelay.extraction.client import EmailExtractionClient
from voxrelay.models import EmailDraft, ExtractedDraft, GenerationConfig, UsageStats

_CODE_FENCE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


def build_extraction_prompt(text: str) -> str:
    return EMAIL_EXTRACTION_PROMPT % text.strip()


def parse_draft(raw: Optional[str]) -> EmailDraft:
    """Parse the model's reply into a validated EmailDraft."""
    match (raw or "").strip():
        case "":
            raise MalformedResponse("No response from GPT")
        case content:
            fenced = _CODE_FENCE.match(content)
            payload = fenced.group(1) if fenced else content
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise MalformedResponse(f"Invalid JSON response from GPT: {exc}") from exc
    return EmailDraft.from_mapping(data)


class OpenAIExtractionClient(EmailExtractionClient):

    def __init__(
        self,
        api_key: str,
        defaults: GenerationConfig = GenerationConfig(),
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._client = AsyncOpenAI(api_key=api_key, max_retries=0)
        self._defaults = defaults
        self._logger = logger or logging.getLogger(__name__)

    def get_config(self) -> GenerationConfig:
        return self._defaults

    async def extract_email_fields(
        self, text: str, config: Optional[Mapping[str, Any]] = None
    ) -> ExtractedDraft:
        match text:
            case str() as t if t.strip():
                pass
            case _:
                raise InvalidInput("Text cannot be empty")

        settings = self._defaults.merged(config)

        try:
            response = await self._client.chat.completions.create(
                model=settings.model,
                messages=[{"role": "user", "content": build_extraction_prompt(text)}],
                temperature=settings.temperature,
                max_tokens=settings.max_tokens,
            )
        except openai.OpenAIError as exc:
            self._logger.error("Failed to extract email fields: %s", exc)
            raise ExtractionFailed(f"Failed to extract email fields: {exc}") from exc

        choices = response.choices or []
        raw = choices[0].message.content if choices else None
        self._logger.debug("GPT response: %s", raw)

        try:
            draft = parse_draft(raw)
        except (MalformedResponse, InvalidDraft) as exc:
            self._logger.error("Failed to extract email fields: %s", exc)
            raise
        usage = UsageStats.from_usage(response.usage)

        self._logger.info(MSG_LOG_EXTRACTED, draft.to, usage.total_tokens)
        return ExtractedDraft(draft=draft, usage=usage)
