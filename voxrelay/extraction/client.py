"""EmailExtractionClient — abstract base for transcript → email draft backends."""
import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, Optional

from voxrelay.constants import MSG_LOG_NO_DRAFT_UPSTREAM
from voxrelay.errors import RelayError, UpstreamError
from voxrelay.models import ExtractedDraft, Extraction, NoDraft

logger = logging.getLogger(__name__)


class EmailExtractionClient(ABC):
    @abstractmethod
    async def extract_email_fields(
        self, text: str, config: Optional[Mapping[str, Any]] = None
    ) -> ExtractedDraft:
        """Extract a validated draft from transcript text. Raises on failure."""
        ...

    async def try_extract(self, text: str) -> Extraction:
        """Like extract_email_fields, but any failure is a NoDraft value."""
        try:
            return await self.extract_email_fields(text)
        except RelayError as exc:
            if isinstance(exc, UpstreamError):
                logger.error(MSG_LOG_NO_DRAFT_UPSTREAM, exc)
            return NoDraft(reason=str(exc))
