"""TranscriptionClient — abstract base for speech-to-text backends."""
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from voxrelay.models import TranscriptionOptions


class TranscriptionClient(ABC):
    @abstractmethod
    async def transcribe(
        self, audio_path: Path, options: Optional[TranscriptionOptions] = None
    ) -> str:
        """Convert a local audio file to text. Raises RelayError subclasses on failure."""
        ...
