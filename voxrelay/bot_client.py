"""Abstract interfaces for transport-agnostic bot clients."""
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Awaitable, Callable

from voxrelay.models import VoiceMessageRef

# reply signature: (text) -> None, bound to one chat
Reply = Callable[[str], Awaitable[None]]


class VoiceFetcher(ABC):
    @abstractmethod
    async def resolve(self, file_id: str) -> VoiceMessageRef:
        """Look up a retrieval URL for a chat file. Raises FileResolutionFailed."""
        ...

    @abstractmethod
    async def download(self, ref: VoiceMessageRef, destination: Path) -> Path:
        """Stream the file to `destination`. Raises DownloadFailed."""
        ...


class TypingIndicator(ABC):
    @abstractmethod
    async def start(self) -> None: ...

    @abstractmethod
    async def stop(self) -> None: ...

    async def __aenter__(self) -> "TypingIndicator":
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()


class BotClient(ABC):
    @abstractmethod
    def run(self) -> None: ...

    @abstractmethod
    async def send_message(self, to: str, text: str) -> bool: ...
