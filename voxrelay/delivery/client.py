"""DeliveryClient — abstract base for outbound email transports."""
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, Optional, Union

from voxrelay.models import DeliveryOptions, EmailDraft


class DeliveryClient(ABC):
    @abstractmethod
    async def verify(self) -> None:
        """Check the transport is reachable. Raises ConfigurationError if not."""
        ...

    @abstractmethod
    async def send_email(
        self,
        draft: Union[EmailDraft, Mapping[str, Any]],
        options: Optional[DeliveryOptions] = None,
    ) -> str:
        """Send `draft` and return the transport's message identifier."""
        ...
