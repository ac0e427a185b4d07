"""In-memory table of drafts awaiting a yes/no reply, keyed by chat id."""
import logging
import time
from collections import OrderedDict
from typing import Callable, Optional

from voxrelay.constants import (
    DEFAULT_CONFIRMATION_TIMEOUT,
    DEFAULT_MAX_PENDING,
    MSG_LOG_PENDING_EXPIRED,
)
from voxrelay.models import EmailDraft, PendingConfirmation


class PendingConfirmationStore:
    """Bounded, expiring chat → draft table.

    One entry per chat: a new draft replaces the previous one. Entries older
    than `ttl_seconds` are treated as absent and evicted lazily; once
    `max_entries` is reached the oldest entry is dropped to make room.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_CONFIRMATION_TIMEOUT,
        max_entries: int = DEFAULT_MAX_PENDING,
        clock: Callable[[], float] = time.monotonic,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._ttl = ttl_seconds
        self._max = max_entries
        self._clock = clock
        self._logger = logger or logging.getLogger(__name__)
        self._store: OrderedDict[str, PendingConfirmation] = OrderedDict()

    def __len__(self) -> int:
        return len(self._store)

    def put(self, chat_id: str, draft: EmailDraft) -> PendingConfirmation:
        self.purge_expired()
        self._store.pop(chat_id, None)
        while len(self._store) >= self._max:
            self._store.popitem(last=False)
        entry = PendingConfirmation(chat_id=chat_id, draft=draft, created_at=self._clock())
        self._store[chat_id] = entry
        return entry

    def get(self, chat_id: str) -> Optional[PendingConfirmation]:
        match self._store.get(chat_id):
            case None:
                return None
            case entry if self._expired(entry):
                del self._store[chat_id]
                return None
            case entry:
                return entry

    def pop(self, chat_id: str) -> Optional[PendingConfirmation]:
        entry = self.get(chat_id)
        self._store.pop(chat_id, None)
        return entry

    def purge_expired(self) -> int:
        stale = [key for key, entry in self._store.items() if self._expired(entry)]
        for key in stale:
            del self._store[key]
        if stale:
            self._logger.info(MSG_LOG_PENDING_EXPIRED, len(stale))
        return len(stale)

    def _expired(self, entry: PendingConfirmation) -> bool:
        return self._clock() - entry.created_at >= self._ttl
