import time
from typing import Callable, Optional

from icebroker.models import CacheEntry, CredentialSet


class CredentialCache:
    """
    Holds the last successfully fetched credential set.

    Entries are never evicted. An expired entry is simply not served and
    gets replaced by the next successful fetch.
    """

    def __init__(self, ttl: float, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._entry: Optional[CacheEntry] = None

    def get(self) -> Optional[CredentialSet]:
        entry = self._entry
        if entry is None or not entry.is_valid(self._clock()):
            return None
        return entry.credentials

    def put(self, credentials: CredentialSet) -> None:
        self._entry = CacheEntry(credentials=credentials, expires_at=self._clock() + self.ttl)

    def expires_in(self) -> Optional[float]:
        """Seconds until the current entry expires, None if nothing valid is cached."""
        entry = self._entry
        if entry is None:
            return None
        remaining = entry.expires_at - self._clock()
        return remaining if remaining > 0 else None
