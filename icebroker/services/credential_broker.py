import asyncio
import logging
import time
from typing import Callable, Optional

import httpx

from icebroker.config import Settings
from icebroker.errors import FetchError, UnexpectedFetchError
from icebroker.events import log_event, log_fetch_error
from icebroker.models import CredentialSet
from icebroker.services.credential_cache import CredentialCache
from icebroker.services.turn_service import TURNService

logger = logging.getLogger(__name__)


class CredentialBroker:
    """
    Single owner of the TURN credential cache and the in-flight fetch.

    Any number of concurrent acquire() calls share one network request.
    All cache and in-flight checks in acquire() run without an intervening
    await, so only one fetch can start per cache miss.
    """

    def __init__(self, fetcher: TURNService, cache: CredentialCache):
        self.fetcher = fetcher
        self.cache = cache
        self._in_flight: Optional[asyncio.Task] = None

    @property
    def configured(self) -> bool:
        return self.fetcher.configured

    @property
    def fetch_in_flight(self) -> bool:
        return self._in_flight is not None

    async def acquire(self) -> CredentialSet:
        """
        Return valid TURN credentials, fetching them if the cache is stale.

        Raises:
            FetchError: the shared fetch failed; every concurrent caller
                receives the same exception
        """
        cached = self.cache.get()
        if cached is not None:
            log_event(logger, "debug", "credentials_cached", "Using cached credentials")
            return cached
        return await self.refresh()

    async def refresh(self) -> CredentialSet:
        """
        Fetch regardless of the cache, joining a fetch already in flight.

        A failed fetch leaves the cached entry untouched.
        """
        if self._in_flight is None:
            self._in_flight = asyncio.create_task(self._fetch())
            self._in_flight.add_done_callback(_retrieve_exception)
        else:
            log_event(logger, "debug", "fetch_joined", "Joining in-flight credential fetch")

        try:
            # A cancelled waiter must not cancel the fetch other callers share
            return await asyncio.shield(self._in_flight)
        except FetchError as e:
            # Waiters share one exception; each raise starts a fresh traceback
            raise e.with_traceback(None)

    async def prewarm(self) -> None:
        """Populate the cache ahead of the first session; the outcome is only logged."""
        try:
            await self.acquire()
        except FetchError:
            pass

    async def _fetch(self) -> CredentialSet:
        try:
            credentials = await self.fetcher.fetch()
            self.cache.put(credentials)
            return credentials
        except FetchError as e:
            log_fetch_error(logger, e)
            raise
        except Exception as e:
            error = UnexpectedFetchError(f"Unknown error fetching TURN credentials: {e!r}")
            log_fetch_error(logger, error)
            raise error from e
        finally:
            # Cleared before waiters resume, so the next caller starts fresh
            self._in_flight = None


def _retrieve_exception(task: asyncio.Task) -> None:
    if not task.cancelled():
        task.exception()


def create_broker(
    settings: Settings,
    client: Optional[httpx.AsyncClient] = None,
    clock: Callable[[], float] = time.monotonic,
) -> CredentialBroker:
    fetcher = TURNService(settings, client=client, clock=clock)
    cache = CredentialCache(settings.turn_credential_cache_seconds, clock=clock)
    return CredentialBroker(fetcher, cache)
