import asyncio
import logging
import time
from typing import Callable, Optional

import httpx
from pydantic import TypeAdapter, ValidationError

from icebroker.config import Settings, get_settings
from icebroker.errors import (
    FetchTimeoutError,
    InvalidPayloadError,
    NotConfiguredError,
    ServiceError,
    UnexpectedFetchError,
    UnreachableError,
)
from icebroker.events import log_event
from icebroker.models import CredentialSet, IceServer

logger = logging.getLogger(__name__)

# Hard upper bound for one credential request
FETCH_TIMEOUT_SECONDS = 5.0

_ice_servers = TypeAdapter(list[IceServer])


def parse_ice_servers(raw) -> list[IceServer]:
    """
    Validate a credential API body.

    Accepts either a bare list of ICE server objects or an object exposing
    the list under "iceServers".

    Raises:
        InvalidPayloadError: for any other shape, or entries that are not
            valid ICE servers
    """
    if isinstance(raw, list):
        candidate = raw
    elif isinstance(raw, dict) and isinstance(raw.get("iceServers"), list):
        candidate = raw["iceServers"]
    else:
        raise InvalidPayloadError(
            "Unexpected credential payload format. Expected array or { iceServers: [...] }"
        )

    try:
        return _ice_servers.validate_python(candidate)
    except ValidationError as e:
        raise InvalidPayloadError(
            f"Credential payload contains invalid ICE servers ({e.error_count()} errors)"
        ) from e


class TURNService:
    """Fetch short-lived TURN credentials from the Metered API."""

    def __init__(
        self,
        settings: Settings = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = FETCH_TIMEOUT_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        if settings is None:
            settings = get_settings()
        self.api_key = settings.metered_api_key
        self.base_url = settings.metered_api_url
        self.timeout = timeout
        self._client = client
        self._clock = clock

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def fetch(self) -> CredentialSet:
        """
        Fetch the current ICE server list.

        A response without usable TURN entries is still a success; the
        servers are kept for STUN use.

        Raises:
            NotConfiguredError: no API key, no request is made
            FetchTimeoutError: no response within the timeout
            ServiceError: non-2xx response
            InvalidPayloadError: body is not a list of ICE servers
            UnreachableError: the request failed at the transport level
            UnexpectedFetchError: the request could not be built, e.g. a
                malformed endpoint URL
        """
        if not self.configured:
            raise NotConfiguredError()

        try:
            response = await asyncio.wait_for(self._get(), timeout=self.timeout)
        except (asyncio.TimeoutError, httpx.TimeoutException):
            raise FetchTimeoutError(self.timeout) from None
        except httpx.HTTPError as e:
            raise UnreachableError(f"Error fetching TURN credentials: {e}") from e
        except httpx.InvalidURL as e:
            raise UnexpectedFetchError(f"Invalid credential API URL {self.base_url!r}: {e}") from e

        if not response.is_success:
            raise ServiceError(response.status_code, response.reason_phrase)

        try:
            raw = response.json()
        except ValueError as e:
            raise InvalidPayloadError("Credential API returned a body that is not JSON") from e

        log_event(logger, "debug", "fetch_raw_response", "Raw API Response", raw=raw)
        servers = parse_ice_servers(raw)
        credentials = CredentialSet(servers=tuple(servers), fetched_at=self._clock())

        if not credentials.has_relay:
            log_event(
                logger, "warn", "no_relay_urls",
                "No TURN relay URLs found in response. Will still return servers for STUN usage.",
                servers=len(servers),
            )
        log_event(
            logger, "info", "credentials_fetched", "Fetched TURN credentials",
            servers=len(servers), relays=len(credentials.relay_servers),
        )
        return credentials

    async def _get(self) -> httpx.Response:
        params = {"apiKey": self.api_key}
        headers = {"Content-Type": "application/json"}
        if self._client is not None:
            return await self._client.get(self.base_url, params=params, headers=headers, timeout=self.timeout)

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.get(self.base_url, params=params, headers=headers)
