"""
Tiered RTCConfiguration builder.

Connections start with STUN only. When that fails the caller asks for STUN
plus TURN, and as a last resort for TURN only. Every tier degrades towards
STUN-only when TURN credentials are unavailable, it never raises.
"""
import logging
from typing import Sequence

from icebroker.config import Settings
from icebroker.errors import FetchError
from icebroker.events import log_event
from icebroker.models import ConnectivityConfig, CredentialSet, IceMode, IceServer, IceTransportPolicy
from icebroker.services.credential_broker import CredentialBroker

logger = logging.getLogger(__name__)

# ICE candidate pool sizes per tier
STUN_ONLY_POOL_SIZE = 4
FULL_POOL_SIZE = 2
RELAY_ONLY_POOL_SIZE = 0  # gather fresh relay candidates


def discovery_servers_from_settings(settings: Settings) -> list[IceServer]:
    if not settings.stun_servers:
        return []
    return [IceServer(urls=tuple(settings.stun_servers))]


def build_discovery_only(discovery_servers: Sequence[IceServer]) -> ConnectivityConfig:
    return ConnectivityConfig(
        ice_servers=tuple(discovery_servers),
        ice_transport_policy=IceTransportPolicy.ALL,
        ice_candidate_pool_size=STUN_ONLY_POOL_SIZE,
    )


def build_full(discovery_servers: Sequence[IceServer], credentials: CredentialSet) -> ConnectivityConfig:
    # STUN first, fetched servers after as the fallback path
    return ConnectivityConfig(
        ice_servers=tuple(discovery_servers) + credentials.servers,
        ice_transport_policy=IceTransportPolicy.ALL,
        ice_candidate_pool_size=FULL_POOL_SIZE,
    )


def build_relay_only(credentials: CredentialSet) -> ConnectivityConfig:
    return ConnectivityConfig(
        ice_servers=credentials.relay_servers,
        ice_transport_policy=IceTransportPolicy.RELAY,
        ice_candidate_pool_size=RELAY_ONLY_POOL_SIZE,
    )


class IceConfigBuilder:
    def __init__(self, broker: CredentialBroker, discovery_servers: Sequence[IceServer]):
        self.broker = broker
        self.discovery_servers = tuple(discovery_servers)

    def discovery_only(self) -> ConnectivityConfig:
        """STUN-only configuration for the first connection attempt."""
        return build_discovery_only(self.discovery_servers)

    async def full_fallback(self) -> ConnectivityConfig:
        """STUN plus TURN, or STUN-only when no credentials can be had."""
        try:
            credentials = await self.broker.acquire()
        except FetchError as e:
            log_event(
                logger, "info", "turn_unavailable",
                "No TURN credentials available, using STUN-only configuration",
                reason=e.event,
            )
            return self.discovery_only()

        log_event(
            logger, "info", "turn_configured",
            "Successfully configured TURN servers as fallback",
            relays=len(credentials.relay_servers),
        )
        return build_full(self.discovery_servers, credentials)

    async def relay_only(self) -> ConnectivityConfig:
        """
        Force TURN relaying.

        Without usable relays this degrades to what full_fallback() would
        return for the same credentials, without fetching again.
        """
        try:
            credentials = await self.broker.acquire()
        except FetchError as e:
            log_event(
                logger, "warn", "turn_only_failed",
                "No TURN servers available for turn-only configuration. Falling back to STUN config.",
                reason=e.event,
            )
            return self.discovery_only()

        if not credentials.has_relay:
            log_event(
                logger, "warn", "turn_only_failed",
                "No TURN servers available for turn-only configuration. Falling back to STUN config.",
                reason="no_relay_urls",
            )
            return build_full(self.discovery_servers, credentials)

        return build_relay_only(credentials)

    async def for_mode(self, mode: IceMode) -> ConnectivityConfig:
        if mode == IceMode.STUN:
            return self.discovery_only()
        if mode == IceMode.RELAY:
            return await self.relay_only()
        return await self.full_fallback()
