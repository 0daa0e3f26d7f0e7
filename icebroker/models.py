from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import Literal, Optional
from enum import Enum


# ============== Enums ==============

class IceTransportPolicy(str, Enum):
    ALL = "all"  # direct, STUN-assisted and relayed candidates
    RELAY = "relay"  # TURN relay candidates only


class IceMode(str, Enum):
    STUN = "stun"
    FULL = "full"
    RELAY = "relay"


STUN_SCHEMES = ("stun", "stuns")
TURN_SCHEMES = ("turn", "turns")


def url_scheme(url: str) -> str:
    """Return the lowercased scheme of an ICE URL ("turns:host:443" -> "turns")."""
    return url.split(":", 1)[0].lower()


# ============== ICE Server Models ==============

class IceServer(BaseModel):
    """A STUN or TURN server entry as understood by RTCPeerConnection."""
    model_config = ConfigDict(frozen=True)

    urls: tuple[str, ...]
    username: Optional[str] = None
    credential: Optional[str] = None

    @field_validator("urls", mode="before")
    @classmethod
    def _coerce_single_url(cls, value):
        if isinstance(value, str):
            return (value,)
        return value

    @field_validator("urls")
    @classmethod
    def _check_schemes(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        if not value:
            raise ValueError("urls must contain at least one URL")
        # STUN and TURN URLs may share one entry, as RTCIceServer allows
        for url in value:
            if url_scheme(url) not in STUN_SCHEMES + TURN_SCHEMES:
                raise ValueError(f"unsupported ICE URL scheme: {url!r}")
        return value

    @property
    def is_relay(self) -> bool:
        return any(url_scheme(url) in TURN_SCHEMES for url in self.urls)

    @property
    def is_usable_relay(self) -> bool:
        """TURN entry carrying the username/credential pair the relay requires."""
        return self.is_relay and bool(self.username) and bool(self.credential)


class CredentialSet(BaseModel):
    """ICE servers returned by one successful credential fetch."""
    model_config = ConfigDict(frozen=True)

    servers: tuple[IceServer, ...] = ()
    fetched_at: float

    @property
    def relay_servers(self) -> tuple[IceServer, ...]:
        """TURN entries that can actually be used for relaying."""
        return tuple(s for s in self.servers if s.is_usable_relay)

    @property
    def has_relay(self) -> bool:
        return bool(self.relay_servers)


class CacheEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    credentials: CredentialSet
    expires_at: float

    def is_valid(self, now: float) -> bool:
        return now < self.expires_at


# ============== RTC Configuration Models ==============

class ConnectivityConfig(BaseModel):
    """
    RTCConfiguration handed to the peer connection.

    bundle_policy and rtcp_mux_policy are passed through to the transport
    layer untouched.
    """
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    ice_servers: tuple[IceServer, ...]
    ice_transport_policy: IceTransportPolicy = IceTransportPolicy.ALL
    ice_candidate_pool_size: int = Field(0, ge=0)
    bundle_policy: str = "max-bundle"
    rtcp_mux_policy: str = "require"

    def to_rtc_configuration(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# ============== API Response Models ==============

class HealthResponse(BaseModel):
    status: Literal["ok"] = "ok"


class IceStatusResponse(BaseModel):
    turn_configured: bool
    cached: bool
    cache_expires_in: Optional[float] = None  # seconds
    fetch_in_flight: bool
