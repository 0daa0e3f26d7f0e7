import logging

from fastapi import APIRouter, Depends, Query, Request

from icebroker.auth import get_current_user
from icebroker.models import ConnectivityConfig, IceMode, IceStatusResponse
from icebroker.services.credential_broker import CredentialBroker
from icebroker.services.ice_config import IceConfigBuilder

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/ice", tags=["ICE"])


def get_broker(request: Request) -> CredentialBroker:
    """Dependency to get the app's credential broker."""
    return request.app.state.broker


def get_ice_config_builder(request: Request) -> IceConfigBuilder:
    return request.app.state.ice_config_builder


@router.get("/config", response_model=ConnectivityConfig, response_model_exclude_none=True)
async def get_ice_config(
    mode: IceMode = Query(IceMode.FULL, description="stun, full (STUN + TURN) or relay (TURN only)"),
    user: dict = Depends(get_current_user),
    builder: IceConfigBuilder = Depends(get_ice_config_builder),
):
    """
    Get an RTCConfiguration for a new peer connection.

    Never fails because of the TURN credential service: when credentials
    cannot be fetched the STUN-only configuration is returned instead.
    """
    config = await builder.for_mode(mode)
    logger.info(
        f"[ICE] Served {mode.value} config to {user.get('user_id', 'unknown')}: "
        f"{len(config.ice_servers)} servers, policy={config.ice_transport_policy.value}"
    )
    return config


@router.get("/status", response_model=IceStatusResponse)
async def get_ice_status(
    user: dict = Depends(get_current_user),
    broker: CredentialBroker = Depends(get_broker),
):
    """Report TURN configuration and credential cache state."""
    return IceStatusResponse(
        turn_configured=broker.configured,
        cached=broker.cache.get() is not None,
        cache_expires_in=broker.cache.expires_in(),
        fetch_in_flight=broker.fetch_in_flight,
    )
