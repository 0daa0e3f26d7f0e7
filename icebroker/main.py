import asyncio
import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from icebroker.config import Settings, get_settings
from icebroker.models import HealthResponse
from icebroker.routers import ice
from icebroker.services.credential_broker import CredentialBroker, create_broker
from icebroker.services.ice_config import IceConfigBuilder, discovery_servers_from_settings

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, broker: Optional[CredentialBroker] = None) -> FastAPI:
    """Build the API around one credential broker shared by every request."""
    if settings is None:
        settings = get_settings()
    if broker is None:
        broker = create_broker(settings)

    app = FastAPI(
        title=settings.app_name,
        description="ICE server configuration broker for WebRTC sessions",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc"
    )
    app.state.settings = settings
    app.state.broker = broker
    app.state.ice_config_builder = IceConfigBuilder(broker, discovery_servers_from_settings(settings))
    app.state.prewarm_task = None

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(ice.router)

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check():
        """Server health check endpoint."""
        return HealthResponse(status="ok")

    @app.on_event("startup")
    async def startup_event():
        """Pre-warm TURN credentials so the first session does not wait on them."""
        logger.info(f"Starting {settings.app_name}")
        logger.info(f"Debug mode: {settings.debug}")
        if not broker.configured:
            logger.warning("METERED_API_KEY not set, serving STUN-only configurations")
        elif settings.prewarm_credentials:
            app.state.prewarm_task = asyncio.create_task(broker.prewarm())

    @app.on_event("shutdown")
    async def shutdown_event():
        logger.info("Shutting down ICE broker")
        task = app.state.prewarm_task
        if task is not None and not task.done():
            task.cancel()
            logger.info("[SHUTDOWN] Cancelled pending credential pre-warm")
        app.state.prewarm_task = None

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "icebroker.main:app",
        host="0.0.0.0",
        port=8000,
        reload=get_settings().debug
    )
