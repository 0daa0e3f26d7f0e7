from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Application
    app_name: str = "ICE Broker"
    debug: bool = False

    # JWT Configuration
    jwt_secret_key: str = "change-this-to-a-secure-secret-key-in-production"
    jwt_algorithm: str = "HS256"
    require_auth: bool = True

    # Metered TURN credential API (empty key => STUN-only mode)
    metered_api_key: str = ""
    metered_api_url: str = "https://whonoahexe.metered.live/api/v1/turn/credentials"

    # How long fetched TURN credentials are served from cache
    turn_credential_cache_seconds: int = 300  # 5 minutes

    # Fetch TURN credentials once at startup so the first session skips the wait
    prewarm_credentials: bool = True

    # Static STUN discovery servers, sent as a single descriptor
    stun_servers: list[str] = [
        "stun:stun.l.google.com:19302",
        "stun:stun1.l.google.com:19302",
        "stun:stun2.l.google.com:19302",
        "stun:stun3.l.google.com:19302",
        "stun:stun4.l.google.com:19302",
    ]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache
def get_settings() -> Settings:
    return Settings()
