"""
Shared fixtures for ICE broker tests.

The Metered API is replaced by an httpx.MockTransport; FakeClock drives
cache expiry without sleeping.
"""

import asyncio

import httpx
import pytest

from icebroker.config import Settings
from icebroker.services.credential_broker import create_broker

TEST_API_URL = "https://turn.example.test/api/v1/turn/credentials"

METERED_PAYLOAD = [
    {"urls": "stun:stun.relay.metered.ca:80"},
    {
        "urls": "turn:global.relay.metered.ca:80",
        "username": "user-1",
        "credential": "secret-1",
    },
    {
        "urls": ["turns:global.relay.metered.ca:443?transport=tcp"],
        "username": "user-1",
        "credential": "secret-1",
    },
]

STUN_ONLY_PAYLOAD = [{"urls": "stun:stun.relay.metered.ca:80"}]


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeCredentialAPI:
    """
    Stand-in for the Metered credential endpoint.

    Set `hold` to make requests wait until release() is called, and
    `status` / `payload` / `error` to shape the response.
    """

    def __init__(self, payload=None, status: int = 200):
        self.payload = METERED_PAYLOAD if payload is None else payload
        self.status = status
        self.error = None
        self.hang = False
        self.hold = False
        self.requests: list[httpx.Request] = []
        self._started = None
        self._released = None

    @property
    def calls(self) -> int:
        return len(self.requests)

    async def wait_started(self) -> None:
        await self._started_event().wait()

    def release(self) -> None:
        self._released_event().set()

    def _started_event(self) -> asyncio.Event:
        if self._started is None:
            self._started = asyncio.Event()
        return self._started

    def _released_event(self) -> asyncio.Event:
        if self._released is None:
            self._released = asyncio.Event()
        return self._released

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        self._started_event().set()
        if self.hang:
            await asyncio.Event().wait()
        if self.hold:
            await self._released_event().wait()
        if self.error is not None:
            raise self.error
        if isinstance(self.payload, (bytes, str)):
            return httpx.Response(self.status, content=self.payload)
        return httpx.Response(self.status, json=self.payload)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


def make_settings(**overrides) -> Settings:
    values = {
        "metered_api_key": "test-key",
        "metered_api_url": TEST_API_URL,
        "stun_servers": ["stun:a"],
        "turn_credential_cache_seconds": 300,
        "prewarm_credentials": False,
        "require_auth": False,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def api():
    return FakeCredentialAPI()


@pytest.fixture
def broker(settings, api, clock):
    return create_broker(settings, client=api.client(), clock=clock)


def events(caplog, name: str) -> list:
    return [r for r in caplog.records if getattr(r, "event", None) == name]
