"""
Tests for ICE server and RTC configuration models.
"""

import pytest
from pydantic import ValidationError

from icebroker.models import (
    CacheEntry,
    ConnectivityConfig,
    CredentialSet,
    IceServer,
    IceTransportPolicy,
)


class TestIceServer:
    """Tests for IceServer validation."""

    def test_single_url_string_becomes_tuple(self):
        server = IceServer(urls="stun:stun.l.google.com:19302")
        assert server.urls == ("stun:stun.l.google.com:19302",)

    def test_url_list(self):
        server = IceServer(urls=["turn:a:80", "turns:a:443?transport=tcp"], username="u", credential="c")
        assert server.urls == ("turn:a:80", "turns:a:443?transport=tcp")
        assert server.is_relay is True
        assert server.is_usable_relay is True

    def test_stun_is_not_relay(self):
        server = IceServer(urls=["stun:a", "stuns:b"])
        assert server.is_relay is False
        assert server.is_usable_relay is False

    def test_turn_without_credentials_not_usable(self):
        server = IceServer(urls="turn:a:80")
        assert server.is_relay is True
        assert server.is_usable_relay is False

    def test_scheme_is_case_insensitive(self):
        assert IceServer(urls="TURN:a:80", username="u", credential="c").is_usable_relay

    def test_mixed_schemes_entry_is_relay(self):
        server = IceServer(urls=["stun:a:3478", "turn:a:3478"], username="u", credential="c")

        assert server.urls == ("stun:a:3478", "turn:a:3478")
        assert server.is_relay is True
        assert server.is_usable_relay is True

    def test_rejects_unknown_scheme(self):
        with pytest.raises(ValidationError):
            IceServer(urls="https://example.com")

    def test_rejects_empty_urls(self):
        with pytest.raises(ValidationError):
            IceServer(urls=[])

    def test_rejects_missing_urls(self):
        with pytest.raises(ValidationError):
            IceServer(username="u")

    def test_frozen(self):
        server = IceServer(urls="stun:a")
        with pytest.raises(ValidationError):
            server.username = "changed"


class TestCredentialSet:
    """Tests for CredentialSet relay helpers."""

    def test_relay_servers_only_usable(self):
        stun = IceServer(urls="stun:a")
        bare_turn = IceServer(urls="turn:b")
        turn = IceServer(urls="turn:c", username="u", credential="c")
        credentials = CredentialSet(servers=(stun, bare_turn, turn), fetched_at=0.0)

        assert credentials.relay_servers == (turn,)
        assert credentials.has_relay is True

    def test_empty_set_has_no_relay(self):
        credentials = CredentialSet(servers=(), fetched_at=0.0)
        assert credentials.has_relay is False
        assert credentials.relay_servers == ()


class TestCacheEntry:
    def test_valid_strictly_before_expiry(self):
        entry = CacheEntry(credentials=CredentialSet(fetched_at=0.0), expires_at=300.0)
        assert entry.is_valid(299.9) is True
        assert entry.is_valid(300.0) is False
        assert entry.is_valid(301.0) is False


class TestConnectivityConfig:
    """Tests for the RTCConfiguration wire shape."""

    def test_to_rtc_configuration(self):
        config = ConnectivityConfig(
            ice_servers=(
                IceServer(urls="stun:a"),
                IceServer(urls="turn:b", username="u", credential="c"),
            ),
            ice_transport_policy=IceTransportPolicy.RELAY,
            ice_candidate_pool_size=0,
        )

        assert config.to_rtc_configuration() == {
            "iceServers": [
                {"urls": ["stun:a"]},
                {"urls": ["turn:b"], "username": "u", "credential": "c"},
            ],
            "iceTransportPolicy": "relay",
            "iceCandidatePoolSize": 0,
            "bundlePolicy": "max-bundle",
            "rtcpMuxPolicy": "require",
        }

    def test_accepts_camel_case(self):
        config = ConnectivityConfig.model_validate({
            "iceServers": [{"urls": "stun:a"}],
            "iceTransportPolicy": "all",
            "iceCandidatePoolSize": 4,
        })
        assert config.ice_candidate_pool_size == 4
        assert config.ice_transport_policy == IceTransportPolicy.ALL

    def test_rejects_negative_pool_size(self):
        with pytest.raises(ValidationError):
            ConnectivityConfig(ice_servers=(), ice_candidate_pool_size=-1)
