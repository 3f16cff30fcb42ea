"""Unit tests for OAuthStateSigner."""

import time
from unittest.mock import patch

from gatehouse.infrastructure.auth.state import OAuthStateSigner

SECRET = "test-secret-key-256-bits-long-xx"


class TestOAuthStateSigner:
    def test_round_trip(self):
        signer = OAuthStateSigner(SECRET, provider="github")

        assert signer.verify(signer.create()) is True

    def test_states_are_unique(self):
        signer = OAuthStateSigner(SECRET, provider="github")

        assert signer.create() != signer.create()

    def test_rejects_other_secret(self):
        state = OAuthStateSigner("another-secret", provider="github").create()

        assert OAuthStateSigner(SECRET, provider="github").verify(state) is False

    def test_rejects_other_provider(self):
        state = OAuthStateSigner(SECRET, provider="gitlab").create()

        assert OAuthStateSigner(SECRET, provider="github").verify(state) is False

    def test_rejects_tampered_payload(self):
        signer = OAuthStateSigner(SECRET, provider="github")
        payload, signature = signer.create().split(".")

        tampered = ("A" if payload[0] != "A" else "B") + payload[1:]

        assert signer.verify(f"{tampered}.{signature}") is False

    def test_rejects_expired_state(self):
        signer = OAuthStateSigner(SECRET, provider="github", ttl_seconds=60)
        state = signer.create()

        with patch("gatehouse.infrastructure.auth.state.time.time", return_value=time.time() + 61):
            assert signer.verify(state) is False

    def test_rejects_malformed_states(self):
        signer = OAuthStateSigner(SECRET, provider="github")

        assert signer.verify("") is False
        assert signer.verify("no-dot") is False
        assert signer.verify("a.b.c") is False
        assert signer.verify(".sig") is False
        assert signer.verify("!!!.???") is False
