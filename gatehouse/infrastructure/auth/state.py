"""Signed, self-verifying OAuth state tokens."""

import hashlib
import hmac
import json
import logging
import secrets
import time
from base64 import urlsafe_b64decode, urlsafe_b64encode

logger = logging.getLogger(__name__)

# OAuth state validity period (5 minutes)
STATE_EXPIRY_SECONDS = 300


class OAuthStateSigner:
    """Creates and verifies the CSRF `state` parameter of the OAuth flow.

    The state carries a nonce, the provider name and an expiry timestamp,
    signed with HMAC-SHA256, so the callback can be checked without any
    server-side session.
    """

    def __init__(self, secret: str, provider: str, ttl_seconds: int = STATE_EXPIRY_SECONDS) -> None:
        self._secret = secret.encode()
        self._provider = provider
        self._ttl_seconds = ttl_seconds

    def create(self) -> str:
        """Create a signed state token in the format payload.signature."""
        payload = {
            "nonce": secrets.token_urlsafe(16),
            "provider": self._provider,
            "exp": int(time.time()) + self._ttl_seconds,
        }
        payload_bytes = json.dumps(payload, separators=(",", ":")).encode()
        payload_b64 = urlsafe_b64encode(payload_bytes).rstrip(b"=").decode()

        signature = hmac.new(self._secret, payload_bytes, hashlib.sha256).digest()
        signature_b64 = urlsafe_b64encode(signature).rstrip(b"=").decode()

        return f"{payload_b64}.{signature_b64}"

    def verify(self, state: str) -> bool:
        """Check the signature, provider and expiry of a state token."""
        parts = state.split(".")
        if len(parts) != 2 or not all(parts):
            return False

        payload_b64, signature_b64 = parts
        try:
            # Restore base64 padding
            payload_bytes = urlsafe_b64decode(payload_b64 + "==")
            signature = urlsafe_b64decode(signature_b64 + "==")
        except ValueError:
            return False

        expected_sig = hmac.new(self._secret, payload_bytes, hashlib.sha256).digest()
        if not hmac.compare_digest(signature, expected_sig):
            logger.warning("OAuth state signature verification failed")
            return False

        try:
            payload = json.loads(payload_bytes)
        except ValueError:
            return False
        if not isinstance(payload, dict):
            return False

        if payload.get("provider") != self._provider:
            logger.warning("OAuth state issued for another provider")
            return False

        if payload.get("exp", 0) < time.time():
            logger.warning("OAuth state expired")
            return False

        return True
