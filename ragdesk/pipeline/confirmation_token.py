"""Signed, expiring, content-bound capability tokens.

Used for the two-step web-search confirmation: the server mints a token
bound to the exact question, the client echoes it back together with
``confirmWebSearch=true``, and the server verifies it without storing
anything.

Token format::

    base64url(payload_json) + "." + base64url(HMAC-SHA256(secret, payload_json))

    payload_json = {"exp": <unix seconds>, "mh": "<sha256 hex of the content>"}

Base64url is unpadded.  The signature covers the exact payload bytes, so
re-serializing the JSON is never needed on verification.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import json
import time
from collections.abc import Callable

from ragdesk.utils.errors import ConfigurationError

DEFAULT_TTL_SECONDS = 300


def _b64url_encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _b64url_decode(text: str) -> bytes:
    padding = "=" * (-len(text) % 4)
    return base64.b64decode(text + padding, altchars=b"-_", validate=True)


def content_hash(content: str) -> str:
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


class SignedTokenService:
    """Mints and verifies tokens bound to a piece of content.

    Parameters
    ----------
    secret:
        HMAC key.  When blank, :meth:`mint` raises and :meth:`verify`
        always returns ``False``.
    ttl_seconds:
        Token lifetime.
    clock:
        Returns the current unix time; injectable for tests.
    """

    def __init__(
        self,
        secret: str,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._secret = (secret or "").strip().encode("utf-8")
        self._ttl_seconds = ttl_seconds
        self._clock = clock

    @property
    def is_configured(self) -> bool:
        return bool(self._secret)

    def mint(self, content: str) -> str:
        if not self._secret:
            raise ConfigurationError(message="WEBSEARCH_CONFIRM_SECRET is not configured")

        payload = {"exp": int(self._clock()) + self._ttl_seconds, "mh": content_hash(content)}
        payload_bytes = json.dumps(payload, separators=(",", ":")).encode("utf-8")
        return f"{_b64url_encode(payload_bytes)}.{_b64url_encode(self._sign(payload_bytes))}"

    def verify(self, token: str | None, content: str) -> bool:
        """Return ``True`` only for an authentic, unexpired token minted for *content*.

        Malformed input of any kind is simply invalid.
        """
        if not self._secret or not token or "." not in token:
            return False

        encoded_payload, encoded_signature = token.split(".", 1)
        try:
            payload_bytes = _b64url_decode(encoded_payload)
            signature = _b64url_decode(encoded_signature)
        except (binascii.Error, ValueError):
            return False

        # Unpadded base64 leaves spare bits in the last character; only the
        # canonical encoding of the exact bytes is accepted.
        if _b64url_encode(payload_bytes) != encoded_payload:
            return False
        if _b64url_encode(signature) != encoded_signature:
            return False
        if not hmac.compare_digest(signature, self._sign(payload_bytes)):
            return False

        try:
            payload = json.loads(payload_bytes)
        except ValueError:
            return False
        if not isinstance(payload, dict):
            return False

        exp = payload.get("exp")
        digest = payload.get("mh")
        if not isinstance(exp, int) or isinstance(exp, bool) or not isinstance(digest, str):
            return False
        if self._clock() > exp:
            return False
        return hmac.compare_digest(digest.lower(), content_hash(content))

    def _sign(self, payload_bytes: bytes) -> bytes:
        return hmac.new(self._secret, payload_bytes, hashlib.sha256).digest()
