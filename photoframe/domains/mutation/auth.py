"""
Stateless admin session tokens and login throttling.

A token is ``<payload>.<signature>``, both base64url without padding. The
payload is JSON ``{"sub": <username>, "exp": <unix seconds>}`` and the
signature is HMAC-SHA256 over the encoded payload. Nothing is stored on the
server; a token stays valid until it expires or the signing key changes.
"""
import base64
import binascii
import hashlib
import hmac
import json
import logging
import time
from collections import defaultdict, deque
from typing import Callable, Deque, Dict, Optional

from photoframe.core.exceptions import (
    InvalidCredentialsError,
    TooManyLoginAttemptsError,
    UnauthorizedError,
)


def _b64encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _b64decode(text: str) -> bytes:
    padding = "=" * (-len(text) % 4)
    return base64.urlsafe_b64decode(text + padding)


class TokenService:
    def __init__(
        self,
        admin_username: str,
        admin_password: str,
        signing_key: bytes,
        ttl_seconds: int = 12 * 60 * 60,
        clock: Callable[[], float] = time.time,
    ):
        self._admin_username = admin_username
        self._admin_password = admin_password
        self._signing_key = signing_key
        self._ttl_seconds = ttl_seconds
        self._clock = clock

    def check_credentials(self, username: str, password: str) -> bool:
        # Evaluate both comparisons so timing doesn't reveal which one failed
        user_ok = hmac.compare_digest(username.encode("utf-8"), self._admin_username.encode("utf-8"))
        pass_ok = hmac.compare_digest(password.encode("utf-8"), self._admin_password.encode("utf-8"))
        return user_ok and pass_ok

    def login(self, username: str, password: str) -> str:
        if not self.check_credentials(username, password):
            raise InvalidCredentialsError()
        return self.issue_token(username)

    def issue_token(self, username: str) -> str:
        payload = {"sub": username, "exp": int(self._clock()) + self._ttl_seconds}
        encoded = _b64encode(json.dumps(payload, separators=(",", ":")).encode("utf-8"))
        return f"{encoded}.{self._sign(encoded)}"

    def verify_token(self, token: Optional[str]) -> str:
        """Return the token's subject, or raise UnauthorizedError."""
        # Tokens are base64url only; anything else can't be signed or compared
        if not token or not token.isascii() or token.count(".") != 1:
            raise UnauthorizedError()

        encoded, signature = token.split(".")
        if not hmac.compare_digest(signature, self._sign(encoded)):
            raise UnauthorizedError()

        try:
            payload = json.loads(_b64decode(encoded))
        except (binascii.Error, UnicodeDecodeError, ValueError):
            raise UnauthorizedError() from None

        if not isinstance(payload, dict) or payload.get("sub") != self._admin_username:
            raise UnauthorizedError()
        expires_at = payload.get("exp")
        if not isinstance(expires_at, int) or expires_at <= self._clock():
            raise UnauthorizedError("Session expired")

        return payload["sub"]

    def verify_authorization_header(self, header_value: Optional[str]) -> str:
        """Accepts ``Authorization: Bearer <token>``."""
        if not header_value:
            raise UnauthorizedError()
        scheme, _, token = header_value.partition(" ")
        if scheme.lower() != "bearer":
            raise UnauthorizedError()
        return self.verify_token(token.strip())

    def _sign(self, encoded_payload: str) -> str:
        digest = hmac.new(self._signing_key, encoded_payload.encode("ascii"), hashlib.sha256)
        return _b64encode(digest.digest())


class LoginThrottle:
    """
    Blocks a client after too many failed logins inside a sliding window.
    """

    def __init__(
        self,
        max_failures: int = 5,
        window_seconds: int = 300,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._max_failures = max_failures
        self._window_seconds = window_seconds
        self._clock = clock
        self._failures: Dict[str, Deque[float]] = defaultdict(deque)

    def _prune(self, client_id: str) -> Deque[float]:
        failures = self._failures[client_id]
        cutoff = self._clock() - self._window_seconds
        while failures and failures[0] <= cutoff:
            failures.popleft()
        return failures

    def check(self, client_id: str) -> None:
        failures = self._prune(client_id)
        if len(failures) >= self._max_failures:
            retry_after = int(failures[0] + self._window_seconds - self._clock()) + 1
            logging.warning(f"Login throttled for client {client_id}")
            raise TooManyLoginAttemptsError(retry_after)
        if not failures:
            self._failures.pop(client_id, None)

    def record_failure(self, client_id: str) -> None:
        self._forget_stale_clients()
        self._failures[client_id].append(self._clock())

    def _forget_stale_clients(self) -> None:
        """Drop clients whose newest failure has left the window."""
        cutoff = self._clock() - self._window_seconds
        stale = [cid for cid, failures in self._failures.items() if not failures or failures[-1] <= cutoff]
        for client_id in stale:
            del self._failures[client_id]

    def reset(self, client_id: str) -> None:
        self._failures.pop(client_id, None)
